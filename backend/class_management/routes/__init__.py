from fastapi import APIRouter

from . import (
    analytics,
    auth,
    branches,
    classes,
    diagnostics,
    enrollments,
    lesson_plans,
    messages,
    schools,
    students,
    superadmin,
    teachers,
    users,
)

api_router = APIRouter()
for module in (
    auth,
    users,
    superadmin,
    students,
    teachers,
    classes,
    enrollments,
    schools,
    branches,
    lesson_plans,
    messages,
    analytics,
    diagnostics,
):
    api_router.include_router(module.router)

__all__ = ["api_router"]
