from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_db_session
from ..middleware import require_permission
from ..models import LessonPlanStatus
from ..permissions import CallerIdentity, Permission
from ..schemas import LessonPlanCreate, LessonPlanOut, LessonPlanUpdate, MessageResponse
from ..services import lesson_plans as lesson_plan_service

router = APIRouter(prefix="/api/lesson-plans", tags=["Lesson Plans"])


@router.get("", response_model=list[LessonPlanOut])
def list_lesson_plans(
    teacher_id: int | None = None,
    class_id: int | None = None,
    status: LessonPlanStatus | None = None,
    db: Session = Depends(get_db_session),
    caller: CallerIdentity = Depends(require_permission(Permission.VIEW_LESSON_PLANS)),
):
    return lesson_plan_service.list_lesson_plans(
        db, caller, teacher_id=teacher_id, class_id=class_id, status=status
    )


@router.get("/{plan_id}", response_model=LessonPlanOut)
def get_lesson_plan(
    plan_id: int,
    db: Session = Depends(get_db_session),
    caller: CallerIdentity = Depends(require_permission(Permission.VIEW_LESSON_PLANS)),
):
    return lesson_plan_service.get_lesson_plan(db, caller, plan_id)


@router.post("", response_model=LessonPlanOut, status_code=status.HTTP_201_CREATED)
def create_lesson_plan(
    payload: LessonPlanCreate,
    db: Session = Depends(get_db_session),
    caller: CallerIdentity = Depends(require_permission(Permission.CREATE_LESSON_PLANS)),
):
    return lesson_plan_service.create_lesson_plan(db, caller, payload.model_dump())


@router.put("/{plan_id}", response_model=LessonPlanOut)
def update_lesson_plan(
    plan_id: int,
    payload: LessonPlanUpdate,
    db: Session = Depends(get_db_session),
    caller: CallerIdentity = Depends(require_permission(Permission.UPDATE_LESSON_PLANS)),
):
    return lesson_plan_service.update_lesson_plan(db, caller, plan_id, payload.model_dump(exclude_unset=True))


@router.delete("/{plan_id}", response_model=MessageResponse)
def delete_lesson_plan(
    plan_id: int,
    db: Session = Depends(get_db_session),
    caller: CallerIdentity = Depends(require_permission(Permission.DELETE_LESSON_PLANS)),
):
    lesson_plan_service.delete_lesson_plan(db, caller, plan_id)
    return MessageResponse(message="Lesson plan deleted successfully")
