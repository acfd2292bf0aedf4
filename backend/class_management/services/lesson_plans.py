import logging
from typing import Any

from sqlalchemy.orm import Session, joinedload

from ..database import commit_or_raise
from ..db_retry import with_db_retry
from ..errors import ValidationFailed
from ..middleware import access
from ..models import Classroom, LessonPlan, LessonPlanStatus, Teacher
from ..permissions import CallerIdentity, Permission, Role, is_admin
from .common import apply_changes, get_or_404
from .teachers import teacher_profile_for


logger = logging.getLogger(__name__)


def _own_profile(db: Session, caller: CallerIdentity) -> Teacher:
    profile = teacher_profile_for(db, caller.id)
    if profile is None:
        raise ValidationFailed(
            "Teacher profile not found",
            "Your account is not linked to a teacher profile",
        )
    return profile


def _load(db: Session, caller: CallerIdentity, plan_id: int, permission: Permission) -> LessonPlan:
    plan = get_or_404(db, LessonPlan, plan_id, "Lesson plan")
    access.ensure_owner(caller, permission, plan.owner_user_id, "You can only manage your own lesson plans")
    return plan


@with_db_retry
def list_lesson_plans(
    db: Session,
    caller: CallerIdentity,
    *,
    teacher_id: int | None = None,
    class_id: int | None = None,
    status: LessonPlanStatus | None = None,
) -> list[LessonPlan]:
    query = db.query(LessonPlan).options(joinedload(LessonPlan.teacher))
    if caller.role == Role.TEACHER:
        profile = teacher_profile_for(db, caller.id)
        if profile is None:
            return []
        query = query.filter(LessonPlan.teacher_id == profile.id)
    elif teacher_id is not None:
        query = query.filter(LessonPlan.teacher_id == teacher_id)
    if class_id is not None:
        query = query.filter(LessonPlan.class_id == class_id)
    if status is not None:
        query = query.filter(LessonPlan.status == status)
    return query.order_by(LessonPlan.date.desc(), LessonPlan.id.desc()).all()


@with_db_retry
def get_lesson_plan(db: Session, caller: CallerIdentity, plan_id: int) -> LessonPlan:
    return _load(db, caller, plan_id, Permission.VIEW_LESSON_PLANS)


@with_db_retry
def create_lesson_plan(db: Session, caller: CallerIdentity, data: dict[str, Any]) -> LessonPlan:
    teacher_id = data.get("teacher_id")
    if is_admin(caller.role):
        if teacher_id is None:
            raise ValidationFailed("teacher_id is required", "Admins must specify the teacher for a lesson plan")
        get_or_404(db, Teacher, teacher_id, "Teacher")
    else:
        teacher_id = _own_profile(db, caller).id
    if data.get("class_id") is not None:
        get_or_404(db, Classroom, data["class_id"], "Class")

    plan = LessonPlan(title=data["title"], date=data["date"], teacher_id=teacher_id)
    apply_changes(plan, {k: v for k, v in data.items() if k not in ("title", "date", "teacher_id")})
    db.add(plan)
    commit_or_raise(db, "Lesson plan already exists")
    db.refresh(plan)
    logger.info(f"Lesson plan {plan.id} created by user {caller.id}")
    return plan


@with_db_retry
def update_lesson_plan(db: Session, caller: CallerIdentity, plan_id: int, changes: dict[str, Any]) -> LessonPlan:
    plan = _load(db, caller, plan_id, Permission.UPDATE_LESSON_PLANS)
    if changes.get("class_id") is not None:
        get_or_404(db, Classroom, changes["class_id"], "Class")
    apply_changes(plan, changes, required=("title", "date", "status"))
    commit_or_raise(db, "Lesson plan already exists")
    db.refresh(plan)
    return plan


@with_db_retry
def delete_lesson_plan(db: Session, caller: CallerIdentity, plan_id: int) -> None:
    plan = _load(db, caller, plan_id, Permission.DELETE_LESSON_PLANS)
    db.delete(plan)
    db.commit()
    logger.info(f"Lesson plan {plan_id} deleted by user {caller.id}")
