from typing import Any

from sqlalchemy.orm import Session, joinedload

from ..database import commit_or_raise
from ..db_retry import with_db_retry
from ..errors import AuthorizationDenied
from ..middleware import access
from ..models import Classroom, Teacher
from ..permissions import CallerIdentity, Permission, is_admin
from .common import apply_changes, get_or_404


def _check_teacher(db: Session, teacher_id: int | None) -> None:
    if teacher_id is not None:
        get_or_404(db, Teacher, teacher_id, "Teacher")


@with_db_retry
def list_classes(db: Session) -> list[Classroom]:
    return db.query(Classroom).options(joinedload(Classroom.teacher)).order_by(Classroom.name).all()


@with_db_retry
def get_class(db: Session, class_id: int) -> Classroom:
    return get_or_404(db, Classroom, class_id, "Class")


@with_db_retry
def create_class(db: Session, *, name: str, code: str, teacher_id: int | None = None, **fields: Any) -> Classroom:
    _check_teacher(db, teacher_id)
    classroom = Classroom(name=name, code=code, teacher_id=teacher_id)
    apply_changes(classroom, fields)
    db.add(classroom)
    commit_or_raise(db, "Class code already exists")
    db.refresh(classroom)
    return classroom


@with_db_retry
def update_class(db: Session, caller: CallerIdentity, class_id: int, changes: dict[str, Any]) -> Classroom:
    classroom = get_or_404(db, Classroom, class_id, "Class")
    access.ensure_owner(
        caller, Permission.UPDATE_CLASSES, classroom.owner_user_id, "You can only update your own classes"
    )
    if "teacher_id" in changes and not is_admin(caller.role):
        raise AuthorizationDenied("Only admins can reassign a class", current_role=caller.role)
    if changes.get("teacher_id") is not None:
        _check_teacher(db, changes["teacher_id"])
    apply_changes(classroom, changes, required=("name", "code"))
    commit_or_raise(db, "Class code already exists")
    db.refresh(classroom)
    return classroom


@with_db_retry
def delete_class(db: Session, class_id: int) -> None:
    classroom = get_or_404(db, Classroom, class_id, "Class")
    db.delete(classroom)
    db.commit()
