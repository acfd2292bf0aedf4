from typing import Any

from sqlalchemy.orm import Session

from ..database import commit_or_raise
from ..db_retry import with_db_retry
from ..models import Teacher
from .common import apply_changes, get_or_404, normalize_email


@with_db_retry
def list_teachers(db: Session) -> list[Teacher]:
    return db.query(Teacher).order_by(Teacher.name).all()


@with_db_retry
def get_teacher(db: Session, teacher_id: int) -> Teacher:
    return get_or_404(db, Teacher, teacher_id, "Teacher")


@with_db_retry
def create_teacher(db: Session, *, name: str, email: str, subject: str | None = None,
                   phone: str | None = None, user_id: int | None = None) -> Teacher:
    teacher = Teacher(
        name=name, email=normalize_email(email), subject=subject or None, phone=phone or None, user_id=user_id
    )
    db.add(teacher)
    commit_or_raise(db, "Teacher email already exists")
    db.refresh(teacher)
    return teacher


@with_db_retry
def update_teacher(db: Session, teacher_id: int, changes: dict[str, Any]) -> Teacher:
    teacher = get_or_404(db, Teacher, teacher_id, "Teacher")
    if changes.get("email"):
        changes["email"] = normalize_email(changes["email"])
    apply_changes(teacher, changes, required=("name", "email"))
    commit_or_raise(db, "Teacher email already exists")
    db.refresh(teacher)
    return teacher


@with_db_retry
def delete_teacher(db: Session, teacher_id: int) -> None:
    teacher = get_or_404(db, Teacher, teacher_id, "Teacher")
    db.delete(teacher)
    db.commit()


def teacher_profile_for(db: Session, user_id: int) -> Teacher | None:
    """The teacher profile linked to a user account, if any."""
    return db.query(Teacher).filter(Teacher.user_id == user_id).first()
