from typing import Any

from sqlalchemy.orm import Session, selectinload

from ..database import commit_or_raise
from ..db_retry import with_db_retry
from ..models import School
from .common import apply_changes, get_or_404


@with_db_retry
def list_schools(db: Session) -> list[School]:
    return db.query(School).options(selectinload(School.branches)).order_by(School.name).all()


@with_db_retry
def get_school(db: Session, school_id: int) -> School:
    return get_or_404(db, School, school_id, "School")


@with_db_retry
def create_school(db: Session, *, name: str, code: str, **fields: Any) -> School:
    school = School(name=name, code=code)
    apply_changes(school, fields)
    db.add(school)
    commit_or_raise(db, "School code already exists")
    db.refresh(school)
    return school


@with_db_retry
def update_school(db: Session, school_id: int, changes: dict[str, Any]) -> School:
    school = get_or_404(db, School, school_id, "School")
    apply_changes(school, changes, required=("name", "code"))
    commit_or_raise(db, "School code already exists")
    db.refresh(school)
    return school


@with_db_retry
def delete_school(db: Session, school_id: int) -> None:
    school = get_or_404(db, School, school_id, "School")
    db.delete(school)
    db.commit()
