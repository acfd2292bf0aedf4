from typing import Any

from sqlalchemy.orm import Session, joinedload

from ..database import commit_or_raise
from ..db_retry import with_db_retry
from ..models import Branch, School
from .common import apply_changes, get_or_404


@with_db_retry
def list_branches(db: Session, school_id: int | None = None) -> list[Branch]:
    query = db.query(Branch).options(joinedload(Branch.school))
    if school_id is not None:
        get_or_404(db, School, school_id, "School")
        query = query.filter(Branch.school_id == school_id)
    return query.order_by(Branch.name).all()


@with_db_retry
def get_branch(db: Session, branch_id: int) -> Branch:
    return get_or_404(db, Branch, branch_id, "Branch")


@with_db_retry
def create_branch(db: Session, *, name: str, code: str, school_id: int, **fields: Any) -> Branch:
    get_or_404(db, School, school_id, "School")
    branch = Branch(name=name, code=code, school_id=school_id)
    apply_changes(branch, fields)
    db.add(branch)
    commit_or_raise(db, "Branch code already exists")
    db.refresh(branch)
    return branch


@with_db_retry
def update_branch(db: Session, branch_id: int, changes: dict[str, Any]) -> Branch:
    branch = get_or_404(db, Branch, branch_id, "Branch")
    if changes.get("school_id") is not None:
        get_or_404(db, School, changes["school_id"], "School")
    apply_changes(branch, changes, required=("name", "code", "school_id"))
    commit_or_raise(db, "Branch code already exists")
    db.refresh(branch)
    return branch


@with_db_retry
def delete_branch(db: Session, branch_id: int) -> None:
    branch = get_or_404(db, Branch, branch_id, "Branch")
    db.delete(branch)
    db.commit()
