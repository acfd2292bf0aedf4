from typing import Any

from sqlalchemy.orm import Session

from ..database import commit_or_raise
from ..db_retry import with_db_retry
from ..models import Student
from .common import apply_changes, get_or_404, normalize_email


@with_db_retry
def list_students(db: Session) -> list[Student]:
    return db.query(Student).order_by(Student.name).all()


@with_db_retry
def get_student(db: Session, student_id: int) -> Student:
    return get_or_404(db, Student, student_id, "Student")


@with_db_retry
def create_student(db: Session, *, name: str, email: str, age: int | None = None,
                   grade: str | None = None, user_id: int | None = None) -> Student:
    student = Student(name=name, email=normalize_email(email), age=age, grade=grade or None, user_id=user_id)
    db.add(student)
    commit_or_raise(db, "Student email already exists")
    db.refresh(student)
    return student


@with_db_retry
def update_student(db: Session, student_id: int, changes: dict[str, Any]) -> Student:
    student = get_or_404(db, Student, student_id, "Student")
    if changes.get("email"):
        changes["email"] = normalize_email(changes["email"])
    apply_changes(student, changes, required=("name", "email"))
    commit_or_raise(db, "Student email already exists")
    db.refresh(student)
    return student


@with_db_retry
def delete_student(db: Session, student_id: int) -> None:
    student = get_or_404(db, Student, student_id, "Student")
    db.delete(student)
    db.commit()


def student_profile_for(db: Session, user_id: int) -> Student | None:
    return db.query(Student).filter(Student.user_id == user_id).first()
