import logging
from datetime import datetime, timezone

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..db_retry import with_db_retry
from ..models import Branch, Classroom, Enrollment, LessonPlan, Message, School, Student, Teacher, User
from ..permissions import ADMINS, Role
from .common import get_or_404
from .users import parse_role


logger = logging.getLogger(__name__)

DEMOTION_ROLES = (Role.TEACHER.value, Role.STUDENT.value)


def _set_role(db: Session, user_id: int, role: Role) -> User:
    user = get_or_404(db, User, user_id, "User")
    previous = user.role
    user.role = role
    db.commit()
    db.refresh(user)
    logger.info(f"Role of user {user_id} changed from {previous} to {role}")
    return user


@with_db_retry
def change_role(db: Session, user_id: int, role: str) -> User:
    return _set_role(db, user_id, parse_role(role))


@with_db_retry
def promote_to_admin(db: Session, user_id: int) -> User:
    return _set_role(db, user_id, Role.ADMIN)


@with_db_retry
def demote_user(db: Session, user_id: int, role: str | None = None) -> User:
    new_role = parse_role(role or Role.STUDENT.value, DEMOTION_ROLES, error="Invalid role for demotion")
    return _set_role(db, user_id, new_role)


@with_db_retry
def remove_user(db: Session, user_id: int) -> None:
    user = get_or_404(db, User, user_id, "User")
    db.delete(user)
    db.commit()
    logger.info(f"User {user_id} ({user.email}) deleted by superadmin")


@with_db_retry
def list_admins(db: Session) -> list[User]:
    return db.query(User).filter(User.role.in_(ADMINS)).order_by(User.created_at.desc(), User.id.desc()).all()


@with_db_retry
def system_stats(db: Session) -> dict:
    role_counts = dict(db.query(User.role, func.count(User.id)).group_by(User.role).all())
    return {
        "total_users": sum(role_counts.values()),
        "superadmins": role_counts.get(Role.SUPERADMIN, 0),
        "admins": role_counts.get(Role.ADMIN, 0),
        "teachers": role_counts.get(Role.TEACHER, 0),
        "students": role_counts.get(Role.STUDENT, 0),
        "total_students": db.query(Student).count(),
        "total_teachers": db.query(Teacher).count(),
        "total_classes": db.query(Classroom).count(),
        "total_enrollments": db.query(Enrollment).count(),
        "total_schools": db.query(School).count(),
        "total_branches": db.query(Branch).count(),
        "total_lesson_plans": db.query(LessonPlan).count(),
        "total_messages": db.query(Message).count(),
        "timestamp": datetime.now(timezone.utc),
    }
