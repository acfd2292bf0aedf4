import logging

from sqlalchemy.orm import Query, Session, joinedload

from ..database import commit_or_raise
from ..db_retry import with_db_retry
from ..errors import AuthorizationDenied, ConflictError, NotFoundError
from ..middleware import access
from ..models import Classroom, Enrollment, Student
from ..permissions import CallerIdentity, Permission, Role
from .common import get_or_404
from .students import student_profile_for


logger = logging.getLogger(__name__)

DUPLICATE_ENROLLMENT = "Student is already enrolled in this class"


def _base_query(db: Session) -> Query:
    return db.query(Enrollment).options(joinedload(Enrollment.student), joinedload(Enrollment.classroom))


def _scoped(db: Session, caller: CallerIdentity, query: Query) -> Query:
    """Students only ever see enrollments of their own linked profile."""
    if caller.role != Role.STUDENT:
        return query
    profile = student_profile_for(db, caller.id)
    if profile is None:
        return query.filter(Enrollment.id.is_(None))
    return query.filter(Enrollment.student_id == profile.id)


def _ensure_class_owner(caller: CallerIdentity, permission: Permission, classroom: Classroom) -> None:
    access.ensure_owner(
        caller, permission, classroom.owner_user_id, "You can only manage enrollments in your own classes"
    )


@with_db_retry
def list_enrollments(db: Session, caller: CallerIdentity) -> list[Enrollment]:
    return _scoped(db, caller, _base_query(db)).order_by(Enrollment.enrolled_at.desc(), Enrollment.id.desc()).all()


@with_db_retry
def get_enrollment(db: Session, caller: CallerIdentity, enrollment_id: int) -> Enrollment:
    enrollment = get_or_404(db, Enrollment, enrollment_id, "Enrollment")
    if caller.role == Role.STUDENT:
        profile = student_profile_for(db, caller.id)
        if profile is None or enrollment.student_id != profile.id:
            raise AuthorizationDenied("You can only view your own enrollments", current_role=caller.role)
    return enrollment


@with_db_retry
def list_student_enrollments(db: Session, caller: CallerIdentity, student_id: int) -> list[Enrollment]:
    get_or_404(db, Student, student_id, "Student")
    query = _base_query(db).filter(Enrollment.student_id == student_id)
    return _scoped(db, caller, query).order_by(Enrollment.id).all()


@with_db_retry
def list_class_enrollments(db: Session, caller: CallerIdentity, class_id: int) -> list[Enrollment]:
    get_or_404(db, Classroom, class_id, "Class")
    query = _base_query(db).filter(Enrollment.class_id == class_id)
    return _scoped(db, caller, query).order_by(Enrollment.id).all()


@with_db_retry
def enroll_student(db: Session, caller: CallerIdentity, *, student_id: int, class_id: int) -> Enrollment:
    get_or_404(db, Student, student_id, "Student")
    classroom = get_or_404(db, Classroom, class_id, "Class")
    _ensure_class_owner(caller, Permission.CREATE_ENROLLMENTS, classroom)

    exists = (
        db.query(Enrollment)
        .filter(Enrollment.student_id == student_id, Enrollment.class_id == class_id)
        .first()
    )
    if exists:
        raise ConflictError(DUPLICATE_ENROLLMENT)

    enrollment = Enrollment(student_id=student_id, class_id=class_id)
    db.add(enrollment)
    commit_or_raise(db, DUPLICATE_ENROLLMENT)
    db.refresh(enrollment)
    logger.info(f"Student {student_id} enrolled in class {class_id} by user {caller.id}")
    return enrollment


@with_db_retry
def move_enrollment(db: Session, enrollment_id: int, class_id: int) -> Enrollment:
    enrollment = get_or_404(db, Enrollment, enrollment_id, "Enrollment")
    get_or_404(db, Classroom, class_id, "Class")
    enrollment.class_id = class_id
    commit_or_raise(db, DUPLICATE_ENROLLMENT)
    db.refresh(enrollment)
    return enrollment


@with_db_retry
def remove_enrollment(db: Session, caller: CallerIdentity, enrollment_id: int) -> None:
    enrollment = get_or_404(db, Enrollment, enrollment_id, "Enrollment")
    _ensure_class_owner(caller, Permission.DELETE_ENROLLMENTS, enrollment.classroom)
    db.delete(enrollment)
    db.commit()


@with_db_retry
def remove_enrollment_by_pair(db: Session, caller: CallerIdentity, *, student_id: int, class_id: int) -> None:
    enrollment = (
        db.query(Enrollment)
        .filter(Enrollment.student_id == student_id, Enrollment.class_id == class_id)
        .first()
    )
    if enrollment is None:
        raise NotFoundError("Enrollment")
    _ensure_class_owner(caller, Permission.DELETE_ENROLLMENTS, enrollment.classroom)
    db.delete(enrollment)
    db.commit()
