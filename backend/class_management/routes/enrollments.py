from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_db_session
from ..middleware import require_permission
from ..permissions import CallerIdentity, Permission
from ..schemas import EnrollmentCreate, EnrollmentOut, EnrollmentUpdate, MessageResponse
from ..services import enrollments as enrollment_service

router = APIRouter(prefix="/api/enrollments", tags=["Enrollments"])

can_view = require_permission(Permission.VIEW_ENROLLMENTS)


@router.get("", response_model=list[EnrollmentOut])
def list_enrollments(db: Session = Depends(get_db_session), caller: CallerIdentity = Depends(can_view)):
    return enrollment_service.list_enrollments(db, caller)


@router.get("/student/{student_id}", response_model=list[EnrollmentOut])
def list_student_enrollments(
    student_id: int,
    db: Session = Depends(get_db_session),
    caller: CallerIdentity = Depends(can_view),
):
    return enrollment_service.list_student_enrollments(db, caller, student_id)


@router.get("/class/{class_id}", response_model=list[EnrollmentOut])
def list_class_enrollments(
    class_id: int,
    db: Session = Depends(get_db_session),
    caller: CallerIdentity = Depends(can_view),
):
    return enrollment_service.list_class_enrollments(db, caller, class_id)


@router.get("/{enrollment_id}", response_model=EnrollmentOut)
def get_enrollment(
    enrollment_id: int,
    db: Session = Depends(get_db_session),
    caller: CallerIdentity = Depends(can_view),
):
    return enrollment_service.get_enrollment(db, caller, enrollment_id)


@router.post("", response_model=EnrollmentOut, status_code=status.HTTP_201_CREATED)
def create_enrollment(
    payload: EnrollmentCreate,
    db: Session = Depends(get_db_session),
    caller: CallerIdentity = Depends(require_permission(Permission.CREATE_ENROLLMENTS)),
):
    return enrollment_service.enroll_student(db, caller, student_id=payload.student_id, class_id=payload.class_id)


@router.put("/{enrollment_id}", response_model=EnrollmentOut)
def update_enrollment(
    enrollment_id: int,
    payload: EnrollmentUpdate,
    db: Session = Depends(get_db_session),
    _: CallerIdentity = Depends(require_permission(Permission.UPDATE_ENROLLMENTS)),
):
    return enrollment_service.move_enrollment(db, enrollment_id, payload.class_id)


@router.delete("/student/{student_id}/class/{class_id}", response_model=MessageResponse)
def delete_enrollment_by_pair(
    student_id: int,
    class_id: int,
    db: Session = Depends(get_db_session),
    caller: CallerIdentity = Depends(require_permission(Permission.DELETE_ENROLLMENTS)),
):
    enrollment_service.remove_enrollment_by_pair(db, caller, student_id=student_id, class_id=class_id)
    return MessageResponse(message="Enrollment deleted successfully")


@router.delete("/{enrollment_id}", response_model=MessageResponse)
def delete_enrollment(
    enrollment_id: int,
    db: Session = Depends(get_db_session),
    caller: CallerIdentity = Depends(require_permission(Permission.DELETE_ENROLLMENTS)),
):
    enrollment_service.remove_enrollment(db, caller, enrollment_id)
    return MessageResponse(message="Enrollment deleted successfully")
