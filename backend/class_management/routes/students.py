from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_db_session
from ..middleware import require_permission
from ..permissions import CallerIdentity, Permission
from ..schemas import MessageResponse, StudentCreate, StudentOut, StudentUpdate
from ..services import students as student_service

router = APIRouter(prefix="/api/students", tags=["Students"])


@router.get("", response_model=list[StudentOut])
def list_students(
    db: Session = Depends(get_db_session),
    _: CallerIdentity = Depends(require_permission(Permission.VIEW_STUDENTS)),
):
    return student_service.list_students(db)


@router.get("/{student_id}", response_model=StudentOut)
def get_student(
    student_id: int,
    db: Session = Depends(get_db_session),
    _: CallerIdentity = Depends(require_permission(Permission.VIEW_STUDENTS)),
):
    return student_service.get_student(db, student_id)


@router.post("", response_model=StudentOut, status_code=status.HTTP_201_CREATED)
def create_student(
    payload: StudentCreate,
    db: Session = Depends(get_db_session),
    _: CallerIdentity = Depends(require_permission(Permission.CREATE_STUDENTS)),
):
    return student_service.create_student(db, **payload.model_dump())


@router.put("/{student_id}", response_model=StudentOut)
def update_student(
    student_id: int,
    payload: StudentUpdate,
    db: Session = Depends(get_db_session),
    _: CallerIdentity = Depends(require_permission(Permission.UPDATE_STUDENTS)),
):
    return student_service.update_student(db, student_id, payload.model_dump(exclude_unset=True))


@router.delete("/{student_id}", response_model=MessageResponse)
def delete_student(
    student_id: int,
    db: Session = Depends(get_db_session),
    _: CallerIdentity = Depends(require_permission(Permission.DELETE_STUDENTS)),
):
    student_service.delete_student(db, student_id)
    return MessageResponse(message="Student deleted successfully")
