from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_db_session
from ..middleware import require_permission
from ..permissions import CallerIdentity, Permission
from ..schemas import MessageResponse, TeacherCreate, TeacherOut, TeacherUpdate
from ..services import teachers as teacher_service

router = APIRouter(prefix="/api/teachers", tags=["Teachers"])


@router.get("", response_model=list[TeacherOut])
def list_teachers(
    db: Session = Depends(get_db_session),
    _: CallerIdentity = Depends(require_permission(Permission.VIEW_TEACHERS)),
):
    return teacher_service.list_teachers(db)


@router.get("/{teacher_id}", response_model=TeacherOut)
def get_teacher(
    teacher_id: int,
    db: Session = Depends(get_db_session),
    _: CallerIdentity = Depends(require_permission(Permission.VIEW_TEACHERS)),
):
    return teacher_service.get_teacher(db, teacher_id)


@router.post("", response_model=TeacherOut, status_code=status.HTTP_201_CREATED)
def create_teacher(
    payload: TeacherCreate,
    db: Session = Depends(get_db_session),
    _: CallerIdentity = Depends(require_permission(Permission.CREATE_TEACHERS)),
):
    return teacher_service.create_teacher(db, **payload.model_dump())


@router.put("/{teacher_id}", response_model=TeacherOut)
def update_teacher(
    teacher_id: int,
    payload: TeacherUpdate,
    db: Session = Depends(get_db_session),
    _: CallerIdentity = Depends(require_permission(Permission.UPDATE_TEACHERS)),
):
    return teacher_service.update_teacher(db, teacher_id, payload.model_dump(exclude_unset=True))


@router.delete("/{teacher_id}", response_model=MessageResponse)
def delete_teacher(
    teacher_id: int,
    db: Session = Depends(get_db_session),
    _: CallerIdentity = Depends(require_permission(Permission.DELETE_TEACHERS)),
):
    teacher_service.delete_teacher(db, teacher_id)
    return MessageResponse(message="Teacher deleted successfully")
