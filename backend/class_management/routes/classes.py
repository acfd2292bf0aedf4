from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_db_session
from ..middleware import require_permission
from ..permissions import CallerIdentity, Permission
from ..schemas import ClassCreate, ClassOut, ClassUpdate, MessageResponse
from ..services import classes as class_service

router = APIRouter(prefix="/api/classes", tags=["Classes"])


@router.get("", response_model=list[ClassOut])
def list_classes(
    db: Session = Depends(get_db_session),
    _: CallerIdentity = Depends(require_permission(Permission.VIEW_CLASSES)),
):
    return class_service.list_classes(db)


@router.get("/{class_id}", response_model=ClassOut)
def get_class(
    class_id: int,
    db: Session = Depends(get_db_session),
    _: CallerIdentity = Depends(require_permission(Permission.VIEW_CLASSES)),
):
    return class_service.get_class(db, class_id)


@router.post("", response_model=ClassOut, status_code=status.HTTP_201_CREATED)
def create_class(
    payload: ClassCreate,
    db: Session = Depends(get_db_session),
    _: CallerIdentity = Depends(require_permission(Permission.CREATE_CLASSES)),
):
    return class_service.create_class(db, **payload.model_dump())


@router.put("/{class_id}", response_model=ClassOut)
def update_class(
    class_id: int,
    payload: ClassUpdate,
    db: Session = Depends(get_db_session),
    caller: CallerIdentity = Depends(require_permission(Permission.UPDATE_CLASSES)),
):
    return class_service.update_class(db, caller, class_id, payload.model_dump(exclude_unset=True))


@router.delete("/{class_id}", response_model=MessageResponse)
def delete_class(
    class_id: int,
    db: Session = Depends(get_db_session),
    _: CallerIdentity = Depends(require_permission(Permission.DELETE_CLASSES)),
):
    class_service.delete_class(db, class_id)
    return MessageResponse(message="Class deleted successfully")
