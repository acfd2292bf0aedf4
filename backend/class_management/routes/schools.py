from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_db_session
from ..middleware import require_permission
from ..permissions import CallerIdentity, Permission
from ..schemas import MessageResponse, SchoolCreate, SchoolOut, SchoolUpdate
from ..services import schools as school_service

router = APIRouter(prefix="/api/schools", tags=["Schools"])

can_view = require_permission(Permission.VIEW_SCHOOLS)
can_manage = require_permission(Permission.MANAGE_SCHOOLS)


@router.get("", response_model=list[SchoolOut])
def list_schools(db: Session = Depends(get_db_session), _: CallerIdentity = Depends(can_view)):
    return school_service.list_schools(db)


@router.get("/{school_id}", response_model=SchoolOut)
def get_school(school_id: int, db: Session = Depends(get_db_session), _: CallerIdentity = Depends(can_view)):
    return school_service.get_school(db, school_id)


@router.post("", response_model=SchoolOut, status_code=status.HTTP_201_CREATED)
def create_school(
    payload: SchoolCreate,
    db: Session = Depends(get_db_session),
    _: CallerIdentity = Depends(can_manage),
):
    return school_service.create_school(db, **payload.model_dump())


@router.put("/{school_id}", response_model=SchoolOut)
def update_school(
    school_id: int,
    payload: SchoolUpdate,
    db: Session = Depends(get_db_session),
    _: CallerIdentity = Depends(can_manage),
):
    return school_service.update_school(db, school_id, payload.model_dump(exclude_unset=True))


@router.delete("/{school_id}", response_model=MessageResponse)
def delete_school(school_id: int, db: Session = Depends(get_db_session), _: CallerIdentity = Depends(can_manage)):
    school_service.delete_school(db, school_id)
    return MessageResponse(message="School deleted successfully")
