from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_db_session
from ..middleware import require_permission, require_student
from ..permissions import CallerIdentity, Permission
from ..schemas import MessageCreate, MessageOut, MessageResponse
from ..services import messages as message_service

router = APIRouter(prefix="/api/messages", tags=["Messages"])


@router.get("", response_model=list[MessageOut])
def list_messages(
    db: Session = Depends(get_db_session),
    caller: CallerIdentity = Depends(require_permission(Permission.VIEW_MESSAGES)),
):
    return message_service.list_messages(db, caller)


@router.get("/{message_id}", response_model=MessageOut)
def get_message(
    message_id: int,
    db: Session = Depends(get_db_session),
    caller: CallerIdentity = Depends(require_permission(Permission.VIEW_MESSAGES)),
):
    return message_service.get_message(db, caller, message_id)


@router.post("", response_model=MessageOut, status_code=status.HTTP_201_CREATED)
def send_message(
    payload: MessageCreate,
    db: Session = Depends(get_db_session),
    caller: CallerIdentity = Depends(require_permission(Permission.CREATE_MESSAGES)),
):
    return message_service.send_message(db, caller, **payload.model_dump())


@router.put("/{message_id}/read", response_model=MessageOut)
def mark_read(
    message_id: int,
    db: Session = Depends(get_db_session),
    caller: CallerIdentity = Depends(require_student),
):
    return message_service.mark_read(db, caller, message_id)


@router.delete("/{message_id}", response_model=MessageResponse)
def delete_message(
    message_id: int,
    db: Session = Depends(get_db_session),
    caller: CallerIdentity = Depends(require_student),
):
    message_service.delete_message(db, caller, message_id)
    return MessageResponse(message="Message deleted successfully")
