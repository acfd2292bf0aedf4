from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..db_retry import with_db_retry
from ..errors import AuthorizationDenied, NotFoundError
from ..middleware import raise_denied
from ..models import Message, User
from ..permissions import CallerIdentity, Deny, decide_owner_or_admin, is_admin
from .common import get_or_404


def _visible_to(caller: CallerIdentity, message: Message) -> bool:
    return (
        is_admin(caller.role)
        or message.recipient_id is None
        or caller.id in (message.sender_id, message.recipient_id)
    )


@with_db_retry
def list_messages(db: Session, caller: CallerIdentity) -> list[Message]:
    query = db.query(Message)
    if not is_admin(caller.role):
        query = query.filter(
            or_(
                Message.sender_id == caller.id,
                Message.recipient_id == caller.id,
                Message.recipient_id.is_(None),
            )
        )
    return query.order_by(Message.created_at.desc(), Message.id.desc()).all()


@with_db_retry
def get_message(db: Session, caller: CallerIdentity, message_id: int) -> Message:
    message = get_or_404(db, Message, message_id, "Message")
    if not _visible_to(caller, message):
        raise AuthorizationDenied("You can only view your own messages", current_role=caller.role)
    return message


@with_db_retry
def send_message(
    db: Session, caller: CallerIdentity, *, content: str, subject: str | None = None, recipient_id: int | None = None
) -> Message:
    if recipient_id is not None and db.get(User, recipient_id) is None:
        raise NotFoundError("Recipient")
    message = Message(sender_id=caller.id, recipient_id=recipient_id, subject=subject or None, content=content)
    db.add(message)
    db.commit()
    db.refresh(message)
    return message


@with_db_retry
def mark_read(db: Session, caller: CallerIdentity, message_id: int) -> Message:
    message = get_or_404(db, Message, message_id, "Message")
    if message.recipient_id != caller.id:
        raise AuthorizationDenied("Only the recipient can mark a message as read", current_role=caller.role)
    message.is_read = True
    db.commit()
    db.refresh(message)
    return message


@with_db_retry
def delete_message(db: Session, caller: CallerIdentity, message_id: int) -> None:
    message = get_or_404(db, Message, message_id, "Message")
    decision = decide_owner_or_admin(caller, message.sender_id)
    if isinstance(decision, Deny):
        raise_denied(caller, decision, "You can only delete messages you sent")
    db.delete(message)
    db.commit()
