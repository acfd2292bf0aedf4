import logging
from typing import Any

from sqlalchemy.orm import Session

from ..database import commit_or_raise
from ..db_retry import with_db_retry
from ..errors import AuthorizationDenied, ConflictError, ValidationFailed
from ..models import User
from ..otp_service import normalize_phone_number
from ..permissions import (
    ADMINS,
    CallerIdentity,
    Permission,
    Role,
    can_view_user,
    has_permission,
    required_roles,
    to_role,
    visible_roles,
)
from ..security import hash_password
from .common import get_or_404, normalize_email


logger = logging.getLogger(__name__)

VALID_ROLES = tuple(str(role) for role in Role)


def parse_role(value: str | None, allowed: tuple[str, ...] = VALID_ROLES, error: str = "Invalid role") -> Role:
    role = to_role(value)
    if role is None or str(role) not in allowed:
        raise ValidationFailed(error, f"Role must be one of: {', '.join(allowed)}", validRoles=list(allowed))
    return role


def _deny_hidden(caller: CallerIdentity, target: User) -> None:
    if not can_view_user(caller, target.id, target.role):
        raise AuthorizationDenied(
            "You cannot access this user",
            required_roles=[r for r in Role if target.role in visible_roles(r)],
            current_role=caller.role,
        )


@with_db_retry
def list_visible_users(db: Session, caller: CallerIdentity) -> list[User]:
    roles = visible_roles(caller.role)
    if not roles:
        return []
    return db.query(User).filter(User.role.in_(roles)).order_by(User.created_at.desc(), User.id.desc()).all()


@with_db_retry
def get_user(db: Session, caller: CallerIdentity, user_id: int) -> User:
    user = get_or_404(db, User, user_id, "User")
    _deny_hidden(caller, user)
    return user


@with_db_retry
def create_user(
    db: Session,
    caller: CallerIdentity,
    *,
    email: str,
    password: str,
    name: str,
    role: str,
    phone_number: str | None = None,
) -> User:
    new_role = parse_role(role)
    if new_role in ADMINS and caller.role != Role.SUPERADMIN:
        raise AuthorizationDenied(
            "Only superadmins can create admin accounts",
            required_roles=[Role.SUPERADMIN],
            current_role=caller.role,
        )
    email = normalize_email(email)
    if db.query(User).filter(User.email == email).first():
        raise ConflictError("User with this email already exists")

    user = User(
        email=email,
        password_hash=hash_password(password),
        name=name.strip(),
        role=new_role,
        phone_number=normalize_phone_number(phone_number) if phone_number else None,
    )
    db.add(user)
    commit_or_raise(db, "User with this email or phone number already exists")
    db.refresh(user)
    logger.info(f"User {caller.id} created user {user.id} ({user.role})")
    return user


@with_db_retry
def update_user(db: Session, caller: CallerIdentity, user_id: int, changes: dict[str, Any]) -> User:
    user = get_or_404(db, User, user_id, "User")
    if caller.id != user.id:
        if not has_permission(caller.role, Permission.UPDATE_USERS):
            raise AuthorizationDenied(
                "You can only update your own account",
                required_roles=required_roles(Permission.UPDATE_USERS),
                current_role=caller.role,
                permission=str(Permission.UPDATE_USERS),
            )
        _deny_hidden(caller, user)

    if changes.get("name"):
        user.name = changes["name"].strip()
    if "phone_number" in changes:
        phone = changes["phone_number"]
        if phone and phone != user.phone_number:
            user.phone_number = normalize_phone_number(phone)
            user.phone_verified = False
        elif not phone:
            user.phone_number = None
            user.phone_verified = False
    if changes.get("password"):
        user.password_hash = hash_password(changes["password"])

    commit_or_raise(db, "Phone number is already registered")
    db.refresh(user)
    return user


@with_db_retry
def delete_user(db: Session, caller: CallerIdentity, user_id: int) -> None:
    user = get_or_404(db, User, user_id, "User")
    _deny_hidden(caller, user)
    db.delete(user)
    db.commit()
    logger.info(f"User {caller.id} deleted user {user_id}")
