import logging

from sqlalchemy.orm import Session

from ..database import commit_or_raise
from ..db_retry import with_db_retry
from ..errors import ConflictError, InvalidLogin, ValidationFailed
from ..models import User
from ..otp_service import normalize_phone_number, verify_phone_otp
from ..permissions import Role, to_role
from ..security import create_access_token, hash_password, verify_password
from .common import normalize_email


logger = logging.getLogger(__name__)

SELF_REGISTER_ROLES = (Role.STUDENT, Role.TEACHER)


def issue_token(user: User) -> str:
    return create_access_token(user.id, user.email, user.role)


@with_db_retry
def register_user(
    db: Session,
    *,
    email: str,
    password: str,
    name: str,
    role: str | None = None,
    phone_number: str | None = None,
    otp: str | None = None,
) -> User:
    email = normalize_email(email)
    requested = to_role(role or Role.STUDENT.value)
    if requested not in SELF_REGISTER_ROLES:
        raise ValidationFailed(
            "Invalid role",
            f"Self-registration is limited to: {', '.join(map(str, SELF_REGISTER_ROLES))}",
            validRoles=[str(r) for r in SELF_REGISTER_ROLES],
        )
    if db.query(User).filter(User.email == email).first():
        raise ConflictError("User with this email already exists")

    phone = None
    phone_verified = False
    if phone_number:
        phone = normalize_phone_number(phone_number)
        if db.query(User).filter(User.phone_number == phone).first():
            raise ConflictError("Phone number is already registered")
        if otp:
            phone_verified = verify_phone_otp(db, phone_number=phone, otp=otp).valid

    user = User(
        email=email,
        password_hash=hash_password(password),
        name=name.strip(),
        role=requested,
        phone_number=phone,
        phone_verified=phone_verified,
    )
    db.add(user)
    commit_or_raise(db, "User with this email already exists")
    db.refresh(user)
    logger.info(f"Registered user {user.id} ({user.role})")
    return user


@with_db_retry
def authenticate_user(db: Session, *, email: str, password: str) -> User:
    user = db.query(User).filter(User.email == email.lower().strip()).first()
    if not user or not verify_password(password, user.password_hash):
        raise InvalidLogin()
    return user


@with_db_retry
def seed_superadmin(db: Session, *, email: str, password: str) -> User | None:
    """Create the bootstrap superadmin, or promote an existing account with that email."""
    if not email or not password:
        return None
    email = normalize_email(email)
    user = db.query(User).filter(User.email == email).first()
    if user is None:
        user = User(email=email, password_hash=hash_password(password), name="Super Admin", role=Role.SUPERADMIN)
        db.add(user)
        logger.info(f"Seeded superadmin account {email}")
    elif user.role != Role.SUPERADMIN:
        user.role = Role.SUPERADMIN
        logger.info(f"Promoted existing account {email} to superadmin")
    db.commit()
    db.refresh(user)
    return user
