import logging
import re
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from .config import settings
from .db_retry import with_db_retry
from .errors import ConflictError, ValidationFailed
from .models import PhoneVerification, User
from .security import hash_password, verify_password


logger = logging.getLogger(__name__)

PHONE_PATTERN = re.compile(r"^\+[1-9]\d{7,14}$")


@dataclass(frozen=True)
class OtpCheck:
    valid: bool
    error: str | None = None


def generate_otp(length: int = 6) -> str:
    alphabet = "0123456789"
    return "".join(secrets.choice(alphabet) for _ in range(length))


def otp_expiration() -> datetime:
    return datetime.utcnow() + timedelta(minutes=settings.otp_exp_minutes)


def format_phone_number(raw: str) -> str:
    cleaned = re.sub(r"[\s\-().]", "", str(raw).strip())
    if cleaned.startswith("00"):
        cleaned = "+" + cleaned[2:]
    if cleaned and not cleaned.startswith("+"):
        cleaned = "+" + cleaned
    return cleaned


def validate_phone_number(phone: str) -> bool:
    return bool(PHONE_PATTERN.match(phone))


def normalize_phone_number(raw: str) -> str:
    formatted = format_phone_number(raw)
    if not validate_phone_number(formatted):
        raise ValidationFailed("Invalid phone number format")
    return formatted


def send_otp(phone_number: str, otp: str) -> None:
    # No SMS gateway is wired in; the code is only surfaced in development.
    if settings.is_development:
        logger.info(f"OTP for {phone_number}: {otp} (valid for {settings.otp_exp_minutes} minutes)")
    else:
        logger.info(f"OTP generated for {phone_number}")


@with_db_retry
def issue_phone_otp(db: Session, *, phone_number: str) -> str:
    phone = normalize_phone_number(phone_number)
    if db.scalar(select(User).where(User.phone_number == phone)):
        raise ConflictError("Phone number is already registered")

    otp = generate_otp()
    record = db.scalar(select(PhoneVerification).where(PhoneVerification.phone_number == phone))
    if record is None:
        record = PhoneVerification(phone_number=phone, code_hash="", expires_at=otp_expiration())
        db.add(record)
    record.code_hash = hash_password(otp)
    record.expires_at = otp_expiration()
    record.created_at = datetime.utcnow()
    db.commit()

    send_otp(phone, otp)
    return otp


def verify_phone_otp(db: Session, *, phone_number: str, otp: str, consume: bool = True) -> OtpCheck:
    """Verify a code inside the caller's transaction without committing.

    Expired codes are always removed, verified ones only when ``consume`` is set.
    """
    phone = format_phone_number(phone_number)
    record = db.scalar(select(PhoneVerification).where(PhoneVerification.phone_number == phone))
    if record is None:
        return OtpCheck(False, "No OTP found for this phone number")
    if record.expires_at < datetime.utcnow():
        db.delete(record)
        return OtpCheck(False, "OTP has expired")
    if not verify_password(str(otp).strip(), record.code_hash):
        return OtpCheck(False, "Invalid OTP")

    if consume:
        db.delete(record)
    return OtpCheck(True)


@with_db_retry
def check_phone_otp(db: Session, *, phone_number: str, otp: str, consume: bool = True) -> OtpCheck:
    result = verify_phone_otp(db, phone_number=phone_number, otp=otp, consume=consume)
    db.commit()
    return result
