from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
import jwt

from .config import settings
from .errors import ExpiredCredential, InvalidCredential


REQUIRED_CLAIMS = ("sub", "role", "exp")


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(
    user_id: int,
    email: str,
    role: str,
    *,
    secret: str | None = None,
    algorithm: str | None = None,
    expires_in: timedelta | None = None,
    issued_at: datetime | None = None,
) -> str:
    now = issued_at or datetime.now(timezone.utc)
    lifetime = expires_in or timedelta(days=settings.jwt_exp_days)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "user_id": user_id,
        "email": email,
        "role": str(role),
        "iat": int(now.timestamp()),
        "exp": int((now + lifetime).timestamp()),
    }
    return jwt.encode(payload, secret or settings.jwt_secret, algorithm=algorithm or settings.jwt_algorithm)


def decode_access_token(token: str, *, secret: str | None = None, algorithm: str | None = None) -> dict[str, Any]:
    try:
        payload = jwt.decode(
            token,
            secret or settings.jwt_secret,
            algorithms=[algorithm or settings.jwt_algorithm],
            options={"require": list(REQUIRED_CLAIMS)},
        )
    except jwt.ExpiredSignatureError as exc:
        raise ExpiredCredential() from exc
    except jwt.InvalidTokenError as exc:
        raise InvalidCredential() from exc

    try:
        payload["user_id"] = int(payload["sub"])
    except (TypeError, ValueError) as exc:
        raise InvalidCredential("Invalid token payload") from exc
    return payload
