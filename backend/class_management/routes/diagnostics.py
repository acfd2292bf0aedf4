import logging
from datetime import datetime, timezone

from fastapi import APIRouter

from ..config import settings
from ..errors import ApiError
from ..security import create_access_token, decode_access_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/test", tags=["Diagnostics"])


@router.get("/test-auth")
def test_auth():
    return {
        "message": "Auth Configuration Test",
        "jwt_secret_set": bool(settings.jwt_secret) and not settings.uses_default_secret,
        "jwt_secret_length": len(settings.jwt_secret),
        "environment": settings.app_env,
        "is_production": settings.app_env.lower() == "production",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.post("/test-token")
def test_token():
    token = create_access_token(1, "test@example.com", "admin")
    try:
        decoded = decode_access_token(token)
    except ApiError as exc:
        logger.error(f"Token self-test failed: {exc.error}")
        return {"success": False, "error": exc.error, "jwt_secret_set": not settings.uses_default_secret}
    return {
        "success": True,
        "message": "Token generation and verification working",
        "jwt_secret_set": not settings.uses_default_secret,
        "token_generated": bool(token),
        "token_verified": True,
        "decoded": decoded,
    }
