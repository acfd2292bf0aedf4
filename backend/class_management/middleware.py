import logging
from collections.abc import Callable
from typing import Any, Mapping

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from .config import settings
from .database import get_db_session
from .errors import ApiError, AuthorizationDenied, AuthenticationRequired, SelfActionForbidden, SubjectNotFound
from .models import User
from .permissions import (
    PERMISSIONS,
    CallerIdentity,
    Deny,
    Permission,
    Role,
    decide,
    decide_owner_or_admin,
)
from .security import decode_access_token


logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def _parse_token(auth_header: str | None) -> str:
    if not auth_header or not auth_header.startswith(BEARER_PREFIX):
        raise AuthenticationRequired()
    token = auth_header[len(BEARER_PREFIX):].strip()
    if not token:
        raise AuthenticationRequired()
    return token


class Authenticator:
    """Resolves the caller behind a bearer token.

    The token only names the subject; role and verification flags come from
    the user record fetched on every request.
    """

    def __init__(self, secret: str, algorithm: str = "HS256"):
        self.secret = secret
        self.algorithm = algorithm

    def __call__(
        self,
        request: Request,
        authorization: str | None = Header(default=None, alias="Authorization"),
        db: Session = Depends(get_db_session),
    ) -> CallerIdentity:
        try:
            token = _parse_token(authorization)
            payload = decode_access_token(token, secret=self.secret, algorithm=self.algorithm)
        except ApiError as exc:
            logger.info(f"Rejected request to {request.url.path}: {exc.error}")
            raise

        user = db.get(User, payload["user_id"])
        if user is None:
            logger.info(f"Token subject {payload['user_id']} no longer exists")
            raise SubjectNotFound()

        caller = CallerIdentity.from_user(user)
        request.state.caller = caller
        return caller


get_current_user = Authenticator(settings.jwt_secret, settings.jwt_algorithm)


def raise_denied(caller: CallerIdentity, decision: Deny, message: str | None = None) -> None:
    logger.warning(
        f"Access denied for user {caller.id} ({caller.role}): "
        f"permission={decision.permission} required={[str(r) for r in decision.required_roles]}"
    )
    extra: dict[str, Any] = {}
    if decision.permission is not None:
        extra["permission"] = str(decision.permission)
    raise AuthorizationDenied(
        message or decision.reason,
        required_roles=decision.required_roles,
        current_role=decision.current_role,
        **extra,
    )


class AccessGate:
    """Authorization checks bound to one permission table."""

    def __init__(
        self,
        table: Mapping[Permission, frozenset[Role]],
        authenticate: Callable[..., CallerIdentity] = get_current_user,
    ):
        self.table = table
        self.authenticate = authenticate

    def require_roles(self, *allowed_roles: Role) -> Callable:
        allowed = tuple(Role(role) for role in allowed_roles)

        def dependency(caller: CallerIdentity = Depends(self.authenticate)) -> CallerIdentity:
            if caller.role not in allowed:
                raise_denied(
                    caller,
                    Deny(reason="", required_roles=allowed, current_role=caller.role),
                    message=(
                        f"This action requires one of these roles: {', '.join(map(str, allowed))}. "
                        f"Your role: {caller.role}"
                    ),
                )
            return caller

        return dependency

    def require_permission(self, permission: Permission | str) -> Callable:
        def dependency(caller: CallerIdentity = Depends(self.authenticate)) -> CallerIdentity:
            self.check(caller, permission)
            return caller

        return dependency

    def require_owner_or_admin(self, field: str = "user_id") -> Callable:
        async def dependency(
            request: Request, caller: CallerIdentity = Depends(self.authenticate)
        ) -> CallerIdentity:
            raw = request.path_params.get(field)
            if raw is None and request.headers.get("content-type", "").startswith("application/json"):
                body = await request.json()
                if isinstance(body, dict):
                    raw = body.get(field)
            try:
                owner_id = int(raw) if raw is not None else None
            except (TypeError, ValueError):
                owner_id = None
            decision = decide_owner_or_admin(caller, owner_id)
            if isinstance(decision, Deny):
                raise_denied(caller, decision)
            return caller

        return dependency

    def check(self, caller: CallerIdentity, permission: Permission | str) -> None:
        decision = decide(caller, permission, table=self.table)
        if isinstance(decision, Deny):
            raise_denied(caller, decision)

    def ensure_owner(
        self,
        caller: CallerIdentity,
        permission: Permission | str,
        owner_user_id: int | None,
        message: str | None = None,
    ) -> None:
        """Check a loaded resource's owner. Admins and superadmins pass unconditionally."""
        decision = decide(caller, permission, owner_user_id, self.table, ownership_scoped=True)
        if isinstance(decision, Deny):
            raise_denied(caller, decision, message)


def forbid_self_action(caller: CallerIdentity, target_id: int, error: str, message: str) -> None:
    if caller.id == target_id:
        logger.warning(f"User {caller.id} attempted '{error}' on own account")
        raise SelfActionForbidden(message, error=error)


access = AccessGate(PERMISSIONS)

require_roles = access.require_roles
require_permission = access.require_permission
require_owner_or_admin = access.require_owner_or_admin

require_superadmin = require_roles(Role.SUPERADMIN)
require_admin = require_roles(Role.SUPERADMIN, Role.ADMIN)
require_teacher = require_roles(Role.SUPERADMIN, Role.ADMIN, Role.TEACHER)
require_student = require_roles(Role.SUPERADMIN, Role.ADMIN, Role.TEACHER, Role.STUDENT)
