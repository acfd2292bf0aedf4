"""Retry wrapper for service calls that hit the database.

Connection poolers in transaction mode (pgbouncer, Supabase) drop connections
and leak prepared statements between clients. Those failures clear up on a
fresh connection, so service functions are wrapped with :func:`with_db_retry`,
which rolls back, disposes the pool and tries again with backoff.
"""
import functools
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

from psycopg2 import errorcodes
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.orm import Session

from .config import settings
from .errors import DatabaseUnavailable


logger = logging.getLogger(__name__)

PREPARED_STATEMENT = "Prepared Statement"
CONNECTION_RESET = "Connection Reset"
SOCKET_ERROR = "Socket Error"
CONNECTION_ERROR = "Connection Error"

_RESET_MARKERS = ("10054", "connection reset", "forcibly closed", "server closed the connection")
_SOCKET_MARKERS = ("wsastartup", "10093")
_CONNECT_MARKERS = ("can't reach database server", "could not connect")


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay: float = 1.0
    sleep: Callable[[float], None] = time.sleep

    def delay(self, attempt: int) -> float:
        return self.base_delay * 2 ** (attempt - 1)


def default_policy() -> RetryPolicy:
    return RetryPolicy(max_attempts=settings.db_max_attempts, base_delay=settings.db_retry_base_delay)


def classify_db_error(exc: BaseException) -> str | None:
    """Return a label for a retryable connectivity failure, or None."""
    if not isinstance(exc, DBAPIError):
        return None
    orig = getattr(exc, "orig", None)
    text = f"{exc} {orig}".lower()

    if getattr(orig, "pgcode", None) == errorcodes.DUPLICATE_PREPARED_STATEMENT or "prepared statement" in text:
        return PREPARED_STATEMENT
    if any(marker in text for marker in _RESET_MARKERS):
        return CONNECTION_RESET
    if any(marker in text for marker in _SOCKET_MARKERS):
        return SOCKET_ERROR
    if isinstance(exc, OperationalError) or exc.connection_invalidated:
        return CONNECTION_ERROR
    if any(marker in text for marker in _CONNECT_MARKERS):
        return CONNECTION_ERROR
    return None


def _find_session(args: tuple, kwargs: dict) -> Session | None:
    if args and isinstance(args[0], Session):
        return args[0]
    db = kwargs.get("db")
    return db if isinstance(db, Session) else None


def _reconnect(db: Session | None) -> None:
    if db is None:
        return
    db.rollback()
    bind = db.get_bind()
    engine = getattr(bind, "engine", bind)
    engine.dispose()


def with_db_retry(func: Callable | None = None, *, policy: RetryPolicy | None = None) -> Callable:
    """Retry ``func`` on connection-level database failures.

    ``func`` takes the SQLAlchemy session as its first positional argument (or
    as ``db=``). Errors that are not connectivity problems propagate unchanged.
    """

    def decorator(inner: Callable) -> Callable:
        @functools.wraps(inner)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            active = policy or default_policy()
            db = _find_session(args, kwargs)
            attempt = 1
            while True:
                try:
                    return inner(*args, **kwargs)
                except DBAPIError as exc:
                    error_type = classify_db_error(exc)
                    if error_type is None:
                        raise
                    if attempt >= active.max_attempts:
                        logger.error(
                            f"Database {error_type} error in {inner.__name__}, giving up after {attempt} attempts"
                        )
                        raise DatabaseUnavailable(
                            f"Database operation failed after {attempt} attempts: {str(exc.orig)[:200]}"
                        ) from exc
                    logger.warning(
                        f"Database {error_type} error detected in {inner.__name__} "
                        f"(attempt {attempt}/{active.max_attempts}), reconnecting..."
                    )
                    try:
                        _reconnect(db)
                    except Exception as reconnect_exc:
                        logger.error(f"Reconnection failed: {reconnect_exc}")
                    active.sleep(active.delay(attempt))
                    attempt += 1

        return wrapper

    if func is not None:
        return decorator(func)
    return decorator
