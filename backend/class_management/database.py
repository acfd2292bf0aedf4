import logging

from sqlalchemy import create_engine, event
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .config import settings
from .errors import ConflictError, ValidationFailed


logger = logging.getLogger(__name__)

DATABASE_URL = settings.database_url
_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, future=True, pool_pre_ping=True, connect_args=_connect_args)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
Base = declarative_base()


@event.listens_for(engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    if DATABASE_URL.startswith("sqlite"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def get_db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def is_unique_violation(exc: IntegrityError) -> bool:
    orig = getattr(exc, "orig", None)
    if getattr(orig, "pgcode", None) == "23505":
        return True
    text = str(orig or exc).lower()
    return "unique constraint" in text or "duplicate key" in text


def commit_or_raise(db: Session, conflict_message: str) -> None:
    """Commit the session, mapping integrity failures onto API errors."""
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if is_unique_violation(exc):
            raise ConflictError(conflict_message) from exc
        logger.info(f"Integrity error on commit: {exc.orig}")
        raise ValidationFailed("Invalid data provided") from exc
