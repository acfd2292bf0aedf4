from sqlalchemy.orm import Session

from .config import settings
from .database import Base, engine
from .routes import api_router
from .services import seed_superadmin


def init_database() -> None:
    Base.metadata.create_all(bind=engine)
    db = Session(bind=engine)
    try:
        seed_superadmin(db, email=settings.superadmin_email, password=settings.superadmin_password)
    finally:
        db.close()


__all__ = ["api_router", "init_database"]
