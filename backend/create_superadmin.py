"""Create or promote the superadmin account.

Usage: python create_superadmin.py [email] [password]

Falls back to SUPERADMIN_EMAIL / SUPERADMIN_PASSWORD from the environment.
"""
import sys

from class_management.config import settings
from class_management.database import Base, SessionLocal, engine
from class_management.errors import ApiError
from class_management.services import seed_superadmin


def main(argv: list[str]) -> int:
    email = argv[1] if len(argv) > 1 else settings.superadmin_email
    password = argv[2] if len(argv) > 2 else settings.superadmin_password
    if not email or not password:
        print("Error: provide an email and password, or set SUPERADMIN_EMAIL and SUPERADMIN_PASSWORD")
        return 1

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        user = seed_superadmin(db, email=email, password=password)
        print(f"Superadmin ready: {user.email} (id={user.id})")
        return 0
    except ApiError as e:
        print(f"Error: {e.message}")
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main(sys.argv))
