import re
import sys

from sqlalchemy import inspect, text
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from class_management.database import DATABASE_URL, engine


def mask_password(url: str) -> str:
    return re.sub(r":[^:@/]+@", ":****@", url)


def test_connection() -> bool:
    print("Testing database connection...")
    print(f"DATABASE_URL: {mask_password(DATABASE_URL)}")
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            print("Successfully connected to database!")
            tables = inspect(conn).get_table_names()
        print(f"Found tables: {', '.join(tables) if tables else '(none)'}")
        return True
    except OperationalError as e:
        print(f"Connection failed: {e.orig}")
        print("\nTroubleshooting:")
        print("1. Check that the database server is running and not paused")
        print("2. Try the direct connection string instead of the pooler")
        print("3. Verify the credentials in DATABASE_URL")
        return False
    except SQLAlchemyError as e:
        print(f"An error occurred: {e}")
        return False
    finally:
        engine.dispose()


if __name__ == "__main__":
    sys.exit(0 if test_connection() else 1)
