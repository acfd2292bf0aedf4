"""
Pytest configuration and shared fixtures
"""
import os
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment variables before the package reads its settings
os.environ["APP_ENV"] = "development"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret-key"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["DB_RETRY_BASE_DELAY"] = "0"
os.environ["SUPERADMIN_EMAIL"] = ""
os.environ["SUPERADMIN_PASSWORD"] = ""

from class_management import db_retry  # noqa: E402
from class_management.app import app  # noqa: E402
from class_management.database import Base, get_db_session  # noqa: E402
from class_management.models import Teacher, Student, User  # noqa: E402
from class_management.permissions import Role  # noqa: E402
from class_management.security import create_access_token, hash_password  # noqa: E402

DEFAULT_PASSWORD = "password123"


def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture
def engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    event.listen(engine, "connect", _enable_foreign_keys)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    """FastAPI test client bound to the in-memory database. The lifespan is not run."""

    def override_get_db_session():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db_session] = override_get_db_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    def _make(role=Role.STUDENT, email=None, password=DEFAULT_PASSWORD, name=None):
        role = Role(role)
        user = User(
            email=email or f"{role.value}-{uuid4().hex[:8]}@example.com",
            password_hash=hash_password(password),
            name=name or f"Test {role.value.title()}",
            role=role,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_teacher_profile(db_session):
    def _make(user=None, name="Teacher Profile"):
        teacher = Teacher(
            name=name,
            email=f"profile-{uuid4().hex[:8]}@example.com",
            user_id=user.id if user is not None else None,
        )
        db_session.add(teacher)
        db_session.commit()
        db_session.refresh(teacher)
        return teacher

    return _make


@pytest.fixture
def make_student_profile(db_session):
    def _make(user=None, name="Student Profile"):
        student = Student(
            name=name,
            email=f"student-{uuid4().hex[:8]}@example.com",
            user_id=user.id if user is not None else None,
        )
        db_session.add(student)
        db_session.commit()
        db_session.refresh(student)
        return student

    return _make


@pytest.fixture
def auth_header():
    def _header(user):
        token = create_access_token(user.id, user.email, user.role)
        return {"Authorization": f"Bearer {token}"}

    return _header


@pytest.fixture
def superadmin(make_user):
    return make_user(Role.SUPERADMIN)


@pytest.fixture
def admin(make_user):
    return make_user(Role.ADMIN)


@pytest.fixture
def teacher(make_user):
    return make_user(Role.TEACHER)


@pytest.fixture
def student(make_user):
    return make_user(Role.STUDENT)


@pytest.fixture
def drop_first_commit(monkeypatch):
    """Make the first commit of a service module fail with a dropped connection."""
    # Disposing the pool would close the shared in-memory database.
    monkeypatch.setattr(db_retry, "_reconnect", lambda db: db.rollback())

    def _install(module):
        real_commit = module.commit_or_raise
        calls = []

        def commit(db, message):
            calls.append(message)
            if len(calls) == 1:
                raise OperationalError("COMMIT", {}, Exception("server closed the connection unexpectedly"))
            real_commit(db, message)

        monkeypatch.setattr(module, "commit_or_raise", commit)
        return calls

    return _install
