import logging
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.orm import Session

from class_management.db_retry import (
    CONNECTION_ERROR,
    CONNECTION_RESET,
    PREPARED_STATEMENT,
    SOCKET_ERROR,
    RetryPolicy,
    classify_db_error,
    with_db_retry,
)
from class_management.errors import DatabaseUnavailable


class FakePgError(Exception):
    pgcode = "42P05"


def connection_lost():
    return OperationalError("SELECT 1", {}, Exception("could not connect to server: Connection refused"))


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def policy(sleeps):
    return RetryPolicy(max_attempts=3, base_delay=0.5, sleep=sleeps.append)


@pytest.fixture
def session():
    return MagicMock(spec=Session)


def flaky(policy, failures, exc):
    calls = []

    @with_db_retry(policy=policy)
    def operation(db, value):
        calls.append(value)
        if len(calls) <= failures:
            raise exc
        return value * 2

    return operation, calls


def test_backoff_doubles():
    policy = RetryPolicy(base_delay=1.0)
    assert [policy.delay(n) for n in (1, 2, 3)] == [1.0, 2.0, 4.0]


def test_retries_with_backoff_and_reconnect(policy, sleeps, session):
    operation, calls = flaky(policy, failures=2, exc=connection_lost())
    assert operation(session, 21) == 42
    assert len(calls) == 3
    assert sleeps == [0.5, 1.0]
    assert session.rollback.call_count == 2
    assert session.get_bind.return_value.engine.dispose.call_count == 2


def test_session_passed_by_keyword_is_reconnected(policy, session):
    operation, _ = flaky(policy, failures=1, exc=connection_lost())
    assert operation(db=session, value=1) == 2
    session.rollback.assert_called_once()


def test_non_retryable_errors_propagate_immediately(policy, sleeps, session):
    error = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: schools.code"))
    operation, calls = flaky(policy, failures=5, exc=error)
    with pytest.raises(IntegrityError):
        operation(session, 1)
    assert len(calls) == 1
    assert sleeps == []
    session.rollback.assert_not_called()


def test_gives_up_after_max_attempts(policy, sleeps, session, caplog):
    error = connection_lost()
    operation, calls = flaky(policy, failures=10, exc=error)
    with caplog.at_level(logging.WARNING, logger="class_management.db_retry"):
        with pytest.raises(DatabaseUnavailable) as excinfo:
            operation(session, 1)
    assert len(calls) == 3
    assert sleeps == [0.5, 1.0]
    assert "after 3 attempts" in excinfo.value.message
    assert excinfo.value.status_code == 503
    assert excinfo.value.__cause__ is error
    assert "giving up after 3 attempts" in caplog.text


def test_reconnect_failure_is_logged_and_retry_continues(policy, session, caplog):
    session.rollback.side_effect = RuntimeError("connection already closed")
    operation, calls = flaky(policy, failures=1, exc=connection_lost())
    with caplog.at_level(logging.ERROR, logger="class_management.db_retry"):
        assert operation(session, 2) == 4
    assert len(calls) == 2
    assert "Reconnection failed" in caplog.text


@pytest.mark.parametrize(
    "error, expected",
    [
        (DBAPIError("PREPARE", {}, FakePgError("boom")), PREPARED_STATEMENT),
        (DBAPIError("SELECT 1", {}, Exception('prepared statement "s0" already exists')), PREPARED_STATEMENT),
        (DBAPIError("SELECT 1", {}, Exception("connection reset by peer")), CONNECTION_RESET),
        (DBAPIError("SELECT 1", {}, Exception("server closed the connection unexpectedly")), CONNECTION_RESET),
        (DBAPIError("SELECT 1", {}, Exception("WSAStartup failed")), SOCKET_ERROR),
        (OperationalError("SELECT 1", {}, Exception("timeout")), CONNECTION_ERROR),
        (DBAPIError("SELECT 1", {}, Exception("x"), connection_invalidated=True), CONNECTION_ERROR),
        (DBAPIError("SELECT 1", {}, Exception("Can't reach database server")), CONNECTION_ERROR),
        (IntegrityError("INSERT", {}, Exception("duplicate key value")), None),
        (ValueError("not a database error"), None),
    ],
)
def test_classify_db_error(error, expected):
    assert classify_db_error(error) == expected
