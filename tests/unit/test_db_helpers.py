"""
Tests for database helper error wrapping and retry behaviour.
"""

from unittest.mock import AsyncMock

import psycopg
import pytest
from psycopg import errors as pg_errors

from app.db.helpers import (
    DatabaseError,
    ForeignKeyViolationError,
    UniqueViolationError,
    _wrap_error,
    with_db_retry,
)


class TestWrapError:
    def test_unique_violation(self):
        error = _wrap_error(pg_errors.UniqueViolation("duplicate key"), "execute", "INSERT ...")

        assert isinstance(error, UniqueViolationError)
        assert error.recoverable is False
        assert error.operation == "execute"

    def test_foreign_key_violation(self):
        error = _wrap_error(pg_errors.ForeignKeyViolation("fk"), "execute", "INSERT ...")

        assert isinstance(error, ForeignKeyViolationError)
        assert error.recoverable is False

    def test_operational_error_is_recoverable(self):
        error = _wrap_error(psycopg.OperationalError("connection lost"), "fetch_all", "SELECT 1")

        assert type(error) is DatabaseError
        assert error.recoverable is True
        assert "connection lost" in str(error)

    def test_programming_error_is_not_recoverable(self):
        error = _wrap_error(psycopg.ProgrammingError("syntax"), "fetch_one", "SELEC 1")

        assert error.recoverable is False


def flaky(*outcomes):
    """Async operation that raises or returns each outcome in turn."""
    calls = {"count": 0}

    async def operation():
        outcome = outcomes[calls["count"]]
        calls["count"] += 1
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    return operation, calls


class TestWithDbRetry:
    @pytest.fixture(autouse=True)
    def no_sleep(self, monkeypatch):
        sleep = AsyncMock()
        monkeypatch.setattr("app.db.helpers.asyncio.sleep", sleep)
        return sleep

    @pytest.mark.asyncio
    async def test_retries_recoverable_then_succeeds(self, no_sleep):
        operation, calls = flaky(DatabaseError("timeout"), "ok")
        wrapped = with_db_retry(max_retries=2, base_delay=0.5)(operation)

        assert await wrapped() == "ok"
        assert calls["count"] == 2
        no_sleep.assert_awaited_once_with(0.5)

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self, no_sleep):
        operation, calls = flaky(*[DatabaseError("down")] * 3)
        wrapped = with_db_retry(max_retries=2, base_delay=0.1)(operation)

        with pytest.raises(DatabaseError):
            await wrapped()

        assert calls["count"] == 3
        assert [c.args[0] for c in no_sleep.await_args_list] == [0.1, 0.2]

    @pytest.mark.asyncio
    async def test_constraint_violation_is_not_retried(self):
        operation, calls = flaky(UniqueViolationError("dup", constraint="uq"), "ok")
        wrapped = with_db_retry(max_retries=3)(operation)

        with pytest.raises(UniqueViolationError):
            await wrapped()

        assert calls["count"] == 1

    @pytest.mark.asyncio
    async def test_other_exceptions_propagate(self):
        operation, calls = flaky(LookupError("not ours"), "ok")
        wrapped = with_db_retry()(operation)

        with pytest.raises(LookupError):
            await wrapped()

        assert calls["count"] == 1

    def test_preserves_function_name(self):
        operation, _ = flaky("ok")

        assert with_db_retry()(operation).__name__ == "operation"
