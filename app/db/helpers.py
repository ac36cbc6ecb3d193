# app/db/helpers.py
"""
Database helper functions for common patterns.
Reduces boilerplate in the repository layer.
"""

import asyncio
import functools
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import psycopg
from psycopg import errors as pg_errors

from app.db.pool import get_db_connection, get_db_transaction
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class DatabaseError(Exception):
    """Custom exception for database operations."""

    def __init__(self, message: str, operation: str = "unknown", recoverable: bool = True):
        super().__init__(message)
        self.operation = operation
        self.recoverable = recoverable


class IntegrityViolationError(DatabaseError):
    """A constraint rejected the write."""

    def __init__(self, message: str, operation: str = "unknown", constraint: str | None = None):
        super().__init__(message, operation=operation, recoverable=False)
        self.constraint = constraint


class UniqueViolationError(IntegrityViolationError):
    """Unique constraint violated (SQLSTATE 23505)."""


class ForeignKeyViolationError(IntegrityViolationError):
    """Foreign key constraint violated (SQLSTATE 23503)."""


def _wrap_error(e: psycopg.Error, operation: str, query: str) -> DatabaseError:
    """Translate a psycopg error into the DatabaseError hierarchy."""
    constraint = e.diag.constraint_name if getattr(e, "diag", None) else None

    if isinstance(e, pg_errors.UniqueViolation):
        return UniqueViolationError(f"Query failed: {e}", operation=operation, constraint=constraint)
    if isinstance(e, pg_errors.ForeignKeyViolation):
        return ForeignKeyViolationError(
            f"Query failed: {e}", operation=operation, constraint=constraint
        )

    logger.error(f"Database {operation} error", query=query[:100], error=str(e))
    return DatabaseError(
        f"Query failed: {e}",
        operation=operation,
        recoverable=isinstance(e, psycopg.OperationalError),
    )


@asynccontextmanager
async def _borrow(
    connection: psycopg.AsyncConnection | None,
) -> AsyncGenerator[psycopg.AsyncConnection, None]:
    """Use the caller's connection (e.g. an open transaction) or borrow one."""
    if connection is not None:
        yield connection
        return
    async with await get_db_connection() as conn:
        yield conn


async def fetch_one(
    query: str, params: tuple = (), *, connection: psycopg.AsyncConnection | None = None
) -> dict[str, Any] | None:
    """
    Execute query and return single row as dict.

    Args:
        query: SQL query with %s placeholders
        params: Query parameters
        connection: Optional existing connection (e.g. inside a transaction)

    Returns:
        Dict with row data or None if no results
    """
    try:
        async with _borrow(connection) as conn:
            cursor = await conn.execute(query, params)
            return await cursor.fetchone()
    except psycopg.Error as e:
        raise _wrap_error(e, "fetch_one", query) from e


async def fetch_all(
    query: str, params: tuple = (), *, connection: psycopg.AsyncConnection | None = None
) -> list[dict[str, Any]]:
    """Execute query and return all rows as list of dicts."""
    try:
        async with _borrow(connection) as conn:
            cursor = await conn.execute(query, params)
            return await cursor.fetchall()
    except psycopg.Error as e:
        raise _wrap_error(e, "fetch_all", query) from e


async def execute_query(
    query: str, params: tuple = (), *, connection: psycopg.AsyncConnection | None = None
) -> int:
    """Execute a write and return the number of affected rows."""
    try:
        async with _borrow(connection) as conn:
            cursor = await conn.execute(query, params)
            return cursor.rowcount
    except psycopg.Error as e:
        raise _wrap_error(e, "execute", query) from e


async def execute_transaction(queries_and_params: list[tuple]) -> bool:
    """
    Execute multiple queries in a single transaction.

    Args:
        queries_and_params: List of (query, params) tuples

    Example:
        await execute_transaction([
            ("DELETE FROM contact_labels WHERE contact_id = %s", (contact_id,)),
            ("DELETE FROM contacts WHERE id = %s", (contact_id,)),
        ])
    """
    try:
        async with await get_db_transaction() as conn:
            for query, params in queries_and_params:
                await conn.execute(query, params)

        logger.debug("Transaction completed successfully", query_count=len(queries_and_params))
        return True

    except psycopg.Error as e:
        logger.error("Transaction failed", query_count=len(queries_and_params), error=str(e))
        raise _wrap_error(e, "transaction", queries_and_params[0][0] if queries_and_params else "") from e


def with_db_retry(max_retries: int = 3, base_delay: float = 0.1):
    """
    Decorator to retry database operations on temporary failures.

    Only DatabaseError instances flagged recoverable (connection-level
    OperationalError) are retried; constraint violations and domain errors
    propagate immediately.

    Args:
        max_retries: Maximum number of retry attempts
        base_delay: Base delay between retries (exponential backoff)
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            for attempt in range(max_retries + 1):
                try:
                    return await func(*args, **kwargs)

                except DatabaseError as e:
                    if not e.recoverable or attempt >= max_retries:
                        if e.recoverable:
                            logger.error(
                                "Database operation failed after all retries",
                                operation=func.__name__,
                                attempts=attempt + 1,
                                error=str(e),
                            )
                        raise

                    delay = base_delay * (2**attempt)
                    logger.warning(
                        "Database operation failed, retrying",
                        operation=func.__name__,
                        attempt=attempt + 1,
                        max_retries=max_retries,
                        delay=delay,
                        error=str(e),
                    )
                    await asyncio.sleep(delay)

        return wrapper

    return decorator
