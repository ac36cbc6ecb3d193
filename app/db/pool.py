# app/db/pool.py
"""
PostgreSQL connection pool for the CRM tables.

One AsyncConnectionPool per process, opened in the FastAPI lifespan. Pool
connections run in autocommit mode with dict rows; anything that needs more
than one statement to land atomically asks for transaction() instead.
"""

import asyncio
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import psycopg
from psycopg import sql
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from app.config import settings
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

HIGH_UTILIZATION_PERCENT = 80


class DatabasePoolManager:
    """Owns the pool lifecycle and hands out connections."""

    def __init__(self):
        self.pool: AsyncConnectionPool | None = None
        self._initialized = False
        self._closed = False

    @property
    def is_ready(self) -> bool:
        return self._initialized and not self._closed and self.pool is not None

    async def initialize(self) -> None:
        """Open the pool and prove one connection works."""
        if self._initialized:
            logger.warning("Database pool already initialized")
            return
        if self._closed:
            raise RuntimeError("Cannot reinitialize closed pool")

        pool_config = settings.get_db_pool_config()
        logger.info("Opening database pool", environment=settings.environment, **pool_config)

        self.pool = AsyncConnectionPool(
            conninfo=settings.DATABASE_URL,
            open=False,
            check=AsyncConnectionPool.check_connection,
            configure=self._configure_connection,
            **pool_config,
        )

        try:
            await self.pool.open(wait=True)
            self._initialized = True
            await self._ping()
        except Exception as e:
            logger.error("Failed to initialize database pool", error=str(e))
            self._initialized = False
            await self.pool.close()
            self.pool = None
            raise RuntimeError(f"Database pool initialization failed: {e}") from e

        logger.info("Database pool ready", min_size=pool_config["min_size"])

    async def _configure_connection(self, conn: psycopg.AsyncConnection) -> None:
        conn.row_factory = dict_row
        await conn.set_autocommit(True)

        app_name = f"contact-crm-{settings.environment}"
        await conn.execute(sql.SQL("SET application_name = {}").format(sql.Literal(app_name)))
        await conn.execute("SET timezone = 'UTC'")

    async def _ping(self) -> None:
        async with self.connection() as conn:
            cursor = await conn.execute("SELECT 1 AS ok")
            row = await cursor.fetchone()
        if not row or row["ok"] != 1:
            raise RuntimeError("Database ping returned an unexpected result")

    async def close(self) -> None:
        if not self._initialized or self._closed:
            return

        try:
            await asyncio.wait_for(self.pool.close(), timeout=30.0)
            logger.info("Database pool closed")
        except TimeoutError:
            logger.warning("Database pool close timed out")
        finally:
            self._initialized = False
            self._closed = True

    @asynccontextmanager
    async def connection(self) -> AsyncGenerator[psycopg.AsyncConnection, None]:
        """Borrow an autocommit connection from the pool."""
        if not self.is_ready:
            raise RuntimeError("Database pool not initialized")

        async with self.pool.connection() as conn:
            yield conn

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[psycopg.AsyncConnection, None]:
        """
        Borrow a connection inside BEGIN/COMMIT.

        Usage:
            async with db_pool.transaction() as conn:
                await conn.execute("DELETE ...")
                await conn.execute("INSERT ...")

        Leaving the block with an exception rolls everything back.
        """
        async with self.connection() as conn:
            async with conn.transaction():
                yield conn

    async def health_check(self) -> dict[str, Any]:
        """Ping the database and report pool occupancy."""
        if not self.is_ready:
            return {"healthy": False, "error": "Pool not initialized"}

        try:
            started = time.time()
            await self._ping()
            ping_ms = round((time.time() - started) * 1000, 2)
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {"healthy": False, "error": str(e), "error_type": type(e).__name__}

        stats = self.pool.get_stats()
        size = stats.get("pool_size", 0)
        available = stats.get("pool_available", 0)
        waiting = stats.get("requests_waiting", 0)
        utilization = round((size - available) / size * 100, 2) if size else 0

        health = {
            "healthy": True,
            "connection_time_ms": ping_ms,
            "pool_stats": {
                "pool_size": size,
                "pool_available": available,
                "pool_utilization_percent": utilization,
                "requests_waiting": waiting,
            },
        }

        warnings = []
        if utilization > HIGH_UTILIZATION_PERCENT:
            warnings.append(f"High pool utilization: {utilization:.1f}%")
        if waiting:
            warnings.append(f"Requests waiting for connections: {waiting}")
        if warnings:
            health["warnings"] = warnings

        return health


db_pool = DatabasePoolManager()


async def get_db_connection():
    """Connection context manager from the shared pool."""
    return db_pool.connection()


async def get_db_transaction():
    """Transaction context manager from the shared pool."""
    return db_pool.transaction()


async def db_health_check() -> dict[str, Any]:
    return await db_pool.health_check()
