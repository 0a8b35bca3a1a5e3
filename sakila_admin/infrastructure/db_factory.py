"""
Database connection factory utilities for the Sakila admin console.

Provides centralized management of the asyncpg pool used by the data layer
and a synchronous psycopg connection used for startup connectivity checks.
Both read their credentials from settings, never from callers, so the
connection string stays on the server side of the application API.

Includes retry logic for transient connection failures using tenacity.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import asyncpg
import psycopg
from psycopg import Connection
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from sakila_admin.config import Settings, get_settings
from sakila_admin.utils.logging import get_logger

log = get_logger(__name__)


class PoolManager:
    """
    Owner of the asyncpg pool for one event loop.

    The pool is created lazily on first use and must be closed from the loop
    that created it, so the CLI opens one manager per command and the API
    server opens one per application lifespan.
    """

    def __init__(self, settings: Optional[Settings] = None, dsn_override: Optional[str] = None) -> None:
        self._settings = settings or get_settings()
        self._dsn_override = dsn_override
        self._pool: Optional[asyncpg.Pool] = None
        self._lock = asyncio.Lock()

    @property
    def dsn(self) -> str:
        return self._dsn_override or self._settings.dsn

    async def get_pool(self) -> asyncpg.Pool:
        """
        Get or create the asynchronous connection pool.

        Returns
        -------
        asyncpg.Pool
            The managed pool, sized from DB_POOL_MIN / DB_POOL_MAX and with
            every statement bounded by QUERY_TIMEOUT_SECONDS.
        """
        async with self._lock:
            if self._pool is None:
                self._pool = await _create_pool(
                    self.dsn,
                    min_size=self._settings.db_pool_min,
                    max_size=self._settings.db_pool_max,
                    command_timeout=self._settings.query_timeout_seconds,
                )
                log.info(
                    "Database pool opened",
                    extra={
                        "db_host": self._settings.db_host,
                        "db_name": self._settings.db_name,
                        "pool_max": self._settings.db_pool_max,
                    },
                )
            return self._pool

    async def close(self) -> None:
        """
        Close the managed pool and release resources.
        """
        async with self._lock:
            if self._pool is not None:
                try:
                    await self._pool.close()
                finally:
                    self._pool = None
                log.info("Database pool closed")

    async def __aenter__(self) -> "PoolManager":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((OSError, ConnectionError)),
    reraise=True,
)
async def _create_pool(
    dsn: str, min_size: int, max_size: int, command_timeout: float
) -> asyncpg.Pool:
    """Create an asyncpg pool, retrying transient connection failures."""
    return await asyncpg.create_pool(
        dsn,
        min_size=min_size,
        max_size=max_size,
        command_timeout=command_timeout,
    )


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((psycopg.OperationalError, psycopg.InterfaceError)),
    reraise=True,
)
def get_sync_connection(dsn_override: Optional[str] = None) -> Connection:
    """
    Acquire a dedicated synchronous connection with automatic retry.

    Retries up to 3 times with exponential backoff for transient connection errors.
    Used by the CLI `ping` command.

    Returns
    -------
    Connection
        A new psycopg connection instance.

    Raises
    ------
    psycopg.OperationalError
        If connection fails after all retry attempts.
    """
    settings = get_settings()
    return psycopg.connect(
        dsn_override or settings.dsn,
        connect_timeout=max(1, int(settings.query_timeout_seconds)),
    )


def wait_for_database(dsn_override: Optional[str] = None) -> str:
    """
    Block until the database answers `SELECT version()` and return the banner.

    Raises
    ------
    psycopg.OperationalError
        If the database stays unreachable after the retry budget.
    """
    with get_sync_connection(dsn_override) as conn:
        with conn.cursor() as cur:
            cur.execute("SELECT version();")
            row = cur.fetchone()
    return str(row[0]) if row else ""


__all__ = [
    "PoolManager",
    "get_sync_connection",
    "wait_for_database",
]
