"""
Data-layer exceptions and their mapping to structured `DbError` values.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import asyncpg

from sakila_admin.domain.models import DbError

UNDEFINED_TABLE = "42P01"
UNDEFINED_COLUMN = "42703"
TIMEOUT_CODE = "timeout"
TRANSPORT_CODE = "transport"

# Exceptions the gateway converts into DbError values; anything else is a bug.
DATABASE_EXCEPTIONS = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    OSError,
    asyncio.TimeoutError,
)


class QueryError(Exception):
    """A query against the database failed; carries the structured error."""

    def __init__(self, error: DbError) -> None:
        super().__init__(error.message)
        self.error = error

    @property
    def code(self) -> Optional[str]:
        return self.error.code


class TableNotFoundError(QueryError):
    """The requested table (or view) does not exist in the configured schema."""

    def __init__(self, table: str) -> None:
        super().__init__(
            DbError(
                message=f"Table not found: {table}",
                hint="Open the schema explorer to list the available tables.",
                code=UNDEFINED_TABLE,
            )
        )
        self.table = table


def to_db_error(exc: BaseException) -> DbError:
    """
    Convert a driver/transport exception into a DbError.
    """
    if isinstance(exc, QueryError):
        return exc.error
    if isinstance(exc, asyncpg.PostgresError):
        return DbError(
            message=getattr(exc, "message", None) or str(exc) or type(exc).__name__,
            details=getattr(exc, "detail", None),
            hint=getattr(exc, "hint", None),
            code=getattr(exc, "sqlstate", None),
        )
    if isinstance(exc, asyncio.TimeoutError):
        return DbError(message="Query timed out", code=TIMEOUT_CODE)
    return DbError(message=str(exc) or type(exc).__name__, code=TRANSPORT_CODE)


def is_missing_relation(error: Optional[DbError]) -> bool:
    """Whether the error means an expected table or column is absent."""
    return error is not None and error.code in (UNDEFINED_TABLE, UNDEFINED_COLUMN)


__all__ = [
    "DATABASE_EXCEPTIONS",
    "QueryError",
    "TableNotFoundError",
    "UNDEFINED_COLUMN",
    "UNDEFINED_TABLE",
    "is_missing_relation",
    "to_db_error",
]
