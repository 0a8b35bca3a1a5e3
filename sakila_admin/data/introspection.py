"""
Schema introspection through information_schema.

The inspector answers "does this table exist", "which tables are there" and
"what columns does this table have". It backs the schema explorer, the
"table not found" guard of list views and dashboard cards, and the one-time
capability negotiation of the analytics report. Per-view queries never
consult it to decide which columns to select.
"""

from __future__ import annotations

from typing import List, Optional

from sakila_admin.data.cache import MemoCache
from sakila_admin.data.gateway import DataGateway
from sakila_admin.domain.models import ColumnInfo
from sakila_admin.utils.logging import get_logger

log = get_logger(__name__)

_TABLE_EXISTS_SQL = """
    SELECT EXISTS (
        SELECT FROM information_schema.tables
        WHERE table_schema = $1
        AND table_name = $2
    )
"""

_LIST_TABLES_SQL = """
    SELECT table_name
    FROM information_schema.tables
    WHERE table_schema = $1
    AND table_name NOT LIKE 'pg\\_%'
    ORDER BY table_name
"""

_DESCRIBE_COLUMNS_SQL = """
    SELECT column_name, data_type, is_nullable
    FROM information_schema.columns
    WHERE table_schema = $1
    AND table_name = $2
    ORDER BY ordinal_position
"""


class SchemaInspector:
    """
    information_schema reader with a memoised existence check.

    Parameters
    ----------
    gateway : DataGateway
        Used for the raw information_schema reads; its schema is inspected.
    cache : MemoCache | None
        Existence memo. Defaults to a cache without expiry; pass one with a
        TTL (see `EXISTENCE_CACHE_TTL_SECONDS`) to bound staleness, and call
        `invalidate()` after creating or dropping tables.
    """

    def __init__(self, gateway: DataGateway, cache: Optional[MemoCache[str, bool]] = None) -> None:
        self._gateway = gateway
        self._cache: MemoCache[str, bool] = cache if cache is not None else MemoCache()

    @property
    def schema(self) -> str:
        return self._gateway.schema

    async def table_exists(self, name: str) -> bool:
        """
        Whether `name` is a table or view in the inspected schema.

        Raises
        ------
        QueryError
            If information_schema can't be read; nothing is cached then.
        """
        cached = self._cache.get(name)
        if cached is not None:
            return cached
        exists = bool(await self._gateway.fetch_value(_TABLE_EXISTS_SQL, (self.schema, name)))
        self._cache.set(name, exists)
        if not exists:
            log.info("Table not found", extra={"table": name, "schema": self.schema})
        return exists

    def invalidate(self, name: Optional[str] = None) -> None:
        """Forget the cached existence of one table, or of all tables."""
        self._cache.invalidate(name)

    async def list_tables(self) -> List[str]:
        rows = await self._gateway.fetch_rows(_LIST_TABLES_SQL, (self.schema,))
        tables = [row["table_name"] for row in rows]
        for table in tables:
            self._cache.set(table, True)
        return tables

    async def describe_columns(self, table: str) -> List[ColumnInfo]:
        rows = await self._gateway.fetch_rows(_DESCRIBE_COLUMNS_SQL, (self.schema, table))
        return [
            ColumnInfo(
                name=row["column_name"],
                declared_type=row["data_type"],
                nullable=str(row.get("is_nullable", "YES")).upper() == "YES",
            )
            for row in rows
        ]


__all__ = ["SchemaInspector"]
