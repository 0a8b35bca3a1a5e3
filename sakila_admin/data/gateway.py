"""
The single data-access interface of the admin console.

`DataGateway` wraps an asyncpg pool and offers:

- `fetch_page`: one ordered, filtered page plus the exact total count, with
  foreign-key embeds resolved in batches. Failures come back as a
  `PageResult` carrying a `DbError`; this method never raises for database
  or transport problems.
- aggregate helpers (`count`, `sum`, `average`, `top_n`, `grouped_counts`,
  `grouped_values`, `time_buckets`, `lookup`, `fetch_all`, `ping`) used by the
  dashboards and by per-page enrichment. These raise `QueryError`, which the
  issuing view or report catches at its own boundary.

Usage:
    pool = await PoolManager().get_pool()
    gateway = DataGateway(pool)
    result = await gateway.fetch_page("category", page=2, page_size=25, order_column="name")
"""

from __future__ import annotations

import time
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from sakila_admin.data.errors import (
    DATABASE_EXCEPTIONS,
    UNDEFINED_TABLE,
    QueryError,
    to_db_error,
)
from sakila_admin.data.query import (
    Embed,
    Filters,
    OrderBy,
    Search,
    build_aggregate,
    build_count,
    build_grouped_counts,
    build_grouped_values,
    build_lookup,
    build_select,
    build_time_buckets,
)
from sakila_admin.domain.models import PageResult, has_more
from sakila_admin.utils.logging import get_logger

log = get_logger(__name__)


class DataGateway:
    """
    Read access to one database schema through an asyncpg-compatible pool.

    Parameters
    ----------
    pool :
        Anything exposing `acquire()` as an async context manager yielding a
        connection with `fetch` / `fetchval` (an `asyncpg.Pool` in production).
    schema : str
        Schema every table name is qualified with.
    """

    def __init__(self, pool: Any, schema: str = "public") -> None:
        self._pool = pool
        self.schema = schema

    # ---- Pages ------------------------------------------------------------

    async def fetch_page(
        self,
        table: str,
        page: int = 1,
        page_size: int = 25,
        order_column: Optional[str] = None,
        ascending: bool = True,
        filters: Optional[Filters] = None,
        search: Optional[Search] = None,
        columns: Optional[Sequence[str]] = None,
        embeds: Sequence[Embed] = (),
        tiebreaker: Optional[str] = None,
    ) -> PageResult:
        """
        Fetch page `page` (1-based) of `table` and the total matching row count.

        Returns
        -------
        PageResult
            `has_more` is `total_count > page * page_size`. On failure `rows`
            is empty, `total_count` is 0 and `error` describes the problem;
            an undefined table also sets `table_exists=False`.

        Raises
        ------
        ValueError
            If `page < 1` or `page_size <= 0`, or an identifier is invalid.
        """
        if page < 1:
            raise ValueError(f"page must be >= 1, got {page}")
        if page_size <= 0:
            raise ValueError(f"page_size must be > 0, got {page_size}")

        order = OrderBy(order_column, ascending, tiebreaker) if order_column else None
        count_sql, count_params = build_count(self.schema, table, filters, search)
        select_sql, select_params = build_select(
            self.schema,
            table,
            columns=columns,
            filters=filters,
            search=search,
            order=order,
            limit=page_size,
            offset=(page - 1) * page_size,
        )

        start = time.perf_counter()
        try:
            async with self._pool.acquire() as conn:
                total = await conn.fetchval(count_sql, *count_params)
                records = await conn.fetch(select_sql, *select_params)
                rows = [dict(record) for record in records]
                if embeds and rows:
                    await self._resolve_embeds(conn, rows, embeds)
        except DATABASE_EXCEPTIONS as exc:
            error = to_db_error(exc)
            log.warning(
                "Page fetch failed",
                extra={"table": table, "page": page, "code": error.code, "error": error.message},
            )
            return PageResult.failed(
                error, page, page_size, table_exists=error.code != UNDEFINED_TABLE
            )

        total_count = int(total or 0)
        log.debug(
            "Page fetched",
            extra={
                "table": table,
                "page": page,
                "rows": len(rows),
                "total_count": total_count,
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
            },
        )
        return PageResult(
            rows=rows,
            total_count=total_count,
            page=page,
            page_size=page_size,
            has_more=has_more(page, page_size, total_count),
        )

    async def _resolve_embeds(
        self, conn: Any, rows: List[Dict[str, Any]], embeds: Sequence[Embed]
    ) -> None:
        """Attach nested objects for each embed with one lookup per relation."""
        for embed in embeds:
            keys = sorted({row[embed.local_key] for row in rows if row.get(embed.local_key) is not None})
            related: Dict[Any, Dict[str, Any]] = {}
            if keys:
                sql, params = build_lookup(
                    self.schema, embed.table, embed.target_key, keys, embed.columns
                )
                found = [dict(record) for record in await conn.fetch(sql, *params)]
                if embed.embeds and found:
                    await self._resolve_embeds(conn, found, embed.embeds)
                related = {item[embed.target_key]: item for item in found}
            for row in rows:
                row[embed.name] = related.get(row.get(embed.local_key))

    # ---- Raw access -------------------------------------------------------

    async def fetch_rows(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        """Run a read statement and return its rows as dicts."""
        try:
            async with self._pool.acquire() as conn:
                records = await conn.fetch(sql, *params)
        except DATABASE_EXCEPTIONS as exc:
            raise QueryError(to_db_error(exc)) from exc
        return [dict(record) for record in records]

    async def fetch_value(self, sql: str, params: Sequence[Any] = ()) -> Any:
        """Run a read statement and return the first column of the first row."""
        try:
            async with self._pool.acquire() as conn:
                return await conn.fetchval(sql, *params)
        except DATABASE_EXCEPTIONS as exc:
            raise QueryError(to_db_error(exc)) from exc

    # ---- Aggregates -------------------------------------------------------

    async def ping(self) -> bool:
        """Round-trip a trivial statement; raises QueryError when unreachable."""
        return await self.fetch_value("SELECT 1") == 1

    async def count(
        self,
        table: str,
        filters: Optional[Filters] = None,
        search: Optional[Search] = None,
        distinct: Optional[str] = None,
    ) -> int:
        sql, params = build_count(self.schema, table, filters, search, distinct)
        return int(await self.fetch_value(sql, params) or 0)

    async def sum(self, table: str, column: str, filters: Optional[Filters] = None) -> Any:
        sql, params = build_aggregate(self.schema, table, "sum", column, filters)
        return await self.fetch_value(sql, params)

    async def average(
        self, table: str, column: str, filters: Optional[Filters] = None
    ) -> Optional[float]:
        sql, params = build_aggregate(self.schema, table, "avg", column, filters)
        value = await self.fetch_value(sql, params)
        return None if value is None else float(value)

    async def top_n(
        self,
        table: str,
        order_column: str,
        limit: int = 5,
        ascending: bool = False,
        columns: Optional[Sequence[str]] = None,
        filters: Optional[Filters] = None,
    ) -> List[Dict[str, Any]]:
        sql, params = build_select(
            self.schema,
            table,
            columns=columns,
            filters=filters,
            order=OrderBy(order_column, ascending),
            limit=limit,
        )
        return await self.fetch_rows(sql, params)

    async def fetch_all(
        self,
        table: str,
        order_column: Optional[str] = None,
        ascending: bool = True,
        columns: Optional[Sequence[str]] = None,
        filters: Optional[Filters] = None,
    ) -> List[Dict[str, Any]]:
        """Every matching row; only for small reporting views."""
        order = OrderBy(order_column, ascending) if order_column else None
        sql, params = build_select(
            self.schema, table, columns=columns, filters=filters, order=order
        )
        return await self.fetch_rows(sql, params)

    async def lookup(
        self,
        table: str,
        key: str,
        keys: Iterable[Any],
        columns: Optional[Sequence[str]] = None,
    ) -> Dict[Any, Dict[str, Any]]:
        """Rows of `table` indexed by `key`, for the given key values."""
        wanted = sorted({value for value in keys if value is not None})
        if not wanted:
            return {}
        sql, params = build_lookup(self.schema, table, key, wanted, columns)
        return {row[key]: row for row in await self.fetch_rows(sql, params)}

    async def grouped_counts(
        self,
        table: str,
        group_column: str,
        keys: Optional[Iterable[Any]] = None,
        filters: Optional[Filters] = None,
        limit: Optional[int] = None,
        most_common_first: bool = False,
    ) -> Dict[Any, int]:
        """
        Row counts of `table` per value of `group_column`.

        With `keys`, only those groups are counted and keys without rows map
        to 0, which is what per-page related counts need.
        """
        wanted: Optional[List[Any]] = None
        if keys is not None:
            wanted = sorted({value for value in keys if value is not None})
            if not wanted:
                return {}
        sql, params = build_grouped_counts(
            self.schema,
            table,
            group_column,
            keys=wanted,
            filters=filters,
            limit=limit,
            most_common_first=most_common_first,
        )
        rows = await self.fetch_rows(sql, params)
        counts: Dict[Any, int] = {key: 0 for key in wanted or ()}
        for row in rows:
            counts[row["key"]] = int(row["count"])
        return counts

    async def grouped_values(
        self,
        link_table: str,
        link_key: str,
        target_table: str,
        target_key: str,
        target_column: str,
        keys: Iterable[Any],
    ) -> Dict[Any, List[Any]]:
        """Values reached through a link table, grouped by the parent key."""
        wanted = sorted({value for value in keys if value is not None})
        if not wanted:
            return {}
        sql, params = build_grouped_values(
            self.schema, link_table, link_key, target_table, target_key, target_column, wanted
        )
        grouped: Dict[Any, List[Any]] = {key: [] for key in wanted}
        for row in await self.fetch_rows(sql, params):
            grouped.setdefault(row["key"], []).append(row["value"])
        return grouped

    async def time_buckets(
        self,
        table: str,
        column: str,
        unit: str = "month",
        since: Any = None,
        filters: Optional[Filters] = None,
    ) -> List[Tuple[Any, int]]:
        sql, params = build_time_buckets(self.schema, table, column, unit, since, filters)
        return [(row["period"], int(row["count"])) for row in await self.fetch_rows(sql, params)]


__all__ = ["DataGateway"]
