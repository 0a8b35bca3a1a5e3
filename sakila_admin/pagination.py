"""
Generic pagination controller.

A `Paginator` owns the page/filter/order state of one table listing and
drives `DataGateway.fetch_page` (or anything with the same signature).

State machine::

    IDLE -> LOADING -> LOADED
                    -> FAILED

Every change (`set_page`, `set_filter`, `set_order`, `set_table`, `refresh`)
re-enters LOADING. Each load takes a sequence number and its response is
applied only while that number is still the latest, so a slow page-1
response can't overwrite a page-3 result that was requested after it.

A failed load keeps the last successful rows and count visible (`stale`)
next to the error, and `page` falls back to the page those rows came from.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from sakila_admin.data.query import Embed, Filters, OrderBy, Search
from sakila_admin.domain.models import DbError, PageResult, total_pages
from sakila_admin.utils.logging import get_logger

log = get_logger(__name__)

FetchPage = Callable[..., Awaitable[PageResult]]
# Turns a search term into extra filters; None means "nothing can match".
SearchFilters = Callable[[str], Optional[Filters]]


class LoadState(str, enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


@dataclass(frozen=True)
class PageSnapshot:
    """Read-only view of the paginator after a transition."""

    state: LoadState
    table: str
    page: int
    page_size: int
    data: List[Dict[str, Any]] = field(default_factory=list)
    count: int = 0
    error: Optional[DbError] = None
    table_exists: bool = True
    filter_value: Optional[str] = None
    has_more: bool = False
    total_pages: int = 0

    @property
    def stale(self) -> bool:
        """Rows on display belong to an earlier successful load."""
        return self.state is LoadState.FAILED and bool(self.data)


class Paginator:
    """
    Page through one table with search, ordering and supersession handling.

    Parameters
    ----------
    fetch : callable
        Coroutine function with the `DataGateway.fetch_page` signature.
    table : str
        Table (or view) to list.
    page_size : int
        Rows per page.
    order_by : OrderBy | None
        Ordering; a tiebreaker column keeps pages stable.
    search_columns : sequence of str
        Columns searched by substring when a filter value is set.
    filter_value : str | None
        Initial search term.
    filters : mapping | None
        Fixed filters always applied.
    search_filters : callable | None
        Custom search: maps the term to extra filters (replaces
        `search_columns`). Returning None short-circuits to an empty page.
    embeds : sequence of Embed
        Foreign keys to resolve on every page.
    """

    def __init__(
        self,
        fetch: FetchPage,
        table: str,
        page_size: int = 25,
        order_by: Optional[OrderBy] = None,
        search_columns: Sequence[str] = (),
        filter_value: Optional[str] = None,
        filters: Optional[Filters] = None,
        search_filters: Optional[SearchFilters] = None,
        embeds: Sequence[Embed] = (),
    ) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self._fetch = fetch
        self.table = table
        self.page_size = page_size
        self.order_by = order_by
        self.search_columns = tuple(search_columns)
        self.filter_value = filter_value or None
        self.filters: Dict[str, Any] = dict(filters or {})
        self.search_filters = search_filters
        self.embeds = tuple(embeds)

        self.page = 1
        self.state = LoadState.IDLE
        self.data: List[Dict[str, Any]] = []
        self.count = 0
        self.error: Optional[DbError] = None
        self.table_exists = True
        self._seq = 0
        self._loaded_page: Optional[int] = None

    # ---- Derived state ----------------------------------------------------

    @property
    def total_pages(self) -> int:
        return total_pages(self.count, self.page_size)

    @property
    def has_more(self) -> bool:
        return self.count > self.page * self.page_size

    @property
    def snapshot(self) -> PageSnapshot:
        return PageSnapshot(
            state=self.state,
            table=self.table,
            page=self.page,
            page_size=self.page_size,
            data=list(self.data),
            count=self.count,
            error=self.error,
            table_exists=self.table_exists,
            filter_value=self.filter_value,
            has_more=self.has_more,
            total_pages=self.total_pages,
        )

    # ---- Transitions ------------------------------------------------------

    async def load(self) -> PageSnapshot:
        """Fetch the current page; superseded responses are discarded."""
        self._seq += 1
        seq = self._seq
        self.state = LoadState.LOADING
        page = self.page

        filters = dict(self.filters)
        search: Optional[Search] = None
        if self.filter_value:
            if self.search_filters is not None:
                extra = self.search_filters(self.filter_value)
                if extra is None:
                    self._apply(seq, PageResult(page=page, page_size=self.page_size))
                    return self.snapshot
                filters.update(extra)
            elif self.search_columns:
                search = Search(self.filter_value, self.search_columns)

        order = self.order_by
        result = await self._fetch(
            self.table,
            page=page,
            page_size=self.page_size,
            order_column=order.column if order else None,
            ascending=order.ascending if order else True,
            filters=filters,
            search=search,
            embeds=self.embeds,
            tiebreaker=order.tiebreaker if order else None,
        )
        self._apply(seq, result)
        return self.snapshot

    def _apply(self, seq: int, result: PageResult) -> None:
        if seq != self._seq:
            log.debug(
                "Discarding superseded page response",
                extra={"table": self.table, "seq": seq, "latest": self._seq},
            )
            return
        self.table_exists = result.table_exists
        if result.error is not None:
            self.state = LoadState.FAILED
            self.error = result.error
            if self.data and self._loaded_page is not None:
                self.page = self._loaded_page
            return
        self.state = LoadState.LOADED
        self.error = None
        self._loaded_page = self.page
        self.data = list(result.rows)
        self.count = result.total_count

    async def set_page(self, page: int) -> PageSnapshot:
        if page < 1:
            raise ValueError(f"page must be >= 1, got {page}")
        self.page = page
        return await self.load()

    async def next_page(self) -> PageSnapshot:
        """Advance one page; a no-op on the last page."""
        if self.page >= self.total_pages:
            return self.snapshot
        return await self.set_page(self.page + 1)

    async def prev_page(self) -> PageSnapshot:
        """Go back one page; a no-op on page 1."""
        if self.page <= 1:
            return self.snapshot
        return await self.set_page(self.page - 1)

    async def set_filter(self, value: Optional[str]) -> PageSnapshot:
        """Apply a search term (on submit) and go back to page 1."""
        self.filter_value = (value or "").strip() or None
        self.page = 1
        return await self.load()

    async def set_order(self, order_by: OrderBy) -> PageSnapshot:
        self.order_by = order_by
        return await self.load()

    async def set_table(
        self, table: str, order_by: Optional[OrderBy] = None
    ) -> PageSnapshot:
        """Switch to another table, dropping rows, search and page."""
        self.table = table
        self.order_by = order_by
        self.filter_value = None
        self.page = 1
        self.data = []
        self.count = 0
        self.error = None
        self.table_exists = True
        self._loaded_page = None
        return await self.load()

    async def refresh(self) -> PageSnapshot:
        return await self.load()


__all__ = ["LoadState", "PageSnapshot", "Paginator"]
