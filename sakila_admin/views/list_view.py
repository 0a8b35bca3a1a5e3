"""
List view controller: a `ListViewSpec` driven through a `Paginator`.

Every transition first checks that the table exists (memoised by the
schema inspector), so a missing table yields a "table not found" state
without any row query. Related counts are then attached with one grouped
query per related spec for the whole page.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from sakila_admin.data.errors import QueryError, TableNotFoundError
from sakila_admin.data.gateway import DataGateway
from sakila_admin.data.introspection import SchemaInspector
from sakila_admin.domain.models import DbError
from sakila_admin.pagination import LoadState, PageSnapshot, Paginator
from sakila_admin.utils.logging import get_logger
from sakila_admin.views.specs import (
    ListViewSpec,
    RelatedCount,
    RelatedFlag,
    RelatedValues,
)

log = get_logger(__name__)

EXPLORER_VIEW = "explorer"
RETRY_HINT = "Check the database connection and try again."

ViewStatus = Literal["idle", "loading", "loaded", "empty", "not_found", "error"]


class ActionState(BaseModel):
    key: str
    label: str
    enabled: bool
    message: str = ""


class ViewState(BaseModel):
    """Everything a surface needs to render one list view."""

    view_id: str
    title: str
    table: str
    status: ViewStatus = "idle"
    page: int = 1
    page_size: int = 25
    total_count: int = 0
    total_pages: int = 0
    has_more: bool = False
    search: Optional[str] = None
    search_placeholder: Optional[str] = None
    columns: List[str] = Field(default_factory=list)
    cells: List[List[str]] = Field(default_factory=list)
    rows: List[Dict[str, Any]] = Field(default_factory=list)
    message: Optional[str] = None
    error: Optional[DbError] = None
    stale: bool = False
    suggested_view: Optional[str] = None
    row_actions: List[ActionState] = Field(default_factory=list)
    view_actions: List[ActionState] = Field(default_factory=list)


def _actions(specs: tuple) -> List[ActionState]:
    return [
        ActionState(key=a.key, label=a.label, enabled=a.implemented, message=a.message)
        for a in specs
    ]


class ListView:
    """
    Stateful controller for one list view.

    Parameters
    ----------
    spec : ListViewSpec
    gateway : DataGateway
    inspector : SchemaInspector
        Table-existence guard (memoised).
    page_size : int
    """

    def __init__(
        self,
        spec: ListViewSpec,
        gateway: DataGateway,
        inspector: SchemaInspector,
        page_size: int = 25,
    ) -> None:
        self.spec = spec
        self._gateway = gateway
        self._inspector = inspector
        self.paginator = Paginator(
            gateway.fetch_page,
            spec.table,
            page_size=page_size,
            order_by=spec.order,
            search_columns=spec.search_columns,
            filters=spec.filters,
            search_filters=spec.search_filters,
            embeds=spec.embeds,
        )
        self._state = self._base_state(status="idle")
        self._seq = 0

    @property
    def state(self) -> ViewState:
        return self._state

    # ---- Transitions --------------------------------------------------------

    async def load(self, page: int = 1, search: Optional[str] = None) -> ViewState:
        """Load `page`, applying `search` when given (otherwise keep the current term)."""
        if search is not None:
            self.paginator.filter_value = search.strip() or None
        self.paginator.page = max(page, 1)
        return await self._run(self.paginator.load)

    async def search(self, term: Optional[str]) -> ViewState:
        return await self._run(lambda: self.paginator.set_filter(term))

    async def next_page(self) -> ViewState:
        return await self._run(self.paginator.next_page)

    async def prev_page(self) -> ViewState:
        return await self._run(self.paginator.prev_page)

    async def go_to(self, page: int) -> ViewState:
        return await self._run(lambda: self.paginator.set_page(page))

    async def refresh(self) -> ViewState:
        return await self._run(self.paginator.refresh)

    def trigger(self, action_key: str) -> ActionState:
        """Report the outcome of an action; none of them write."""
        for action in (*self.spec.row_actions, *self.spec.view_actions):
            if action.key == action_key:
                log.info(
                    "Action requested",
                    extra={"view": self.spec.view_id, "action": action_key, "implemented": action.implemented},
                )
                return ActionState(
                    key=action.key,
                    label=action.label,
                    enabled=action.implemented,
                    message=action.message,
                )
        raise KeyError(action_key)

    # ---- Internals ----------------------------------------------------------

    async def _run(self, transition: Callable[[], Awaitable[PageSnapshot]]) -> ViewState:
        # A call overtaken by a newer one returns the newer call's state.
        self._seq += 1
        seq = self._seq
        try:
            exists = await self._inspector.table_exists(self.spec.table)
        except QueryError as exc:
            if seq != self._seq:
                return self._state
            log.warning(
                "Existence check failed",
                extra={"view": self.spec.view_id, "table": self.spec.table, "error": exc.error.message},
            )
            self._state = self._error_state(exc.error, self.paginator.snapshot)
            return self._state
        if seq != self._seq:
            return self._state
        if not exists:
            self._state = self._not_found_state()
            return self._state

        self._state = self._base_state(status="loading")
        snapshot = await transition()
        if seq != self._seq:
            return self._state
        if snapshot.state is LoadState.LOADED and snapshot.data:
            await self._enrich(snapshot.data)
            if seq != self._seq:
                return self._state
        self._state = self._from_snapshot(snapshot)
        return self._state

    async def _enrich(self, rows: List[Dict[str, Any]]) -> None:
        """Attach related counts, flags and values for the whole page."""
        for related in self.spec.related:
            keys = [row.get(related.local_key) for row in rows]
            try:
                if isinstance(related, RelatedValues):
                    values = await self._gateway.grouped_values(
                        related.link_table,
                        related.link_key,
                        related.target_table,
                        related.target_key,
                        related.target_column,
                        keys,
                    )
                    for row in rows:
                        row[related.name] = values.get(row.get(related.local_key), [])
                    continue
                counts = await self._gateway.grouped_counts(
                    related.table, related.key_column, keys=keys, filters=related.filters
                )
            except QueryError as exc:
                log.warning(
                    "Related data unavailable",
                    extra={"view": self.spec.view_id, "field": related.name, "error": exc.error.message},
                )
                continue
            for row in rows:
                count = counts.get(row.get(related.local_key), 0)
                if isinstance(related, RelatedFlag):
                    row[related.name] = count > 0
                elif isinstance(related, RelatedCount):
                    row[related.name] = count

    def _base_state(self, status: ViewStatus) -> ViewState:
        return ViewState(
            view_id=self.spec.view_id,
            title=self.spec.title,
            table=self.spec.table,
            status=status,
            page=self.paginator.page,
            page_size=self.paginator.page_size,
            search=self.paginator.filter_value,
            search_placeholder=self.spec.search_placeholder,
            columns=[column.label for column in self.spec.columns],
            row_actions=_actions(self.spec.row_actions),
            view_actions=_actions(self.spec.view_actions),
        )

    def _not_found_state(self) -> ViewState:
        error = TableNotFoundError(self.spec.table).error
        state = self._base_state(status="not_found")
        state.message = error.message
        state.error = error
        state.suggested_view = EXPLORER_VIEW
        return state

    def _error_state(self, error: DbError, snapshot: PageSnapshot) -> ViewState:
        state = self._fill(self._base_state(status="error"), snapshot)
        state.message = f"{error.message}. {RETRY_HINT}"
        state.error = error
        state.stale = bool(snapshot.data)
        state.suggested_view = EXPLORER_VIEW
        return state

    def _fill(self, state: ViewState, snapshot: PageSnapshot) -> ViewState:
        state.page = snapshot.page
        state.total_count = snapshot.count
        state.total_pages = snapshot.total_pages
        state.has_more = snapshot.has_more
        state.rows = snapshot.data
        state.cells = [[column.render(row) for column in self.spec.columns] for row in snapshot.data]
        return state

    def _from_snapshot(self, snapshot: PageSnapshot) -> ViewState:
        if snapshot.state in (LoadState.IDLE, LoadState.LOADING):
            return self._base_state(status=snapshot.state.value)
        if snapshot.state is LoadState.FAILED and snapshot.error is not None:
            if not snapshot.table_exists:
                self._inspector.invalidate(self.spec.table)
                return self._not_found_state()
            return self._error_state(snapshot.error, snapshot)
        state = self._fill(self._base_state(status="loaded"), snapshot)
        if not snapshot.data:
            state.status = "empty"
            state.message = self.spec.empty_message(snapshot.filter_value)
        return state


__all__ = ["ActionState", "ListView", "ViewState", "EXPLORER_VIEW"]
