"""
Admin shell: navigation, the active view and the "change active tab" signal.

The shell knows every view a surface can show (list views, dashboards,
reports and the schema explorer). Views and error states ask it to switch
tabs through `request_view`; listeners registered with `on_change` are told
about every switch.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel

from sakila_admin.data.errors import QueryError
from sakila_admin.data.gateway import DataGateway
from sakila_admin.domain.models import DbError
from sakila_admin.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class NavItem:
    id: str
    label: str
    section: str
    # Tabs shown inside the item; the first one opens by default.
    views: Tuple[str, ...] = ()

    @property
    def default_view(self) -> str:
        return self.views[0] if self.views else self.id


NAVIGATION: Tuple[NavItem, ...] = (
    NavItem("dashboard", "Dashboard", "sakila"),
    NavItem("films", "Films", "sakila"),
    NavItem("actors", "Actors", "sakila"),
    NavItem("customers", "Customers", "sakila"),
    NavItem("rentals", "Rentals", "sakila"),
    NavItem("payments", "Payments", "sakila"),
    NavItem("inventory", "Inventory", "sakila"),
    NavItem("stores", "Stores", "sakila"),
    NavItem("categories", "Categories", "sakila"),
    NavItem("staff", "Staff", "sakila"),
    NavItem("locations", "Locations", "sakila", ("countries", "cities", "addresses")),
    NavItem("sales-by-category", "Sales by Category", "sakila"),
    NavItem("statistics", "Statistics", "streaming"),
    NavItem("videos", "Videos", "streaming"),
    NavItem("users", "Users", "streaming"),
    NavItem("video-categories", "Video Categories", "streaming"),
    NavItem("subscriptions", "Subscriptions", "streaming"),
    NavItem("comments", "Comments", "streaming"),
    NavItem("analytics", "Analytics", "streaming"),
    NavItem("explorer", "Database Explorer", "tools"),
)

ChangeListener = Callable[[str, Optional[str]], None]


class ConnectivityStatus(BaseModel):
    ok: bool
    message: str
    latency_ms: Optional[float] = None
    checked_at: datetime
    error: Optional[DbError] = None


class AdminShell:
    """
    Navigation state for one admin session.

    Parameters
    ----------
    navigation : tuple of NavItem
    initial : str
        View shown first.
    """

    def __init__(self, navigation: Tuple[NavItem, ...] = NAVIGATION, initial: str = "dashboard") -> None:
        self.navigation = navigation
        self._owners: Dict[str, NavItem] = {}
        for item in navigation:
            self._owners[item.id] = item
            for view_id in item.views:
                self._owners[view_id] = item
        if initial not in self._owners:
            raise ValueError(f"Unknown view: {initial}")
        owner = self._owners[initial]
        self.active_view = owner.default_view if initial == owner.id else initial
        self._listeners: List[ChangeListener] = []

    @property
    def view_ids(self) -> List[str]:
        return list(self._owners)

    @property
    def active_item(self) -> NavItem:
        return self._owners[self.active_view]

    def knows(self, view_id: str) -> bool:
        return view_id in self._owners

    def on_change(self, listener: ChangeListener) -> Callable[[], None]:
        """Register `listener(new_view, previous_view)`; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def request_view(self, view_id: str) -> str:
        """
        Switch the active view and notify listeners.

        A navigation id with tabs opens its first tab. Returns the view id
        that became active.

        Raises
        ------
        ValueError
            For an unknown view id.
        """
        if view_id not in self._owners:
            raise ValueError(f"Unknown view: {view_id}")
        item = self._owners[view_id]
        target = item.default_view if view_id == item.id else view_id
        previous = self.active_view
        if target == previous:
            return target
        self.active_view = target
        log.debug("Active view changed", extra={"view": target, "previous": previous})
        for listener in list(self._listeners):
            listener(target, previous)
        return target

    select = request_view

    def tabs(self, view_id: Optional[str] = None) -> Tuple[str, ...]:
        return self._owners[view_id or self.active_view].views

    def describe(self) -> Dict[str, object]:
        """Serializable navigation descriptor for the admin surface."""
        return {
            "active_view": self.active_view,
            "navigation": [
                {
                    "id": item.id,
                    "label": item.label,
                    "section": item.section,
                    "views": list(item.views),
                }
                for item in self.navigation
            ],
        }


async def startup_check(gateway: DataGateway) -> ConnectivityStatus:
    """Single connectivity round-trip; the outcome is reported, never raised."""
    start = time.perf_counter()
    checked_at = datetime.now(timezone.utc)
    try:
        await gateway.ping()
    except QueryError as exc:
        log.error("Database unreachable", extra={"error": exc.error.message, "code": exc.code})
        return ConnectivityStatus(
            ok=False,
            message=f"Database unreachable: {exc.error.message}",
            checked_at=checked_at,
            error=exc.error,
        )
    latency = round((time.perf_counter() - start) * 1000, 2)
    log.info("Database reachable", extra={"latency_ms": latency})
    return ConnectivityStatus(ok=True, message="Connected", latency_ms=latency, checked_at=checked_at)


__all__ = ["AdminShell", "ConnectivityStatus", "NAVIGATION", "NavItem", "startup_check"]
