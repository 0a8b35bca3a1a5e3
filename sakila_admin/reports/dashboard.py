"""
Dashboard cards for the Sakila store and the streaming overlay.

Each card declares the tables it reads and a coroutine computing its value.
Cards run concurrently; one card failing (or reading a missing table) never
affects the others.
"""

from __future__ import annotations

import asyncio
import enum
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from sakila_admin.data.errors import QueryError, TableNotFoundError, is_missing_relation
from sakila_admin.data.gateway import DataGateway
from sakila_admin.data.introspection import SchemaInspector
from sakila_admin.data.query import Embed, Recent
from sakila_admin.domain.models import DbError
from sakila_admin.utils.logging import get_logger

log = get_logger(__name__)

RECENT_DAYS = 30
TOP_N = 5


class CardStatus(str, enum.Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    ERROR = "error"


class CardResult(BaseModel):
    key: str
    title: str
    status: CardStatus = CardStatus.OK
    value: Any = None
    error: Optional[DbError] = None
    message: Optional[str] = None


class DashboardReport(BaseModel):
    title: str
    cards: List[CardResult] = Field(default_factory=list)
    duration_ms: float = 0.0

    def card(self, key: str) -> CardResult:
        for card in self.cards:
            if card.key == key:
                return card
        raise KeyError(key)


Compute = Callable[[DataGateway], Awaitable[Any]]


@dataclass(frozen=True)
class CardSpec:
    key: str
    title: str
    tables: Tuple[str, ...]
    compute: Compute


async def _run_card(spec: CardSpec, gateway: DataGateway, inspector: SchemaInspector) -> CardResult:
    try:
        for table in spec.tables:
            if not await inspector.table_exists(table):
                error = TableNotFoundError(table).error
                return CardResult(
                    key=spec.key,
                    title=spec.title,
                    status=CardStatus.NOT_FOUND,
                    error=error,
                    message=error.message,
                )
        value = await spec.compute(gateway)
    except QueryError as exc:
        status = CardStatus.NOT_FOUND if is_missing_relation(exc.error) else CardStatus.ERROR
        log.warning(
            "Dashboard card failed",
            extra={"card": spec.key, "status": status.value, "error": exc.error.message},
        )
        return CardResult(
            key=spec.key,
            title=spec.title,
            status=status,
            error=exc.error,
            message=exc.error.message,
        )
    return CardResult(key=spec.key, title=spec.title, value=value)


async def build_report(
    title: str,
    cards: Sequence[CardSpec],
    gateway: DataGateway,
    inspector: SchemaInspector,
) -> DashboardReport:
    """Compute every card concurrently."""
    start = time.perf_counter()
    results = await asyncio.gather(*(_run_card(card, gateway, inspector) for card in cards))
    duration_ms = round((time.perf_counter() - start) * 1000, 2)
    log.info(
        "Dashboard computed",
        extra={
            "report": title,
            "cards": len(results),
            "failed": sum(1 for r in results if r.status is not CardStatus.OK),
            "duration_ms": duration_ms,
        },
    )
    return DashboardReport(title=title, cards=list(results), duration_ms=duration_ms)


def _count(table: str, **kwargs: Any) -> Compute:
    async def compute(gateway: DataGateway) -> int:
        return await gateway.count(table, **kwargs)

    return compute


# ---- Sakila dashboard -------------------------------------------------------


async def _revenue(gateway: DataGateway) -> Any:
    return await gateway.sum("payment", "amount")


async def _active_customers(gateway: DataGateway) -> int:
    return await gateway.count(
        "rental", filters={"rental_date": Recent(RECENT_DAYS)}, distinct="customer_id"
    )


async def _top_films(gateway: DataGateway) -> List[Dict[str, Any]]:
    return await gateway.top_n(
        "film",
        "rental_rate",
        limit=TOP_N,
        ascending=False,
        columns=("film_id", "title", "rental_rate", "rating"),
    )


async def _recent_rentals(gateway: DataGateway) -> List[Dict[str, Any]]:
    result = await gateway.fetch_page(
        "rental",
        page=1,
        page_size=TOP_N,
        order_column="rental_date",
        ascending=False,
        columns=("rental_id", "rental_date", "return_date", "customer_id", "inventory_id"),
        tiebreaker="rental_id",
        embeds=(
            Embed("customer", "customer", "customer_id", columns=("first_name", "last_name")),
            Embed(
                "inventory",
                "inventory",
                "inventory_id",
                columns=("inventory_id", "film_id"),
                embeds=(Embed("film", "film", "film_id", columns=("film_id", "title")),),
            ),
        ),
    )
    if result.error is not None:
        raise QueryError(result.error)
    return result.rows


async def _films_per_category(gateway: DataGateway) -> List[Dict[str, Any]]:
    counts = await gateway.grouped_counts("film_category", "category_id")
    names = await gateway.lookup("category", "category_id", counts.keys(), ("category_id", "name"))
    rows = [
        {
            "category_id": category_id,
            "name": names.get(category_id, {}).get("name", "Unknown"),
            "film_count": count,
        }
        for category_id, count in counts.items()
    ]
    return sorted(rows, key=lambda row: row["name"])


SAKILA_CARDS: Tuple[CardSpec, ...] = (
    CardSpec("total_films", "Total Films", ("film",), _count("film")),
    CardSpec("total_customers", "Total Customers", ("customer",), _count("customer")),
    CardSpec("total_actors", "Total Actors", ("actor",), _count("actor")),
    CardSpec("total_rentals", "Total Rentals", ("rental",), _count("rental")),
    CardSpec("total_revenue", "Total Revenue", ("payment",), _revenue),
    CardSpec("active_customers", "Active Customers (30 days)", ("rental",), _active_customers),
    CardSpec("top_films", "Top Films by Rental Rate", ("film",), _top_films),
    CardSpec("recent_rentals", "Recent Rentals", ("rental", "customer", "inventory", "film"), _recent_rentals),
    CardSpec("films_per_category", "Films per Category", ("film_category", "category"), _films_per_category),
)


async def sakila_dashboard(gateway: DataGateway, inspector: SchemaInspector) -> DashboardReport:
    return await build_report("Dashboard", SAKILA_CARDS, gateway, inspector)


# ---- Streaming statistics ---------------------------------------------------


async def _subscription_revenue(gateway: DataGateway) -> Any:
    return await gateway.sum("subscriptions", "amount", filters={"status": "active"})


async def _average_watch_minutes(gateway: DataGateway) -> Optional[int]:
    seconds = await gateway.average("view_events", "watch_duration")
    if seconds is None:
        return None
    return round(seconds / 60)


async def _recent_videos(gateway: DataGateway) -> List[Dict[str, Any]]:
    return await gateway.top_n(
        "videos", "created_at", limit=TOP_N, columns=("id", "title", "views", "created_at")
    )


async def _top_videos(gateway: DataGateway) -> List[Dict[str, Any]]:
    return await gateway.top_n(
        "videos", "views", limit=TOP_N, columns=("id", "title", "views", "created_at")
    )


STREAMING_CARDS: Tuple[CardSpec, ...] = (
    CardSpec("total_users", "Total Users", ("users",), _count("users")),
    CardSpec("total_videos", "Total Videos", ("videos",), _count("videos")),
    CardSpec(
        "active_subscriptions",
        "Active Subscriptions",
        ("subscriptions",),
        _count("subscriptions", filters={"status": "active"}),
    ),
    CardSpec("total_views", "Total Views", ("view_events",), _count("view_events")),
    CardSpec(
        "recent_signups",
        "New Users (30 days)",
        ("users",),
        _count("users", filters={"created_at": Recent(RECENT_DAYS)}),
    ),
    CardSpec("subscription_revenue", "Subscription Revenue", ("subscriptions",), _subscription_revenue),
    CardSpec("average_watch_minutes", "Average Watch Time (min)", ("view_events",), _average_watch_minutes),
    CardSpec("recent_videos", "Recent Videos", ("videos",), _recent_videos),
    CardSpec("top_videos", "Most Viewed Videos", ("videos",), _top_videos),
)


async def streaming_statistics(gateway: DataGateway, inspector: SchemaInspector) -> DashboardReport:
    return await build_report("Statistics", STREAMING_CARDS, gateway, inspector)


__all__ = [
    "CardResult",
    "CardSpec",
    "CardStatus",
    "DashboardReport",
    "SAKILA_CARDS",
    "STREAMING_CARDS",
    "build_report",
    "sakila_dashboard",
    "streaming_statistics",
]
