"""
Analytics over a declared reporting schema.

`REPORTING_SCHEMA` lists every metric the analytics view can show, with the
table and column it needs. Capabilities are negotiated once against
information_schema; afterwards the report computes only the available
metrics and names what is missing for the others. Nothing is synthesised:
an unavailable metric is reported as unavailable.
"""

from __future__ import annotations

import asyncio
import enum
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from sakila_admin.data.errors import QueryError
from sakila_admin.data.gateway import DataGateway
from sakila_admin.data.introspection import SchemaInspector
from sakila_admin.data.query import NotNull, Recent
from sakila_admin.domain.models import DbError
from sakila_admin.utils.logging import get_logger

log = get_logger(__name__)

REPORTING_SCHEMA_VERSION = "2024.1"
SERIES_DAYS = 365


class MetricKind(str, enum.Enum):
    DISTRIBUTION = "distribution"
    TIME_SERIES = "time_series"


@dataclass(frozen=True)
class MetricSpec:
    key: str
    title: str
    kind: MetricKind
    table: str
    column: str
    top: int = 5


REPORTING_SCHEMA: Tuple[MetricSpec, ...] = (
    MetricSpec("films_by_rating", "Films by Rating", MetricKind.DISTRIBUTION, "film", "rating"),
    MetricSpec("rentals_per_month", "Rentals per Month", MetricKind.TIME_SERIES, "rental", "rental_date"),
    MetricSpec("payments_per_month", "Payments per Month", MetricKind.TIME_SERIES, "payment", "payment_date"),
    MetricSpec("videos_by_status", "Videos by Status", MetricKind.DISTRIBUTION, "videos", "status"),
    MetricSpec("users_by_role", "Users by Role", MetricKind.DISTRIBUTION, "users", "role"),
    MetricSpec("subscriptions_by_status", "Subscriptions by Status", MetricKind.DISTRIBUTION, "subscriptions", "status"),
    MetricSpec("signups_per_month", "Signups per Month", MetricKind.TIME_SERIES, "users", "created_at"),
    MetricSpec("uploads_per_month", "Uploads per Month", MetricKind.TIME_SERIES, "videos", "created_at"),
    MetricSpec("views_per_month", "Views per Month", MetricKind.TIME_SERIES, "view_events", "watched_at"),
)


class AvailableMetrics(BaseModel):
    """Outcome of capability negotiation: usable metric keys and why the rest aren't."""

    version: str = REPORTING_SCHEMA_VERSION
    available: List[str] = Field(default_factory=list)
    unavailable: Dict[str, str] = Field(default_factory=dict)

    def __contains__(self, key: object) -> bool:
        return key in self.available


async def negotiate_capabilities(
    inspector: SchemaInspector, schema: Sequence[MetricSpec] = REPORTING_SCHEMA
) -> AvailableMetrics:
    """
    Check each metric's table and column once.

    Raises
    ------
    QueryError
        If information_schema can't be read.
    """
    columns: Dict[str, Optional[set]] = {}
    result = AvailableMetrics()
    for metric in schema:
        if metric.table not in columns:
            if await inspector.table_exists(metric.table):
                described = await inspector.describe_columns(metric.table)
                columns[metric.table] = {column.name for column in described}
            else:
                columns[metric.table] = None
        known = columns[metric.table]
        if known is None:
            result.unavailable[metric.key] = f"missing table {metric.table}"
        elif metric.column not in known:
            result.unavailable[metric.key] = f"missing column {metric.table}.{metric.column}"
        else:
            result.available.append(metric.key)
    log.info(
        "Analytics capabilities negotiated",
        extra={
            "version": result.version,
            "available": len(result.available),
            "unavailable": len(result.unavailable),
        },
    )
    return result


class DistributionItem(BaseModel):
    name: str
    count: int
    percentage: int


class SeriesPoint(BaseModel):
    period: str
    count: int


class MetricResult(BaseModel):
    key: str
    title: str
    kind: MetricKind
    status: str = "ok"
    distribution: List[DistributionItem] = Field(default_factory=list)
    series: List[SeriesPoint] = Field(default_factory=list)
    error: Optional[DbError] = None


class UnavailableMetric(BaseModel):
    key: str
    title: str
    reason: str


class AnalyticsReport(BaseModel):
    version: str = REPORTING_SCHEMA_VERSION
    metrics: List[MetricResult] = Field(default_factory=list)
    unavailable: List[UnavailableMetric] = Field(default_factory=list)


def _period(value: Any) -> str:
    if hasattr(value, "strftime"):
        return value.strftime("%Y-%m")
    return str(value)[:7]


async def _distribution(gateway: DataGateway, metric: MetricSpec) -> List[DistributionItem]:
    filters = {metric.column: NotNull()}
    counts = await gateway.grouped_counts(
        metric.table, metric.column, filters=filters, limit=metric.top, most_common_first=True
    )
    total = await gateway.count(metric.table, filters=filters)
    return [
        DistributionItem(
            name=str(name),
            count=count,
            percentage=round(count / total * 100) if total else 0,
        )
        for name, count in counts.items()
    ]


async def _series(gateway: DataGateway, metric: MetricSpec) -> List[SeriesPoint]:
    buckets = await gateway.time_buckets(
        metric.table, metric.column, "month", filters={metric.column: Recent(SERIES_DAYS)}
    )
    return [SeriesPoint(period=_period(period), count=count) for period, count in buckets]


async def _compute(gateway: DataGateway, metric: MetricSpec) -> MetricResult:
    result = MetricResult(key=metric.key, title=metric.title, kind=metric.kind)
    try:
        if metric.kind is MetricKind.DISTRIBUTION:
            result.distribution = await _distribution(gateway, metric)
        else:
            result.series = await _series(gateway, metric)
    except QueryError as exc:
        log.warning("Analytics metric failed", extra={"metric": metric.key, "error": exc.error.message})
        result.status = "error"
        result.error = exc.error
    return result


class AnalyticsService:
    """
    Holds the negotiated capabilities and builds reports from them.

    Negotiation happens on the first call to `capabilities()` (or eagerly at
    startup) and is not repeated until `reset()`.
    """

    def __init__(
        self,
        gateway: DataGateway,
        inspector: SchemaInspector,
        schema: Sequence[MetricSpec] = REPORTING_SCHEMA,
    ) -> None:
        self._gateway = gateway
        self._inspector = inspector
        self._schema = tuple(schema)
        self._capabilities: Optional[AvailableMetrics] = None
        self._lock = asyncio.Lock()

    async def capabilities(self) -> AvailableMetrics:
        async with self._lock:
            if self._capabilities is None:
                self._capabilities = await negotiate_capabilities(self._inspector, self._schema)
            return self._capabilities

    def reset(self) -> None:
        self._capabilities = None

    async def report(self) -> AnalyticsReport:
        capabilities = await self.capabilities()
        available = [metric for metric in self._schema if metric.key in capabilities]
        metrics = await asyncio.gather(*(_compute(self._gateway, metric) for metric in available))
        unavailable = [
            UnavailableMetric(key=metric.key, title=metric.title, reason=capabilities.unavailable[metric.key])
            for metric in self._schema
            if metric.key in capabilities.unavailable
        ]
        return AnalyticsReport(version=capabilities.version, metrics=list(metrics), unavailable=unavailable)


__all__ = [
    "AnalyticsReport",
    "AnalyticsService",
    "AvailableMetrics",
    "MetricKind",
    "MetricResult",
    "MetricSpec",
    "REPORTING_SCHEMA",
    "REPORTING_SCHEMA_VERSION",
    "negotiate_capabilities",
]
