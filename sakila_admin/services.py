"""
Service wiring shared by the CLI and the API server.

One gateway, one inspector (with its existence cache), the analytics
service and the schema explorer, all bound to a single pool.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Optional

from sakila_admin.config import Settings, get_settings
from sakila_admin.data.cache import MemoCache
from sakila_admin.data.gateway import DataGateway
from sakila_admin.data.introspection import SchemaInspector
from sakila_admin.infrastructure.db_factory import PoolManager
from sakila_admin.reports.analytics import AnalyticsService
from sakila_admin.shell import ConnectivityStatus
from sakila_admin.views.explorer import SchemaExplorer


@dataclass
class AppServices:
    """Everything the surfaces need, created once per pool."""

    gateway: DataGateway
    inspector: SchemaInspector
    analytics: AnalyticsService
    explorer: SchemaExplorer
    page_size: int = 25
    connectivity: Optional[ConnectivityStatus] = None


def build_services(pool: Any, settings: Settings) -> AppServices:
    gateway = DataGateway(pool, schema=settings.db_schema)
    inspector = SchemaInspector(gateway, MemoCache(settings.existence_cache_ttl_seconds))
    return AppServices(
        gateway=gateway,
        inspector=inspector,
        analytics=AnalyticsService(gateway, inspector),
        explorer=SchemaExplorer(gateway, inspector, settings.default_page_size),
        page_size=settings.default_page_size,
    )


@asynccontextmanager
async def open_services(settings: Optional[Settings] = None) -> AsyncIterator[AppServices]:
    """Open a pool, yield services bound to it and close the pool afterwards."""
    settings = settings or get_settings()
    async with PoolManager(settings) as manager:
        yield build_services(await manager.get_pool(), settings)


__all__ = ["AppServices", "build_services", "open_services"]
