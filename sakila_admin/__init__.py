"""
Sakila Admin - administrative console for a video-rental database.

This package reads the Sakila DVD-store schema (plus the video-streaming
overlay tables) server-side and offers:

- Paginated, searchable list views with batched relation lookups
- Dashboard cards and streaming statistics
- Analytics over a declared reporting schema
- A schema explorer for any table
- A Typer CLI and an authenticated FastAPI application API

Database credentials stay in the server's environment; clients only ever see
the application API.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from sakila_admin.config import Settings, get_settings
from sakila_admin.data.gateway import DataGateway
from sakila_admin.data.introspection import SchemaInspector
from sakila_admin.domain.models import DbError, PageResult
from sakila_admin.pagination import LoadState, Paginator
from sakila_admin.shell import AdminShell
from sakila_admin.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Data access
    "DataGateway",
    "SchemaInspector",
    "DbError",
    "PageResult",
    # Pagination and navigation
    "LoadState",
    "Paginator",
    "AdminShell",
    # Logging
    "configure_logging",
    "get_logger",
]
