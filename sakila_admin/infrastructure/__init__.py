"""
Infrastructure package for the Sakila admin console.

Centralizes database connectivity concerns (async pool, sync startup checks).
Keep this layer focused on I/O and resource management, decoupled from
query building and view logic.
"""

from sakila_admin.infrastructure.db_factory import (
    PoolManager,
    get_sync_connection,
    wait_for_database,
)

__all__ = [
    "PoolManager",
    "get_sync_connection",
    "wait_for_database",
]
