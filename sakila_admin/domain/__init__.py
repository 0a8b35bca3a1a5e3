"""
Domain package for the Sakila admin console.

Exports the result contracts and entity shape hints used across the data
layer, views and API. Keep this package focused on data definitions.
"""

from sakila_admin.domain.models import (
    ColumnInfo,
    DbError,
    PageResult,
    TypedPage,
    has_more,
    total_pages,
)

__all__ = [
    "ColumnInfo",
    "DbError",
    "PageResult",
    "TypedPage",
    "has_more",
    "total_pages",
]
