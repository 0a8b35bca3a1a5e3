"""
Data access package for the Sakila admin console.

One gateway over the database (pages, counts, aggregates, batched embeds),
typed accessors on top of it, and the information_schema inspector with its
existence cache.
"""

from sakila_admin.data.cache import MemoCache
from sakila_admin.data.errors import QueryError, TableNotFoundError
from sakila_admin.data.gateway import DataGateway
from sakila_admin.data.introspection import SchemaInspector
from sakila_admin.data.query import (
    Embed,
    Gte,
    ILike,
    In,
    InSubquery,
    IsNull,
    NotNull,
    OrderBy,
    Recent,
    Search,
)

__all__ = [
    "DataGateway",
    "Embed",
    "Gte",
    "ILike",
    "In",
    "InSubquery",
    "IsNull",
    "MemoCache",
    "NotNull",
    "OrderBy",
    "QueryError",
    "Recent",
    "SchemaInspector",
    "Search",
    "TableNotFoundError",
]
