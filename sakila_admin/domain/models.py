"""
Domain models for the Sakila admin console.

Defines the result contracts shared by the data layer, the paginator, the
views and the API: structured database errors, page results and column
descriptions. Rows themselves stay plain dictionaries; table-specific shape
hints live in `sakila_admin.domain.entities`.
"""
from __future__ import annotations

import math
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class DbError(BaseModel):
    """
    Structured error returned by the data layer instead of an exception.
    """

    message: str = Field(..., description="Human-readable error message.")
    details: Optional[str] = Field(None, description="Server-provided detail text.")
    hint: Optional[str] = Field(None, description="Server-provided hint.")
    code: Optional[str] = Field(None, description="SQLSTATE or transport error code.")

    model_config = {"frozen": True}


def has_more(page: int, page_size: int, total_count: int) -> bool:
    """Whether rows exist beyond `page` (1-based) for the given page size."""
    return total_count > page * page_size


def total_pages(total_count: int, page_size: int) -> int:
    """Number of pages needed for `total_count` rows (0 for an empty table)."""
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    return math.ceil(total_count / page_size)


class PageResult(BaseModel):
    """
    One page of rows plus the total row count used for pagination.

    A failed fetch carries `error` with `rows=[]` and `total_count=0`; callers
    must read that as "page unavailable", not "table empty".
    """

    rows: List[Dict[str, Any]] = Field(default_factory=list)
    total_count: int = 0
    page: int = 1
    page_size: int = 25
    has_more: bool = False
    error: Optional[DbError] = None
    table_exists: bool = True

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failed(
        cls, error: DbError, page: int, page_size: int, table_exists: bool = True
    ) -> "PageResult":
        return cls(
            rows=[],
            total_count=0,
            page=page,
            page_size=page_size,
            has_more=False,
            error=error,
            table_exists=table_exists,
        )


class TypedPage(BaseModel, Generic[T]):
    """PageResult whose rows were validated into an entity model."""

    rows: List[T] = Field(default_factory=list)
    total_count: int = 0
    page: int = 1
    page_size: int = 25
    has_more: bool = False
    error: Optional[DbError] = None
    table_exists: bool = True


class ColumnInfo(BaseModel):
    """A column as described by information_schema."""

    name: str
    declared_type: str
    nullable: bool = True

    model_config = {"frozen": True}


__all__ = [
    "ColumnInfo",
    "DbError",
    "PageResult",
    "TypedPage",
    "has_more",
    "total_pages",
]
