"""Sales by film category, read from the `sales_by_film_category` view."""

from __future__ import annotations

from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from sakila_admin.data.errors import QueryError, TableNotFoundError
from sakila_admin.data.gateway import DataGateway
from sakila_admin.data.introspection import SchemaInspector
from sakila_admin.domain.models import DbError
from sakila_admin.utils.logging import get_logger

log = get_logger(__name__)

SALES_VIEW = "sales_by_film_category"


class CategorySales(BaseModel):
    category: str
    total_sales: Decimal
    percentage: float


class SalesReport(BaseModel):
    status: Literal["loaded", "empty", "not_found", "error"] = "loaded"
    rows: List[CategorySales] = Field(default_factory=list)
    total_sales: Decimal = Decimal("0")
    error: Optional[DbError] = None
    message: Optional[str] = None


async def sales_by_category(gateway: DataGateway, inspector: SchemaInspector) -> SalesReport:
    """
    Category revenue, highest first, with each category's share of the total.

    Failures are reported in the returned value, never raised.
    """
    try:
        if not await inspector.table_exists(SALES_VIEW):
            error = TableNotFoundError(SALES_VIEW).error
            return SalesReport(status="not_found", error=error, message=error.message)
        rows = await gateway.fetch_all(SALES_VIEW, order_column="total_sales", ascending=False)
    except QueryError as exc:
        log.warning("Sales report failed", extra={"error": exc.error.message, "code": exc.code})
        return SalesReport(status="error", error=exc.error, message=exc.error.message)

    if not rows:
        return SalesReport(status="empty", message="No sales recorded")

    total = sum((Decimal(str(row.get("total_sales") or 0)) for row in rows), Decimal("0"))
    report_rows = []
    for row in rows:
        amount = Decimal(str(row.get("total_sales") or 0))
        share = float(amount / total * 100) if total else 0.0
        report_rows.append(
            CategorySales(
                category=row.get("category") or "Unknown",
                total_sales=amount,
                percentage=round(share, 1),
            )
        )
    return SalesReport(rows=report_rows, total_sales=total)


__all__ = ["CategorySales", "SalesReport", "sales_by_category"]
