from sakila_admin.views.explorer import SchemaExplorer
from sakila_admin.views.list_view import ListView, ViewState
from sakila_admin.views.sales import SalesReport, sales_by_category
from sakila_admin.views.specs import VIEWS, ListViewSpec

__all__ = [
    "ListView",
    "ListViewSpec",
    "SalesReport",
    "SchemaExplorer",
    "VIEWS",
    "ViewState",
    "sales_by_category",
]
