"""
Schema explorer: list tables, describe their columns and page through any
of them. The destination suggested by error states of the other views.
"""

from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel

from sakila_admin.data.errors import TableNotFoundError
from sakila_admin.data.gateway import DataGateway
from sakila_admin.data.introspection import SchemaInspector
from sakila_admin.domain.models import ColumnInfo
from sakila_admin.views.list_view import ListView, ViewState
from sakila_admin.views.specs import ListViewSpec, explorer_spec


class TableDescription(BaseModel):
    table: str
    schema_name: str
    columns: List[ColumnInfo]


class SchemaExplorer:
    """
    Read-only browser over every table of the configured schema.

    Table listings and column descriptions raise `QueryError`; row pages
    come back as `ViewState` like any other list view.
    """

    def __init__(self, gateway: DataGateway, inspector: SchemaInspector, page_size: int = 25) -> None:
        self._gateway = gateway
        self._inspector = inspector
        self._page_size = page_size
        self._specs: Dict[str, ListViewSpec] = {}

    async def tables(self) -> List[str]:
        return await self._inspector.list_tables()

    async def describe(self, table: str) -> TableDescription:
        if not await self._inspector.table_exists(table):
            raise TableNotFoundError(table)
        columns = await self._inspector.describe_columns(table)
        return TableDescription(table=table, schema_name=self._inspector.schema, columns=columns)

    async def view(self, table: str) -> ListView:
        """A list view over `table`; raises TableNotFoundError when it is absent."""
        if table not in self._specs:
            description = await self.describe(table)
            self._specs[table] = explorer_spec(table, [column.name for column in description.columns])
        return ListView(self._specs[table], self._gateway, self._inspector, self._page_size)

    async def browse(self, table: str, page: int = 1) -> ViewState:
        return await (await self.view(table)).load(page=page)

    def invalidate(self) -> None:
        """Forget existence checks and cached column lists (after DDL)."""
        self._inspector.invalidate()
        self._specs.clear()


__all__ = ["SchemaExplorer", "TableDescription"]
