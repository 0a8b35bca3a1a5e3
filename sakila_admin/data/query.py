"""
SQL building blocks for the data layer.

Filters, searches, orderings and embeds are declared as small frozen
dataclasses and rendered into parameterised PostgreSQL statements
(`$1, $2, ...` placeholders, as asyncpg expects). Table and column names
can't be bound as parameters, so every identifier is validated and
double-quoted before it reaches a statement.

Filter semantics (a mapping column -> value, applied as a conjunction):

- plain value        -> exact match (`"col" = $n`)
- ILike(value)       -> case-insensitive substring match
- IsNull() / NotNull()
- Gte(value)         -> lower bound
- In(values)         -> membership (`"col" = ANY($n)`)
- Recent(days)       -> within the last `days` days (`now()` on the server)
- InSubquery(...)    -> match against a column of a related table

`None` and empty-string values are skipped, so unset form fields don't
turn into filters.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_TIME_UNITS = frozenset({"day", "week", "month", "quarter", "year"})

Filters = Mapping[str, Any]


# ---- Declarations ---------------------------------------------------------


@dataclass(frozen=True)
class ILike:
    value: str


@dataclass(frozen=True)
class IsNull:
    pass


@dataclass(frozen=True)
class NotNull:
    pass


@dataclass(frozen=True)
class Gte:
    value: Any


@dataclass(frozen=True)
class In:
    values: Tuple[Any, ...]


@dataclass(frozen=True)
class Recent:
    """Timestamp within the last `days` days of the server clock."""

    days: int


@dataclass(frozen=True)
class InSubquery:
    """`col IN (SELECT key FROM table WHERE match_column <matches> value)`."""

    table: str
    key: str
    match_column: str
    value: Any


@dataclass(frozen=True)
class Search:
    """Substring match of one term against any of several columns."""

    term: str
    columns: Tuple[str, ...]


@dataclass(frozen=True)
class OrderBy:
    column: str
    ascending: bool = True
    tiebreaker: Optional[str] = None


@dataclass(frozen=True)
class Embed:
    """
    Resolve a foreign key into a nested object stored under `name`.

    `local_key` is the column on the parent row, `remote_key` the referenced
    column on `table` (defaults to `local_key`).
    """

    name: str
    table: str
    local_key: str
    remote_key: Optional[str] = None
    columns: Tuple[str, ...] = ()
    embeds: Tuple["Embed", ...] = field(default_factory=tuple)

    @property
    def target_key(self) -> str:
        return self.remote_key or self.local_key


# ---- Rendering helpers ----------------------------------------------------


def quote_ident(name: str) -> str:
    """Validate and double-quote a SQL identifier."""
    if not isinstance(name, str) or not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return f'"{name}"'


def qualified(schema: str, table: str) -> str:
    return f"{quote_ident(schema)}.{quote_ident(table)}"


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so the term matches literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class _Params:
    """Collects bound values and hands out `$n` placeholders."""

    def __init__(self) -> None:
        self.values: List[Any] = []

    def add(self, value: Any) -> str:
        self.values.append(value)
        return f"${len(self.values)}"


def _is_unset(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


def _render_condition(schema: str, column: str, value: Any, params: _Params) -> str:
    col = quote_ident(column)
    if isinstance(value, ILike):
        return f"{col}::text ILIKE {params.add(f'%{escape_like(value.value)}%')}"
    if isinstance(value, IsNull):
        return f"{col} IS NULL"
    if isinstance(value, NotNull):
        return f"{col} IS NOT NULL"
    if isinstance(value, Gte):
        return f"{col} >= {params.add(value.value)}"
    if isinstance(value, In):
        return f"{col} = ANY({params.add(list(value.values))})"
    if isinstance(value, Recent):
        return f"{col} >= now() - {params.add(int(value.days))}::int * interval '1 day'"
    if isinstance(value, InSubquery):
        inner = _render_condition(schema, value.match_column, value.value, params)
        return (
            f"{col} IN (SELECT {quote_ident(value.key)} "
            f"FROM {qualified(schema, value.table)} WHERE {inner})"
        )
    return f"{col} = {params.add(value)}"


def _render_where(
    schema: str,
    filters: Optional[Filters],
    search: Optional[Search],
    params: _Params,
    extra: Sequence[str] = (),
) -> str:
    conditions: List[str] = []
    for column, value in (filters or {}).items():
        if _is_unset(value):
            continue
        conditions.append(_render_condition(schema, column, value, params))
    if search is not None and search.term and search.columns:
        placeholder = params.add(f"%{escape_like(search.term)}%")
        alternatives = " OR ".join(
            f"{quote_ident(column)}::text ILIKE {placeholder}" for column in search.columns
        )
        conditions.append(f"({alternatives})")
    conditions.extend(extra)
    if not conditions:
        return ""
    return " WHERE " + " AND ".join(conditions)


def _render_columns(columns: Optional[Iterable[str]]) -> str:
    names = list(columns or ())
    if not names:
        return "*"
    return ", ".join(quote_ident(name) for name in names)


def _render_order(order: Optional[OrderBy]) -> str:
    if order is None:
        return ""
    direction = "ASC" if order.ascending else "DESC"
    clause = f" ORDER BY {quote_ident(order.column)} {direction}"
    if order.tiebreaker and order.tiebreaker != order.column:
        clause += f", {quote_ident(order.tiebreaker)} ASC"
    return clause


# ---- Statement builders ---------------------------------------------------


def build_select(
    schema: str,
    table: str,
    columns: Optional[Iterable[str]] = None,
    filters: Optional[Filters] = None,
    search: Optional[Search] = None,
    order: Optional[OrderBy] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> Tuple[str, List[Any]]:
    """SELECT with optional filtering, ordering and LIMIT/OFFSET range."""
    params = _Params()
    sql = f"SELECT {_render_columns(columns)} FROM {qualified(schema, table)}"
    sql += _render_where(schema, filters, search, params)
    sql += _render_order(order)
    if limit is not None:
        sql += f" LIMIT {params.add(int(limit))}"
    if offset:
        sql += f" OFFSET {params.add(int(offset))}"
    return sql, params.values


def build_count(
    schema: str,
    table: str,
    filters: Optional[Filters] = None,
    search: Optional[Search] = None,
    distinct: Optional[str] = None,
) -> Tuple[str, List[Any]]:
    """Exact row count (or distinct values of one column) under the same filters."""
    params = _Params()
    target = f"DISTINCT {quote_ident(distinct)}" if distinct else "*"
    sql = f"SELECT count({target}) FROM {qualified(schema, table)}"
    sql += _render_where(schema, filters, search, params)
    return sql, params.values


def build_aggregate(
    schema: str,
    table: str,
    function: str,
    column: str,
    filters: Optional[Filters] = None,
) -> Tuple[str, List[Any]]:
    """`sum` (zero when empty) or `avg` (NULL when empty) of one column."""
    if function not in ("sum", "avg"):
        raise ValueError(f"Unsupported aggregate: {function!r}")
    params = _Params()
    expression = f"{function}({quote_ident(column)})"
    if function == "sum":
        expression = f"COALESCE({expression}, 0)"
    sql = f"SELECT {expression} FROM {qualified(schema, table)}"
    sql += _render_where(schema, filters, None, params)
    return sql, params.values


def build_grouped_counts(
    schema: str,
    table: str,
    group_column: str,
    keys: Optional[Sequence[Any]] = None,
    filters: Optional[Filters] = None,
    limit: Optional[int] = None,
    most_common_first: bool = False,
) -> Tuple[str, List[Any]]:
    """
    `SELECT group, count(*) ... GROUP BY group`, optionally restricted to keys.

    One statement of this shape replaces a per-row count query: the caller
    passes every key on the page and maps the counts back.
    """
    params = _Params()
    group = quote_ident(group_column)
    extra: List[str] = []
    if keys is not None:
        extra.append(f"{group} = ANY({params.add(list(keys))})")
    sql = f"SELECT {group} AS key, count(*) AS count FROM {qualified(schema, table)}"
    sql += _render_where(schema, filters, None, params, extra)
    sql += f" GROUP BY {group}"
    if most_common_first:
        sql += f" ORDER BY count DESC, {group} ASC"
    if limit is not None:
        sql += f" LIMIT {params.add(int(limit))}"
    return sql, params.values


def build_grouped_values(
    schema: str,
    link_table: str,
    link_key: str,
    target_table: str,
    target_key: str,
    target_column: str,
    keys: Sequence[Any],
) -> Tuple[str, List[Any]]:
    """
    Values of `target_column` reached through a link table, keyed by `link_key`.

    Example: film categories through `film_category` joined to `category`.
    """
    params = _Params()
    sql = (
        f"SELECT l.{quote_ident(link_key)} AS key, t.{quote_ident(target_column)} AS value "
        f"FROM {qualified(schema, link_table)} AS l "
        f"JOIN {qualified(schema, target_table)} AS t "
        f"ON t.{quote_ident(target_key)} = l.{quote_ident(target_key)} "
        f"WHERE l.{quote_ident(link_key)} = ANY({params.add(list(keys))}) "
        f"ORDER BY t.{quote_ident(target_column)} ASC"
    )
    return sql, params.values


def build_lookup(
    schema: str,
    table: str,
    key: str,
    keys: Sequence[Any],
    columns: Optional[Iterable[str]] = None,
) -> Tuple[str, List[Any]]:
    """Fetch the rows whose `key` is in `keys` (always selecting the key itself)."""
    names = list(columns or ())
    if names and key not in names:
        names = [key, *names]
    params = _Params()
    sql = (
        f"SELECT {_render_columns(names)} FROM {qualified(schema, table)} "
        f"WHERE {quote_ident(key)} = ANY({params.add(list(keys))})"
    )
    return sql, params.values


def build_time_buckets(
    schema: str,
    table: str,
    column: str,
    unit: str = "month",
    since: Any = None,
    filters: Optional[Filters] = None,
) -> Tuple[str, List[Any]]:
    """Row counts per `date_trunc(unit, column)` bucket, oldest first."""
    if unit not in _TIME_UNITS:
        raise ValueError(f"Unsupported time unit: {unit!r}")
    params = _Params()
    col = quote_ident(column)
    extra = [f"{col} IS NOT NULL"]
    if since is not None:
        extra.append(f"{col} >= {params.add(since)}")
    sql = (
        f"SELECT date_trunc('{unit}', {col}) AS period, count(*) AS count "
        f"FROM {qualified(schema, table)}"
    )
    sql += _render_where(schema, filters, None, params, extra)
    sql += " GROUP BY 1 ORDER BY 1 ASC"
    return sql, params.values


__all__ = [
    "Embed",
    "Filters",
    "Gte",
    "ILike",
    "In",
    "InSubquery",
    "IsNull",
    "NotNull",
    "OrderBy",
    "Recent",
    "Search",
    "build_aggregate",
    "build_count",
    "build_grouped_counts",
    "build_grouped_values",
    "build_lookup",
    "build_select",
    "build_time_buckets",
    "escape_like",
    "qualified",
    "quote_ident",
]
