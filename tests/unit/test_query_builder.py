from __future__ import annotations

import pytest

from sakila_admin.data.query import (
    ILike,
    In,
    InSubquery,
    IsNull,
    OrderBy,
    Recent,
    Search,
    build_aggregate,
    build_count,
    build_grouped_counts,
    build_grouped_values,
    build_lookup,
    build_select,
    build_time_buckets,
    escape_like,
    quote_ident,
)

SCHEMA = "public"
PAGE_SIZE = 25


def test_select_page_with_order_and_tiebreaker():
    sql, params = build_select(
        SCHEMA,
        "category",
        order=OrderBy("name", True, "category_id"),
        limit=PAGE_SIZE,
        offset=PAGE_SIZE,
    )
    assert sql == (
        'SELECT * FROM "public"."category" ORDER BY "name" ASC, "category_id" ASC '
        "LIMIT $1 OFFSET $2"
    )
    assert params == [PAGE_SIZE, PAGE_SIZE]


def test_first_page_has_no_offset():
    sql, params = build_select(SCHEMA, "film", limit=PAGE_SIZE, offset=0)
    assert "OFFSET" not in sql
    assert params == [PAGE_SIZE]


def test_count_uses_same_filters_and_search_as_select():
    filters = {"active": 1, "email": None, "note": ""}
    search = Search("mary", ("first_name", "last_name"))
    count_sql, count_params = build_count(SCHEMA, "customer", filters, search)
    select_sql, select_params = build_select(SCHEMA, "customer", filters=filters, search=search)

    where = ' WHERE "active" = $1 AND ("first_name"::text ILIKE $2 OR "last_name"::text ILIKE $2)'
    assert count_sql == 'SELECT count(*) FROM "public"."customer"' + where
    assert select_sql.endswith(where)
    assert count_params == select_params == [1, "%mary%"]


def test_filter_markers_render():
    sql, params = build_select(
        SCHEMA,
        "rental",
        filters={
            "return_date": IsNull(),
            "staff_id": In((1, 2)),
            "rental_date": Recent(30),
            "inventory_id": InSubquery("inventory", "inventory_id", "film_id", 7),
        },
    )
    assert '"return_date" IS NULL' in sql
    assert '"staff_id" = ANY($1)' in sql
    assert "\"rental_date\" >= now() - $2::int * interval '1 day'" in sql
    assert '"inventory_id" IN (SELECT "inventory_id" FROM "public"."inventory" WHERE "film_id" = $3)' in sql
    assert params == [[1, 2], 30, 7]


def test_ilike_escapes_wildcards():
    assert escape_like("100%_off\\") == "100\\%\\_off\\\\"
    _, params = build_count(SCHEMA, "film", {"title": ILike("50%")})
    assert params == ["%50\\%%"]


@pytest.mark.parametrize("name", ["film; DROP TABLE film", "1film", "", "film-id", 'a"b'])
def test_invalid_identifiers_are_rejected(name: str):
    with pytest.raises(ValueError):
        quote_ident(name)
    with pytest.raises(ValueError):
        build_select(SCHEMA, name)


def test_grouped_counts_restricted_to_page_keys():
    sql, params = build_grouped_counts(SCHEMA, "film_category", "category_id", keys=[1, 2, 3])
    assert sql == (
        'SELECT "category_id" AS key, count(*) AS count FROM "public"."film_category" '
        'WHERE "category_id" = ANY($1) GROUP BY "category_id"'
    )
    assert params == [[1, 2, 3]]


def test_grouped_counts_most_common_first_with_limit():
    sql, params = build_grouped_counts(SCHEMA, "film", "rating", limit=5, most_common_first=True)
    assert sql.endswith('GROUP BY "rating" ORDER BY count DESC, "rating" ASC LIMIT $1')
    assert params == [5]


def test_grouped_values_joins_through_link_table():
    sql, params = build_grouped_values(
        SCHEMA, "film_category", "film_id", "category", "category_id", "name", [1, 2]
    )
    assert 'FROM "public"."film_category" AS l JOIN "public"."category" AS t' in sql
    assert 'ON t."category_id" = l."category_id"' in sql
    assert params == [[1, 2]]


def test_lookup_always_selects_key():
    sql, params = build_lookup(SCHEMA, "customer", "customer_id", [3, 5], ("first_name", "last_name"))
    assert sql == (
        'SELECT "customer_id", "first_name", "last_name" FROM "public"."customer" '
        'WHERE "customer_id" = ANY($1)'
    )
    assert params == [[3, 5]]


def test_aggregates():
    sum_sql, _ = build_aggregate(SCHEMA, "payment", "sum", "amount")
    avg_sql, _ = build_aggregate(SCHEMA, "view_events", "avg", "watch_duration")
    assert sum_sql == 'SELECT COALESCE(sum("amount"), 0) FROM "public"."payment"'
    assert avg_sql == 'SELECT avg("watch_duration") FROM "public"."view_events"'
    with pytest.raises(ValueError):
        build_aggregate(SCHEMA, "payment", "max", "amount")


def test_time_buckets():
    sql, params = build_time_buckets(SCHEMA, "rental", "rental_date", "month", filters={"rental_date": Recent(365)})
    assert sql.startswith("SELECT date_trunc('month', \"rental_date\") AS period, count(*) AS count")
    assert sql.endswith("GROUP BY 1 ORDER BY 1 ASC")
    assert '"rental_date" IS NOT NULL' in sql
    assert params == [365]
    with pytest.raises(ValueError):
        build_time_buckets(SCHEMA, "rental", "rental_date", "fortnight")
