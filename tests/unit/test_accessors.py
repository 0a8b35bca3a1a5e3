from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

import pytest

from fakes import CONNECTION_REFUSED, FakeGateway
from sakila_admin.data import accessors
from sakila_admin.domain.entities import (
    Actor,
    Category,
    Comment,
    Customer,
    Film,
    Payment,
    Rental,
    Subscription,
    User,
    Video,
    VideoCategory,
)


def _at(day: int) -> datetime:
    return datetime(2005, 5, day, 12, 0, tzinfo=timezone.utc)


def _uuid(n: int) -> UUID:
    return UUID(int=n)


# accessor, model, table, rows (stored out of default order), key, expected key order
CASES = [
    (
        accessors.fetch_films,
        Film,
        "film",
        [
            {"film_id": 2, "title": "ZORRO ARK", "rental_rate": Decimal("4.99"), "special_features": ["Trailers"]},
            {"film_id": 1, "title": "ACADEMY DINOSAUR", "rental_rate": Decimal("0.99"), "language": {"name": "English"}},
        ],
        "film_id",
        [1, 2],
    ),
    (
        accessors.fetch_actors,
        Actor,
        "actor",
        [
            {"actor_id": 1, "first_name": "PENELOPE", "last_name": "GUINESS"},
            {"actor_id": 2, "first_name": "NICK", "last_name": "CHASE"},
        ],
        "actor_id",
        [2, 1],
    ),
    (
        accessors.fetch_customers,
        Customer,
        "customer",
        [
            {"customer_id": 1, "first_name": "MARY", "last_name": "SMITH", "address": {"address": "47 MySakila Drive"}},
            {"customer_id": 2, "first_name": "PATRICIA", "last_name": "JOHNSON", "rental_count": 3},
        ],
        "customer_id",
        [2, 1],
    ),
    (
        accessors.fetch_categories,
        Category,
        "category",
        [
            {"category_id": 16, "name": "Travel"},
            {"category_id": 1, "name": "Action", "film_count": 64},
        ],
        "category_id",
        [1, 16],
    ),
    (
        accessors.fetch_rentals,
        Rental,
        "rental",
        [
            {"rental_id": 1, "rental_date": _at(24), "inventory_id": 367, "customer_id": 130, "staff_id": 1},
            {"rental_id": 2, "rental_date": _at(25), "inventory_id": 1525, "customer_id": 459, "staff_id": 1, "return_date": _at(28)},
        ],
        "rental_id",
        [2, 1],
    ),
    (
        accessors.fetch_payments,
        Payment,
        "payment",
        [
            {"payment_id": 1, "customer_id": 1, "staff_id": 1, "rental_id": 76, "amount": Decimal("2.99"), "payment_date": _at(25)},
            {"payment_id": 2, "customer_id": 1, "staff_id": 1, "rental_id": 573, "amount": Decimal("0.99"), "payment_date": _at(28)},
        ],
        "payment_id",
        [2, 1],
    ),
    (
        accessors.fetch_videos,
        Video,
        "videos",
        [
            {"id": _uuid(1), "title": "Intro", "created_at": _at(1), "views": 10},
            {"id": _uuid(2), "title": "Sequel", "created_at": _at(2), "category_id": _uuid(9)},
        ],
        "id",
        [_uuid(2), _uuid(1)],
    ),
    (
        accessors.fetch_users,
        User,
        "users",
        [
            {"id": _uuid(3), "email": "old@example.com", "created_at": _at(1), "role": "viewer"},
            {"id": _uuid(4), "email": "new@example.com", "created_at": _at(3)},
        ],
        "id",
        [_uuid(4), _uuid(3)],
    ),
    (
        accessors.fetch_video_categories,
        VideoCategory,
        "categories",
        [
            {"id": _uuid(6), "name": "Music"},
            {"id": _uuid(5), "name": "Documentary"},
        ],
        "id",
        [_uuid(5), _uuid(6)],
    ),
    (
        accessors.fetch_subscriptions,
        Subscription,
        "subscriptions",
        [
            {"id": _uuid(7), "user_id": _uuid(3), "status": "active", "start_date": _at(2), "amount": Decimal("9.99")},
            {"id": _uuid(8), "user_id": _uuid(4), "status": "cancelled", "start_date": _at(5), "amount": Decimal("4.99")},
        ],
        "id",
        [_uuid(8), _uuid(7)],
    ),
    (
        accessors.fetch_comments,
        Comment,
        "comments",
        [
            {"id": _uuid(10), "video_id": _uuid(1), "user_id": _uuid(3), "content": "first", "created_at": _at(6)},
            {"id": _uuid(11), "video_id": _uuid(1), "user_id": _uuid(4), "content": "second", "created_at": _at(7), "parent_id": _uuid(10)},
        ],
        "id",
        [_uuid(11), _uuid(10)],
    ),
]

IDS = [case[2] for case in CASES]


@pytest.mark.asyncio
@pytest.mark.parametrize("accessor, model, table, rows, key, expected", CASES, ids=IDS)
async def test_accessor_validates_rows_in_default_order(accessor, model, table, rows, key, expected):
    gateway = FakeGateway({table: rows})

    page = await accessor(gateway)

    assert page.error is None
    assert page.total_count == len(rows)
    assert all(isinstance(row, model) for row in page.rows)
    assert [getattr(row, key) for row in page.rows] == expected
    assert gateway.calls_for("fetch_page") == [("fetch_page", table)]


@pytest.mark.asyncio
@pytest.mark.parametrize("accessor, model, table, rows, key, expected", CASES, ids=IDS)
async def test_accessor_passes_errors_through(accessor, model, table, rows, key, expected):
    gateway = FakeGateway({table: rows})
    gateway.failures[table] = CONNECTION_REFUSED

    page = await accessor(gateway)

    assert page.rows == []
    assert page.error == CONNECTION_REFUSED
    assert page.table_exists is True


@pytest.mark.asyncio
async def test_accessor_reports_missing_table():
    page = await accessors.fetch_videos(FakeGateway({}))

    assert page.rows == []
    assert page.table_exists is False
    assert page.error is not None


@pytest.mark.asyncio
async def test_typed_rows_keep_decimal_uuid_and_embedded_values():
    payments = await accessors.fetch_payments(FakeGateway({"payment": CASES[5][3]}))
    assert payments.rows[0].amount == Decimal("0.99")
    assert isinstance(payments.rows[0].amount, Decimal)

    subscriptions = await accessors.fetch_subscriptions(FakeGateway({"subscriptions": CASES[9][3]}))
    assert subscriptions.rows[0].user_id == _uuid(4)
    assert isinstance(subscriptions.rows[0].user_id, UUID)

    customers = await accessors.fetch_customers(FakeGateway({"customer": CASES[2][3]}))
    mary = customers.rows[1]
    assert mary.address == {"address": "47 MySakila Drive"}
    assert customers.rows[0].rental_count == 3


@pytest.mark.asyncio
async def test_accessor_applies_filters_and_paging():
    rows = [{"category_id": i, "name": f"Category {i:02d}"} for i in range(1, 31)]
    gateway = FakeGateway({"category": rows})

    second = await accessors.fetch_categories(gateway, page=2, page_size=10)
    only = await accessors.fetch_categories(gateway, filters={"category_id": 7})

    assert [row.category_id for row in second.rows] == list(range(11, 21))
    assert second.has_more is True
    assert [row.name for row in only.rows] == ["Category 07"]
