from decimal import Decimal

import pytest

from sakila_admin import config
from sakila_admin.domain.models import DbError, PageResult, has_more, total_pages
from sakila_admin.views.specs import (
    ColumnSpec,
    currency,
    full_name,
    payment_amount_search,
    rental_id_search,
    resolve_path,
    subscription_user_search,
)

PAGE_SIZE = 25


def test_get_settings_defaults(monkeypatch: pytest.MonkeyPatch):
    for name in (
        "DB_HOST",
        "DB_PORT",
        "DB_USER",
        "DB_NAME",
        "DB_SCHEMA",
        "DEFAULT_PAGE_SIZE",
        "EXISTENCE_CACHE_TTL_SECONDS",
        "ADMIN_API_KEY",
    ):
        monkeypatch.delenv(name, raising=False)
    settings = config.Settings(_env_file=None)
    assert settings.db_host == "localhost"
    assert settings.db_port == 5432
    assert settings.db_user == "postgres"
    assert settings.db_name == "sakila"
    assert settings.db_schema == "public"
    assert settings.default_page_size == PAGE_SIZE
    assert settings.existence_cache_ttl_seconds == 300.0
    assert settings.admin_api_key is None


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("DB_NAME", "sakila_test")
    monkeypatch.setenv("DEFAULT_PAGE_SIZE", "10")
    monkeypatch.setenv("ADMIN_API_KEY", "secret")
    settings = config.Settings(_env_file=None)
    assert settings.db_name == "sakila_test"
    assert settings.default_page_size == 10
    assert settings.admin_api_key == "secret"
    assert settings.dsn.endswith("/sakila_test")


@pytest.mark.parametrize(
    "page,total,expected",
    [(1, 30, True), (2, 30, False), (1, 25, False), (1, 26, True), (3, 0, False)],
)
def test_has_more_matches_total_beyond_page(page: int, total: int, expected: bool):
    assert has_more(page, PAGE_SIZE, total) is expected
    assert has_more(page, PAGE_SIZE, total) == (total > page * PAGE_SIZE)


def test_total_pages():
    assert total_pages(0, PAGE_SIZE) == 0
    assert total_pages(25, PAGE_SIZE) == 1
    assert total_pages(30, PAGE_SIZE) == 2
    with pytest.raises(ValueError):
        total_pages(10, 0)


def test_failed_page_result_reads_as_unavailable():
    result = PageResult.failed(DbError(message="boom"), page=2, page_size=PAGE_SIZE, table_exists=False)
    assert not result.ok
    assert result.rows == []
    assert result.total_count == 0
    assert result.has_more is False
    assert result.table_exists is False


def test_column_spec_placeholder_for_missing_relation():
    row = {"customer": None, "inventory": {"film": None}}
    assert resolve_path(row, "inventory.film.title") is None
    assert ColumnSpec("Film", "inventory.film.title", placeholder="Unknown").render(row) == "Unknown"
    assert ColumnSpec("Customer", "customer", placeholder="Unknown", formatter=full_name).render(row) == "Unknown"
    assert ColumnSpec("Rentals", "count").render({"count": 0}) == "0"


def test_formatters():
    assert currency(Decimal("1234.5")) == "$1,234.50"
    assert full_name({"first_name": "MARY", "last_name": "SMITH"}) == "MARY SMITH"


def test_search_builders_reject_terms_that_cannot_match():
    assert payment_amount_search("abc") is None
    assert payment_amount_search("NaN") is None
    assert payment_amount_search("$4.99") == {"amount": Decimal("4.99")}
    assert rental_id_search("12x") is None
    assert rental_id_search(" 42 ") == {"rental_id": 42}
    assert subscription_user_search("not-a-uuid") is None
    assert subscription_user_search("6f1c2a44-3c1d-4f7e-9a55-0b8d3f6e2c11") is not None
