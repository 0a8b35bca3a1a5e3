"""
Pytest configuration for the Sakila admin console.

Provides fixtures for:
- Database connection management
- A throwaway schema seeded with a small category/film_category set
- Settings override for integration tests
"""

from __future__ import annotations

import os
from typing import Generator

import psycopg
import pytest

from sakila_admin.config import Settings

TEST_SCHEMA = "sakila_admin_test"
SEED_CATEGORIES = 30


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        _env_file=None,
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "sakila"),
        db_schema=TEST_SCHEMA,
        db_pool_max=4,
        log_level="DEBUG",
        admin_api_key="integration-key",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return test_settings.dsn


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def db_connection(
    test_dsn: str, db_connection_available: bool
) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a session-scoped database connection for integration tests.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    conn = psycopg.connect(test_dsn, autocommit=True)
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="session")
def seeded_schema(db_connection: psycopg.Connection) -> Generator[str, None, None]:
    """
    Create a throwaway schema with `category` and `film_category` tables.

    Categories 1..30 are named "Category 01".."Category 30"; category 1 has
    three films, every other category none. The schema is dropped afterwards.
    """
    with db_connection.cursor() as cur:
        cur.execute(f"DROP SCHEMA IF EXISTS {TEST_SCHEMA} CASCADE;")
        cur.execute(f"CREATE SCHEMA {TEST_SCHEMA};")
        cur.execute(
            f"""
            CREATE TABLE {TEST_SCHEMA}.category (
                category_id serial PRIMARY KEY,
                name text NOT NULL,
                last_update timestamptz NOT NULL DEFAULT now()
            );
            CREATE TABLE {TEST_SCHEMA}.film_category (
                film_id integer NOT NULL,
                category_id integer NOT NULL REFERENCES {TEST_SCHEMA}.category (category_id),
                PRIMARY KEY (film_id, category_id)
            );
            """
        )
        cur.execute(
            f"INSERT INTO {TEST_SCHEMA}.category (name) "
            f"SELECT format('Category %s', lpad(i::text, 2, '0')) "
            f"FROM generate_series(1, {SEED_CATEGORIES}) AS i;"
        )
        cur.execute(
            f"INSERT INTO {TEST_SCHEMA}.film_category (film_id, category_id) VALUES (1, 1), (2, 1), (3, 1);"
        )
    try:
        yield TEST_SCHEMA
    finally:
        with db_connection.cursor() as cur:
            cur.execute(f"DROP SCHEMA IF EXISTS {TEST_SCHEMA} CASCADE;")
