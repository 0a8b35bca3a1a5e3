from __future__ import annotations

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from fakes import CONNECTION_REFUSED, FakeGateway
from sakila_admin.api.server import create_app
from sakila_admin.config import Settings
from sakila_admin.data.cache import MemoCache
from sakila_admin.data.introspection import SchemaInspector
from sakila_admin.reports.analytics import AnalyticsService
from sakila_admin.services import AppServices
from sakila_admin.views.explorer import SchemaExplorer

API_KEY = "test-key"
HEADERS = {"X-API-Key": API_KEY}
PAGE_SIZE = 25
CATEGORY_COUNT = 30


def _gateway() -> FakeGateway:
    return FakeGateway(
        {
            "category": [{"category_id": i, "name": f"Category {i:02d}"} for i in range(1, CATEGORY_COUNT + 1)],
            "film_category": [{"film_id": 1, "category_id": 1}],
            "film": [{"film_id": 1, "title": "ACADEMY DINOSAUR", "rating": "PG", "rental_rate": Decimal("0.99")}],
        }
    )


def _client(gateway: FakeGateway, api_key: str = API_KEY) -> TestClient:
    inspector = SchemaInspector(gateway, MemoCache())
    services = AppServices(
        gateway=gateway,
        inspector=inspector,
        analytics=AnalyticsService(gateway, inspector),
        explorer=SchemaExplorer(gateway, inspector, PAGE_SIZE),
        page_size=PAGE_SIZE,
    )
    settings = Settings(_env_file=None, ADMIN_API_KEY=api_key, CORS_ORIGINS=[])
    return TestClient(create_app(settings, services=services))


@pytest.fixture
def gateway() -> FakeGateway:
    return _gateway()


@pytest.fixture
def client(gateway: FakeGateway) -> TestClient:
    with _client(gateway) as test_client:
        yield test_client


def test_landing_page_is_public(client: TestClient):
    response = client.get("/")
    assert response.status_code == 200
    assert "Like Netflix, but better" in response.text


@pytest.mark.parametrize("headers", [{}, {"X-API-Key": "wrong"}])
def test_admin_routes_require_key(client: TestClient, headers):
    response = client.get("/api/views/categories", headers=headers)
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid or missing API key."}


def test_unconfigured_key_rejects_everything(gateway: FakeGateway):
    with _client(gateway, api_key="") as client:
        response = client.get("/api/dashboard", headers={"X-API-Key": ""})
    assert response.status_code == 401
    assert response.json()["error"] == "API key is not configured."


def test_view_page_paginates(client: TestClient):
    first = client.get("/api/views/categories", headers=HEADERS).json()
    second = client.get("/api/views/categories", params={"page": 2}, headers=HEADERS).json()

    assert first["status"] == "loaded"
    assert len(first["rows"]) == PAGE_SIZE
    assert first["has_more"] is True
    assert first["rows"][0]["film_count"] == 1
    assert len(second["rows"]) == CATEGORY_COUNT - PAGE_SIZE
    assert second["has_more"] is False


def test_view_responses_never_carry_credentials(client: TestClient):
    body = client.get("/api/views/categories", headers=HEADERS).text
    assert "postgres" not in body
    assert "DB_PASSWORD" not in body


def test_unknown_view_is_404(client: TestClient):
    response = client.get("/api/views/reports", headers=HEADERS)
    assert response.status_code == 404
    assert response.json() == {"error": "Unknown view: reports"}


def test_invalid_page_is_400(client: TestClient):
    response = client.get("/api/views/categories", params={"page": 0}, headers=HEADERS)
    assert response.status_code == 400


def test_missing_table_is_not_found_state(client: TestClient):
    body = client.get("/api/views/customers", headers=HEADERS).json()
    assert body["status"] == "not_found"
    assert body["suggested_view"] == "explorer"


def test_fetch_error_is_returned_as_view_state(client: TestClient, gateway: FakeGateway):
    gateway.failures["category"] = CONNECTION_REFUSED
    response = client.get("/api/views/categories", headers=HEADERS)
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "error"
    assert body["error"]["message"] == "connection refused"


def test_unimplemented_action_is_501(client: TestClient):
    response = client.post("/api/views/categories/actions/edit", headers=HEADERS)
    assert response.status_code == 501
    assert response.json()["message"] == "Edit is not implemented"

    missing = client.post("/api/views/categories/actions/archive", headers=HEADERS)
    assert missing.status_code == 404


def test_dashboard_and_analytics(client: TestClient):
    dashboard = client.get("/api/dashboard", headers=HEADERS).json()
    cards = {card["key"]: card for card in dashboard["cards"]}
    assert cards["total_films"]["value"] == 1
    assert cards["total_customers"]["status"] == "not_found"

    analytics = client.get("/api/analytics", headers=HEADERS).json()
    assert [metric["key"] for metric in analytics["metrics"]] == ["films_by_rating"]
    assert analytics["version"] == "2024.1"


def test_analytics_unavailable_database_is_503(client: TestClient, gateway: FakeGateway):
    gateway.unreachable = True
    response = client.get("/api/analytics", headers=HEADERS)
    assert response.status_code == 503
    assert response.json() == {"error": "connection refused"}


def test_schema_explorer_routes(client: TestClient):
    tables = client.get("/api/schema/tables", headers=HEADERS).json()
    assert tables["schema"] == "public"
    assert "category" in tables["tables"]

    described = client.get("/api/schema/tables/film", headers=HEADERS).json()
    assert [column["name"] for column in described["columns"]][:2] == ["film_id", "title"]

    rows = client.get("/api/schema/tables/film/rows", headers=HEADERS).json()
    assert rows["cells"][0][1] == "ACADEMY DINOSAUR"

    missing = client.get("/api/schema/tables/videos", headers=HEADERS)
    assert missing.status_code == 404

    invalid = client.post("/api/schema/cache/invalidate", headers=HEADERS)
    assert invalid.json() == {"invalidated": True}


def test_admin_shell_descriptor(client: TestClient):
    response = client.get("/admin", params={"view": "locations"}, headers=HEADERS)
    assert response.status_code == 200
    assert response.json()["active_view"] == "countries"

    unknown = client.get("/admin", params={"view": "reports"}, headers=HEADERS)
    assert unknown.status_code == 404
