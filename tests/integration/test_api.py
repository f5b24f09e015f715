"""
Integration tests for the dashboard HTTP API.

The Aggregate Store and the reference instant are replaced through
FastAPI dependency overrides; no database is opened.
"""
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from core.exceptions import QueryTimeoutError, StoreQueryError
from core.models import PeriodTotals, ProductRanking, ProductSale, ProductSales, RawAggregate
from web.main import app
from web.routes.api._deps import get_now, limiter, provide_store

UTC = timezone.utc


@pytest.fixture
def api(fixed_now, make_store):
    """
    Build a TestClient around a given fake store.

    Usage:
        client, store = api(make_store(...))
    """
    limiter.enabled = False

    def build(store=None):
        store = store or make_store()

        async def override_store():
            return store

        app.dependency_overrides[provide_store] = override_store
        app.dependency_overrides[get_now] = lambda: fixed_now
        return TestClient(app), store

    yield build

    app.dependency_overrides.clear()
    limiter.enabled = True


class TestStatsEndpoint:
    """Tests for GET /api/dashboard/stats."""

    def test_today(self, api, make_store):
        client, _ = api(make_store(default_totals=PeriodTotals(revenue=150.0, orders_count=2)))
        response = client.get("/api/dashboard/stats", params={"period": "today"})

        assert response.status_code == 200
        data = response.json()
        assert data["period"]["type"] == "today"
        assert data["period"]["date_from"] == "2026-03-18T00:00:00Z"
        assert data["revenue"]["current"] == 150.0
        assert data["orders"]["current"] == 2
        assert data["orders"]["trend"] == "up"
        assert len(data["hourly_sales"]) == 24
        assert "previous_period" not in data["period"]

    def test_default_period_is_today(self, api):
        client, _ = api()
        response = client.get("/api/dashboard/stats")
        assert response.status_code == 200
        assert response.json()["period"]["type"] == "today"

    def test_compare_with_previous(self, api):
        client, store = api()
        response = client.get(
            "/api/dashboard/stats",
            params={"period": "week", "compare_with_previous": "true"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["period"]["previous_period"] == {
            "date_from": "2026-03-09T00:00:00Z",
            "date_to": "2026-03-15T23:59:59.999999Z",
        }
        assert data["hourly_sales"] == []
        assert store.operations().count("fetch_period_totals") == 2

    def test_custom_range(self, api):
        client, _ = api()
        response = client.get(
            "/api/dashboard/stats",
            params={"date_from": "2026-01-01", "date_to": "2026-01-31"},
        )
        assert response.status_code == 200
        assert response.json()["period"]["type"] == "custom"

    @pytest.mark.parametrize("params,field", [
        ({"period": "bogus"}, "period"),
        ({"date_from": "2024-13-40", "date_to": "2024-12-31"}, "date_from"),
        ({"date_from": "2024-1-5", "date_to": "2024-01-06"}, "date_from"),
        ({"date_from": "2026-02-01", "date_to": "2026-01-01"}, "date_range"),
    ])
    def test_validation_error(self, api, params, field):
        client, store = api()
        response = client.get("/api/dashboard/stats", params=params)

        assert response.status_code == 400
        assert response.json()["field"] == field
        assert store.call_count == 0

    def test_bad_boolean(self, api):
        client, store = api()
        response = client.get("/api/dashboard/stats", params={"compare_with_previous": "maybe"})
        assert response.status_code == 400
        assert response.json()["field"] == "compare_with_previous"
        assert store.call_count == 0

    def test_store_failure(self, api, make_store):
        client, _ = api(make_store(fail={"fetch_period_totals": StoreQueryError("Aggregate query failed")}))
        response = client.get("/api/dashboard/stats", params={"period": "today"})

        assert response.status_code == 500
        assert response.json()["error"] == "Failed to retrieve dashboard data"

    def test_store_timeout(self, api, make_store):
        client, _ = api(make_store(fail={"fetch_top_categories": QueryTimeoutError("SELECT ...", 30)}))
        response = client.get("/api/dashboard/stats", params={"period": "month"})
        assert response.status_code == 500

    def test_request_id_echoed(self, api):
        client, _ = api()
        response = client.get("/api/dashboard/stats", headers={"X-Request-ID": "req-42"})
        assert response.headers["X-Request-ID"] == "req-42"


class TestSalesChartEndpoint:
    """Tests for GET /api/dashboard/sales-chart."""

    def test_seven_days(self, api, make_store):
        store = make_store(series=[
            RawAggregate(bucket=datetime(2026, 3, 18, tzinfo=UTC), orders_revenue=150.0, orders_count=2),
        ])
        client, _ = api(store)
        response = client.get("/api/dashboard/sales-chart", params={"period": "7d"})

        assert response.status_code == 200
        data = response.json()
        assert data["period"] == "7d"
        assert data["metric"] == "revenue"
        assert data["granularity"] == "day"
        assert len(data["data"]) == 7
        assert data["data"][-1]["label"] == "2026-03-18"
        assert data["data"][-1]["orders_revenue"] == 150.0
        assert data["summary"]["totals"]["orders_count"] == 2
        assert data["summary"]["best_day"] == {"label": "2026-03-18", "revenue": 150.0}

    def test_granularity_override(self, api):
        client, _ = api()
        response = client.get(
            "/api/dashboard/sales-chart",
            params={"period": "90d", "granularity": "month", "metric": "items"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["granularity"] == "month"
        assert data["metric"] == "items"
        assert [p["label"] for p in data["data"]] == ["2025-12-01", "2026-01-01", "2026-02-01", "2026-03-01"]

    def test_missing_period(self, api):
        client, store = api()
        response = client.get("/api/dashboard/sales-chart")
        assert response.status_code == 400
        assert response.json()["field"] == "period"
        assert store.call_count == 0

    @pytest.mark.parametrize("params,field", [
        ({"period": "14d"}, "period"),
        ({"period": "7d", "granularity": "minute"}, "granularity"),
        ({"period": "7d", "metric": "profit"}, "metric"),
    ])
    def test_validation_error(self, api, params, field):
        client, store = api()
        response = client.get("/api/dashboard/sales-chart", params=params)
        assert response.status_code == 400
        assert response.json()["field"] == field
        assert store.call_count == 0

    def test_store_failure(self, api, make_store):
        client, _ = api(make_store(fail={"fetch_chart_series": StoreQueryError("Aggregate query failed")}))
        response = client.get("/api/dashboard/sales-chart", params={"period": "30d"})
        assert response.status_code == 500


class TestTopProductsEndpoint:
    """Tests for GET /api/analytics/top-products."""

    def test_defaults(self, api, make_store):
        store = make_store(top_products=ProductSales(
            products=[
                ProductSale(product_id="p-dress", name="Linen Dress", category_id="dresses",
                            category_name="Dresses", sales_count=3, orders=2, revenue=130.0),
                ProductSale(product_id="p-boots", name="Chelsea Boots", category_id="shoes",
                            category_name="Shoes", sales_count=1, orders=1, revenue=50.0),
            ],
            total_revenue=180.0,
            total_sales=4,
        ))
        client, _ = api(store)
        response = client.get("/api/analytics/top-products")

        assert response.status_code == 200
        data = response.json()
        assert data["period"] == "30d"
        assert data["metric"] == "revenue"
        assert data["category"] is None
        assert data["date_from"] == "2026-02-17T00:00:00Z"
        assert [p["rank"] for p in data["products"]] == [1, 2]
        assert data["products"][0]["id"] == "p-dress"
        assert data["products"][0]["revenue_share"] == 72.22
        assert data["summary"] == {"total_revenue": 180.0, "total_sales": 4}

    def test_query_parameters_reach_store(self, api):
        client, store = api()
        response = client.get(
            "/api/analytics/top-products",
            params={"period": "7d", "metric": "quantity", "category": "shoes", "limit": 3},
        )
        assert response.status_code == 200
        assert response.json()["category"] == "shoes"

        _, start, _, limit, ranking, category, _ = store.calls[0]
        assert start == datetime(2026, 3, 12, tzinfo=UTC)
        assert (limit, ranking, category) == (3, ProductRanking.QUANTITY, "shoes")

    @pytest.mark.parametrize("params,field", [
        ({"period": "all_time"}, "period"),
        ({"metric": "profit"}, "metric"),
        ({"limit": 0}, "limit"),
        ({"limit": "ten"}, "limit"),
    ])
    def test_validation_error(self, api, params, field):
        client, store = api()
        response = client.get("/api/analytics/top-products", params=params)
        assert response.status_code == 400
        assert response.json()["field"] == field
        assert store.call_count == 0

    def test_store_failure(self, api, make_store):
        client, _ = api(make_store(fail={"fetch_top_products": StoreQueryError("Aggregate query failed")}))
        response = client.get("/api/analytics/top-products")
        assert response.status_code == 500
        assert response.json()["error"] == "Failed to retrieve dashboard data"


class TestHealthEndpoints:
    """Tests for /api/health and /api/metrics."""

    def test_health_store_ping_fails(self, api, make_store):
        client, _ = api(make_store(fail={"ping": StoreQueryError("Aggregate query failed", "database is locked")}))
        response = client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "degraded"
        assert data["store"]["status"].startswith("error")

    def test_health_store_ping_ok(self, api):
        client, store = api()
        data = client.get("/api/health").json()
        assert data["status"] == "healthy"
        assert data["store"]["status"] == "connected"
        assert data["store"]["latency_ms"] >= 0
        assert store.operations() == ["ping"]

    def test_health_store_answers_false(self, api, make_store):
        """A store that answers but reports not ready is degraded, not connected."""
        class NotReadyStore(make_store):
            async def ping(self, timeout=5.0):
                return False

        client, _ = api(NotReadyStore())
        data = client.get("/api/health").json()
        assert data["status"] == "degraded"
        assert data["store"]["status"] == "error"

    def test_metrics(self, api):
        client, _ = api()
        client.get("/api/dashboard/sales-chart", params={"period": "7d"})
        response = client.get("/api/metrics")
        assert response.status_code == 200
        data = response.json()
        assert data["requests"]["dashboard.sales_chart"] >= 1
        assert "http.dashboard.sales_chart" in data["timing"]
        assert not any(key.startswith("GET ") for key in data["requests"])

    def test_metrics_count_errors_per_operation(self, api):
        client, _ = api()
        client.get("/api/analytics/top-products", params={"metric": "profit"})
        errors = client.get("/api/metrics").json()["errors"]
        assert errors["analytics.top_products.HTTP_400"] >= 1

    def test_unknown_paths_share_one_metric(self, api):
        client, _ = api()
        client.get("/api/does-not-exist")
        client.get("/api/also-missing")
        requests = client.get("/api/metrics").json()["requests"]
        assert "other" in requests
        assert not any("missing" in key or "does-not-exist" in key for key in requests)
