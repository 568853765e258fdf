"""
Unit Tests - HTTP API
"""
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from supermall.main import create_app


@pytest.fixture
def client(test_settings):
    """API client on a fresh in-memory store"""
    app = create_app(test_settings)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def shop_id(client, shop_data):
    response = client.post("/api/v1/shops", json=shop_data)
    assert response.status_code == 201
    return response.json()["id"]


@pytest.fixture
def product_payload(product_data, shop_id):
    return {**product_data, "shopId": shop_id}


class TestHealthEndpoints:
    """Tests for health and info endpoints"""

    def test_health(self, client):
        response = client.get("/api/v1/health")

        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "healthy"
        assert body["backend"] == "local"
        assert body["environment"] == "testing"

    def test_liveness(self, client):
        assert client.get("/api/v1/health/live").json() == {"status": "alive"}

    def test_info(self, client):
        assert client.get("/api/v1/info").json()["name"] == "supermall-catalog"

    def test_request_id_echoed(self, client):
        response = client.get("/api/v1/health/live", headers={"X-Request-ID": "req-42"})

        assert response.headers["X-Request-ID"] == "req-42"

    def test_request_id_generated_when_missing(self, client):
        response = client.get("/api/v1/health/live")

        assert len(response.headers["X-Request-ID"]) == 32


class TestRequestContext:
    """Tests for request scoped log context"""

    def test_telemetry_events_carry_request_id(self, client, shop_data):
        client.post("/api/v1/shops", json=shop_data, headers={"X-Request-ID": "req-77"})

        telemetry = client.app.state.context.telemetry
        events = [e for e in telemetry.recent() if e["name"].startswith("shop_create")]
        assert [e["name"] for e in events] == ["shop_create_attempt", "shop_create_success"]
        assert {e["requestId"] for e in events} == {"req-77"}

    def test_requests_do_not_share_request_id(self, client, shop_data):
        client.post("/api/v1/shops", json=shop_data, headers={"X-Request-ID": "req-1"})
        client.get("/api/v1/shops", headers={"X-Request-ID": "req-2"})

        events = client.app.state.context.telemetry.recent()
        assert events[0]["requestId"] == "req-1"
        assert events[-1]["requestId"] == "req-2"

    def test_telemetry_flushed_to_logs_after_response(self, client, shop_data):
        client.post("/api/v1/shops", json=shop_data, headers={"X-Request-ID": "req-9"})

        context = client.app.state.context
        logs = client.portal.call(context.gateway.read, "logs")
        assert "shop_create_success" in [entry["name"] for entry in logs]
        assert {entry["requestId"] for entry in logs} == {"req-9"}


class TestShopEndpoints:
    """Tests for /shops"""

    def test_create_and_fetch(self, client, shop_id):
        response = client.get(f"/api/v1/shops/{shop_id}")

        assert response.status_code == 200
        assert response.json()["name"] == "Green Grocer"

    def test_list_and_search(self, client, shop_id):
        assert len(client.get("/api/v1/shops").json()) == 1
        assert len(client.get("/api/v1/shops", params={"q": "organic"}).json()) == 1
        assert client.get("/api/v1/shops", params={"floor": 9}).json() == []

    def test_validation_error(self, client, shop_data):
        response = client.post("/api/v1/shops", json={**shop_data, "floor": 11})

        assert response.status_code == 422
        assert response.json() == {
            "error": "ValidationError",
            "message": "Floor must be between 1 and 10",
            "field": "floor",
        }

    def test_not_found(self, client):
        response = client.get("/api/v1/shops/missing")

        assert response.status_code == 404
        assert response.json()["error"] == "NotFoundError"

    def test_update_and_delete(self, client, shop_id):
        assert client.patch(f"/api/v1/shops/{shop_id}", json={"floor": 4}).json()["status"] == "updated"
        assert client.delete(f"/api/v1/shops/{shop_id}").json()["status"] == "deleted"
        assert client.get("/api/v1/shops").json() == []
        assert len(client.get("/api/v1/shops", params={"include_inactive": True}).json()) == 1

    def test_delete_with_products_conflicts(self, client, shop_id, product_payload):
        client.post("/api/v1/products", json=product_payload)

        response = client.delete(f"/api/v1/shops/{shop_id}")

        assert response.status_code == 409
        assert response.json()["error"] == "ConflictError"

    def test_stats(self, client, shop_id, product_payload):
        client.post("/api/v1/products", json={**product_payload, "price": 2, "stock": 5})

        stats = client.get(f"/api/v1/shops/{shop_id}/stats").json()

        assert stats["totalProducts"] == 1
        assert stats["totalValue"] == 10


class TestProductEndpoints:
    """Tests for /products"""

    def test_price_filter_and_sort(self, client, product_payload):
        for price in [3, 9, 6]:
            client.post("/api/v1/products", json={**product_payload, "price": price})

        products = client.get(
            "/api/v1/products",
            params={"min_price": 4, "sort_by": "price_high"},
        ).json()

        assert [p["price"] for p in products] == [9, 6]

    def test_stock_endpoints(self, client, product_payload):
        product_id = client.post("/api/v1/products", json=product_payload).json()["id"]

        response = client.put(f"/api/v1/products/{product_id}/stock", json={"quantity": 0})

        assert response.status_code == 200
        assert [p["id"] for p in client.get("/api/v1/products/out-of-stock").json()] == [product_id]
        assert client.get("/api/v1/products/low-stock").json() == []

    def test_negative_stock_rejected(self, client, product_payload):
        product_id = client.post("/api/v1/products", json=product_payload).json()["id"]

        response = client.put(f"/api/v1/products/{product_id}/stock", json={"quantity": -3})

        assert response.status_code == 422

    def test_compare(self, client, product_payload):
        ids = [
            client.post("/api/v1/products", json={**product_payload, "price": price}).json()["id"]
            for price in [10, 20]
        ]

        response = client.post("/api/v1/products/compare", json={"productIds": ids})

        assert response.status_code == 200
        assert response.json()["comparison"]["priceRange"]["average"] == 15

    def test_compare_needs_two(self, client, product_payload):
        product_id = client.post("/api/v1/products", json=product_payload).json()["id"]

        response = client.post("/api/v1/products/compare", json={"productIds": [product_id]})

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidArgumentError"


class TestOfferEndpoints:
    """Tests for /offers"""

    @pytest.fixture
    def offer_payload(self, shop_id):
        now = datetime.now(timezone.utc)
        return {
            "title": "Weekend Deal",
            "description": "Twenty percent off all juices",
            "discount": 20,
            "shopId": shop_id,
            "validFrom": (now - timedelta(days=1)).isoformat(),
            "validTo": (now + timedelta(days=3)).isoformat(),
        }

    def test_create_click_and_list(self, client, offer_payload):
        offer_id = client.post("/api/v1/offers", json=offer_payload).json()["id"]

        client.post(f"/api/v1/offers/{offer_id}/click")

        offer = client.get(f"/api/v1/offers/{offer_id}").json()
        assert offer["stats"]["clicks"] == 1
        assert [o["id"] for o in client.get("/api/v1/offers").json()] == [offer_id]
        assert [o["id"] for o in client.get("/api/v1/offers/expiring").json()] == [offer_id]
        assert client.get("/api/v1/offers/expired").json() == []

    def test_apply_to_products(self, client, offer_payload):
        offer_id = client.post("/api/v1/offers", json=offer_payload).json()["id"]

        response = client.put(f"/api/v1/offers/{offer_id}/products", json={"productIds": ["p1", "p2"]})

        assert response.status_code == 200
        assert client.get(f"/api/v1/offers/{offer_id}").json()["productIds"] == ["p1", "p2"]

    def test_bad_window(self, client, offer_payload):
        offer_payload["validFrom"], offer_payload["validTo"] = offer_payload["validTo"], offer_payload["validFrom"]

        response = client.post("/api/v1/offers", json=offer_payload)

        assert response.status_code == 422
        assert response.json()["field"] == "validFrom"


class TestSessionEndpoints:
    """Tests for /session and attribution"""

    def test_sign_in_attributes_writes(self, client):
        response = client.post("/api/v1/session", json={"uid": "owner-1", "role": "admin"})

        assert response.json()["actor"] == "owner-1"

        category_id = client.post("/api/v1/categories", json={"name": "Electronics", "floor": 3}).json()["id"]
        category = client.get(f"/api/v1/categories/{category_id}").json()
        assert category["createdBy"] == "owner-1"

        assert client.delete("/api/v1/session").json()["authenticated"] is False

    def test_sign_in_records_user_profile(self, client):
        client.post("/api/v1/session", json={"uid": "owner-1", "email": "owner@mall.example.com"})
        client.post("/api/v1/session", json={"uid": "owner-1", "role": "admin"})

        context = client.app.state.context
        users = client.portal.call(context.gateway.read, "users")
        assert [u["uid"] for u in users] == ["owner-1"]
        assert users[0]["role"] == "admin"

    def test_whoami_anonymous(self, client):
        assert client.get("/api/v1/session").json()["actor"] == "anonymous"
