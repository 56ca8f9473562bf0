"""
API 엔드포인트 테스트
"""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from dropship_engine.api.main import create_app
from dropship_engine.errors import ExternalProviderError
from tests.fixtures.samples import make_candidate, make_customer_order, make_supplier_profile

ADMIN = {"X-Caller-Role": "admin"}


@pytest.fixture
def client(services):
    with patch("dropship_engine.api.main.setup_logging"):
        with TestClient(create_app(services)) as client:
            yield client


@pytest.fixture
def registered(client):
    """API 로 등록한 공급사"""
    response = client.post("/suppliers", json=make_supplier_profile(), headers=ADMIN)
    assert response.status_code == 201
    return response.json()


class TestHealth:
    """헬스 체크 테스트"""

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "running"

    def test_health(self, client):
        data = client.get("/health").json()

        assert data["status"] == "healthy"
        assert data["checks"]["storage"] == "healthy"
        assert "api" in data["metrics"]

    def test_request_id_echoed(self, client):
        response = client.get("/", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"
        assert "X-Process-Time" in response.headers


class TestSuppliersAPI:
    """공급사 API 테스트"""

    def test_register_requires_admin(self, client):
        response = client.post("/suppliers", json=make_supplier_profile())

        assert response.status_code == 403
        assert response.json()["error"]["type"] == "PermissionDeniedError"

    def test_register(self, client, registered):
        assert registered["id"] == "beauty-source"
        assert registered["shippingTime"] == 7
        assert registered["hasCredentials"] is True
        assert "credentials" not in registered
        assert "credentialRef" not in registered

        response = client.get("/suppliers/beauty-source")
        assert response.status_code == 200
        assert "secret-key-123" not in response.text

    def test_duplicate_name(self, client, registered):
        response = client.post("/suppliers", json=make_supplier_profile(), headers=ADMIN)

        assert response.status_code == 400
        assert response.json()["error"]["type"] == "DuplicateNameError"

    def test_invalid_profile(self, client):
        response = client.post(
            "/suppliers", json=make_supplier_profile(commission=150), headers=ADMIN
        )

        assert response.status_code == 400
        assert response.json()["error"]["details"]["errors"][0]["field"] == "commission"

    def test_list_pagination(self, client, registered):
        client.post(
            "/suppliers",
            json=make_supplier_profile("Home Goods", contact={"email": "sales@home-goods.example"}),
            headers=ADMIN,
        )

        data = client.get("/suppliers", params={"limit": 1}).json()
        assert len(data["items"]) == 1
        assert data["pagination"]["total"] == 2
        assert data["pagination"]["hasNext"] is True

        data = client.get("/suppliers", params={"limit": 500}).json()
        assert data["pagination"]["limit"] == 100

    def test_not_found(self, client):
        response = client.get("/suppliers/missing")

        assert response.status_code == 404
        assert response.json()["error"]["path"] == "/suppliers/missing"

    def test_update_and_status(self, client, registered):
        response = client.put("/suppliers/beauty-source", json={"commission": 8}, headers=ADMIN)
        assert response.status_code == 200
        assert response.json()["commission"] == "8"

        assert client.post("/suppliers/beauty-source/suspend", headers=ADMIN).json()["status"] == "suspended"
        assert client.post("/suppliers/beauty-source/activate", headers=ADMIN).json()["status"] == "active"

    def test_update_rating(self, client, registered):
        path = "/suppliers/beauty-source/rating"

        assert client.post(path, json={"rating": 4.5}).status_code == 403
        assert client.post(path, json={"rating": 4.5}, headers=ADMIN).json()["rating"] == 4.5
        assert client.post(path, json={"rating": 7}, headers=ADMIN).status_code == 400
        assert client.post(path, json={"rating": "high"}, headers=ADMIN).status_code == 400

    def test_list_body_rejected(self, client):
        response = client.post("/suppliers", json=[make_supplier_profile()], headers=ADMIN)

        assert response.status_code == 422


class TestRelationsAPI:
    """상품-공급사 연결 API 테스트"""

    def test_create_and_duplicate(self, client):
        payload = {"productId": "P1", "provider": "aliexpress", "externalId": "X1"}

        created = client.post("/relations", json=payload)
        duplicate = client.post("/relations", json=payload)

        assert created.status_code == 201
        assert created.json()["externalId"] == "X1"
        assert duplicate.status_code == 400
        assert duplicate.json()["error"]["type"] == "ConflictError"

        data = client.get("/relations", params={"productId": "P1"}).json()
        assert data["total"] == 1

    def test_sync_and_retire(self, client):
        payload = {"productId": "P1", "provider": "aliexpress", "externalId": "X1", "supplierPrice": "4.20"}
        relation_id = client.post("/relations", json=payload).json()["id"]

        synced = client.post(
            f"/relations/{relation_id}/sync", json={"supplierPrice": "3.90", "supplierStock": 12}
        )
        assert synced.status_code == 200
        assert synced.json()["supplierPrice"] == "3.90"
        assert synced.json()["supplierStock"] == 12

        failed = client.post(f"/relations/{relation_id}/sync", json={"error": "공급사 API 점검"}).json()
        assert [entry["status"] for entry in failed["syncHistory"]] == ["success", "failed"]
        assert failed["supplierPrice"] == "3.90"

        invalid = client.post(f"/relations/{relation_id}/sync", json={"supplierStock": -1})
        assert invalid.status_code == 400
        assert client.post("/relations/rel_missing/sync", json={}).status_code == 404

        assert client.delete("/relations/products/P1").status_code == 403
        retired = client.delete("/relations/products/P1", headers=ADMIN).json()
        assert retired == {"productId": "P1", "deleted": 1}
        assert client.get(f"/relations/{relation_id}").status_code == 404


class TestRecommendationsAPI:
    """상품 추천 API 테스트"""

    def test_review_flow(self, client, registered):
        created = client.post("/recommendations", json=make_candidate(), headers=ADMIN)
        assert created.status_code == 201
        recommendation = created.json()
        assert recommendation["suggestedPrice"] == "15.99"
        assert recommendation["approved"] is None
        path = f"/recommendations/{recommendation['id']}"

        assert client.get(path).json()["seen"] is False
        assert client.get(path, headers=ADMIN).json()["state"] == "seen"

        assert client.put(path, json={"approved": True}).status_code == 403
        approved = client.put(path, json={"approved": True}, headers=ADMIN).json()
        assert approved["approved"] is True

        imported = client.put(
            path, json={"imported": True, "localProductId": "P1"}, headers=ADMIN
        ).json()
        assert imported["imported"] is True
        assert imported["localProductId"] == "P1"

        replay = client.put(
            path, json={"approved": True, "imported": True, "localProductId": "P1"}, headers=ADMIN
        )
        assert replay.status_code == 200
        assert replay.json()["localProductId"] == "P1"

        response = client.delete(path, headers=ADMIN)
        assert response.status_code == 400

        listed = client.get("/recommendations", params={"state": "imported"}).json()
        assert listed["pagination"]["total"] == 1

    def test_low_margin(self, client, registered):
        client.put("/market-data", json={"minimumMargin": 40}, headers=ADMIN)

        response = client.post("/recommendations", json=make_candidate(), headers=ADMIN)

        assert response.status_code == 422
        assert response.json()["error"]["type"] == "MarginTooLowError"


class TestMarketDataAPI:
    """시장 데이터 API 테스트"""

    def test_get_and_update(self, client):
        assert client.get("/market-data").json()["version"] == 1

        assert client.put("/market-data", json={"minimumMargin": 20}).status_code == 403
        updated = client.put("/market-data", json={"minimumMargin": 20}, headers=ADMIN).json()

        assert updated["version"] == 2
        assert updated["minimumMargin"] == "20"
        assert updated["updatedBy"] == "admin"


class TestDropshipAPI:
    """공급사 주문 API 테스트"""

    def test_place_and_track(self, client, registered):
        response = client.post("/dropship/orders", json=make_customer_order())

        assert response.status_code == 201
        data = response.json()
        assert data["total"] == 1
        order = data["orders"][0]
        assert order["status"] == "submitted"
        assert order["externalRef"] == "EXT-1"

        tracked = client.post("/dropship/track-orders", json={"orderIds": [order["id"]]}).json()
        assert tracked["results"][0]["status"] == "submitted"

        listed = client.get("/dropship/orders", params={"customerOrderId": "C1"}).json()
        assert listed["total"] == 1
        assert client.get(f"/dropship/orders/{order['id']}").status_code == 200

    def test_invalid_track_payload(self, client):
        response = client.post("/dropship/track-orders", json={"orderIds": "dso_1"})

        assert response.status_code == 400

    def test_invalid_order(self, client, registered):
        response = client.post("/dropship/orders", json=make_customer_order("C1", []))

        assert response.status_code == 400

    def test_error_queue_and_requeue(self, client, registered, fake_adapter):
        fake_adapter.fail_with = ExternalProviderError("공급사 점검 중")
        order = client.post("/dropship/orders", json=make_customer_order()).json()["orders"][0]
        assert order["status"] == "failed"

        assert client.get("/dropship/errors").status_code == 403
        items = client.get("/dropship/errors", headers=ADMIN).json()["items"]
        assert items[0]["errorType"] == "RetryExhaustedError"
        assert items[0]["orderId"] == order["id"]

        fake_adapter.fail_with = None
        requeued = client.post(f"/dropship/orders/{order['id']}/requeue", headers=ADMIN).json()
        assert requeued["status"] == "submitted"
        assert client.get("/dropship/errors", headers=ADMIN).json()["items"] == []

    def test_resolve_error(self, client, registered, fake_adapter):
        fake_adapter.fail_with = ExternalProviderError("주소 오류", retryable=False)
        client.post("/dropship/orders", json=make_customer_order())
        [entry] = client.get("/dropship/errors", headers=ADMIN).json()["items"]

        resolved = client.post(
            f"/dropship/errors/{entry['id']}/resolve", json={"resolution": "고객 연락"}, headers=ADMIN
        ).json()

        assert resolved["status"] == "resolved"
        assert resolved["resolution"] == "고객 연락"

    def test_cancel_requires_admin(self, client, registered):
        order = client.post("/dropship/orders", json=make_customer_order()).json()["orders"][0]

        assert client.post(f"/dropship/orders/{order['id']}/cancel").status_code == 403
        cancelled = client.post(f"/dropship/orders/{order['id']}/cancel", headers=ADMIN).json()
        assert cancelled["status"] == "cancelled"

    def test_stats(self, client, registered):
        client.post("/dropship/orders", json=make_customer_order())

        stats = client.get("/dropship/stats", params={"supplierId": "beauty-source"}).json()

        assert stats["totalOrders"] == 1
        assert stats["ordersByStatus"] == {"submitted": 1}
        assert stats["totalRevenue"] == "10.00"
        assert client.get("/dropship/stats").json()["supplierId"] is None
        assert client.get("/dropship/stats", params={"supplierId": "missing"}).status_code == 404
