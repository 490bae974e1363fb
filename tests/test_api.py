"""FastAPI 앱 테스트"""

import base64
from unittest.mock import Mock, patch

import pytest
from fastapi.testclient import TestClient

from fakes import OTHER_RETAILER_SUBJECT, RETAILER_SUBJECT, WHOLESALER_SUBJECT
from farmbiz.config.settings import AppSettings
from farmbiz.core.exceptions import ErrorCodes
from farmbiz.payments.gateway import GatewayConfirmation, TossPaymentsGateway
from farmbiz.payments.workflow import MISSING_PARAMS_MESSAGE
from farmbiz.server import ServiceContainer, create_app

ORDER_ID = "ORD-20250103-100000-API"

RETAILER = {"X-Clerk-User-Id": RETAILER_SUBJECT}
OTHER_RETAILER = {"X-Clerk-User-Id": OTHER_RETAILER_SUBJECT}
WHOLESALER = {"X-Clerk-User-Id": WHOLESALER_SUBJECT}


@pytest.fixture(autouse=True)
def setup_logging():
    """앱 팩토리의 로깅 설정은 호출 여부만 확인"""
    with patch("farmbiz.server.app.setup_logging_from_settings") as mock:
        yield mock


@pytest.fixture
def settings():
    return AppSettings(
        supabase_url="https://fake.supabase.co",
        supabase_key="service-role-key",
        gemini_api_key="gemini-key",
        toss_secret_key="test_sk_123",
    )


@pytest.fixture
def gateway():
    mock = Mock(spec=TossPaymentsGateway)
    mock.confirm.return_value = GatewayConfirmation(
        paymentKey="pk_api",
        orderId=ORDER_ID,
        status="DONE",
        totalAmount=21000,
        approvedAt="2025-01-03T10:00:00+09:00",
    )
    return mock


@pytest.fixture
def client(settings, db, gemini, gateway):
    services = ServiceContainer.build(settings, client=db, gemini=gemini)
    services.payments.gateway = gateway
    return TestClient(create_app(settings=settings, services=services))


def seed_order(db, status="pending"):
    db.seed("orders", {
        "id": "o1",
        "order_number": "ORD-20250103-100000-AAA",
        "retailer_id": "r1",
        "wholesaler_id": "w1",
        "product_id": "prod-apple",
        "quantity": 2,
        "unit_price": 10000,
        "shipping_fee": 1000,
        "total_amount": 21000,
        "status": status,
        "created_at": "2025-01-03T10:00:00+00:00",
    })


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert "X-Request-ID" in response.headers

    def test_logging_configured(self, client, settings, setup_logging):
        setup_logging.assert_called_once_with(settings)


class TestAuth:
    """인증/역할 테스트"""

    def test_unauthenticated(self, client):
        response = client.get("/api/products")

        assert response.status_code == 401
        assert response.json() == {
            "success": False,
            "error": "로그인이 필요합니다.",
            "errorCode": ErrorCodes.AUTH,
        }

    def test_wrong_role(self, client):
        response = client.post("/api/retailer/chatbot", headers=WHOLESALER,
                               json={"messages": [{"role": "user", "content": "안녕"}]})
        assert response.status_code == 403

    def test_announcements_public(self, client, db):
        db.seed("announcements", {"title": "공지", "content": "설 연휴 배송 안내",
                                  "created_at": "2025-01-01T00:00:00+00:00"})
        response = client.get("/api/announcements")

        assert response.status_code == 200
        assert response.json()["announcements"][0]["title"] == "공지"


class TestCatalogRoutes:
    def test_list_products(self, client):
        response = client.get("/api/products", headers=RETAILER, params={"sortBy": "price", "sortOrder": "asc"})

        body = response.json()
        assert body["success"] is True
        assert [p["id"] for p in body["products"]] == ["prod-onion", "prod-apple"]

    def test_product_not_found(self, client):
        response = client.get("/api/products/missing", headers=RETAILER)

        assert response.status_code == 404
        assert response.json()["error"] == "상품을 찾을 수 없습니다."

    def test_invalid_page_size(self, client):
        response = client.get("/api/products", headers=RETAILER, params={"pageSize": 500})
        assert response.status_code == 400


class TestPaymentRoutes:
    """결제 API 테스트"""

    def checkout(self):
        return {
            "items": [{
                "productId": "prod-apple",
                "quantity": 2,
                "unitPrice": 10000,
                "stockQuantity": 20,
                "shippingFee": 500,
                "wholesalerId": "w1",
                "productName": "사과 5kg",
            }],
            "deliveryAddress": "서울특별시 마포구 월드컵로 1",
        }

    def test_prepare(self, client):
        response = client.post("/api/payments/prepare", headers=RETAILER, json=self.checkout())

        body = response.json()
        assert response.status_code == 200
        assert body["amount"] == 21000
        assert body["orderName"] == "사과 5kg"

    def test_confirm(self, client, db, gateway):
        response = client.post("/api/payments/confirm", headers=RETAILER, json={
            "paymentKey": "pk_api",
            "orderId": ORDER_ID,
            "amount": 21000,
            "checkout": self.checkout(),
        })

        body = response.json()
        assert response.status_code == 200
        assert body["success"] is True
        assert body["orderNumbers"] == [ORDER_ID]
        assert db.rows("orders")[0]["retailer_id"] == "r1"
        gateway.confirm.assert_called_once_with("pk_api", ORDER_ID, 21000)

    def test_confirm_missing_params(self, client, gateway):
        response = client.post("/api/payments/confirm", headers=RETAILER, json={"orderId": ORDER_ID})

        assert response.status_code == 400
        assert response.json()["error"] == MISSING_PARAMS_MESSAGE
        gateway.confirm.assert_not_called()

    def test_confirm_other_retailer_order(self, client, db, gateway):
        """다른 소매점 주문 결제 시도는 403, 결제 키/정산 기록 없음"""
        seed_order(db)
        response = client.post("/api/payments/confirm", headers=OTHER_RETAILER, json={
            "paymentKey": "pk_api",
            "orderId": "ORD-20250103-100000-AAA",
            "amount": 21000,
        })

        assert response.status_code == 403
        assert response.json()["success"] is False
        gateway.confirm.assert_not_called()
        assert db.rows("orders")[0].get("payment_key") is None
        assert db.rows("settlements") == []

    def test_confirm_cancelled_order(self, client, db, gateway):
        seed_order(db, status="cancelled")
        response = client.post("/api/payments/confirm", headers=RETAILER, json={
            "paymentKey": "pk_api",
            "orderId": "ORD-20250103-100000-AAA",
            "amount": 21000,
        })

        assert response.status_code == 409
        assert response.json()["error"] == "취소된 주문은 결제할 수 없습니다."
        gateway.confirm.assert_not_called()
        assert db.rows("settlements") == []


class TestOrderRoutes:
    """주문 API 테스트"""

    def test_list_orders(self, client, db):
        seed_order(db)
        response = client.get("/api/orders", headers=RETAILER)

        body = response.json()
        assert body["total"] == 1
        assert body["orders"][0]["id"] == "o1"

    def test_cancel_twice(self, client, db):
        seed_order(db)

        first = client.post("/api/orders/o1/cancel", headers=RETAILER)
        second = client.post("/api/orders/o1/cancel", headers=RETAILER)

        assert first.status_code == 200
        assert first.json()["order"]["status"] == "cancelled"
        assert second.status_code == 409
        assert second.json()["error"] == "이미 취소된 주문입니다."

    def test_invalid_status_filter(self, client):
        response = client.get("/api/orders", headers=RETAILER, params={"status": "lost"})
        assert response.status_code == 400

    def test_wholesaler_status_change(self, client, db):
        seed_order(db)
        response = client.patch("/api/wholesaler/orders/o1/status", headers=WHOLESALER,
                                json={"status": "confirmed"})

        assert response.status_code == 200
        assert response.json()["order"]["status"] == "confirmed"


class TestInquiryRoutes:
    """문의 API 테스트"""

    def test_create_with_attachment(self, client, db):
        response = client.post("/api/inquiries", headers=RETAILER, json={
            "title": "배송 문의",
            "content": "주문한 상품이 아직 도착하지 않았습니다.",
            "category": "delivery",
            "attachments": [{
                "filename": "box.png",
                "contentType": "image/png",
                "data": base64.b64encode(b"\x89PNG fake").decode("ascii"),
            }],
        })

        body = response.json()
        assert response.status_code == 200
        assert len(body["attachmentUrls"]) == 1
        assert body["aiReply"] == "테스트 응답입니다."
        assert db.storage.uploads[0]["size"] == len(b"\x89PNG fake")

    def test_update_open_inquiry(self, client, db):
        db.seed("inquiries", {"id": "q1", "user_id": "p-r1", "title": "t", "content": "c", "status": "open"})

        response = client.patch("/api/inquiries/q1", headers=RETAILER,
                                json={"title": "새 제목", "content": "새로운 내용으로 수정합니다."})

        assert response.status_code == 409

    def test_invalid_feedback_body(self, client):
        response = client.post("/api/inquiries/q1/feedback", headers=RETAILER, json={"helpful": "maybe"})

        assert response.status_code == 400
        assert response.json()["error"] == "요청 형식이 올바르지 않습니다."


class TestAIRoutes:
    def test_chatbot(self, client):
        response = client.post("/api/retailer/chatbot", headers=RETAILER,
                               json={"messages": [{"role": "user", "content": "주문 취소 방법"}]})

        assert response.json() == {"success": True, "reply": "테스트 응답입니다."}

    def test_chatbot_empty(self, client, gemini):
        response = client.post("/api/retailer/chatbot", headers=RETAILER, json={"messages": []})

        assert response.status_code == 400
        gemini.generate.assert_not_called()

    def test_standardize(self, client, gemini):
        gemini.generate.return_value = '{"standardizedName": "양파 1kg", "suggestedCategory": "채소"}'

        response = client.post("/api/ai/standardize", headers=WHOLESALER, json={"productName": "양파1kg"})

        data = response.json()["data"]
        assert data["standardizedName"] == "양파 1kg"
        assert data["suggestedCategory"] == "채소"
