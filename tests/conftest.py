"""공통 픽스처"""

from unittest.mock import Mock

import pytest

from fakes import (
    OTHER_RETAILER_SUBJECT,
    RETAILER_SUBJECT,
    WHOLESALER_SUBJECT,
    FakeSupabase,
)

from farmbiz.ai.gemini_client import GeminiClient
from farmbiz.domain.models import CartItem, Profile, Retailer, UserRole


@pytest.fixture
def db():
    """기본 프로필/상품이 들어있는 인메모리 Supabase"""
    fake = FakeSupabase()
    fake.seed(
        "profiles",
        {"id": "p-r1", "clerk_user_id": RETAILER_SUBJECT, "email": "r1@example.com", "role": "retailer"},
        {"id": "p-r2", "clerk_user_id": OTHER_RETAILER_SUBJECT, "email": "r2@example.com", "role": "retailer"},
        {"id": "p-w1", "clerk_user_id": WHOLESALER_SUBJECT, "email": "w1@example.com", "role": "wholesaler"},
        {"id": "p-new", "clerk_user_id": "user_no_role", "email": "new@example.com", "role": None},
    )
    fake.seed(
        "retailers",
        {"id": "r1", "profile_id": "p-r1", "business_name": "싱싱마트"},
        {"id": "r2", "profile_id": "p-r2", "business_name": "동네상회"},
    )
    fake.seed(
        "wholesalers",
        {"id": "w1", "profile_id": "p-w1", "anonymous_code": "VENDOR-001",
         "address": "서울특별시 송파구 양재대로 932"},
    )
    fake.seed(
        "products",
        {"id": "prod-apple", "name": "사과 5kg", "standardized_name": "사과 5kg (특급)",
         "category": "과일", "price": 10000, "moq": 1, "stock_quantity": 20, "shipping_fee": 500,
         "wholesaler_id": "w1", "is_active": True, "created_at": "2025-01-01T00:00:00+00:00"},
        {"id": "prod-onion", "name": "양파 1kg", "category": "채소", "price": 3000, "moq": 5,
         "stock_quantity": 100, "shipping_fee": 0, "wholesaler_id": "w1", "is_active": True,
         "created_at": "2025-01-02T00:00:00+00:00"},
        {"id": "prod-hidden", "name": "비공개 상품", "category": "기타", "price": 1000,
         "stock_quantity": 5, "wholesaler_id": "w1", "is_active": False,
         "created_at": "2025-01-03T00:00:00+00:00"},
    )
    return fake


@pytest.fixture
def retailer():
    return Profile(
        id="p-r1",
        clerk_user_id=RETAILER_SUBJECT,
        role=UserRole.RETAILER,
        retailer=Retailer(id="r1", profile_id="p-r1"),
    )


@pytest.fixture
def other_retailer():
    return Profile(
        id="p-r2",
        clerk_user_id=OTHER_RETAILER_SUBJECT,
        role=UserRole.RETAILER,
        retailer=Retailer(id="r2", profile_id="p-r2"),
    )


@pytest.fixture
def wholesaler():
    return Profile(
        id="p-w1",
        clerk_user_id=WHOLESALER_SUBJECT,
        role=UserRole.WHOLESALER,
        wholesaler_id="w1",
    )


@pytest.fixture
def gemini():
    """Gemini 클라이언트 목"""
    client = Mock(spec=GeminiClient)
    client.is_configured = True
    client.model_name = "gemini-2.5-flash"
    client.generate.return_value = "테스트 응답입니다."
    return client


@pytest.fixture
def apple_item():
    return CartItem(
        product_id="prod-apple",
        quantity=2,
        unit_price=10000,
        moq=1,
        stock_quantity=20,
        shipping_fee=500,
        wholesaler_id="w1",
        product_name="사과 5kg",
    )
