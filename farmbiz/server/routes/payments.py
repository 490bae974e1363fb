"""
결제 API

POST /api/payments/prepare    장바구니 검증 후 orderId/금액 발급
POST /api/payments/confirm    결제 승인 { paymentKey, orderId, amount, checkout? }
"""

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ...domain.models import CartItem, CheckoutDraft, DeliveryMethod, Profile
from ..container import ServiceContainer
from ..deps import current_retailer, envelope, get_services

router = APIRouter(prefix="/api/payments", tags=["payments"])


class CheckoutItemBody(BaseModel):
    """체크아웃 상품 라인"""
    product_id: str = Field(..., alias="productId")
    quantity: int
    unit_price: int = Field(..., alias="unitPrice")
    moq: int = 1
    stock_quantity: int = Field(default=0, alias="stockQuantity")
    shipping_fee: int = Field(default=0, alias="shippingFee")
    wholesaler_id: str = Field(default="", alias="wholesalerId")
    variant_id: Optional[str] = Field(default=None, alias="variantId")
    product_name: str = Field(default="", alias="productName")
    delivery_method: DeliveryMethod = Field(default=DeliveryMethod.COURIER, alias="deliveryMethod")

    model_config = {"populate_by_name": True}


class CheckoutBody(BaseModel):
    """결제 전 주문 초안"""
    items: List[CheckoutItemBody] = Field(default_factory=list)
    delivery_address: str = Field(default="", alias="deliveryAddress")
    request_note: Optional[str] = Field(default=None, alias="requestNote")
    delivery_option: str = Field(default="normal", alias="deliveryOption")
    delivery_time: Optional[str] = Field(default=None, alias="deliveryTime")

    model_config = {"populate_by_name": True}

    def to_draft(self, order_id: str, retailer_id: str) -> CheckoutDraft:
        return CheckoutDraft(
            order_id=order_id,
            retailer_id=retailer_id,
            items=[CartItem.from_dict(i.model_dump()) for i in self.items],
            delivery_address=self.delivery_address,
            request_note=self.request_note,
            delivery_option=self.delivery_option,
            delivery_time=self.delivery_time,
        )


class ConfirmPaymentBody(BaseModel):
    """결제 승인 요청 (필수값 검증은 워크플로우에서)"""
    payment_key: Optional[str] = Field(default=None, alias="paymentKey")
    order_id: Optional[str] = Field(default=None, alias="orderId")
    amount: Optional[int] = None
    checkout: Optional[CheckoutBody] = None

    model_config = {"populate_by_name": True}


@router.post("/confirm")
def confirm_payment(
    body: ConfirmPaymentBody,
    profile: Profile = Depends(current_retailer),
    services: ServiceContainer = Depends(get_services),
):
    """결제 승인 → 주문/정산/결제 기록"""
    checkout = None
    if body.checkout is not None and body.order_id:
        checkout = body.checkout.to_draft(body.order_id, profile.retailer_id)

    result = services.payments.confirm_payment(
        body.payment_key,
        body.order_id,
        body.amount,
        profile.retailer_id,
        checkout,
    )
    return envelope(result, include_details=services.settings.debug_mode)


class PreparePaymentBody(BaseModel):
    items: List[CheckoutItemBody] = Field(default_factory=list)


@router.post("/prepare")
def prepare_payment(
    body: PreparePaymentBody,
    profile: Profile = Depends(current_retailer),
    services: ServiceContainer = Depends(get_services),
):
    """결제창 호출 전 orderId/금액 발급"""
    items = [CartItem.from_dict(i.model_dump()) for i in body.items]
    result = services.payments.prepare_payment(items)
    return envelope(result, include_details=services.settings.debug_mode)
