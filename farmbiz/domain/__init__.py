"""도메인 모듈 - 순수 비즈니스 로직 (외부 의존성 없음)"""
from .models import (
    UserRole,
    OrderStatus,
    InquiryStatus,
    InquiryType,
    InquiryCategory,
    DeliveryMethod,
    SettlementStatus,
    PaymentStatus,
    Profile,
    Retailer,
    CartItem,
    Order,
    Settlement,
    Payment,
    Inquiry,
    Announcement,
    Product,
    CheckoutDraft,
    CANCELLABLE_STATUSES,
    can_change_order_status,
)
from .logic import (
    OrderTotals,
    SettlementCalculation,
    calculate_totals,
    calculate_settlement,
    is_business_day,
    add_business_days,
    generate_order_number,
    is_order_number,
)
from .cart import (
    CartErrorCode,
    CartValidationError,
    CartValidationResult,
    CartValidator,
    CartSummary,
    validate_cart_items,
    summarize_cart,
)

__all__ = [
    "UserRole",
    "OrderStatus",
    "InquiryStatus",
    "InquiryType",
    "InquiryCategory",
    "DeliveryMethod",
    "SettlementStatus",
    "PaymentStatus",
    "Profile",
    "Retailer",
    "CartItem",
    "Order",
    "Settlement",
    "Payment",
    "Inquiry",
    "Announcement",
    "Product",
    "CheckoutDraft",
    "CANCELLABLE_STATUSES",
    "can_change_order_status",
    "OrderTotals",
    "SettlementCalculation",
    "calculate_totals",
    "calculate_settlement",
    "is_business_day",
    "add_business_days",
    "generate_order_number",
    "is_order_number",
    "CartErrorCode",
    "CartValidationError",
    "CartValidationResult",
    "CartValidator",
    "CartSummary",
    "validate_cart_items",
    "summarize_cart",
]
