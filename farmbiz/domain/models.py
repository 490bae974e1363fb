"""
models.py - 도메인 모델

순수 파이썬 데이터 클래스. 외부 의존성 없음.
Supabase 행(dict) ↔ 모델 변환은 from_row / to_dict 로 처리.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


def parse_datetime(value: Any) -> Optional[datetime]:
    """PostgREST 타임스탬프 문자열 → datetime"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def format_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class UserRole(Enum):
    """사용자 역할"""
    RETAILER = "retailer"       # 소매점
    WHOLESALER = "wholesaler"   # 도매점
    ADMIN = "admin"             # 관리자


class OrderStatus(Enum):
    """주문 상태"""
    PENDING = "pending"         # 결제 완료, 도매 확인 대기
    CONFIRMED = "confirmed"     # 도매 확인
    PREPARING = "preparing"     # 상품 준비중
    SHIPPED = "shipped"         # 배송중
    DELIVERED = "delivered"     # 배송 완료
    COMPLETED = "completed"     # 구매 확정
    CANCELLED = "cancelled"     # 취소


# 주문 상태 전이표 (취소를 제외하면 한 방향)
ORDER_STATUS_FLOW: Dict[OrderStatus, List[OrderStatus]] = {
    OrderStatus.PENDING: [OrderStatus.CONFIRMED, OrderStatus.CANCELLED],
    OrderStatus.CONFIRMED: [OrderStatus.PREPARING, OrderStatus.SHIPPED, OrderStatus.CANCELLED],
    OrderStatus.PREPARING: [OrderStatus.SHIPPED, OrderStatus.CANCELLED],
    OrderStatus.SHIPPED: [OrderStatus.DELIVERED, OrderStatus.COMPLETED],
    OrderStatus.DELIVERED: [OrderStatus.COMPLETED],
    OrderStatus.COMPLETED: [],
    OrderStatus.CANCELLED: [],
}

# 배송 시작 전 상태만 취소 가능
CANCELLABLE_STATUSES = frozenset({
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
})


def can_change_order_status(current: OrderStatus, next_status: OrderStatus) -> bool:
    """주문 상태 변경 가능 여부"""
    return next_status in ORDER_STATUS_FLOW.get(current, [])


class InquiryStatus(Enum):
    """문의 상태"""
    OPEN = "open"               # 답변 대기
    ANSWERED = "answered"       # 답변 완료
    CLOSED = "closed"           # 종료


class InquiryType(Enum):
    """문의 유형"""
    RETAILER_TO_ADMIN = "retailer_to_admin"
    RETAILER_TO_WHOLESALER = "retailer_to_wholesaler"
    WHOLESALER_TO_ADMIN = "wholesaler_to_admin"


class InquiryCategory(Enum):
    """AI 답변용 문의 분류"""
    ACCOUNT = "account"         # 계정/회원
    ORDER = "order"             # 주문/결제
    DELIVERY = "delivery"       # 배송
    SYSTEM = "system"           # 시스템/오류
    OTHER = "other"             # 기타


class DeliveryMethod(Enum):
    """배송 방법"""
    COURIER = "courier"         # 택배
    DIRECT = "direct"           # 직접 배송
    QUICK = "quick"             # 퀵
    FREIGHT = "freight"         # 화물
    DAWN = "dawn"               # 새벽 배송
    PICKUP = "pickup"           # 직접 수령


class SettlementStatus(Enum):
    """정산 상태"""
    PENDING = "pending"
    COMPLETED = "completed"


class PaymentStatus(Enum):
    """결제 상태"""
    PAID = "paid"
    CANCELLED = "cancelled"


@dataclass
class Retailer:
    """소매점"""
    id: str
    profile_id: str
    business_name: str = ""
    address: str = ""
    phone: str = ""

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Retailer":
        return cls(
            id=row["id"],
            profile_id=row.get("profile_id") or row.get("user_id") or "",
            business_name=row.get("business_name") or "",
            address=row.get("address") or "",
            phone=row.get("phone") or "",
        )


@dataclass
class Profile:
    """사용자 프로필 (외부 인증 subject 와 1:1)"""
    id: str
    clerk_user_id: str
    email: str = ""
    role: Optional[UserRole] = None         # 역할 선택 전까지 None
    display_name: str = ""
    retailer: Optional[Retailer] = None
    wholesaler_id: Optional[str] = None

    @property
    def retailer_id(self) -> Optional[str]:
        return self.retailer.id if self.retailer else None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Profile":
        role = row.get("role")
        return cls(
            id=row["id"],
            clerk_user_id=row.get("clerk_user_id", ""),
            email=row.get("email") or "",
            role=UserRole(role) if role else None,
            display_name=row.get("display_name") or row.get("name") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role.value if self.role else None,
            "email": self.email,
            "display_name": self.display_name,
            "retailer_id": self.retailer_id,
            "wholesaler_id": self.wholesaler_id,
        }


@dataclass
class CartItem:
    """장바구니 아이템 (체크아웃 전까지 저장되지 않음)"""
    product_id: str
    quantity: int
    unit_price: int
    moq: int = 1                        # 최소 주문 수량
    stock_quantity: int = 0             # 재고 수량
    shipping_fee: int = 0               # 개당 배송비
    wholesaler_id: str = ""
    variant_id: Optional[str] = None
    product_name: str = ""
    delivery_method: DeliveryMethod = DeliveryMethod.COURIER

    @property
    def shipping_fee_total(self) -> int:
        return self.shipping_fee * self.quantity

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CartItem":
        return cls(
            product_id=data["product_id"],
            quantity=int(data.get("quantity", 0)),
            unit_price=int(data.get("unit_price", 0)),
            moq=int(data.get("moq", 1)),
            stock_quantity=int(data.get("stock_quantity", 0)),
            shipping_fee=int(data.get("shipping_fee", 0)),
            wholesaler_id=data.get("wholesaler_id", ""),
            variant_id=data.get("variant_id"),
            product_name=data.get("product_name", ""),
            delivery_method=DeliveryMethod(data.get("delivery_method", "courier")),
        )


@dataclass
class Order:
    """주문 (1주문 = 1상품 라인)"""
    id: str
    order_number: str
    retailer_id: str
    product_id: str
    quantity: int
    unit_price: int
    total_amount: int
    status: OrderStatus = OrderStatus.PENDING
    wholesaler_id: Optional[str] = None
    variant_id: Optional[str] = None
    shipping_fee: int = 0                   # 총 배송비
    delivery_address: str = ""
    request_note: Optional[str] = None
    payment_key: Optional[str] = None
    paid_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_cancellable(self) -> bool:
        return self.status in CANCELLABLE_STATUSES

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Order":
        return cls(
            id=row["id"],
            order_number=row.get("order_number", ""),
            retailer_id=row.get("retailer_id", ""),
            product_id=row.get("product_id", ""),
            quantity=int(row.get("quantity") or 0),
            unit_price=int(row.get("unit_price") or 0),
            total_amount=int(row.get("total_amount") or 0),
            status=OrderStatus(row.get("status", "pending")),
            wholesaler_id=row.get("wholesaler_id"),
            variant_id=row.get("variant_id"),
            shipping_fee=int(row.get("shipping_fee") or 0),
            delivery_address=row.get("delivery_address") or "",
            request_note=row.get("request_note"),
            payment_key=row.get("payment_key"),
            paid_at=parse_datetime(row.get("paid_at")),
            created_at=parse_datetime(row.get("created_at")),
            updated_at=parse_datetime(row.get("updated_at")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "order_number": self.order_number,
            "retailer_id": self.retailer_id,
            "wholesaler_id": self.wholesaler_id,
            "product_id": self.product_id,
            "variant_id": self.variant_id,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "shipping_fee": self.shipping_fee,
            "total_amount": self.total_amount,
            "delivery_address": self.delivery_address,
            "request_note": self.request_note,
            "status": self.status.value,
            "paid_at": format_datetime(self.paid_at),
            "created_at": format_datetime(self.created_at),
            "updated_at": format_datetime(self.updated_at),
        }


@dataclass
class Settlement:
    """정산 (결제 승인 시 주문과 함께 생성)"""
    id: str
    order_id: str
    wholesaler_id: Optional[str]
    order_amount: int
    platform_fee_rate: float
    platform_fee: int
    wholesaler_amount: int
    scheduled_payout_at: datetime
    status: SettlementStatus = SettlementStatus.PENDING

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Settlement":
        return cls(
            id=row["id"],
            order_id=row["order_id"],
            wholesaler_id=row.get("wholesaler_id"),
            order_amount=int(row.get("order_amount") or 0),
            platform_fee_rate=float(row.get("platform_fee_rate") or 0),
            platform_fee=int(row.get("platform_fee") or 0),
            wholesaler_amount=int(row.get("wholesaler_amount") or 0),
            scheduled_payout_at=parse_datetime(row.get("scheduled_payout_at")),
            status=SettlementStatus(row.get("status", "pending")),
        )


@dataclass
class Payment:
    """외부 결제 거래 기록"""
    id: str
    order_id: str
    payment_key: str
    amount: int
    status: PaymentStatus = PaymentStatus.PAID
    method: str = "카드"
    settlement_id: Optional[str] = None
    paid_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Payment":
        return cls(
            id=row["id"],
            order_id=row["order_id"],
            payment_key=row.get("payment_key") or "",
            amount=int(row.get("amount") or 0),
            status=PaymentStatus(row.get("status", "paid")),
            method=row.get("method") or "카드",
            settlement_id=row.get("settlement_id"),
            paid_at=parse_datetime(row.get("paid_at")),
        )


@dataclass
class Inquiry:
    """문의"""
    id: str
    user_id: str                            # 작성자 profile id
    title: str
    content: str
    status: InquiryStatus = InquiryStatus.OPEN
    inquiry_type: InquiryType = InquiryType.RETAILER_TO_ADMIN
    wholesaler_id: Optional[str] = None
    order_id: Optional[str] = None
    product_id: Optional[str] = None
    attachment_urls: List[str] = field(default_factory=list)
    admin_reply: Optional[str] = None
    ai_feedback: Optional[bool] = None
    created_at: Optional[datetime] = None
    replied_at: Optional[datetime] = None

    @property
    def is_editable(self) -> bool:
        # 답변 완료 후에만 수정/삭제 가능
        return self.status == InquiryStatus.ANSWERED

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Inquiry":
        return cls(
            id=row["id"],
            user_id=row.get("user_id", ""),
            title=row.get("title", ""),
            content=row.get("content", ""),
            status=InquiryStatus(row.get("status", "open")),
            inquiry_type=InquiryType(row.get("inquiry_type") or "retailer_to_admin"),
            wholesaler_id=row.get("wholesaler_id"),
            order_id=row.get("order_id"),
            product_id=row.get("product_id"),
            attachment_urls=list(row.get("attachment_urls") or []),
            admin_reply=row.get("admin_reply"),
            ai_feedback=row.get("ai_feedback"),
            created_at=parse_datetime(row.get("created_at")),
            replied_at=parse_datetime(row.get("replied_at")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "content": self.content,
            "status": self.status.value,
            "inquiry_type": self.inquiry_type.value,
            "wholesaler_id": self.wholesaler_id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "attachment_urls": self.attachment_urls,
            "admin_reply": self.admin_reply,
            "ai_feedback": self.ai_feedback,
            "created_at": format_datetime(self.created_at),
            "replied_at": format_datetime(self.replied_at),
        }


@dataclass
class Announcement:
    """공지사항 (읽기 전용)"""
    id: str
    title: str
    content: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Announcement":
        return cls(
            id=row["id"],
            title=row.get("title", ""),
            content=row.get("content", ""),
            created_at=parse_datetime(row.get("created_at")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "created_at": format_datetime(self.created_at),
        }


@dataclass
class Product:
    """상품 (소매점 노출용, 도매점 정보는 익명화)"""
    id: str
    name: str
    category: str
    price: int
    moq: int = 1
    stock_quantity: int = 0
    shipping_fee: int = 0
    delivery_method: DeliveryMethod = DeliveryMethod.COURIER
    wholesaler_id: Optional[str] = None
    standardized_name: Optional[str] = None
    specification: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    is_active: bool = True
    anonymous_seller_id: Optional[str] = None
    seller_region: Optional[str] = None
    sales_count: int = 0
    created_at: Optional[datetime] = None

    @property
    def display_name(self) -> str:
        return self.standardized_name or self.name

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Product":
        return cls(
            id=row["id"],
            name=row.get("name", ""),
            category=row.get("category") or "기타",
            price=int(row.get("price") or 0),
            moq=int(row.get("moq") or 1),
            stock_quantity=int(row.get("stock_quantity") or 0),
            shipping_fee=int(row.get("shipping_fee") or 0),
            delivery_method=DeliveryMethod(row.get("delivery_method") or "courier"),
            wholesaler_id=row.get("wholesaler_id"),
            standardized_name=row.get("standardized_name"),
            specification=row.get("specification"),
            description=row.get("description"),
            image_url=row.get("image_url"),
            is_active=bool(row.get("is_active", True)),
            created_at=parse_datetime(row.get("created_at")),
        )

    def to_dict(self) -> Dict[str, Any]:
        # 도매점 ID는 소매점에 노출하지 않음
        return {
            "id": self.id,
            "name": self.display_name,
            "original_name": self.name,
            "category": self.category,
            "price": self.price,
            "moq": self.moq,
            "stock_quantity": self.stock_quantity,
            "shipping_fee": self.shipping_fee,
            "delivery_method": self.delivery_method.value,
            "specification": self.specification,
            "description": self.description,
            "image_url": self.image_url,
            "anonymous_seller_id": self.anonymous_seller_id,
            "seller_region": self.seller_region,
            "sales_count": self.sales_count,
            "created_at": format_datetime(self.created_at),
        }


@dataclass
class CheckoutDraft:
    """결제 요청 시점의 주문 초안 (결제 승인 후 주문으로 저장)"""
    order_id: str                           # 결제 orderId (주문 번호 기준값)
    retailer_id: str
    items: List[CartItem] = field(default_factory=list)
    delivery_address: str = ""
    request_note: Optional[str] = None
    delivery_option: str = "normal"         # dawn | normal
    delivery_time: Optional[str] = None

    @property
    def total_amount(self) -> int:
        return sum(i.unit_price * i.quantity + i.shipping_fee_total for i in self.items)
