"""
cart.py - 장바구니 검증

결제 전 장바구니 아이템을 최소 주문 수량, 재고, 도매상 마감 시간 기준으로 검증한다.
모든 에러를 모아서 반환하며(중단하지 않음) 부수효과가 없다.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional

from .logic import calculate_totals
from .models import CartItem


class CartErrorCode(Enum):
    """장바구니 검증 에러 코드"""
    NO_ITEMS_SELECTED = "NO_ITEMS_SELECTED"   # 선택된 상품 없음
    MOQ_NOT_MET = "MOQ_NOT_MET"               # 최소 주문 수량 미달
    OUT_OF_STOCK = "OUT_OF_STOCK"             # 재고 부족
    DEADLINE_PASSED = "DEADLINE_PASSED"       # 도매상 주문 마감
    UNKNOWN = "UNKNOWN"


@dataclass
class CartValidationError:
    """장바구니 검증 에러"""
    code: CartErrorCode
    message: str
    product_id: str = ""
    product_name: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {
            "code": self.code.value,
            "message": self.message,
            "product_id": self.product_id,
            "product_name": self.product_name,
        }


@dataclass
class CartValidationResult:
    """장바구니 검증 결과"""
    errors: List[CartValidationError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def add_error(self, code: CartErrorCode, message: str, item: Optional[CartItem] = None):
        """에러 추가"""
        self.errors.append(CartValidationError(
            code=code,
            message=message,
            product_id=item.product_id if item else "",
            product_name=item.product_name if item else "",
        ))

    def codes_for(self, product_id: str) -> List[CartErrorCode]:
        return [e.code for e in self.errors if e.product_id == product_id]

    def to_dict(self) -> Dict:
        return {
            "isValid": self.is_valid,
            "errors": [e.to_dict() for e in self.errors],
        }


# 도매상 ID → 마감 여부
DeadlineChecker = Callable[[str], bool]


def no_deadline(wholesaler_id: str) -> bool:
    """마감 시간 미적용 (기본값)"""
    return False


class CartValidator:
    """장바구니 검증기"""

    def __init__(self, deadline_checker: Optional[DeadlineChecker] = None):
        """
        Args:
            deadline_checker: 도매상별 마감 여부 판정 함수. None이면 마감 검사 안 함.
        """
        self.deadline_checker = deadline_checker or no_deadline

    def validate(self, items: Iterable[CartItem]) -> CartValidationResult:
        """장바구니 아이템 검증"""
        items = list(items)
        result = CartValidationResult()

        # 선택된 항목이 없으면 단일 에러
        if not items:
            result.add_error(CartErrorCode.NO_ITEMS_SELECTED, "상품을 선택해주세요.")
            return result

        for item in items:
            # 1. 최소 주문 수량
            if item.quantity < item.moq:
                result.add_error(
                    CartErrorCode.MOQ_NOT_MET,
                    f"최소 주문 수량은 {item.moq}개입니다. (현재: {item.quantity}개)",
                    item,
                )

            # 2. 재고
            if item.quantity > item.stock_quantity:
                result.add_error(
                    CartErrorCode.OUT_OF_STOCK,
                    f"재고가 부족합니다. (재고: {item.stock_quantity}개, 주문: {item.quantity}개)",
                    item,
                )

            # 3. 도매상 마감 시간
            if self.deadline_checker(item.wholesaler_id):
                result.add_error(
                    CartErrorCode.DEADLINE_PASSED,
                    "도매상 주문 마감 시간이 지났습니다.",
                    item,
                )

        return result


def validate_cart_items(items: Iterable[CartItem]) -> CartValidationResult:
    """장바구니 검증 (마감 시간 미적용)"""
    return CartValidator().validate(items)


@dataclass
class CartSummary:
    """장바구니 요약"""
    total_product_price: int
    total_shipping_fee: int
    total_price: int
    item_count: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "totalProductPrice": self.total_product_price,
            "totalShippingFee": self.total_shipping_fee,
            "totalPrice": self.total_price,
            "itemCount": self.item_count,
        }


def summarize_cart(items: Iterable[CartItem]) -> CartSummary:
    """장바구니 금액 요약"""
    product_total = 0
    shipping_total = 0
    count = 0
    for item in items:
        totals = calculate_totals(item.unit_price, item.shipping_fee, item.quantity)
        product_total += totals.product_total
        shipping_total += totals.shipping_fee
        count += 1

    return CartSummary(
        total_product_price=product_total,
        total_shipping_fee=shipping_total,
        total_price=product_total + shipping_total,
        item_count=count,
    )
