"""
logic.py - 핵심 비즈니스 로직

외부 의존성 없는 순수 파이썬 코드
- 금액 계산 (상품 금액 + 개당 배송비)
- 영업일 계산 (주말 제외)
- 정산 금액/정산 예정일 계산
- 주문 번호 생성
"""

import math
import random
import re
import string
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional, Union

from ..core.exceptions import ValidationError

DateLike = Union[date, datetime]

# 결제 orderId (분할 주문의 -N 라인 번호 제외)
ORDER_NUMBER_PATTERN = re.compile(r"ORD-\d{8}-\d{6}-[A-Z0-9]{3}")


@dataclass
class OrderTotals:
    """주문 금액 계산 결과"""
    product_total: int          # 단가 × 수량
    shipping_fee: int           # 개당 배송비 × 수량
    total: int                  # 최종 결제 금액


def calculate_totals(unit_price: int, shipping_unit_fee: int, quantity: int) -> OrderTotals:
    """상품 금액 + 배송비 계산

    Args:
        unit_price: 단가
        shipping_unit_fee: 개당 배송비
        quantity: 수량

    Returns:
        OrderTotals
    """
    if quantity <= 0:
        raise ValidationError("수량은 1개 이상이어야 합니다.", field="quantity", value=quantity)

    product_total = unit_price * quantity
    shipping_fee = shipping_unit_fee * quantity
    return OrderTotals(
        product_total=product_total,
        shipping_fee=shipping_fee,
        total=product_total + shipping_fee,
    )


def is_business_day(day: DateLike) -> bool:
    """영업일(월~금) 여부"""
    return day.weekday() < 5


def add_business_days(start: Optional[DateLike] = None, business_days: int = 7) -> DateLike:
    """영업일 기준으로 business_days 만큼 더한 날짜

    하루씩 전진하며 토/일요일은 세지 않는다. 시각(time) 정보는 유지된다.
    """
    if business_days < 0:
        raise ValidationError("영업일 수는 0 이상이어야 합니다.", field="business_days", value=business_days)

    result = start or datetime.now()
    added = 0
    while added < business_days:
        result = result + timedelta(days=1)
        if is_business_day(result):
            added += 1
    return result


@dataclass
class SettlementCalculation:
    """정산 계산 결과"""
    order_amount: int
    platform_fee_rate: float
    platform_fee: int           # 플랫폼 수수료
    wholesaler_amount: int      # 도매점 정산 금액
    scheduled_payout_at: datetime


def calculate_settlement(
    order_amount: int,
    platform_fee_rate: float = 0.05,
    business_days: int = 7,
    start: Optional[datetime] = None,
) -> SettlementCalculation:
    """정산 금액 및 정산 예정일 계산

    수수료는 원 단위 절사, 나머지는 도매점 몫.
    """
    if order_amount < 0:
        raise ValidationError("주문 금액이 올바르지 않습니다.", field="order_amount", value=order_amount)

    # 1. 플랫폼 수수료 (원 단위 절사)
    platform_fee = math.floor(order_amount * platform_fee_rate)

    # 2. 도매점 정산액
    wholesaler_amount = order_amount - platform_fee

    # 3. 정산 예정일 (D+N 영업일)
    payout_at = add_business_days(start or datetime.now(), business_days)

    return SettlementCalculation(
        order_amount=order_amount,
        platform_fee_rate=platform_fee_rate,
        platform_fee=platform_fee,
        wholesaler_amount=wholesaler_amount,
        scheduled_payout_at=payout_at,
    )


def generate_order_number(now: Optional[datetime] = None, rng: Optional[random.Random] = None) -> str:
    """주문 번호 생성 (형식: ORD-YYYYMMDD-HHMMSS-XXX)"""
    now = now or datetime.now()
    rng = rng or random.SystemRandom()
    suffix = "".join(rng.choice(string.ascii_uppercase + string.digits) for _ in range(3))
    return f"ORD-{now.strftime('%Y%m%d')}-{now.strftime('%H%M%S')}-{suffix}"


def line_order_number(base: str, index: int, line_count: int) -> str:
    """여러 상품 결제 시 라인별 주문 번호 (base-1, base-2 ...)"""
    if line_count <= 1:
        return base
    return f"{base}-{index + 1}"


def is_order_number(value) -> bool:
    """결제 orderId 형식 확인 (ORD-YYYYMMDD-HHMMSS-XXX)"""
    return isinstance(value, str) and ORDER_NUMBER_PATTERN.fullmatch(value) is not None
