"""
repository.py - 주문 저장소

주문 조회/생성/상태 변경/취소. 소유자·상태 확인은 별도 조회 후 갱신하지 않고
(id, 소유자, 기대 상태)를 조건으로 거는 단일 UPDATE 로 처리한다.
갱신된 행이 없을 때만 다시 읽어서 실패 원인을 분류한다.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

from ..api.supabase_client import SupabaseRepository, check_paging
from ..core.config import DEFAULT_RULES
from ..core.exceptions import (
    NotFoundError,
    OwnershipError,
    StateError,
    SupabaseError,
    ValidationError,
)
from ..domain.logic import calculate_totals, is_order_number, line_order_number
from ..domain.models import (
    CANCELLABLE_STATUSES,
    CheckoutDraft,
    Order,
    OrderStatus,
    can_change_order_status,
)

logger = logging.getLogger(__name__)

ORDER_SORT_KEYS = ("created_at", "total_amount")

# 재고 낙관적 갱신 재시도 횟수
STOCK_CAS_ATTEMPTS = 3


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class OrderPage:
    """주문 목록 페이지"""
    orders: List[Order] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 10

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0

    def to_dict(self) -> Dict:
        return {
            "orders": [o.to_dict() for o in self.orders],
            "total": self.total,
            "page": self.page,
            "pageSize": self.page_size,
            "totalPages": self.total_pages,
        }


class OrderRepository(SupabaseRepository):
    """주문 저장소"""

    # ========== 조회 ==========

    def list_orders(
        self,
        retailer_id: Optional[str] = None,
        wholesaler_id: Optional[str] = None,
        status: Optional[OrderStatus] = None,
        page: int = 1,
        page_size: int = DEFAULT_RULES.default_page_size,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        order_number: Optional[str] = None,
        exclude_cancelled: bool = False,
        max_page_size: int = DEFAULT_RULES.max_page_size,
    ) -> OrderPage:
        """주문 목록 조회

        Args:
            retailer_id: 소매점 ID (소매점 본인 주문만)
            wholesaler_id: 도매점 ID (도매점 수신 주문만)
            status: 상태 필터
            page: 페이지 번호 (1부터)
            page_size: 페이지 크기 (1 ~ max_page_size)
            sort_by: created_at | total_amount
            sort_order: asc | desc
            start_date / end_date: 생성일 범위 (ISO 8601)
            order_number: 주문 번호 (정확 일치)
            exclude_cancelled: 취소 주문 제외
            max_page_size: 호출측 페이지 크기 상한

        Returns:
            OrderPage
        """
        check_paging(page, page_size, max_page_size)
        if sort_by not in ORDER_SORT_KEYS:
            raise ValidationError("지원하지 않는 정렬 기준입니다.", field="sort_by", value=sort_by)

        query = self.client.table(self.TABLE_ORDERS).select("*", count="exact")

        if retailer_id:
            query = query.eq("retailer_id", retailer_id)
        if wholesaler_id:
            query = query.eq("wholesaler_id", wholesaler_id)
        if status:
            query = query.eq("status", status.value)
        elif exclude_cancelled:
            query = query.neq("status", OrderStatus.CANCELLED.value)
        if start_date:
            query = query.gte("created_at", start_date)
        if end_date:
            query = query.lte("created_at", end_date)
        if order_number:
            query = query.eq("order_number", order_number)

        start = (page - 1) * page_size
        query = (
            query.order(sort_by, desc=sort_order != "asc")
            .range(start, start + page_size - 1)
        )

        result = self._execute(query, self.TABLE_ORDERS, "select")
        rows = list(result.data or [])
        total = result.count if result.count is not None else len(rows)

        return OrderPage(
            orders=[Order.from_row(r) for r in rows],
            total=total,
            page=page,
            page_size=page_size,
        )

    def get_order_by_id(self, order_id: str) -> Optional[Order]:
        """주문 단건 조회"""
        row = self._first(
            self.client.table(self.TABLE_ORDERS).select("*").eq("id", order_id).limit(1),
            self.TABLE_ORDERS,
            "select",
        )
        return Order.from_row(row) if row else None

    def get_order_for_retailer(self, order_id: str, retailer_id: str) -> Order:
        """소매점 본인 주문 조회"""
        order = self.get_order_by_id(order_id)
        if order is None:
            raise NotFoundError("주문을 찾을 수 없습니다.", resource="order", resource_id=order_id)
        if order.retailer_id != retailer_id:
            raise OwnershipError("주문을 조회할 권한이 없습니다.", resource="order", resource_id=order_id)
        return order

    def find_by_order_number(self, order_number: str) -> List[Order]:
        """결제 orderId 기준 주문 조회 (단일 주문 또는 {orderId}-N 분할 주문)"""
        if not is_order_number(order_number):
            raise ValidationError("주문 번호 형식이 올바르지 않습니다.", field="orderId", value=order_number)
        rows = self._rows(
            self.client.table(self.TABLE_ORDERS)
            .select("*")
            .or_(f"order_number.eq.{order_number},order_number.like.{order_number}-%")
            .order("order_number"),
            self.TABLE_ORDERS,
            "select",
        )
        return [Order.from_row(r) for r in rows]

    def find_by_payment_key(self, payment_key: str) -> List[Order]:
        rows = self._rows(
            self.client.table(self.TABLE_ORDERS)
            .select("*")
            .eq("payment_key", payment_key)
            .order("order_number"),
            self.TABLE_ORDERS,
            "select",
        )
        return [Order.from_row(r) for r in rows]

    # ========== 상태 변경 ==========

    def cancel_order(self, order_id: str, retailer_id: str) -> Order:
        """주문 취소 (배송 시작 전 상태만)

        Raises:
            NotFoundError: 주문 없음
            OwnershipError: 본인 주문 아님
            StateError: 이미 취소되었거나 배송 시작
        """
        rows = self._rows(
            self.client.table(self.TABLE_ORDERS)
            .update({"status": OrderStatus.CANCELLED.value, "updated_at": _now_iso()})
            .eq("id", order_id)
            .eq("retailer_id", retailer_id)
            .in_("status", sorted(s.value for s in CANCELLABLE_STATUSES)),
            self.TABLE_ORDERS,
            "update",
        )

        if not rows:
            self._raise_cancel_failure(order_id, retailer_id)

        order = Order.from_row(rows[0])
        logger.info(f"주문 취소 완료: {order.order_number}")

        # 취소는 이미 확정됨. 재고 복구 실패는 로그만 남김
        self._adjust_stock(order.product_id, order.quantity, "increment_stock")
        return order

    def _raise_cancel_failure(self, order_id: str, retailer_id: str):
        """취소 실패 원인 분류"""
        current = self.get_order_by_id(order_id)
        if current is None:
            raise NotFoundError("주문을 찾을 수 없습니다.", resource="order", resource_id=order_id)
        if current.retailer_id != retailer_id:
            raise OwnershipError("주문을 취소할 권한이 없습니다.", resource="order", resource_id=order_id)
        if current.status == OrderStatus.CANCELLED:
            raise StateError(
                "이미 취소된 주문입니다.",
                current_state=current.status.value,
                requested=OrderStatus.CANCELLED.value,
            )
        if current.status not in CANCELLABLE_STATUSES:
            raise StateError(
                "이미 배송이 시작되었거나 완료된 주문은 취소할 수 없습니다.",
                current_state=current.status.value,
                requested=OrderStatus.CANCELLED.value,
            )
        # 갱신과 재조회 사이에 상태가 바뀐 경우
        raise StateError(
            "주문 상태가 변경되었습니다. 다시 시도해주세요.",
            current_state=current.status.value,
            requested=OrderStatus.CANCELLED.value,
        )

    def update_status(self, order_id: str, wholesaler_id: str, next_status: OrderStatus) -> Order:
        """도매점 주문 상태 변경 (전이표 기준, 현재 상태 조건부 갱신)"""
        current = self.get_order_by_id(order_id)
        if current is None:
            raise NotFoundError("주문을 찾을 수 없습니다.", resource="order", resource_id=order_id)
        if current.wholesaler_id != wholesaler_id:
            raise OwnershipError("주문 상태를 변경할 권한이 없습니다.", resource="order", resource_id=order_id)
        if not can_change_order_status(current.status, next_status):
            raise StateError(
                f"'{current.status.value}' 상태에서 '{next_status.value}' 상태로 변경할 수 없습니다.",
                current_state=current.status.value,
                requested=next_status.value,
            )

        rows = self._rows(
            self.client.table(self.TABLE_ORDERS)
            .update({"status": next_status.value, "updated_at": _now_iso()})
            .eq("id", order_id)
            .eq("wholesaler_id", wholesaler_id)
            .eq("status", current.status.value),
            self.TABLE_ORDERS,
            "update",
        )
        if not rows:
            raise StateError(
                "주문 상태가 변경되었습니다. 다시 시도해주세요.",
                current_state=current.status.value,
                requested=next_status.value,
            )

        updated = Order.from_row(rows[0])
        logger.info(f"주문 상태 변경: {updated.order_number} {current.status.value} → {next_status.value}")

        if next_status == OrderStatus.CANCELLED:
            self._adjust_stock(updated.product_id, updated.quantity, "increment_stock")
        return updated

    def confirm_purchase(self, order_id: str, retailer_id: str) -> Order:
        """구매 확정 (배송 완료 → 완료)"""
        rows = self._rows(
            self.client.table(self.TABLE_ORDERS)
            .update({"status": OrderStatus.COMPLETED.value, "updated_at": _now_iso()})
            .eq("id", order_id)
            .eq("retailer_id", retailer_id)
            .eq("status", OrderStatus.DELIVERED.value),
            self.TABLE_ORDERS,
            "update",
        )
        if rows:
            return Order.from_row(rows[0])

        current = self.get_order_by_id(order_id)
        if current is None:
            raise NotFoundError("주문을 찾을 수 없습니다.", resource="order", resource_id=order_id)
        if current.retailer_id != retailer_id:
            raise OwnershipError("구매 확정 권한이 없습니다.", resource="order", resource_id=order_id)
        raise StateError(
            "배송 완료된 주문만 구매 확정할 수 있습니다.",
            current_state=current.status.value,
            requested=OrderStatus.COMPLETED.value,
        )

    # ========== 생성 ==========

    def create_orders(
        self,
        draft: CheckoutDraft,
        payment_key: str,
        paid_at: Optional[str] = None,
    ) -> List[Order]:
        """결제 승인된 체크아웃 초안으로 주문 생성 (상품 라인별 1건)"""
        if not draft.items:
            raise ValidationError("주문할 상품이 없습니다.", field="items")

        paid_at = paid_at or _now_iso()
        line_count = len(draft.items)
        rows = []
        for i, item in enumerate(draft.items):
            totals = calculate_totals(item.unit_price, item.shipping_fee, item.quantity)
            rows.append({
                "retailer_id": draft.retailer_id,
                "product_id": item.product_id,
                "variant_id": item.variant_id,
                "wholesaler_id": item.wholesaler_id,
                "order_number": line_order_number(draft.order_id, i, line_count),
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "shipping_fee": totals.shipping_fee,
                "total_amount": totals.total,
                "delivery_address": draft.delivery_address,
                "request_note": draft.request_note,
                "delivery_option": draft.delivery_option,
                "delivery_time": draft.delivery_time,
                "payment_key": payment_key,
                "paid_at": paid_at,
                "status": OrderStatus.PENDING.value,
            })

        inserted = self._rows(
            self.client.table(self.TABLE_ORDERS).insert(rows),
            self.TABLE_ORDERS,
            "insert",
        )
        orders = [Order.from_row(r) for r in inserted]
        logger.info(f"주문 생성 완료: {[o.order_number for o in orders]}")

        for order in orders:
            self._adjust_stock(order.product_id, order.quantity, "decrement_stock")
        return orders

    def delete_orders(self, orders: List[Order]):
        """주문 삭제 + 재고 복구 (결제 기록 실패 시 보상 작업 전용)"""
        if not orders:
            return
        self._execute(
            self.client.table(self.TABLE_ORDERS).delete().in_("id", [o.id for o in orders]),
            self.TABLE_ORDERS,
            "delete",
        )
        for order in orders:
            self._adjust_stock(order.product_id, order.quantity, "increment_stock")
        logger.warning(f"보상 작업: 주문 {len(orders)}건 삭제")

    # ========== 재고 ==========

    def _adjust_stock(self, product_id: str, quantity: int, rpc_name: str):
        """재고 증감 (RPC 우선, 실패 시 낙관적 갱신)"""
        try:
            self._execute(
                self.client.rpc(rpc_name, {"p_product_id": product_id, "p_quantity": quantity}),
                "rpc",
                rpc_name,
            )
            return
        except SupabaseError as e:
            logger.warning(f"{rpc_name} RPC 실패, 직접 갱신 시도: {e}")

        delta = quantity if rpc_name == "increment_stock" else -quantity
        try:
            if not self._compare_and_set_stock(product_id, delta):
                logger.error(f"재고 갱신 실패 (경합): product_id={product_id} delta={delta}")
        except SupabaseError as e:
            logger.error(f"재고 갱신 실패: product_id={product_id} delta={delta} ({e})")

    def _compare_and_set_stock(self, product_id: str, delta: int) -> bool:
        """stock_quantity 조건부 갱신 (재고는 0 미만으로 내려가지 않음)"""
        for _ in range(STOCK_CAS_ATTEMPTS):
            row = self._first(
                self.client.table(self.TABLE_PRODUCTS)
                .select("stock_quantity")
                .eq("id", product_id)
                .limit(1),
                self.TABLE_PRODUCTS,
                "select",
            )
            if row is None:
                return False

            current = int(row.get("stock_quantity") or 0)
            updated = self._rows(
                self.client.table(self.TABLE_PRODUCTS)
                .update({"stock_quantity": max(0, current + delta)})
                .eq("id", product_id)
                .eq("stock_quantity", current),
                self.TABLE_PRODUCTS,
                "update",
            )
            if updated:
                return True
        return False
