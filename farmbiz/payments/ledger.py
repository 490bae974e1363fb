"""
ledger.py - 결제 승인 후 장부 기록 (주문 / 정산 / 결제)

PostgREST 로는 여러 테이블을 하나의 트랜잭션으로 묶을 수 없으므로
보상 작업(compensating action)을 쌓아 가며 순서대로 기록하고,
중간에 실패하면 역순으로 되돌린 뒤 원래 예외를 다시 던진다.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from ..api.supabase_client import SupabaseRepository, quote_filter_value
from ..core.exceptions import NotFoundError, OwnershipError, StateError
from ..domain.logic import calculate_settlement
from ..domain.models import (
    CheckoutDraft,
    Order,
    OrderStatus,
    PaymentStatus,
    SettlementStatus,
    parse_datetime,
)
from ..orders.repository import OrderRepository
from .gateway import GatewayConfirmation

logger = logging.getLogger(__name__)


@dataclass
class LedgerRecord:
    """기록된 결제 ID 묶음 (분할 주문이면 첫 라인 기준 대표 ID)"""
    order_id: str
    settlement_id: str
    payment_id: str
    order_ids: List[str] = field(default_factory=list)
    settlement_ids: List[str] = field(default_factory=list)
    payment_ids: List[str] = field(default_factory=list)
    order_numbers: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "orderId": self.order_id,
            "settlementId": self.settlement_id,
            "paymentId": self.payment_id,
            "orderNumbers": self.order_numbers,
        }


class SupabasePaymentLedger(SupabaseRepository):
    """결제 장부"""

    def __init__(
        self,
        client,
        orders: OrderRepository = None,
        platform_fee_rate: float = 0.05,
        payout_business_days: int = 7,
    ):
        super().__init__(client)
        self.orders = orders or OrderRepository(client)
        self.platform_fee_rate = platform_fee_rate
        self.payout_business_days = payout_business_days

    # ========== 조회 ==========

    def load_orders(self, order_id: str, retailer_id: str) -> List[Order]:
        """결제 orderId 에 해당하는 본인 주문들

        Raises:
            OwnershipError: 다른 소매점의 주문이 섞여 있음
        """
        orders = self.orders.find_by_order_number(order_id)
        if any(o.retailer_id != retailer_id for o in orders):
            raise OwnershipError("주문을 결제할 권한이 없습니다.", resource="order", resource_id=order_id)
        return orders

    def find_recorded(self, payment_key: str, order_id: str, retailer_id: str) -> Optional[LedgerRecord]:
        """이미 기록된 결제 조회 (중복 승인 요청 처리)"""
        payments = self._rows(
            self.client.table(self.TABLE_PAYMENTS)
            .select("id, order_id, settlement_id")
            .eq("payment_key", payment_key),
            self.TABLE_PAYMENTS,
            "select",
        )
        if not payments:
            return None

        orders = {o.id: o for o in self.load_orders(order_id, retailer_id)}
        matched = [p for p in payments if p["order_id"] in orders]
        if not matched:
            # 같은 결제 키가 다른 주문에 기록됨
            raise StateError(
                "이미 다른 주문에 사용된 결제입니다.",
                current_state="paid",
                requested="confirm",
            )

        matched.sort(key=lambda p: orders[p["order_id"]].order_number)
        first = matched[0]
        return LedgerRecord(
            order_id=first["order_id"],
            settlement_id=first.get("settlement_id"),
            payment_id=first["id"],
            order_ids=[p["order_id"] for p in matched],
            settlement_ids=[p.get("settlement_id") for p in matched],
            payment_ids=[p["id"] for p in matched],
            order_numbers=[orders[p["order_id"]].order_number for p in matched],
        )

    # ========== 기록 ==========

    def record(
        self,
        confirmation: GatewayConfirmation,
        draft: Optional[CheckoutDraft] = None,
        retailer_id: Optional[str] = None,
    ) -> LedgerRecord:
        """승인된 결제를 주문/정산/결제 테이블에 기록

        retailer_id 가 없으면 체크아웃 초안의 소매점을 소유자로 본다.

        실패 시 이미 기록한 내용을 되돌리고 예외를 그대로 전파한다.
        """
        retailer_id = retailer_id or (draft.retailer_id if draft else None)
        paid_at = confirmation.approved_at or datetime.now(timezone.utc).isoformat()
        compensations: List[Callable[[], None]] = []

        try:
            # 1. 주문 (없으면 체크아웃 초안으로 생성, 있으면 결제 키 연결)
            orders = self.load_orders(confirmation.order_id, retailer_id)
            if not orders:
                if draft is None:
                    raise NotFoundError(
                        "주문을 찾을 수 없습니다.",
                        resource="order",
                        resource_id=confirmation.order_id,
                    )
                orders = self.orders.create_orders(draft, confirmation.payment_key, paid_at)
                created = list(orders)
                compensations.append(lambda: self.orders.delete_orders(created))
            else:
                attached_ids = self._attach_payment(orders, retailer_id, confirmation.payment_key, paid_at)
                compensations.append(
                    lambda: self._detach_payment(attached_ids, confirmation.payment_key)
                )

            # 2. 정산 (주문별, D+N 영업일)
            start = parse_datetime(paid_at)
            settlement_rows = []
            for order in orders:
                calc = calculate_settlement(
                    order.total_amount,
                    self.platform_fee_rate,
                    self.payout_business_days,
                    start,
                )
                settlement_rows.append({
                    "order_id": order.id,
                    "wholesaler_id": order.wholesaler_id,
                    "order_amount": calc.order_amount,
                    "platform_fee_rate": calc.platform_fee_rate,
                    "platform_fee": calc.platform_fee,
                    "wholesaler_amount": calc.wholesaler_amount,
                    "status": SettlementStatus.PENDING.value,
                    "scheduled_payout_at": calc.scheduled_payout_at.isoformat(),
                })
            settlements = self._rows(
                self.client.table(self.TABLE_SETTLEMENTS).insert(settlement_rows),
                self.TABLE_SETTLEMENTS,
                "insert",
            )
            settlement_ids = [s["id"] for s in settlements]
            compensations.append(lambda: self._delete_rows(self.TABLE_SETTLEMENTS, settlement_ids))

            # 3. 결제 (주문별)
            settlement_by_order = {s["order_id"]: s["id"] for s in settlements}
            payment_rows = [
                {
                    "order_id": order.id,
                    "settlement_id": settlement_by_order.get(order.id),
                    "method": confirmation.method or "카드",
                    "amount": order.total_amount,
                    "payment_key": confirmation.payment_key,
                    "status": PaymentStatus.PAID.value,
                    "paid_at": paid_at,
                }
                for order in orders
            ]
            payments = self._rows(
                self.client.table(self.TABLE_PAYMENTS).insert(payment_rows),
                self.TABLE_PAYMENTS,
                "insert",
            )
            payment_by_order = {p["order_id"]: p["id"] for p in payments}

        except Exception:
            self._compensate(compensations, confirmation)
            raise

        record = LedgerRecord(
            order_id=orders[0].id,
            settlement_id=settlement_by_order[orders[0].id],
            payment_id=payment_by_order[orders[0].id],
            order_ids=[o.id for o in orders],
            settlement_ids=[settlement_by_order[o.id] for o in orders],
            payment_ids=[payment_by_order[o.id] for o in orders],
            order_numbers=[o.order_number for o in orders],
        )
        logger.info(
            f"결제 장부 기록 완료: 주문 {len(orders)}건, 정산 {len(settlement_ids)}건",
            extra={"context": {"order_id": confirmation.order_id}},
        )
        return record

    # ========== 내부 헬퍼 ==========

    def _attach_payment(
        self,
        orders: List[Order],
        retailer_id: str,
        payment_key: str,
        paid_at: str,
    ) -> List[str]:
        """본인 결제 대기 주문에 결제 키 연결 (미결제 또는 같은 키로 생성된 주문만)"""
        ids = [o.id for o in orders]
        updated = self._rows(
            self.client.table(self.TABLE_ORDERS)
            .update({"payment_key": payment_key, "paid_at": paid_at})
            .in_("id", ids)
            .eq("retailer_id", retailer_id)
            .eq("status", OrderStatus.PENDING.value)
            .or_(f"payment_key.is.null,payment_key.eq.{quote_filter_value(payment_key)}"),
            self.TABLE_ORDERS,
            "update",
        )
        unpaid_ids = [o.id for o in orders if not o.payment_key]
        if len(updated) != len(ids):
            self._detach_payment([r["id"] for r in updated if r["id"] in unpaid_ids], payment_key)
            raise StateError(
                "결제할 수 없는 주문입니다. (취소되었거나 이미 다른 결제로 처리됨)",
                current_state="not_payable",
                requested="confirm",
            )
        # 원래 결제 키가 없던 주문만 되돌림 대상
        return unpaid_ids

    def _detach_payment(self, order_ids: List[str], payment_key: str):
        if not order_ids:
            return
        self._execute(
            self.client.table(self.TABLE_ORDERS)
            .update({"payment_key": None, "paid_at": None})
            .in_("id", order_ids)
            .eq("payment_key", payment_key),
            self.TABLE_ORDERS,
            "update",
        )

    def _delete_rows(self, table: str, ids: List[str]):
        if not ids:
            return
        self._execute(
            self.client.table(table).delete().in_("id", ids),
            table,
            "delete",
        )

    def _compensate(self, compensations: List[Callable[[], None]], confirmation: GatewayConfirmation):
        """보상 작업 역순 실행 (실패해도 나머지는 계속)"""
        for undo in reversed(compensations):
            try:
                undo()
            except Exception:
                logger.exception(
                    "보상 작업 실패: 수동 정리 필요",
                    extra={"context": {"order_id": confirmation.order_id}},
                )
