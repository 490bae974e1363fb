"""
workflow.py - 결제 승인 워크플로우

1. 파라미터 검증 (외부 호출 전)
2. 중복 승인 요청 확인 (이미 기록된 결제면 기존 ID 반환)
3. 주문 소유자/상태/금액 대조
4. 게이트웨이 승인 (1회, 재시도 없음)
5. 장부 기록 (주문 / 정산 / 결제)

게이트웨이 승인 후 기록에 실패하면 ReconciliationError 로 구분해서 보고한다.
"""

import logging
from typing import Optional

from ..config.logging_config import LogContext, get_context_logger
from ..core.error_handler import ErrorHandler, OperationResult, service_boundary
from ..core.exceptions import (
    AuthError,
    ErrorCodes,
    NotFoundError,
    OwnershipError,
    PaymentGatewayError,
    ReconciliationError,
    StateError,
    TimeoutError,
    UpstreamError,
    ValidationError,
)
from ..domain.cart import summarize_cart, validate_cart_items
from ..domain.logic import generate_order_number, is_order_number
from ..domain.models import CheckoutDraft, OrderStatus, UserRole
from .gateway import GatewayConfirmation, TossPaymentsGateway
from .ledger import LedgerRecord, SupabasePaymentLedger

logger = logging.getLogger(__name__)

MISSING_PARAMS_MESSAGE = "필수 파라미터가 누락되었습니다."
SUCCESS_MESSAGE = "결제 완료 및 정산 생성 완료"


class PaymentConfirmationWorkflow:
    """결제 승인 워크플로우"""

    def __init__(
        self,
        gateway: TossPaymentsGateway,
        ledger: SupabasePaymentLedger,
        error_handler: ErrorHandler = None,
    ):
        self.gateway = gateway
        self.ledger = ledger
        self.error_handler = error_handler or ErrorHandler(logger)

    def confirm_payment(
        self,
        payment_key: Optional[str],
        order_id: Optional[str],
        amount: Optional[int],
        retailer_id: Optional[str],
        checkout: Optional[CheckoutDraft] = None,
    ) -> OperationResult:
        """결제 승인

        Args:
            payment_key: 게이트웨이 결제 키
            order_id: 결제 orderId (주문 번호)
            amount: 결제 금액
            retailer_id: 요청한 소매점 (주문 소유자여야 함)
            checkout: 아직 저장되지 않은 주문 초안 (있으면 승인 후 주문 생성)

        Returns:
            OperationResult (data: orderId, settlementId, paymentId, orderNumbers, message)
        """
        log = get_context_logger(
            __name__,
            LogContext(
                operation="payments.confirm",
                user_id=retailer_id,
                order_id=order_id,
                payment_key=payment_key,
            ),
        )
        try:
            record = self._confirm(log, payment_key, order_id, amount, retailer_id, checkout)
        except Exception as e:
            return self.error_handler.handle(e, log.extra.to_dict())

        log.info("결제 승인 완료")
        return OperationResult.ok({**record.to_dict(), "message": SUCCESS_MESSAGE})

    def _confirm(
        self,
        log: logging.LoggerAdapter,
        payment_key: Optional[str],
        order_id: Optional[str],
        amount: Optional[int],
        retailer_id: Optional[str],
        checkout: Optional[CheckoutDraft],
    ) -> LedgerRecord:
        # 1. 파라미터 검증
        if not payment_key or not order_id or not amount:
            raise ValidationError(
                MISSING_PARAMS_MESSAGE,
                field="paymentKey,orderId,amount",
                error_code=ErrorCodes.MISSING_PAYMENT_PARAMS,
                details={"hint": "paymentKey, orderId, amount는 필수입니다."},
            )
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
            raise ValidationError("결제 금액이 올바르지 않습니다.", field="amount", value=amount)
        if not is_order_number(order_id):
            raise ValidationError("주문 번호 형식이 올바르지 않습니다.", field="orderId", value=order_id)
        if not retailer_id:
            raise AuthError("소매점 정보가 없습니다.", required_role=UserRole.RETAILER.value)
        if checkout is not None and checkout.retailer_id != retailer_id:
            raise OwnershipError("주문을 결제할 권한이 없습니다.", resource="order", resource_id=order_id)

        # 2. 중복 승인 요청
        existing = self.ledger.find_recorded(payment_key, order_id, retailer_id)
        if existing is not None:
            log.info("이미 처리된 결제입니다")
            return existing

        # 3. 주문 소유자/상태/금액 대조
        self._check_expected_amount(payment_key, order_id, amount, retailer_id, checkout)

        # 4. 게이트웨이 승인
        confirmation = self._call_gateway(payment_key, order_id, amount)

        if confirmation.total_amount != amount or confirmation.order_id != order_id:
            raise ReconciliationError(
                "결제 승인 내역이 요청과 일치하지 않습니다. 고객센터로 문의해주세요.",
                payment_key=payment_key,
                order_id=order_id,
                amount=amount,
                details={
                    "approved_amount": confirmation.total_amount,
                    "approved_order_id": confirmation.order_id,
                },
            )

        # 5. 장부 기록
        try:
            return self.ledger.record(confirmation, checkout, retailer_id)
        except Exception as e:
            raise ReconciliationError(
                payment_key=payment_key,
                order_id=order_id,
                amount=amount,
                cause=e,
                details={"stage": "ledger", "error": repr(e)},
            ) from e

    def _check_expected_amount(
        self,
        payment_key: str,
        order_id: str,
        amount: int,
        retailer_id: str,
        checkout: Optional[CheckoutDraft],
    ):
        orders = self.ledger.load_orders(order_id, retailer_id)

        if orders:
            other_keys = {o.payment_key for o in orders if o.payment_key and o.payment_key != payment_key}
            if other_keys:
                raise StateError("이미 결제된 주문입니다.", current_state="paid", requested="confirm")
            for order in orders:
                if order.status == OrderStatus.CANCELLED:
                    raise StateError(
                        "취소된 주문은 결제할 수 없습니다.",
                        current_state=order.status.value,
                        requested="confirm",
                    )
                if order.status != OrderStatus.PENDING:
                    raise StateError(
                        "결제 대기 중인 주문이 아닙니다.",
                        current_state=order.status.value,
                        requested="confirm",
                    )
            expected = sum(o.total_amount for o in orders)
        elif checkout is not None:
            if checkout.order_id != order_id:
                raise ValidationError("주문 정보가 일치하지 않습니다.", field="orderId", value=order_id)
            cart = validate_cart_items(checkout.items)
            if not cart.is_valid:
                raise ValidationError(cart.errors[0].message, field="items", details=cart.to_dict())
            expected = checkout.total_amount
        else:
            raise NotFoundError("주문을 찾을 수 없습니다.", resource="order", resource_id=order_id)

        if expected != amount:
            raise ValidationError(
                "결제 금액이 주문 금액과 일치하지 않습니다.",
                field="amount",
                value=amount,
                error_code=ErrorCodes.AMOUNT_MISMATCH,
                details={"expected": expected},
            )

    def _call_gateway(self, payment_key: str, order_id: str, amount: int) -> GatewayConfirmation:
        try:
            return self.gateway.confirm(payment_key, order_id, amount)
        except PaymentGatewayError:
            raise
        except TimeoutError as e:
            # 승인 여부를 알 수 없음: 수동 확인 대상
            raise ReconciliationError(
                "결제 승인 결과를 확인하지 못했습니다. 고객센터로 문의해주세요.",
                payment_key=payment_key,
                order_id=order_id,
                amount=amount,
                cause=e,
                details={"stage": "gateway_timeout"},
            ) from e
        except UpstreamError as e:
            if e.status_code is not None and 200 <= e.status_code < 300:
                raise ReconciliationError(
                    "결제 승인 결과를 확인하지 못했습니다. 고객센터로 문의해주세요.",
                    payment_key=payment_key,
                    order_id=order_id,
                    amount=amount,
                    cause=e,
                    details={"stage": "gateway_response"},
                ) from e
            raise

    @service_boundary("payments.prepare")
    def prepare_payment(self, items):
        """결제 요청 준비 (장바구니 검증 → 결제 orderId/주문명/금액 발급)

        Args:
            items: 결제할 CartItem 목록

        Returns:
            OperationResult (data: orderId, orderName, amount, summary)
        """
        cart = validate_cart_items(items)
        if not cart.is_valid:
            raise ValidationError(cart.errors[0].message, field="items", details=cart.to_dict())

        summary = summarize_cart(items)
        if summary.total_price <= 0:
            raise ValidationError("결제 금액이 올바르지 않습니다.", field="amount", value=summary.total_price)

        first_name = items[0].product_name or "상품"
        order_name = first_name if len(items) == 1 else f"{first_name} 외 {len(items) - 1}건"
        order_id = generate_order_number()

        logger.info(f"결제 요청 생성: {order_id} ({summary.total_price:,}원)")
        return {
            "orderId": order_id,
            "orderName": order_name,
            "amount": summary.total_price,
            "summary": summary.to_dict(),
        }
