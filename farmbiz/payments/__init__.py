"""결제 모듈"""
from .gateway import TossPaymentsGateway, GatewayConfirmation
from .ledger import SupabasePaymentLedger, LedgerRecord
from .workflow import PaymentConfirmationWorkflow

__all__ = [
    "TossPaymentsGateway",
    "GatewayConfirmation",
    "SupabasePaymentLedger",
    "LedgerRecord",
    "PaymentConfirmationWorkflow",
]
