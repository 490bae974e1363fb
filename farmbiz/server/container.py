"""
container.py - 서비스 컨테이너

앱 시작 시 설정으로부터 클라이언트/서비스를 한 번만 생성하고
라우트에는 app.state 를 통해 주입한다.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from ..ai.chat import ChatProxy
from ..ai.gemini_client import GeminiClient
from ..ai.inquiry_responder import InquiryResponder
from ..ai.standardizer import ProductNameStandardizer
from ..api.supabase_client import create_supabase_client
from ..auth.identity import IdentityResolver
from ..catalog.reader import CatalogReader
from ..config.settings import AppSettings
from ..core.error_handler import ErrorHandler
from ..inquiries.attachments import InquiryAttachmentStorage
from ..inquiries.service import InquiryService
from ..orders.repository import OrderRepository
from ..payments.gateway import TossPaymentsGateway
from ..payments.ledger import SupabasePaymentLedger
from ..payments.workflow import PaymentConfirmationWorkflow

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """요청 처리에 필요한 서비스 묶음"""
    settings: AppSettings
    identity: IdentityResolver
    catalog: CatalogReader
    orders: OrderRepository
    payments: PaymentConfirmationWorkflow
    inquiries: InquiryService
    chat: ChatProxy
    standardizer: ProductNameStandardizer
    error_handler: ErrorHandler

    @classmethod
    def build(
        cls,
        settings: AppSettings,
        client=None,
        gemini: Optional[GeminiClient] = None,
        session: Optional[requests.Session] = None,
    ) -> "ServiceContainer":
        """설정 기반 생성

        Args:
            settings: 애플리케이션 설정
            client: Supabase 클라이언트 (없으면 설정으로 생성)
            gemini: Gemini 클라이언트 (없으면 설정으로 생성)
            session: 결제 승인 API 용 requests 세션
        """
        client = client or create_supabase_client(settings.supabase_url, settings.supabase_key)
        gemini = gemini or GeminiClient(
            api_key=settings.gemini_api_key,
            model_name=settings.gemini_model,
            timeout=settings.ai_timeout_seconds,
            temperature=settings.gemini_temperature,
            max_tokens=settings.gemini_max_tokens,
        )
        error_handler = ErrorHandler(logging.getLogger("farmbiz.server"), debug=settings.debug_mode)

        orders = OrderRepository(client)
        ledger = SupabasePaymentLedger(
            client,
            orders=orders,
            platform_fee_rate=settings.platform_fee_rate,
            payout_business_days=settings.payout_business_days,
        )
        gateway = TossPaymentsGateway(
            secret_key=settings.toss_secret_key,
            api_base=settings.toss_api_base,
            timeout=settings.payment_timeout_seconds,
            session=session,
        )

        container = cls(
            settings=settings,
            identity=IdentityResolver(client),
            catalog=CatalogReader(client),
            orders=orders,
            payments=PaymentConfirmationWorkflow(gateway, ledger, error_handler),
            inquiries=InquiryService(
                client,
                storage=InquiryAttachmentStorage(client, bucket=settings.storage_bucket),
                responder=InquiryResponder(gemini) if gemini.is_configured else None,
            ),
            chat=ChatProxy(gemini),
            standardizer=ProductNameStandardizer(client, gemini),
            error_handler=error_handler,
        )
        logger.info("서비스 컨테이너 초기화 완료")
        return container
