"""
gateway.py - 토스페이먼츠 결제 승인 API 연동

- POST {base}/v1/payments/confirm (Basic 인증: "{secret_key}:")
- 타임아웃 필수, 재시도 없음 (게이트웨이에서 이미 매입되었을 수 있음)
- 응답은 즉시 pydantic 모델로 검증
"""

import base64
import json
import logging
from typing import Optional

import requests
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator

from ..config.logging_config import get_perf_logger, mask_payment_key
from ..core.exceptions import (
    ConfigurationError,
    PaymentGatewayError,
    TimeoutError,
    UpstreamError,
)

logger = logging.getLogger(__name__)

CONFIRM_PATH = "/v1/payments/confirm"


class GatewayConfirmation(BaseModel):
    """결제 승인 성공 응답"""
    payment_key: str = Field(..., alias="paymentKey", min_length=1)
    order_id: str = Field(..., alias="orderId", min_length=1)
    status: str = Field(..., min_length=1)
    total_amount: int = Field(..., alias="totalAmount", ge=0)
    approved_at: Optional[str] = Field(default=None, alias="approvedAt")
    method: Optional[str] = Field(default=None)

    @field_validator("method", mode="before")
    @classmethod
    def default_method(cls, v):
        return v or "카드"


class GatewayFailure(BaseModel):
    """결제 승인 실패 응답"""
    code: Optional[str] = None
    message: Optional[str] = None


class TossPaymentsGateway:
    """토스페이먼츠 결제 승인 클라이언트"""

    def __init__(
        self,
        secret_key: str,
        api_base: str = "https://api.tosspayments.com",
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            secret_key: 토스페이먼츠 시크릿 키 (TOSS_SECRET_KEY)
            api_base: API 베이스 URL
            timeout: 요청 타임아웃 (초)
            session: 주입할 requests 세션 (테스트용)
        """
        self.secret_key = secret_key
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.perf = get_perf_logger(__name__)

    def _auth_header(self) -> str:
        token = base64.b64encode(f"{self.secret_key}:".encode("utf-8")).decode("ascii")
        return f"Basic {token}"

    def confirm(self, payment_key: str, order_id: str, amount: int) -> GatewayConfirmation:
        """결제 승인 (1회 호출)

        Raises:
            ConfigurationError: 시크릿 키 미설정
            PaymentGatewayError: 게이트웨이가 실패 응답
            TimeoutError: 응답 없음 (승인 여부 불명)
            UpstreamError: 네트워크 오류/응답 형식 오류
        """
        if not self.secret_key:
            raise ConfigurationError(
                "서버 설정 오류: 결제 승인 키가 설정되지 않았습니다.",
                config_key="TOSS_SECRET_KEY",
            )

        url = self.api_base + CONFIRM_PATH
        context = {"order_id": order_id, "payment_key": mask_payment_key(payment_key)}

        try:
            with self.perf.track("결제 승인 API", **context):
                response = self.session.post(
                    url,
                    headers={
                        "Authorization": self._auth_header(),
                        "Content-Type": "application/json",
                    },
                    json={"paymentKey": payment_key, "orderId": order_id, "amount": amount},
                    timeout=self.timeout,
                )
        except requests.Timeout as e:
            raise TimeoutError(
                "결제 승인 응답이 지연되고 있습니다.",
                timeout_seconds=self.timeout,
                endpoint=CONFIRM_PATH,
                cause=e,
            ) from e
        except requests.RequestException as e:
            raise UpstreamError(
                "결제 서버와 통신하지 못했습니다. 잠시 후 다시 시도해주세요.",
                endpoint=CONFIRM_PATH,
                cause=e,
            ) from e

        body = self._json_body(response)

        if not response.ok:
            failure = GatewayFailure(**body) if isinstance(body, dict) else GatewayFailure()
            logger.warning(
                f"결제 승인 실패: status={response.status_code} code={failure.code}",
                extra={"context": context},
            )
            error = PaymentGatewayError(
                failure.message or "결제 승인에 실패했습니다.",
                gateway_code=failure.code,
                status_code=response.status_code,
                response_body=response.text,
                endpoint=CONFIRM_PATH,
            )
            # 게이트웨이의 4xx는 요청 문제로 본다
            error.http_status = 400 if 400 <= response.status_code < 500 else 500
            raise error

        try:
            confirmation = GatewayConfirmation(**body)
        except (TypeError, PydanticValidationError) as e:
            raise UpstreamError(
                "결제 승인 응답을 확인할 수 없습니다.",
                status_code=response.status_code,
                response_body=response.text,
                endpoint=CONFIRM_PATH,
                cause=e,
            ) from e

        logger.info(
            f"결제 승인 완료: status={confirmation.status} method={confirmation.method}",
            extra={"context": context},
        )
        return confirmation

    @staticmethod
    def _json_body(response: requests.Response):
        try:
            return response.json()
        except (ValueError, json.JSONDecodeError):
            return {}
