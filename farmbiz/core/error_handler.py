"""
에러 핸들러

모든 진입점(서비스 경계)에서 예외를 결과 봉투(OperationResult)로 변환한다.
예상 가능한 실패(검증/인증/소유권/상태)는 사용자 메시지를 그대로 반환하고,
외부 연동 실패는 서버에만 상세를 남긴 뒤 일반 메시지를 반환한다.
"""

import functools
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Any, Dict

from .exceptions import (
    ErrorKind,
    FarmBizError,
    UpstreamError,
    ReconciliationError,
)


GENERIC_ERROR_MESSAGE = "일시적인 오류가 발생했습니다. 잠시 후 다시 시도해주세요."

# 사용자 실수/정상 흐름 상의 실패
EXPECTED_KINDS = {
    ErrorKind.VALIDATION,
    ErrorKind.AUTH,
    ErrorKind.OWNERSHIP,
    ErrorKind.NOT_FOUND,
    ErrorKind.STATE,
}


@dataclass
class OperationResult:
    """작업 결과 (성공 플래그 + 판별 가능한 오류 종류)"""
    success: bool
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    error_code: Optional[str] = None
    kind: Optional[ErrorKind] = None
    status_code: int = 200
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, data: Dict[str, Any] = None, status_code: int = 200) -> "OperationResult":
        return cls(success=True, data=data or {}, status_code=status_code)

    @classmethod
    def fail(
        cls,
        error: str,
        kind: ErrorKind = ErrorKind.UNKNOWN,
        error_code: str = None,
        status_code: int = 500,
        details: Dict[str, Any] = None,
    ) -> "OperationResult":
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            kind=kind,
            status_code=status_code,
            details=details or {},
        )

    def to_envelope(self, include_details: bool = False) -> Dict[str, Any]:
        """{success, error?, ...data} 형태의 응답 봉투"""
        if self.success:
            return {"success": True, **self.data}

        envelope = {
            "success": False,
            "error": self.error,
            "errorCode": self.error_code,
        }
        if include_details and self.details:
            envelope["details"] = self.details
        return envelope


class ErrorHandler:
    """에러 핸들러"""

    def __init__(self, logger: logging.Logger = None, debug: bool = False):
        self.logger = logger or logging.getLogger(__name__)
        self.debug = debug

    def handle(
        self,
        error: Exception,
        context: Dict[str, Any] = None
    ) -> OperationResult:
        """
        에러 처리

        Args:
            error: 발생한 예외
            context: 에러 컨텍스트 (operation, order_id 등)

        Returns:
            실패 결과
        """
        context = context or {}
        self._log_error(error, context)

        if isinstance(error, FarmBizError):
            return OperationResult.fail(
                error=error.user_message,
                kind=error.kind,
                error_code=error.error_code,
                status_code=error.http_status,
                details=error.details if self.debug else {},
            )

        return OperationResult.fail(
            error=GENERIC_ERROR_MESSAGE,
            kind=ErrorKind.UNKNOWN,
            error_code="FB_UNKNOWN",
            status_code=500,
            details={"exception": repr(error)} if self.debug else {},
        )

    def _log_error(self, error: Exception, context: Dict[str, Any]):
        """에러 로깅"""
        if isinstance(error, ReconciliationError):
            # 결제는 완료되었으나 장부 기록 실패: 수동 정산 대상
            self.logger.critical(
                f"[{error.error_code}] 정산 불일치 발생 "
                f"payment_key={error.payment_key} order_id={error.order_id} amount={error.amount}",
                extra={"context": {**error.details, **context}},
                exc_info=error.cause is not None,
            )
        elif isinstance(error, FarmBizError) and error.kind in EXPECTED_KINDS:
            self.logger.warning(
                f"[{error.error_code}] {error.message}",
                extra={"context": {**error.details, **context}},
            )
        elif isinstance(error, UpstreamError):
            self.logger.error(
                f"[{error.error_code}] {error.message}",
                extra={"context": {
                    **error.details,
                    "response_body": (error.response_body or "")[:500],
                    **context,
                }},
                exc_info=error.cause is not None,
            )
        elif isinstance(error, FarmBizError):
            self.logger.error(
                f"[{error.error_code}] {error.message}",
                extra={"context": {**error.details, **context}},
            )
        else:
            self.logger.error(
                f"Unhandled error: {str(error)}",
                extra={"context": context},
                exc_info=True
            )


def service_boundary(operation: str, handler: ErrorHandler = None):
    """
    서비스 경계 데코레이터

    사용법:
        @service_boundary("orders.cancel")
        def cancel(order_id):
            ...
            return {"orderId": order_id}

    함수의 반환값(dict 또는 OperationResult)을 OperationResult로 감싸고,
    발생한 모든 예외를 실패 결과로 변환한다. 재시도는 하지 않는다.

    Args:
        operation: 로그에 남길 작업 이름
        handler: 사용할 ErrorHandler (없으면 인스턴스의 error_handler, 그것도 없으면 호출 모듈 로거)
    """
    def decorator(func: Callable):
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> OperationResult:
            active = (
                handler
                or (getattr(args[0], "error_handler", None) if args else None)
                or ErrorHandler(logging.getLogger(func.__module__))
            )
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                return active.handle(e, {"operation": operation})

            if isinstance(result, OperationResult):
                return result
            return OperationResult.ok(result)

        return wrapper
    return decorator
