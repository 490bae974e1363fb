"""
커스텀 예외 클래스

Farm to Biz 비즈니스 코어에서 사용하는 모든 커스텀 예외를 정의.
각 예외는 사용자에게 보여줄 메시지(한국어), 에러 코드, 오류 종류(kind),
경계(HTTP)에서 사용할 상태 코드를 함께 가진다.
"""

from enum import Enum
from typing import Dict, Any


class ErrorKind(Enum):
    """오류 종류 (결과 봉투의 판별자)"""
    VALIDATION = "validation"
    AUTH = "auth"
    OWNERSHIP = "ownership"
    NOT_FOUND = "not_found"
    STATE = "state"
    RATE_LIMIT = "rate_limit"
    UPSTREAM = "upstream"
    RECONCILIATION = "reconciliation"
    CONFIG = "config"
    UNKNOWN = "unknown"


class FarmBizError(Exception):
    """기본 예외 클래스"""

    kind = ErrorKind.UNKNOWN
    http_status = 500

    def __init__(
        self,
        message: str,
        error_code: str = None,
        details: Dict[str, Any] = None,
        cause: Exception = None
    ):
        """
        Args:
            message: 에러 메시지 (사용자 노출용)
            error_code: 에러 코드
            details: 추가 상세 정보 (서버 로그/개발 모드 전용)
            cause: 원인 예외
        """
        self.message = message
        self.error_code = error_code or self._default_code()
        self.details = details or {}
        self.cause = cause
        super().__init__(self.message)

    def _default_code(self) -> str:
        return "FB_UNKNOWN"

    @property
    def user_message(self) -> str:
        """사용자에게 보여줄 메시지"""
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """딕셔너리로 변환"""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "kind": self.kind.value,
            "type": self.__class__.__name__
        }

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


class ValidationError(FarmBizError):
    """입력 검증 오류 (부수효과 시도 전)"""

    kind = ErrorKind.VALIDATION
    http_status = 400

    def __init__(
        self,
        message: str,
        field: str = None,
        value: Any = None,
        **kwargs
    ):
        self.field = field
        self.value = value
        details = kwargs.pop("details", {})
        details["field"] = field
        if value is not None:
            details["value"] = str(value)[:100]  # 값 길이 제한
        super().__init__(message, details=details, **kwargs)

    def _default_code(self) -> str:
        return "FB_VALIDATION"


class AuthError(FarmBizError):
    """인증 없음 / 역할 불일치"""

    kind = ErrorKind.AUTH
    http_status = 401

    def __init__(
        self,
        message: str = "로그인이 필요합니다.",
        required_role: str = None,
        **kwargs
    ):
        self.required_role = required_role
        details = kwargs.pop("details", {})
        if required_role:
            details["required_role"] = required_role
            # 로그인은 되었으나 역할이 다름
            self.http_status = 403
        super().__init__(message, details=details, **kwargs)

    def _default_code(self) -> str:
        return "FB_AUTH"


class OwnershipError(FarmBizError):
    """리소스 소유자가 아님"""

    kind = ErrorKind.OWNERSHIP
    http_status = 403

    def __init__(
        self,
        message: str = "권한이 없습니다.",
        resource: str = None,
        resource_id: str = None,
        **kwargs
    ):
        self.resource = resource
        self.resource_id = resource_id
        details = kwargs.pop("details", {})
        details["resource"] = resource
        details["resource_id"] = resource_id
        super().__init__(message, details=details, **kwargs)

    def _default_code(self) -> str:
        return "FB_OWNERSHIP"


class NotFoundError(FarmBizError):
    """리소스 없음"""

    kind = ErrorKind.NOT_FOUND
    http_status = 404

    def __init__(
        self,
        message: str,
        resource: str = None,
        resource_id: str = None,
        **kwargs
    ):
        self.resource = resource
        self.resource_id = resource_id
        details = kwargs.pop("details", {})
        details["resource"] = resource
        details["resource_id"] = resource_id
        super().__init__(message, details=details, **kwargs)

    def _default_code(self) -> str:
        return "FB_NOT_FOUND"


class StateError(FarmBizError):
    """현재 상태에서 허용되지 않는 작업"""

    kind = ErrorKind.STATE
    http_status = 409

    def __init__(
        self,
        message: str,
        current_state: str = None,
        requested: str = None,
        **kwargs
    ):
        self.current_state = current_state
        self.requested = requested
        details = kwargs.pop("details", {})
        details["current_state"] = current_state
        details["requested"] = requested
        super().__init__(message, details=details, **kwargs)

    def _default_code(self) -> str:
        return "FB_STATE"


class ConfigurationError(FarmBizError):
    """설정 오류"""

    kind = ErrorKind.CONFIG
    http_status = 500

    def __init__(
        self,
        message: str,
        config_key: str = None,
        **kwargs
    ):
        self.config_key = config_key
        details = kwargs.pop("details", {})
        details["config_key"] = config_key
        super().__init__(message, details=details, **kwargs)

    def _default_code(self) -> str:
        return "FB_CONFIG"


class UpstreamError(FarmBizError):
    """외부 제공자 실패 또는 잘못된 응답"""

    kind = ErrorKind.UPSTREAM
    http_status = 500

    GENERIC_MESSAGE = "일시적인 오류가 발생했습니다. 잠시 후 다시 시도해주세요."

    def __init__(
        self,
        message: str = None,
        status_code: int = None,
        response_body: str = None,
        endpoint: str = None,
        **kwargs
    ):
        self.status_code = status_code
        self.response_body = response_body
        self.endpoint = endpoint
        details = kwargs.pop("details", {})
        details["status_code"] = status_code
        details["endpoint"] = endpoint
        super().__init__(message or self.GENERIC_MESSAGE, details=details, **kwargs)

    def _default_code(self) -> str:
        return "FB_UPSTREAM"


class GeminiAPIError(UpstreamError):
    """Gemini API 오류"""

    def __init__(
        self,
        message: str = None,
        model: str = None,
        **kwargs
    ):
        self.model = model
        details = kwargs.pop("details", {})
        details["model"] = model
        super().__init__(message, details=details, **kwargs)

    def _default_code(self) -> str:
        return "FB_GEMINI"


class SupabaseError(UpstreamError):
    """Supabase 오류"""

    def __init__(
        self,
        message: str = None,
        table: str = None,
        operation: str = None,
        **kwargs
    ):
        self.table = table
        self.operation = operation
        details = kwargs.pop("details", {})
        details["table"] = table
        details["operation"] = operation
        super().__init__(message, details=details, **kwargs)

    def _default_code(self) -> str:
        return "FB_SUPABASE"


class SchemaNotMigratedError(SupabaseError):
    """컬럼/테이블이 아직 마이그레이션되지 않음 (PostgREST 42703)"""

    def __init__(
        self,
        message: str = "데이터베이스 마이그레이션이 필요합니다.",
        column: str = None,
        **kwargs
    ):
        self.column = column
        details = kwargs.pop("details", {})
        details["column"] = column
        super().__init__(message, details=details, **kwargs)

    def _default_code(self) -> str:
        return "FB_SCHEMA_NOT_MIGRATED"


class PaymentGatewayError(UpstreamError):
    """결제 승인 API 실패 (게이트웨이 메시지를 그대로 전달)"""

    def __init__(
        self,
        message: str = "결제 승인에 실패했습니다.",
        gateway_code: str = None,
        **kwargs
    ):
        self.gateway_code = gateway_code
        details = kwargs.pop("details", {})
        details["gateway_code"] = gateway_code
        super().__init__(message, details=details, **kwargs)

    def _default_code(self) -> str:
        return "FB_PAYMENT_GATEWAY"


class RateLimitError(UpstreamError):
    """외부 API 속도 제한"""

    kind = ErrorKind.RATE_LIMIT
    http_status = 429

    def __init__(
        self,
        message: str = "요청 한도가 초과되었습니다. 잠시 후 다시 시도해주세요.",
        retry_after: int = None,
        **kwargs
    ):
        self.retry_after = retry_after
        details = kwargs.pop("details", {})
        details["retry_after"] = retry_after
        super().__init__(message, details=details, **kwargs)

    def _default_code(self) -> str:
        return "FB_RATE_LIMIT"


class TimeoutError(UpstreamError):
    """외부 호출 타임아웃"""

    def __init__(
        self,
        message: str = None,
        timeout_seconds: float = None,
        **kwargs
    ):
        self.timeout_seconds = timeout_seconds
        details = kwargs.pop("details", {})
        details["timeout_seconds"] = timeout_seconds
        super().__init__(message, details=details, **kwargs)

    def _default_code(self) -> str:
        return "FB_TIMEOUT"


class ReconciliationError(FarmBizError):
    """외부 결제는 완료되었으나 내부 기록에 실패 (수동 정산 필요)"""

    kind = ErrorKind.RECONCILIATION
    http_status = 500

    def __init__(
        self,
        message: str = "결제는 승인되었으나 주문 기록에 실패했습니다. 고객센터로 문의해주세요.",
        payment_key: str = None,
        order_id: str = None,
        amount: int = None,
        **kwargs
    ):
        self.payment_key = payment_key
        self.order_id = order_id
        self.amount = amount
        details = kwargs.pop("details", {})
        details["payment_key"] = payment_key
        details["order_id"] = order_id
        details["amount"] = amount
        super().__init__(message, details=details, **kwargs)

    def _default_code(self) -> str:
        return "FB_RECONCILIATION"


# 에러 코드 상수
class ErrorCodes:
    """에러 코드 상수"""

    # 일반
    UNKNOWN = "FB_UNKNOWN"
    VALIDATION = "FB_VALIDATION"
    CONFIG = "FB_CONFIG"

    # 인증/권한
    AUTH = "FB_AUTH"
    OWNERSHIP = "FB_OWNERSHIP"
    NOT_FOUND = "FB_NOT_FOUND"
    STATE = "FB_STATE"

    # 외부 연동
    UPSTREAM = "FB_UPSTREAM"
    GEMINI_API_ERROR = "FB_GEMINI"
    SUPABASE_ERROR = "FB_SUPABASE"
    SCHEMA_NOT_MIGRATED = "FB_SCHEMA_NOT_MIGRATED"
    PAYMENT_GATEWAY = "FB_PAYMENT_GATEWAY"
    RATE_LIMITED = "FB_RATE_LIMIT"
    TIMEOUT = "FB_TIMEOUT"

    # 결제
    RECONCILIATION = "FB_RECONCILIATION"
    MISSING_PAYMENT_PARAMS = "FB_PAYMENT_PARAMS"
    AMOUNT_MISMATCH = "FB_AMOUNT_MISMATCH"
