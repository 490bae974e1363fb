"""코어 모듈"""
from .exceptions import (
    ErrorKind,
    FarmBizError,
    ValidationError,
    AuthError,
    OwnershipError,
    NotFoundError,
    StateError,
    ConfigurationError,
    UpstreamError,
    GeminiAPIError,
    SupabaseError,
    SchemaNotMigratedError,
    PaymentGatewayError,
    RateLimitError,
    TimeoutError,
    ReconciliationError,
    ErrorCodes,
)
from .error_handler import ErrorHandler, OperationResult, service_boundary
from .config import BusinessRules, DEFAULT_RULES, CATEGORIES

__all__ = [
    # 예외
    "ErrorKind",
    "FarmBizError",
    "ValidationError",
    "AuthError",
    "OwnershipError",
    "NotFoundError",
    "StateError",
    "ConfigurationError",
    "UpstreamError",
    "GeminiAPIError",
    "SupabaseError",
    "SchemaNotMigratedError",
    "PaymentGatewayError",
    "RateLimitError",
    "TimeoutError",
    "ReconciliationError",
    "ErrorCodes",
    # 경계
    "ErrorHandler",
    "OperationResult",
    "service_boundary",
    # 규칙
    "BusinessRules",
    "DEFAULT_RULES",
    "CATEGORIES",
]
