"""설정 모듈"""
from .settings import (
    get_settings,
    reload_settings,
    AppSettings,
    ROOT_DIR,
    LOGS_DIR,
)
from .logging_config import (
    setup_logging,
    setup_logging_from_settings,
    get_logger,
    get_context_logger,
    get_perf_logger,
    LogContext,
    mask_payment_key,
)

__all__ = [
    "get_settings",
    "reload_settings",
    "AppSettings",
    "ROOT_DIR",
    "LOGS_DIR",
    "setup_logging",
    "setup_logging_from_settings",
    "get_logger",
    "get_context_logger",
    "get_perf_logger",
    "LogContext",
    "mask_payment_key",
]
