"""
logging_config.py - 로깅 설정

기능:
- 구조화된 로깅 (JSON 형식 지원)
- Rich 콘솔 출력
- 컨텍스트 로깅 (request_id, order_id, payment_key ...)
- 성능 추적 (외부 호출 실행 시간 측정)
- 로그 레벨별 파일 분리

setup_logging()은 앱 팩토리/CLI에서 한 번만 호출한다. 각 모듈은
logging.getLogger(__name__)을 쓰고 "farmbiz" 로거로 전파된다.
"""

import sys
import json
import logging
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path
from datetime import datetime, timezone
from typing import Optional, Dict, Any
from contextlib import contextmanager
from dataclasses import dataclass, asdict

from rich.logging import RichHandler

ROOT_LOGGER_NAME = "farmbiz"


def mask_payment_key(payment_key: Optional[str]) -> Optional[str]:
    """결제 키 마스킹 (앞 8자리만 노출)"""
    if not payment_key:
        return payment_key
    if len(payment_key) <= 8:
        return payment_key[:2] + "***"
    return payment_key[:8] + "***"


class JSONFormatter(logging.Formatter):
    """JSON 형식 로그 포맷터"""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        # 추가 컨텍스트
        if hasattr(record, "context"):
            log_data["context"] = record.context

        # 예외 정보
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


@dataclass
class LogContext:
    """로그 컨텍스트"""
    request_id: Optional[str] = None
    user_id: Optional[str] = None
    order_id: Optional[str] = None
    payment_key: Optional[str] = None
    operation: Optional[str] = None
    extra: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {}
        for key, value in asdict(self).items():
            if value is None:
                continue
            if key == "payment_key":
                value = mask_payment_key(value)
            result[key] = value
        return result


class ContextAdapter(logging.LoggerAdapter):
    """컨텍스트 포함 로거 어댑터"""

    def process(self, msg, kwargs):
        extra = kwargs.setdefault("extra", {})
        base = self.extra.to_dict() if hasattr(self.extra, "to_dict") else dict(self.extra or {})
        extra["context"] = {**base, **extra.get("context", {})}
        return msg, kwargs


class PerformanceLogger:
    """성능 추적 로거"""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    @contextmanager
    def track(self, operation: str, **context):
        """
        작업 실행 시간 추적

        사용법:
            with perf_logger.track("결제 승인", order_id="ORD-..."):
                gateway.confirm(...)
        """
        start_time = time.perf_counter()
        self.logger.debug(f"시작: {operation}", extra={"context": context})

        try:
            yield
        except Exception as e:
            elapsed = time.perf_counter() - start_time
            self.logger.warning(
                f"실패: {operation} ({elapsed:.3f}s) - {type(e).__name__}",
                extra={"context": {**context, "error": type(e).__name__, "duration_ms": elapsed * 1000}},
            )
            raise
        else:
            elapsed = time.perf_counter() - start_time
            self.logger.info(
                f"완료: {operation} ({elapsed:.3f}s)",
                extra={"context": {**context, "duration_ms": elapsed * 1000}}
            )


def setup_logging(
    name: str = ROOT_LOGGER_NAME,
    level: str = "INFO",
    log_to_file: bool = False,
    log_to_console: bool = True,
    json_format: bool = False,
    logs_dir: Optional[str] = None,
) -> logging.Logger:
    """
    로깅 설정

    Args:
        name: 로거 이름
        level: 로그 레벨 (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_to_file: 파일 로깅 여부
        log_to_console: 콘솔 로깅 여부
        json_format: JSON 형식 사용 여부
        logs_dir: 로그 파일 디렉토리

    Returns:
        설정된 로거
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # 기존 핸들러 제거
    logger.handlers.clear()

    # 콘솔 핸들러
    if log_to_console:
        if json_format:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setFormatter(JSONFormatter())
        elif sys.stdout.isatty():
            console_handler = RichHandler(rich_tracebacks=True, show_path=False)
            console_handler.setFormatter(logging.Formatter("%(name)s | %(message)s"))
        else:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setFormatter(logging.Formatter(
                fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S"
            ))

        logger.addHandler(console_handler)

    # 파일 핸들러
    if log_to_file:
        log_dir = Path(logs_dir) if logs_dir else Path.cwd() / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)

        log_file = log_dir / f"{name}_{datetime.now().strftime('%Y%m%d')}.log"
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding="utf-8"
        )

        if json_format:
            file_handler.setFormatter(JSONFormatter())
        else:
            file_handler.setFormatter(logging.Formatter(
                fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(module)s:%(lineno)d | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S"
            ))

        logger.addHandler(file_handler)

        # 에러 전용 로그 (정산 불일치 추적용)
        error_file = log_dir / f"{name}_errors.log"
        error_handler = RotatingFileHandler(
            error_file,
            maxBytes=5 * 1024 * 1024,  # 5MB
            backupCount=3,
            encoding="utf-8"
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(JSONFormatter())
        logger.addHandler(error_handler)

    logger.propagate = False
    return logger


def setup_logging_from_settings(settings) -> logging.Logger:
    """AppSettings 기반 로깅 설정"""
    return setup_logging(
        level=settings.log_level,
        log_to_file=settings.log_to_file,
        json_format=settings.log_json,
        logs_dir=settings.logs_dir,
    )


def get_logger(name: str = None) -> logging.Logger:
    """로거 반환 (핸들러는 루트 "farmbiz" 로거에서 처리)"""
    if not name:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def get_context_logger(
    name: str = None,
    context: LogContext = None,
    **kwargs
) -> ContextAdapter:
    """컨텍스트 포함 로거 반환"""
    logger = get_logger(name)
    ctx = context if context else LogContext(**kwargs)
    return ContextAdapter(logger, ctx)


def get_perf_logger(name: str = None) -> PerformanceLogger:
    """성능 추적 로거 반환"""
    return PerformanceLogger(get_logger(name))
