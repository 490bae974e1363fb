"""
app.py - FastAPI 애플리케이션 팩토리

모든 응답은 {success, error?, ...data} 봉투 형식이며,
예외는 ErrorHandler 를 거쳐 오류 종류별 HTTP 상태로 변환된다.
"""

import logging
import time
import uuid
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config.logging_config import get_context_logger, setup_logging_from_settings
from ..config.settings import AppSettings, get_settings
from ..core.error_handler import OperationResult
from ..core.exceptions import ErrorCodes, ErrorKind, FarmBizError
from .container import ServiceContainer
from .routes import ROUTERS

logger = logging.getLogger(__name__)

INVALID_REQUEST_MESSAGE = "요청 형식이 올바르지 않습니다."


def create_app(
    settings: Optional[AppSettings] = None,
    services: Optional[ServiceContainer] = None,
) -> FastAPI:
    """
    FastAPI 앱 생성

    Args:
        settings: 설정 (없으면 환경변수에서 로드)
        services: 서비스 컨테이너 (없으면 설정으로 생성)

    Returns:
        설정된 FastAPI 앱
    """
    settings = settings or get_settings()
    setup_logging_from_settings(settings)
    services = services or ServiceContainer.build(settings)

    app = FastAPI(
        title="Farm to Biz API",
        description="농수산물 B2B 마켓플레이스 비즈니스 코어",
        version=__version__,
        docs_url="/docs" if settings.debug_mode else None,
        redoc_url=None,
    )
    app.state.services = services

    origins = settings.cors_origin_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_logging(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Request-ID"] = request_id
        log = get_context_logger(__name__, request_id=request_id, operation=f"{request.method} {request.url.path}")
        log.info(f"{request.method} {request.url.path} → {response.status_code} ({elapsed_ms:.0f}ms)")
        return response

    def _respond(result: OperationResult) -> JSONResponse:
        return JSONResponse(
            content=result.to_envelope(include_details=settings.debug_mode),
            status_code=result.status_code,
        )

    @app.exception_handler(FarmBizError)
    async def farmbiz_error_handler(request: Request, exc: FarmBizError):
        result = services.error_handler.handle(
            exc, {"operation": f"{request.method} {request.url.path}"}
        )
        return _respond(result)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"요청 검증 실패: {request.method} {request.url.path}")
        return _respond(OperationResult.fail(
            INVALID_REQUEST_MESSAGE,
            kind=ErrorKind.VALIDATION,
            error_code=ErrorCodes.VALIDATION,
            status_code=400,
            details={"errors": [
                {"loc": [str(p) for p in e.get("loc", ())], "msg": e.get("msg")}
                for e in exc.errors()
            ]},
        ))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        result = services.error_handler.handle(
            exc, {"operation": f"{request.method} {request.url.path}"}
        )
        return _respond(result)

    for router in ROUTERS:
        app.include_router(router)

    logger.info(f"Farm to Biz API v{__version__} 초기화 완료")
    return app
