"""
deps.py - FastAPI 의존성

인증 자체는 앞단(인증 게이트웨이)에서 처리되고, 검증된 subject id 가
신뢰할 수 있는 헤더(AUTH_SUBJECT_HEADER)로 전달된다.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.responses import JSONResponse

from ..core.error_handler import OperationResult
from ..domain.models import Profile
from .container import ServiceContainer


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services


def get_subject(request: Request, services: ServiceContainer = Depends(get_services)) -> Optional[str]:
    return request.headers.get(services.settings.auth_subject_header) or None


def current_profile(
    subject: Optional[str] = Depends(get_subject),
    services: ServiceContainer = Depends(get_services),
) -> Profile:
    """로그인 사용자 프로필 (없으면 401)"""
    return services.identity.require_profile(subject)


def current_retailer(
    subject: Optional[str] = Depends(get_subject),
    services: ServiceContainer = Depends(get_services),
) -> Profile:
    """소매점 사용자 (역할 불일치 403)"""
    return services.identity.require_retailer(subject)


def current_wholesaler(
    subject: Optional[str] = Depends(get_subject),
    services: ServiceContainer = Depends(get_services),
) -> Profile:
    """도매점 사용자"""
    return services.identity.require_wholesaler(subject)


def envelope(result: OperationResult, include_details: bool = False) -> JSONResponse:
    """OperationResult → {success, error?, ...data} 응답"""
    return JSONResponse(
        content=result.to_envelope(include_details=include_details),
        status_code=result.status_code,
    )
