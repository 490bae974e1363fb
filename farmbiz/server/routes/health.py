"""
헬스 체크
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from ... import __version__
from ..container import ServiceContainer
from ..deps import get_services

router = APIRouter(tags=["health"])


@router.get("/health")
def health(services: ServiceContainer = Depends(get_services)):
    """설정 상태만 확인 (외부 호출 없음)"""
    problems = services.settings.validate()
    return {
        "status": "healthy" if not problems else "degraded",
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": {"config": problems},
    }
