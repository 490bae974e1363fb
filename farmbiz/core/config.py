"""
config.py - 비즈니스 규칙 상수

환경변수와 무관한 도메인 규칙 값을 한 곳에서 관리
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Tuple


@dataclass(frozen=True)
class BusinessRules:
    """플랫폼 비즈니스 규칙"""
    # 정산
    platform_fee_rate: float = 0.05          # 플랫폼 수수료 5%
    payout_business_days: int = 7            # 정산 예정일 D+7 영업일

    # 주문
    default_page_size: int = 10
    max_page_size: int = 50
    cancellable_statuses: FrozenSet[str] = field(
        default_factory=lambda: frozenset({"pending", "confirmed", "preparing"})
    )

    # 문의
    inquiry_title_max: int = 200
    inquiry_content_min: int = 10
    inquiry_content_max: int = 3000
    max_attachments: int = 5
    max_attachment_bytes: int = 5 * 1024 * 1024  # 5MB
    allowed_attachment_types: Tuple[str, ...] = (
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/webp",
        "application/pdf",
    )

    # 상품
    default_product_page_size: int = 12


# 상품 카테고리
CATEGORIES: Tuple[str, ...] = ("과일", "채소", "수산물", "곡물", "견과류", "기타")

# 기본 규칙 인스턴스
DEFAULT_RULES = BusinessRules()
