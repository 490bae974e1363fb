"""
inquiry_responder.py - AI 문의 답변 초안 생성

문의 분류(account/order/delivery/system/other)별 프롬프트를 사용한다.
도매 관련 질문은 모델을 호출하지 않고 고정 안내문을 반환한다.
"""

import logging
from typing import Union

from ..core.exceptions import GeminiAPIError, RateLimitError
from ..domain.models import InquiryCategory
from .gemini_client import GeminiClient

logger = logging.getLogger(__name__)

WHOLESALER_REFUSAL = (
    "죄송합니다. 도매 관련 문의는 어렵습니다. 소매 관련 문의만 도와드릴 수 있습니다. "
    "다른 문의사항이 있으시면 언제든지 말씀해주세요."
)

RATE_LIMIT_MESSAGE = "AI 답변 생성 한도가 초과되었습니다. 잠시 후 다시 시도해주세요."

# 도매 관련 키워드 ("도매" 를 포함하는 변형은 모두 "도매" 로 걸림)
WHOLESALER_KEYWORDS = (
    "도매",
    "도매상",
    "도매점",
    "도매업체",
    "도매가",
    "도매가격",
)

_BASE_PROMPT = '당신은 농수산물 B2B 플랫폼 "Farm to Biz"의 고객 지원 AI입니다.'

CATEGORY_PROMPTS = {
    InquiryCategory.ACCOUNT: f"""{_BASE_PROMPT}
계정 관련 문의에 대해 친절하고 명확하게 답변해주세요.

주요 답변 포인트:
- 계정 로그인/로그아웃 문제
- 비밀번호 재설정
- 프로필 정보 수정
- 역할 변경 (소매/도매)

답변은 한국어로 작성하고, 구체적인 해결 방법을 제시해주세요.""",

    InquiryCategory.ORDER: f"""{_BASE_PROMPT}
주문/결제 관련 문의에 대해 친절하고 명확하게 답변해주세요.

주요 답변 포인트:
- 주문 방법 및 주문 내역 조회
- 결제 오류 및 환불 처리
- 주문 취소 및 변경
- 최소 주문 수량

답변은 한국어로 작성하고, 구체적인 해결 방법을 제시해주세요.""",

    InquiryCategory.DELIVERY: f"""{_BASE_PROMPT}
배송 관련 문의에 대해 친절하고 명확하게 답변해주세요.

주요 답변 포인트:
- 새벽 배송 vs 일반 배송
- 배송 시간 선택 및 변경
- 배송지 관리
- 배송 상태 조회
- 배송 지연 및 문제 해결

답변은 한국어로 작성하고, 구체적인 해결 방법을 제시해주세요.""",

    InquiryCategory.SYSTEM: f"""{_BASE_PROMPT}
시스템 오류 관련 문의에 대해 친절하고 명확하게 답변해주세요.

주요 답변 포인트:
- 페이지 로딩 오류
- 기능 작동 불가
- 브라우저 호환성
- 데이터 표시 오류

답변은 한국어로 작성하고, 단계별 해결 방법을 제시해주세요.
문제가 지속되면 스크린샷과 함께 사람 상담원에게 연결하도록 안내해주세요.""",

    InquiryCategory.OTHER: f"""{_BASE_PROMPT}
기타 문의에 대해 친절하고 명확하게 답변해주세요.

답변은 한국어로 작성하고, 구체적인 해결 방법을 제시해주세요.
답변하기 어려운 경우, 사람 상담원에게 연결하도록 안내해주세요.""",
}

USER_PROMPT = """다음 문의에 대해 답변해주세요:

제목: {title}
내용:
{content}

위 문의에 대해 친절하고 구체적으로 답변해주세요. 가능하면 단계별 해결 방법을 제시해주세요."""


def is_wholesaler_related(text: str) -> bool:
    lowered = text.lower()
    return any(keyword in lowered for keyword in WHOLESALER_KEYWORDS)


class InquiryResponder:
    """문의 답변 초안 생성기"""

    def __init__(self, gemini: GeminiClient):
        self.gemini = gemini

    def respond(
        self,
        title: str,
        content: str,
        category: Union[InquiryCategory, str] = InquiryCategory.OTHER,
    ) -> str:
        """답변 초안 생성

        Raises:
            RateLimitError: 호출 한도 초과 (전용 안내 메시지)
            FarmBizError: 그 외 호출 실패
        """
        if is_wholesaler_related(f"{title} {content}"):
            logger.info("도매 관련 문의: 고정 안내문 반환")
            return WHOLESALER_REFUSAL

        try:
            category = InquiryCategory(category)
        except ValueError:
            category = InquiryCategory.OTHER

        try:
            reply = self.gemini.generate(
                USER_PROMPT.format(title=title, content=content),
                system_instruction=CATEGORY_PROMPTS[category],
            )
        except RateLimitError as e:
            raise RateLimitError(RATE_LIMIT_MESSAGE, cause=e) from e

        if not reply:
            raise GeminiAPIError("AI로부터 응답을 받지 못했습니다.", model=self.gemini.model_name)
        return reply
