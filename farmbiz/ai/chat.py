"""
chat.py - 소매 대시보드 챗봇 프록시

브라우저에 키를 노출하지 않도록 서버에서 Gemini 를 호출한다.
사용자 입력은 로그에 남기지 않고 메시지 수와 (역할, 길이)만 기록한다.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

from ..core.exceptions import (
    ConfigurationError,
    GeminiAPIError,
    RateLimitError,
    UpstreamError,
    ValidationError,
)
from .gemini_client import GeminiClient

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """
당신은 Farm to Biz 소매 리테일러 대시보드 전용 챗봇입니다.
- 한국어로만 응답합니다.
- 소매 도메인(리테일러) 관련 질문만 답변합니다. 도매/관리자 영역은 "정보가 없습니다"라고 답합니다.
- 모르는 내용은 추측하지 않고 모른다고 명확히 말합니다.
- 개인정보나 민감 정보는 저장하거나 반복하지 않습니다.
""".strip()

EMPTY_MESSAGES = "메시지가 비어 있습니다."
NO_KEY_MESSAGE = "챗봇 키가 설정되지 않았습니다. 관리자에게 문의해주세요."
FAILED_MESSAGE = "챗봇 응답을 불러오지 못했습니다. 잠시 후 다시 시도해주세요."
EMPTY_REPLY_MESSAGE = "챗봇 응답이 비어 있습니다. 다시 시도해주세요."

ROLES = ("user", "model")


@dataclass
class ChatMessage:
    """대화 메시지"""
    role: str       # "user" | "model"
    content: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChatMessage":
        return cls(role=data.get("role") or "", content=data.get("content") or "")


def validate_messages(messages: Sequence[ChatMessage]):
    """빈 목록 / 알 수 없는 역할 / 빈 내용 거부"""
    if not messages:
        raise ValidationError(EMPTY_MESSAGES, field="messages")
    for m in messages:
        if m.role not in ROLES:
            raise ValidationError(EMPTY_MESSAGES, field="messages.role", value=m.role)
        if not isinstance(m.content, str) or not m.content.strip():
            raise ValidationError(EMPTY_MESSAGES, field="messages.content")


class ChatProxy:
    """챗봇 프록시"""

    def __init__(self, gemini: GeminiClient, system_prompt: str = SYSTEM_PROMPT):
        self.gemini = gemini
        self.system_prompt = system_prompt

    def chat(self, messages: Sequence[ChatMessage]) -> Dict[str, str]:
        """대화 이력으로 다음 응답 생성

        Returns:
            {"message": 응답 텍스트}
        """
        validate_messages(messages)

        if not self.gemini.is_configured:
            raise ConfigurationError(NO_KEY_MESSAGE, config_key="GEMINI_API_KEY")

        logger.info(
            f"챗봇 요청: {len(messages)}개 메시지",
            extra={"context": {
                "model": self.gemini.model_name,
                "message_lengths": [(m.role, len(m.content)) for m in messages],
            }},
        )

        contents: List[Dict[str, Any]] = [
            {"role": m.role, "parts": [m.content]} for m in messages
        ]

        try:
            reply = self.gemini.generate(contents, system_instruction=self.system_prompt)
        except RateLimitError:
            raise
        except UpstreamError as e:
            # 제공자 상세는 서버 로그에만 남김
            logger.error(
                f"챗봇 호출 실패: {e}",
                extra={"context": {"response_body": (e.response_body or "")[:500]}},
            )
            raise GeminiAPIError(
                FAILED_MESSAGE,
                model=self.gemini.model_name,
                status_code=e.status_code,
                cause=e,
            ) from e

        if not reply:
            raise GeminiAPIError(EMPTY_REPLY_MESSAGE, model=self.gemini.model_name)

        logger.info(f"챗봇 응답 완료: {len(reply)}자")
        return {"message": reply}
