"""
AI 연동 (Gemini)

- chat: 소매 대시보드 챗봇 프록시
- inquiry_responder: 문의 답변 초안
- standardizer: 상품명 표준화
"""

from .gemini_client import GeminiClient
from .chat import ChatMessage, ChatProxy, SYSTEM_PROMPT, validate_messages
from .inquiry_responder import InquiryResponder, WHOLESALER_REFUSAL, is_wholesaler_related
from .standardizer import ProductNameStandardizer, StandardizeResult

__all__ = [
    "GeminiClient",
    "ChatMessage",
    "ChatProxy",
    "SYSTEM_PROMPT",
    "validate_messages",
    "InquiryResponder",
    "WHOLESALER_REFUSAL",
    "is_wholesaler_related",
    "ProductNameStandardizer",
    "StandardizeResult",
]
