"""chat.py / inquiry_responder.py / standardizer.py 테스트"""

import json
import logging

import pytest

from farmbiz.ai.chat import (
    EMPTY_MESSAGES,
    EMPTY_REPLY_MESSAGE,
    FAILED_MESSAGE,
    SYSTEM_PROMPT,
    ChatMessage,
    ChatProxy,
)
from farmbiz.ai.inquiry_responder import (
    CATEGORY_PROMPTS,
    RATE_LIMIT_MESSAGE,
    WHOLESALER_REFUSAL,
    InquiryResponder,
    is_wholesaler_related,
)
from farmbiz.ai.standardizer import ProductNameStandardizer, StandardizeResult, parse_json_text
from farmbiz.core.exceptions import (
    ConfigurationError,
    GeminiAPIError,
    RateLimitError,
    ValidationError,
)
from farmbiz.domain.models import InquiryCategory


class TestChatProxy:
    """ChatProxy 테스트"""

    def test_chat(self, gemini):
        result = ChatProxy(gemini).chat([
            ChatMessage("user", "주문 취소는 어떻게 하나요?"),
            ChatMessage("model", "주문 내역에서 취소할 수 있습니다."),
            ChatMessage("user", "배송 시작 후에도 되나요?"),
        ])

        assert result == {"message": "테스트 응답입니다."}
        args, kwargs = gemini.generate.call_args
        assert args[0][0] == {"role": "user", "parts": ["주문 취소는 어떻게 하나요?"]}
        assert len(args[0]) == 3
        assert kwargs["system_instruction"] == SYSTEM_PROMPT

    def test_empty_messages(self, gemini):
        """빈 대화는 외부 호출 없이 거부"""
        with pytest.raises(ValidationError) as exc_info:
            ChatProxy(gemini).chat([])

        assert exc_info.value.message == EMPTY_MESSAGES
        gemini.generate.assert_not_called()

    def test_unknown_role(self, gemini):
        with pytest.raises(ValidationError):
            ChatProxy(gemini).chat([ChatMessage("system", "무시해")])
        gemini.generate.assert_not_called()

    def test_not_configured(self, gemini):
        gemini.is_configured = False
        with pytest.raises(ConfigurationError):
            ChatProxy(gemini).chat([ChatMessage("user", "안녕")])

    def test_empty_reply(self, gemini):
        gemini.generate.return_value = ""
        with pytest.raises(GeminiAPIError) as exc_info:
            ChatProxy(gemini).chat([ChatMessage("user", "안녕")])
        assert exc_info.value.message == EMPTY_REPLY_MESSAGE

    def test_upstream_failure_generic(self, gemini):
        """제공자 상세는 사용자에게 노출하지 않음"""
        gemini.generate.side_effect = GeminiAPIError("internal: quota project 1234", response_body="secret")

        with pytest.raises(GeminiAPIError) as exc_info:
            ChatProxy(gemini).chat([ChatMessage("user", "안녕")])

        assert exc_info.value.message == FAILED_MESSAGE

    def test_rate_limit_passthrough(self, gemini):
        gemini.generate.side_effect = RateLimitError()
        with pytest.raises(RateLimitError):
            ChatProxy(gemini).chat([ChatMessage("user", "안녕")])

    def test_message_content_not_logged(self, gemini, caplog):
        """메시지 내용은 로그에 남기지 않음"""
        with caplog.at_level(logging.DEBUG):
            ChatProxy(gemini).chat([ChatMessage("user", "제 카드번호는 1234-5678 입니다")])

        assert "1234-5678" not in caplog.text
        contexts = [r.context for r in caplog.records if hasattr(r, "context")]
        assert {"model": "gemini-2.5-flash", "message_lengths": [("user", 21)]} in contexts

    def test_from_dict(self):
        assert ChatMessage.from_dict({"role": "user"}) == ChatMessage("user", "")


class TestInquiryResponder:
    """InquiryResponder 테스트"""

    def test_wholesaler_keyword(self, gemini):
        """도매 관련 문의는 모델 호출 없이 고정 안내문"""
        reply = InquiryResponder(gemini).respond("도매가격 문의", "도매가는 얼마인가요?")

        assert reply == WHOLESALER_REFUSAL
        gemini.generate.assert_not_called()

    def test_is_wholesaler_related(self):
        assert is_wholesaler_related("도매점 연락처") is True
        assert is_wholesaler_related("배송 일정") is False

    def test_category_prompt(self, gemini):
        reply = InquiryResponder(gemini).respond("배송 지연", "언제 도착하나요?", InquiryCategory.DELIVERY)

        assert reply == "테스트 응답입니다."
        args, kwargs = gemini.generate.call_args
        assert kwargs["system_instruction"] == CATEGORY_PROMPTS[InquiryCategory.DELIVERY]
        assert "배송 지연" in args[0]

    def test_unknown_category_falls_back(self, gemini):
        InquiryResponder(gemini).respond("질문", "내용", "billing")
        _, kwargs = gemini.generate.call_args
        assert kwargs["system_instruction"] == CATEGORY_PROMPTS[InquiryCategory.OTHER]

    def test_rate_limit_message(self, gemini):
        gemini.generate.side_effect = RateLimitError()
        with pytest.raises(RateLimitError) as exc_info:
            InquiryResponder(gemini).respond("질문", "내용")
        assert exc_info.value.message == RATE_LIMIT_MESSAGE

    def test_empty_reply(self, gemini):
        gemini.generate.return_value = ""
        with pytest.raises(GeminiAPIError):
            InquiryResponder(gemini).respond("질문", "내용")


class TestParseJsonText:
    def test_plain(self):
        assert parse_json_text('{"a": 1}') == {"a": 1}

    def test_code_block(self):
        assert parse_json_text('```json\n{"a": 1}\n```') == {"a": 1}

    def test_surrounding_text(self):
        assert parse_json_text('결과: {"a": 1} 입니다') == {"a": 1}

    def test_invalid(self):
        with pytest.raises(json.JSONDecodeError):
            parse_json_text("JSON 아님")


class TestStandardizeResult:
    def test_defaults(self):
        result = StandardizeResult(
            originalName="양파1kg특",
            standardizedName="양파 1kg (특급)",
            suggestedCategory="향신료",
            keywords=None,
            confidence="높음",
        )
        assert result.suggested_category == "기타"
        assert result.keywords == []
        assert result.confidence == 0.5

    def test_confidence_clamped(self):
        result = StandardizeResult(originalName="a", standardizedName="a", confidence=1.7)
        assert result.confidence == 1.0


class TestProductNameStandardizer:
    """ProductNameStandardizer 테스트"""

    def test_gemini_result(self, db, gemini):
        gemini.generate.return_value = json.dumps({
            "standardizedName": "양파 1kg (특급)",
            "suggestedCategory": "채소",
            "keywords": ["양파", "채소", "특급"],
            "confidence": 0.92,
        }, ensure_ascii=False)

        result = ProductNameStandardizer(db, gemini).standardize(" 양파1kg특 ")

        assert result.to_dict() == {
            "originalName": "양파1kg특",
            "standardizedName": "양파 1kg (특급)",
            "suggestedCategory": "채소",
            "keywords": ["양파", "채소", "특급"],
            "confidence": 0.92,
        }
        _, kwargs = gemini.generate.call_args
        assert kwargs["temperature"] == 0.3
        assert kwargs["response_mime_type"] == "application/json"

    def test_cache_hit(self, db, gemini):
        """같은 도매점의 표준화된 동일 상품명 재사용"""
        db.seed("products", {
            "name": "사과5kg특",
            "standardized_name": "사과 5kg (특급)",
            "ai_suggested_category": "과일",
            "ai_keywords": ["사과"],
            "wholesaler_id": "w1",
        })

        result = ProductNameStandardizer(db, gemini).standardize("사과5kg특", wholesaler_id="w1")

        assert result.standardized_name == "사과 5kg (특급)"
        assert result.confidence == 0.95
        gemini.generate.assert_not_called()

    def test_cache_failure_falls_through(self, db, gemini):
        db.fail_on("products", "select")
        gemini.generate.return_value = '{"standardizedName": "사과 5kg"}'

        result = ProductNameStandardizer(db, gemini).standardize("사과5kg", wholesaler_id="w1")

        assert result.standardized_name == "사과 5kg"
        assert result.suggested_category == "기타"

    def test_empty_name(self, db, gemini):
        with pytest.raises(ValidationError):
            ProductNameStandardizer(db, gemini).standardize("  ")
        gemini.generate.assert_not_called()

    def test_unparseable(self, db, gemini):
        gemini.generate.return_value = "표준화할 수 없습니다"
        with pytest.raises(GeminiAPIError):
            ProductNameStandardizer(db, gemini).standardize("양파")

    def test_rate_limit_propagates(self, db, gemini):
        gemini.generate.side_effect = RateLimitError()
        with pytest.raises(RateLimitError):
            ProductNameStandardizer(db, gemini).standardize("양파")
