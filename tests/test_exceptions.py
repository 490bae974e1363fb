"""exceptions.py / error_handler.py 테스트"""

import logging

from farmbiz.core.error_handler import (
    GENERIC_ERROR_MESSAGE,
    ErrorHandler,
    OperationResult,
    service_boundary,
)
from farmbiz.core.exceptions import (
    AuthError,
    ErrorCodes,
    ErrorKind,
    FarmBizError,
    GeminiAPIError,
    NotFoundError,
    OwnershipError,
    RateLimitError,
    ReconciliationError,
    SchemaNotMigratedError,
    StateError,
    SupabaseError,
    UpstreamError,
    ValidationError,
)


class TestFarmBizError:
    """FarmBizError 테스트"""

    def test_basic_error(self):
        """기본 에러"""
        error = FarmBizError("테스트 에러")
        assert error.message == "테스트 에러"
        assert error.error_code == "FB_UNKNOWN"
        assert error.kind == ErrorKind.UNKNOWN

    def test_to_dict(self):
        """딕셔너리 변환"""
        error = FarmBizError("테스트", error_code="TEST_CODE", details={"field": "x"})
        d = error.to_dict()

        assert d["error_code"] == "TEST_CODE"
        assert d["message"] == "테스트"
        assert d["details"]["field"] == "x"
        assert d["kind"] == "unknown"
        assert d["type"] == "FarmBizError"

    def test_str_representation(self):
        """문자열 표현"""
        assert str(FarmBizError("테스트 에러", error_code="TEST")) == "[TEST] 테스트 에러"


class TestErrorKinds:
    """오류 종류별 HTTP 상태"""

    def test_validation(self):
        error = ValidationError("필수값입니다", field="title", value="x" * 500)
        assert error.http_status == 400
        assert error.error_code == ErrorCodes.VALIDATION
        assert len(error.details["value"]) == 100

    def test_auth_without_role(self):
        """로그인 필요는 401"""
        assert AuthError().http_status == 401

    def test_auth_with_role(self):
        """역할 불일치는 403"""
        error = AuthError("접근 권한이 없습니다.", required_role="retailer")
        assert error.http_status == 403
        assert error.details["required_role"] == "retailer"

    def test_ownership_not_found_state(self):
        assert OwnershipError().http_status == 403
        assert NotFoundError("없음").http_status == 404
        assert StateError("상태", current_state="cancelled").http_status == 409

    def test_upstream_generic_message(self):
        """메시지가 없으면 일반 안내문"""
        error = UpstreamError(status_code=502)
        assert error.message == UpstreamError.GENERIC_MESSAGE
        assert error.kind == ErrorKind.UPSTREAM

    def test_rate_limit_is_upstream(self):
        error = RateLimitError(retry_after=30)
        assert isinstance(error, UpstreamError)
        assert error.kind == ErrorKind.RATE_LIMIT
        assert error.http_status == 429

    def test_schema_not_migrated_is_supabase(self):
        error = SchemaNotMigratedError(column="ai_feedback", table="inquiries")
        assert isinstance(error, SupabaseError)
        assert error.error_code == ErrorCodes.SCHEMA_NOT_MIGRATED

    def test_reconciliation(self):
        error = ReconciliationError(payment_key="pk", order_id="ORD-1", amount=1000)
        assert error.kind == ErrorKind.RECONCILIATION
        assert error.details["amount"] == 1000


class TestOperationResult:
    """OperationResult 테스트"""

    def test_ok_envelope(self):
        envelope = OperationResult.ok({"orderId": "o1"}).to_envelope()
        assert envelope == {"success": True, "orderId": "o1"}

    def test_fail_envelope_hides_details(self):
        result = OperationResult.fail("실패", error_code="X", details={"secret": 1})
        assert "details" not in result.to_envelope()
        assert result.to_envelope(include_details=True)["details"] == {"secret": 1}


class TestErrorHandler:
    """ErrorHandler 테스트"""

    def test_expected_error_keeps_user_message(self):
        handler = ErrorHandler()
        result = handler.handle(StateError("이미 취소된 주문입니다."))

        assert result.success is False
        assert result.error == "이미 취소된 주문입니다."
        assert result.kind == ErrorKind.STATE
        assert result.status_code == 409

    def test_unknown_exception_is_generic(self):
        """예상하지 못한 예외는 일반 메시지"""
        result = ErrorHandler().handle(KeyError("secret_column"))

        assert result.error == GENERIC_ERROR_MESSAGE
        assert "secret_column" not in result.error
        assert result.status_code == 500

    def test_details_only_in_debug(self):
        error = GeminiAPIError("실패", model="gemini-2.5-flash")
        assert ErrorHandler(debug=False).handle(error).details == {}
        assert ErrorHandler(debug=True).handle(error).details["model"] == "gemini-2.5-flash"

    def test_reconciliation_logged_critical(self, caplog):
        """정산 불일치는 CRITICAL 로그"""
        logger = logging.getLogger("test.reconciliation")
        handler = ErrorHandler(logger)

        with caplog.at_level(logging.CRITICAL, logger="test.reconciliation"):
            handler.handle(ReconciliationError(payment_key="pk_123", order_id="ORD-1", amount=100))

        assert any(r.levelno == logging.CRITICAL for r in caplog.records)


class TestServiceBoundary:
    """service_boundary 데코레이터 테스트"""

    def test_wraps_dict(self):
        @service_boundary("test.ok")
        def op():
            return {"value": 1}

        result = op()
        assert result.success is True
        assert result.data == {"value": 1}

    def test_converts_exception(self):
        @service_boundary("test.fail")
        def op():
            raise NotFoundError("주문을 찾을 수 없습니다.")

        result = op()
        assert result.success is False
        assert result.status_code == 404
        assert result.error == "주문을 찾을 수 없습니다."

    def test_uses_instance_handler(self, caplog):
        """메서드는 인스턴스의 error_handler 로 처리"""
        class Service:
            error_handler = ErrorHandler(logging.getLogger("test.instance"))

            @service_boundary("test.instance")
            def op(self):
                raise StateError("이미 처리된 요청입니다.")

        with caplog.at_level(logging.WARNING, logger="test.instance"):
            result = Service().op()

        assert result.status_code == 409
        assert any(r.name == "test.instance" for r in caplog.records)

    def test_explicit_handler(self, caplog):
        @service_boundary("test.explicit", handler=ErrorHandler(logging.getLogger("test.explicit")))
        def op():
            raise ValidationError("값이 올바르지 않습니다.")

        with caplog.at_level(logging.WARNING, logger="test.explicit"):
            result = op()

        assert result.status_code == 400
        assert caplog.records[-1].context["operation"] == "test.explicit"
