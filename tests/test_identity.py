"""identity.py 테스트"""

import pytest

from fakes import RETAILER_SUBJECT, WHOLESALER_SUBJECT
from farmbiz.auth.identity import IdentityResolver, require_role
from farmbiz.core.exceptions import AuthError, SupabaseError
from farmbiz.domain.models import UserRole


class TestIdentityResolver:
    """IdentityResolver 테스트"""

    def test_no_subject(self, db):
        assert IdentityResolver(db).get_current_profile(None) is None

    def test_unknown_subject(self, db):
        """신규 사용자는 None"""
        assert IdentityResolver(db).get_current_profile("user_unknown") is None

    def test_retailer_profile(self, db):
        profile = IdentityResolver(db).get_current_profile(RETAILER_SUBJECT)

        assert profile.role == UserRole.RETAILER
        assert profile.retailer_id == "r1"
        assert profile.wholesaler_id is None

    def test_wholesaler_profile(self, db):
        profile = IdentityResolver(db).get_current_profile(WHOLESALER_SUBJECT)

        assert profile.role == UserRole.WHOLESALER
        assert profile.wholesaler_id == "w1"
        assert profile.retailer is None

    def test_profile_without_role(self, db):
        """역할 선택 전"""
        profile = IdentityResolver(db).get_current_profile("user_no_role")
        assert profile is not None
        assert profile.role is None

    def test_lookup_failure_propagates(self, db):
        """조회 실패는 '로그인 안 됨'으로 취급하지 않음"""
        db.fail_on("profiles", "select")
        with pytest.raises(SupabaseError):
            IdentityResolver(db).get_current_profile(RETAILER_SUBJECT)


class TestRequireRole:
    """역할 검사 테스트"""

    def test_require_profile(self, db):
        with pytest.raises(AuthError) as exc_info:
            IdentityResolver(db).require_profile(None)
        assert exc_info.value.http_status == 401

    def test_require_retailer_rejects_wholesaler(self, db):
        with pytest.raises(AuthError) as exc_info:
            IdentityResolver(db).require_retailer(WHOLESALER_SUBJECT)
        assert exc_info.value.http_status == 403

    def test_require_wholesaler(self, db):
        profile = IdentityResolver(db).require_wholesaler(WHOLESALER_SUBJECT)
        assert profile.wholesaler_id == "w1"

    def test_retailer_without_store(self, db):
        """소매점 정보 미등록"""
        db.tables["retailers"] = []
        with pytest.raises(AuthError) as exc_info:
            IdentityResolver(db).require_retailer(RETAILER_SUBJECT)
        assert exc_info.value.message == "소매점 정보가 없습니다."

    def test_require_role_any_of(self, retailer):
        assert require_role(retailer, UserRole.RETAILER, UserRole.WHOLESALER) is retailer
        with pytest.raises(AuthError):
            require_role(retailer, UserRole.ADMIN)
