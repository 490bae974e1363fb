"""
identity.py - 인증 주체 → 로컬 프로필/역할 해석

인증 자체(세션/토큰 검증)는 외부 인증 서비스가 담당하고,
이 모듈은 검증된 subject id 를 받아 profiles 테이블에서 프로필을 찾는다.
"""

import logging
from typing import Optional

from ..api.supabase_client import SupabaseRepository
from ..core.exceptions import AuthError
from ..domain.models import Profile, Retailer, UserRole

logger = logging.getLogger(__name__)


class IdentityResolver(SupabaseRepository):
    """프로필 조회기"""

    def get_current_profile(self, subject_id: Optional[str]) -> Optional[Profile]:
        """인증 subject id 로 프로필 조회

        Args:
            subject_id: 외부 인증 서비스의 사용자 ID (clerk_user_id)

        Returns:
            Profile 또는 None (미인증/신규 사용자)
        """
        if not subject_id:
            return None

        row = self._first(
            self.client.table(self.TABLE_PROFILES)
            .select("*")
            .eq("clerk_user_id", subject_id)
            .limit(1),
            self.TABLE_PROFILES,
            "select",
        )
        if row is None:
            logger.info("프로필 없음 (신규 사용자)")
            return None

        profile = Profile.from_row(row)

        if profile.role == UserRole.RETAILER:
            retailer_row = self._first(
                self.client.table(self.TABLE_RETAILERS)
                .select("*")
                .eq("profile_id", profile.id)
                .limit(1),
                self.TABLE_RETAILERS,
                "select",
            )
            if retailer_row:
                profile.retailer = Retailer.from_row(retailer_row)

        elif profile.role == UserRole.WHOLESALER:
            wholesaler_row = self._first(
                self.client.table(self.TABLE_WHOLESALERS)
                .select("id")
                .eq("profile_id", profile.id)
                .limit(1),
                self.TABLE_WHOLESALERS,
                "select",
            )
            if wholesaler_row:
                profile.wholesaler_id = wholesaler_row["id"]

        return profile

    def require_profile(self, subject_id: Optional[str]) -> Profile:
        """로그인 필수"""
        profile = self.get_current_profile(subject_id)
        if profile is None:
            raise AuthError("로그인이 필요합니다.")
        return profile

    def require_retailer(self, subject_id: Optional[str]) -> Profile:
        """소매점 계정 필수 (소매점 정보까지 등록된 경우)"""
        profile = self.require_profile(subject_id)
        require_role(profile, UserRole.RETAILER)
        if profile.retailer is None:
            raise AuthError("소매점 정보가 없습니다.", required_role=UserRole.RETAILER.value)
        return profile

    def require_wholesaler(self, subject_id: Optional[str]) -> Profile:
        """도매점 계정 필수"""
        profile = self.require_profile(subject_id)
        require_role(profile, UserRole.WHOLESALER)
        if not profile.wholesaler_id:
            raise AuthError("도매점 정보가 없습니다.", required_role=UserRole.WHOLESALER.value)
        return profile


def require_role(profile: Profile, *roles: UserRole) -> Profile:
    """역할 검사 (불일치 시 403)"""
    if profile.role not in roles:
        raise AuthError(
            "접근 권한이 없습니다.",
            required_role=",".join(r.value for r in roles),
        )
    return profile
