"""
supabase_client.py - Supabase 데이터베이스 연동

기능:
1. 설정 기반 클라이언트 생성 (앱 시작 시 1회, 이후 주입)
2. 저장소 공통 베이스 (테이블명 상수, PostgREST 오류 변환)
"""

import logging
from typing import Any, Dict, List, Optional

from postgrest.exceptions import APIError as PostgrestAPIError
from supabase import Client, create_client

from ..core.exceptions import (
    ConfigurationError,
    SchemaNotMigratedError,
    SupabaseError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# PostgreSQL: undefined_column
UNDEFINED_COLUMN = "42703"


def create_supabase_client(url: str, key: str) -> Client:
    """Supabase 클라이언트 생성

    Args:
        url: Supabase URL (SUPABASE_URL)
        key: 서버 전용 service role key

    Raises:
        ConfigurationError: URL/키 미설정
    """
    if not url or not key:
        raise ConfigurationError(
            "SUPABASE_URL 또는 SUPABASE_SERVICE_ROLE_KEY가 설정되지 않았습니다.",
            config_key="SUPABASE_URL",
        )
    client = create_client(url, key)
    logger.info("Supabase 클라이언트 초기화 완료")
    return client


class SupabaseRepository:
    """Supabase 저장소 베이스"""

    # 테이블명
    TABLE_PROFILES = "profiles"
    TABLE_RETAILERS = "retailers"
    TABLE_WHOLESALERS = "wholesalers"
    TABLE_PRODUCTS = "products"
    TABLE_ORDERS = "orders"
    TABLE_SETTLEMENTS = "settlements"
    TABLE_PAYMENTS = "payments"
    TABLE_INQUIRIES = "inquiries"
    TABLE_ANNOUNCEMENTS = "announcements"

    def __init__(self, client: Client):
        """
        Args:
            client: 주입된 Supabase 클라이언트 (요청마다 생성하지 않음)
        """
        self.client = client

    def _execute(self, query, table: str, operation: str):
        """쿼리 실행 + PostgREST 오류 변환"""
        try:
            return query.execute()
        except PostgrestAPIError as e:
            if getattr(e, "code", None) == UNDEFINED_COLUMN:
                raise SchemaNotMigratedError(
                    table=table,
                    operation=operation,
                    cause=e,
                    details={"postgrest_message": getattr(e, "message", None)},
                ) from e
            raise SupabaseError(
                table=table,
                operation=operation,
                cause=e,
                details={
                    "postgrest_code": getattr(e, "code", None),
                    "postgrest_message": getattr(e, "message", None),
                },
            ) from e

    def _rows(self, query, table: str, operation: str) -> List[Dict[str, Any]]:
        result = self._execute(query, table, operation)
        return list(result.data or [])

    def _first(self, query, table: str, operation: str) -> Optional[Dict[str, Any]]:
        rows = self._rows(query, table, operation)
        return rows[0] if rows else None


def quote_filter_value(value: str) -> str:
    """or_() 필터 값 인용 (PostgREST 예약 문자 , . : ( ) 포함 가능)"""
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def check_paging(page: int, page_size: int, max_page_size: int):
    """1부터 시작하는 페이지 번호 / 호출측 상한 검사"""
    if page < 1:
        raise ValidationError("페이지 번호는 1 이상이어야 합니다.", field="page", value=page)
    if page_size < 1 or page_size > max_page_size:
        raise ValidationError(
            f"페이지 크기는 1~{max_page_size} 사이여야 합니다.",
            field="page_size",
            value=page_size,
        )
