"""외부 저장소 연동 모듈"""
from .supabase_client import SupabaseRepository, create_supabase_client, quote_filter_value

__all__ = ["SupabaseRepository", "create_supabase_client", "quote_filter_value"]
