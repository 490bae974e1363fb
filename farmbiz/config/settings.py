"""
settings.py - 프로젝트 설정 파일

환경변수 기반 설정 관리 (.env 지원)
"""

import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# 프로젝트 루트 디렉토리
ROOT_DIR = Path(__file__).parent.parent.parent
LOGS_DIR = ROOT_DIR / "logs"


def _env_bool(key: str, default: str = "false") -> bool:
    return os.getenv(key, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class AppSettings:
    """애플리케이션 설정"""

    # --- Supabase ---
    supabase_url: str = ""
    supabase_key: str = ""                      # 서버 전용 service role key

    # --- Gemini ---
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"
    gemini_temperature: float = 0.7
    gemini_max_tokens: int = 1024

    # --- Toss Payments ---
    toss_secret_key: str = ""
    toss_api_base: str = "https://api.tosspayments.com"

    # --- 외부 호출 타임아웃 (초) ---
    payment_timeout_seconds: float = 10.0
    ai_timeout_seconds: float = 30.0

    # --- 정산 ---
    platform_fee_rate: float = 0.05             # 플랫폼 수수료 5%
    payout_business_days: int = 7               # D+7 영업일

    # --- 스토리지 ---
    storage_bucket: str = "product-images"

    # --- HTTP ---
    auth_subject_header: str = "X-Clerk-User-Id"
    cors_origins: str = "*"

    # --- 기타 ---
    debug_mode: bool = False
    log_level: str = "INFO"
    log_json: bool = False
    log_to_file: bool = False
    logs_dir: str = str(LOGS_DIR)

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "AppSettings":
        """환경변수에서 설정 로드"""
        load_dotenv(env_file)
        return cls(
            supabase_url=os.getenv("SUPABASE_URL", ""),
            supabase_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY", os.getenv("SUPABASE_KEY", "")),
            gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
            gemini_model=os.getenv("GEMINI_MODEL_NAME", "gemini-2.5-flash"),
            toss_secret_key=os.getenv("TOSS_SECRET_KEY", ""),
            toss_api_base=os.getenv("TOSS_API_BASE", "https://api.tosspayments.com"),
            payment_timeout_seconds=float(os.getenv("PAYMENT_TIMEOUT_SECONDS", "10")),
            ai_timeout_seconds=float(os.getenv("AI_TIMEOUT_SECONDS", "30")),
            platform_fee_rate=float(os.getenv("PLATFORM_FEE_RATE", "0.05")),
            payout_business_days=int(os.getenv("PAYOUT_BUSINESS_DAYS", "7")),
            storage_bucket=os.getenv("STORAGE_BUCKET", "product-images"),
            auth_subject_header=os.getenv("AUTH_SUBJECT_HEADER", "X-Clerk-User-Id"),
            cors_origins=os.getenv("CORS_ORIGINS", "*"),
            debug_mode=_env_bool("DEBUG"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_json=_env_bool("LOG_JSON"),
            log_to_file=_env_bool("LOG_TO_FILE"),
            logs_dir=os.getenv("LOGS_DIR", str(LOGS_DIR)),
        )

    @property
    def cors_origin_list(self) -> list:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def validate(self) -> list:
        """설정 유효성 검사"""
        errors = []

        if not self.supabase_url or not self.supabase_key:
            errors.append("SUPABASE_URL 또는 SUPABASE_SERVICE_ROLE_KEY가 설정되지 않았습니다.")

        if not self.toss_secret_key:
            errors.append("TOSS_SECRET_KEY가 설정되지 않았습니다. (결제 승인 불가)")

        if not self.gemini_api_key:
            errors.append("GEMINI_API_KEY가 설정되지 않았습니다. (챗봇/AI 기능 비활성)")

        if not (0 <= self.platform_fee_rate < 1):
            errors.append("플랫폼 수수료율은 0~1 사이여야 합니다.")

        if self.payout_business_days < 0:
            errors.append("정산 영업일 수는 0 이상이어야 합니다.")

        if self.payment_timeout_seconds <= 0 or self.ai_timeout_seconds <= 0:
            errors.append("타임아웃은 0보다 커야 합니다.")

        return errors


_settings: Optional[AppSettings] = None


def get_settings() -> AppSettings:
    """설정 인스턴스 반환 (최초 호출 시 로드)"""
    global _settings
    if _settings is None:
        _settings = AppSettings.from_env()
    return _settings


def reload_settings() -> AppSettings:
    """설정 다시 로드"""
    global _settings
    _settings = AppSettings.from_env()
    return _settings
