"""
gemini_client.py - Gemini API 호출 래퍼

- API 키는 서버에서만 사용 (클라이언트 노출 없음)
- 1회 호출, 재시도/스트리밍 없음, 타임아웃 필수
- google-api-core 예외를 FarmBizError 계층으로 변환
"""

import logging
from typing import Any, Dict, List, Optional, Union

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from ..config.logging_config import get_perf_logger
from ..core.exceptions import ConfigurationError, GeminiAPIError, RateLimitError, TimeoutError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"

Contents = Union[str, List[Dict[str, Any]]]


class GeminiClient:
    """Gemini 생성 API 클라이언트"""

    def __init__(
        self,
        api_key: Optional[str],
        model_name: str = DEFAULT_MODEL,
        timeout: float = 30.0,
        temperature: float = 0.7,
        max_tokens: int = 1024,
    ):
        """
        Args:
            api_key: GEMINI_API_KEY
            model_name: 모델명 (GEMINI_MODEL_NAME)
            timeout: 요청 타임아웃 (초)
            temperature: 기본 temperature
            max_tokens: 최대 출력 토큰
        """
        self.api_key = api_key or ""
        self.model_name = model_name
        self.timeout = timeout
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.perf = get_perf_logger(__name__)
        self._configured = False

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _model(self, system_instruction: Optional[str]):
        if not self._configured:
            genai.configure(api_key=self.api_key)
            self._configured = True
        return genai.GenerativeModel(self.model_name, system_instruction=system_instruction)

    def generate(
        self,
        contents: Contents,
        system_instruction: Optional[str] = None,
        temperature: Optional[float] = None,
        response_mime_type: Optional[str] = None,
    ) -> str:
        """텍스트 생성

        Args:
            contents: 프롬프트 문자열 또는 [{"role", "parts"}] 대화 목록
            system_instruction: 시스템 프롬프트
            temperature: 호출별 temperature (없으면 기본값)
            response_mime_type: "application/json" 이면 JSON 응답 강제

        Returns:
            응답 텍스트 (앞뒤 공백 제거, 응답이 없으면 빈 문자열)

        Raises:
            ConfigurationError: API 키 미설정
            RateLimitError: 429
            TimeoutError: 타임아웃
            GeminiAPIError: 기타 API 오류
        """
        if not self.is_configured:
            raise ConfigurationError(
                "Gemini API 키가 설정되지 않았습니다.",
                config_key="GEMINI_API_KEY",
            )

        generation_config = {
            "temperature": self.temperature if temperature is None else temperature,
            "max_output_tokens": self.max_tokens,
        }
        if response_mime_type:
            generation_config["response_mime_type"] = response_mime_type

        model = self._model(system_instruction)
        try:
            with self.perf.track("Gemini 호출", model=self.model_name):
                response = model.generate_content(
                    contents,
                    generation_config=generation_config,
                    request_options={"timeout": self.timeout},
                )
        except google_exceptions.ResourceExhausted as e:
            raise RateLimitError(
                cause=e,
                status_code=429,
                endpoint=self.model_name,
                response_body=str(e),
            ) from e
        except google_exceptions.DeadlineExceeded as e:
            raise TimeoutError(
                timeout_seconds=self.timeout,
                endpoint=self.model_name,
                cause=e,
            ) from e
        except google_exceptions.GoogleAPIError as e:
            raise GeminiAPIError(
                model=self.model_name,
                status_code=getattr(e, "code", None),
                response_body=str(e),
                cause=e,
            ) from e

        return self._response_text(response)

    @staticmethod
    def _response_text(response) -> str:
        # 안전 필터 등으로 후보가 없으면 .text 가 ValueError
        try:
            text = response.text
        except ValueError:
            logger.warning("Gemini 응답에 텍스트가 없습니다.")
            return ""
        return (text or "").strip()
