"""
standardizer.py - AI 상품명 표준화

하이브리드 캐싱:
1. 같은 도매점의 products 에 이미 표준화된 동일 상품명이 있으면 재사용
2. 없으면 Gemini JSON 모드 호출
"""

import json
import logging
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from ..api.supabase_client import SupabaseRepository
from ..core.config import CATEGORIES
from ..core.exceptions import FarmBizError, GeminiAPIError, ValidationError
from .gemini_client import GeminiClient

logger = logging.getLogger(__name__)

CACHED_CONFIDENCE = 0.95

STANDARDIZE_PROMPT = """
다음 상품명을 분석하여 표준화된 형태로 변환해주세요:

입력: "{name}"

다음 형식으로 JSON 응답을 주세요 (JSON만 응답하고 다른 텍스트는 포함하지 마세요):
{{
  "standardizedName": "표준화된 상품명",
  "suggestedCategory": "추천 카테고리",
  "keywords": ["키워드1", "키워드2", "키워드3"],
  "confidence": 0.95
}}

규칙:
- 단위는 띄어쓰기로 구분 (예: 1kg → 1kg 또는 1 kg)
- 등급은 괄호로 표시 (예: 특 → (특급), 상 → (상급))
- 불필요한 기호 제거
- 카테고리는 다음 중 하나로 분류: {categories}
- 키워드는 3-5개 추출 (검색에 유용한 단어들)
- confidence는 표준화 신뢰도 (0.8 이상 권장)
"""


class StandardizeResult(BaseModel):
    """표준화 결과"""
    original_name: str = Field(..., alias="originalName")
    standardized_name: str = Field(..., alias="standardizedName")
    suggested_category: str = Field(default="기타", alias="suggestedCategory")
    keywords: List[str] = Field(default_factory=list)
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)

    model_config = {"populate_by_name": True}

    @field_validator("suggested_category", mode="before")
    @classmethod
    def known_category(cls, v):
        return v if v in CATEGORIES else "기타"

    @field_validator("keywords", mode="before")
    @classmethod
    def keyword_list(cls, v):
        if not isinstance(v, list):
            return []
        return [str(k) for k in v]

    @field_validator("confidence", mode="before")
    @classmethod
    def numeric_confidence(cls, v):
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            return 0.5
        return min(max(float(v), 0.0), 1.0)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)


def parse_json_text(text: str) -> dict:
    """JSON 응답 파싱 (코드 블록/앞뒤 텍스트 허용)"""
    if "```json" in text:
        text = text.split("```json")[1].split("```")[0]
    elif "```" in text:
        text = text.split("```")[1].split("```")[0]
    try:
        return json.loads(text.strip())
    except json.JSONDecodeError:
        start, end = text.find("{"), text.rfind("}")
        if start == -1 or end <= start:
            raise
        return json.loads(text[start:end + 1])


class ProductNameStandardizer(SupabaseRepository):
    """상품명 표준화기"""

    def __init__(self, client, gemini: GeminiClient):
        super().__init__(client)
        self.gemini = gemini

    def standardize(self, product_name: Optional[str], wholesaler_id: Optional[str] = None) -> StandardizeResult:
        """
        Args:
            product_name: 원본 상품명 (예: "양파1kg특")
            wholesaler_id: 캐시 조회용 도매점 ID

        Returns:
            StandardizeResult
        """
        if not product_name or not product_name.strip():
            raise ValidationError("상품명을 입력해주세요.", field="productName")
        name = product_name.strip()

        if wholesaler_id:
            cached = self._cached(name, wholesaler_id)
            if cached is not None:
                logger.info(f"표준화 캐시 사용: {name}")
                return cached

        text = self.gemini.generate(
            STANDARDIZE_PROMPT.format(name=name, categories=", ".join(CATEGORIES)),
            temperature=0.3,
            response_mime_type="application/json",
        )
        if not text:
            raise GeminiAPIError("Gemini로부터 응답을 받지 못했습니다.", model=self.gemini.model_name)

        try:
            data = parse_json_text(text)
        except json.JSONDecodeError as e:
            raise GeminiAPIError(
                "JSON 형식의 응답을 파싱할 수 없습니다.",
                model=self.gemini.model_name,
                response_body=text,
                cause=e,
            ) from e
        if not isinstance(data, dict):
            data = {}

        return StandardizeResult(
            originalName=name,
            standardizedName=data.get("standardizedName") or name,
            suggestedCategory=data.get("suggestedCategory"),
            keywords=data.get("keywords"),
            confidence=data.get("confidence"),
        )

    def _cached(self, name: str, wholesaler_id: str) -> Optional[StandardizeResult]:
        try:
            rows = self._rows(
                self.client.table(self.TABLE_PRODUCTS)
                .select("standardized_name, ai_suggested_category, ai_keywords")
                .eq("wholesaler_id", wholesaler_id)
                .eq("name", name),
                self.TABLE_PRODUCTS,
                "select",
            )
        except FarmBizError as e:
            # 캐시 조회 실패는 AI 호출로 진행
            logger.warning(f"표준화 캐시 조회 실패: {e}")
            return None

        for row in rows:
            if row.get("standardized_name"):
                return StandardizeResult(
                    originalName=name,
                    standardizedName=row["standardized_name"],
                    suggestedCategory=row.get("ai_suggested_category"),
                    keywords=row.get("ai_keywords"),
                    confidence=CACHED_CONFIDENCE,
                )
        return None
