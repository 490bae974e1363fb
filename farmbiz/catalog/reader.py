"""
reader.py - 소매점용 상품 카탈로그 조회

- 활성 상품만 노출
- 도매점 정보는 익명 코드 + 시/구 단위 지역으로만 노출
- 판매량/추천순 정렬은 주문 데이터를 집계한 뒤 메모리에서 정렬
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

from ..api.supabase_client import SupabaseRepository, check_paging, quote_filter_value
from ..core.config import DEFAULT_RULES
from ..core.exceptions import ValidationError
from ..domain.models import Announcement, OrderStatus, Product

logger = logging.getLogger(__name__)

# 판매량 집계 대상 주문 상태
SALES_STATUSES = [
    OrderStatus.CONFIRMED.value,
    OrderStatus.SHIPPED.value,
    OrderStatus.DELIVERED.value,
    OrderStatus.COMPLETED.value,
]

DB_SORT_KEYS = ("created_at", "price", "standardized_name")
COMPUTED_SORT_KEYS = ("sales_count", "recommended_score")


@dataclass
class ProductPage:
    """상품 목록 페이지"""
    products: List[Product] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 12

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0

    def to_dict(self) -> Dict:
        return {
            "products": [p.to_dict() for p in self.products],
            "total": self.total,
            "page": self.page,
            "pageSize": self.page_size,
            "totalPages": self.total_pages,
        }


def seller_region(address: Optional[str]) -> str:
    """주소에서 시/구만 추출 ("서울특별시 강남구 테헤란로 123" → "서울특별시 강남구")"""
    parts = (address or "").split()
    if len(parts) >= 2:
        return f"{parts[0]} {parts[1]}"
    return address or ""


def recommended_score(sales_count: int, created_at: Optional[datetime], now: datetime = None) -> int:
    """추천 점수 = 판매량 × 10 + 최근성(100일 이내 가산점)"""
    now = now or datetime.now(timezone.utc)
    days = 0
    if created_at is not None:
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        days = max(0, (now - created_at).days)
    return sales_count * 10 + max(0, 100 - days)


class CatalogReader(SupabaseRepository):
    """상품 카탈로그 조회"""

    def list_products(
        self,
        page: int = 1,
        page_size: int = DEFAULT_RULES.default_product_page_size,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        category: Optional[str] = None,
        search: Optional[str] = None,
        min_price: Optional[int] = None,
        max_price: Optional[int] = None,
    ) -> ProductPage:
        """상품 목록 조회

        Args:
            page: 페이지 번호 (1부터)
            page_size: 페이지 크기
            sort_by: created_at | price | standardized_name | sales_count | recommended_score
            sort_order: asc | desc
            category: 카테고리 필터
            search: 상품명/카테고리 검색어
            min_price: 최소 가격
            max_price: 최대 가격

        Returns:
            ProductPage
        """
        check_paging(page, page_size, DEFAULT_RULES.max_page_size)
        if sort_by not in DB_SORT_KEYS + COMPUTED_SORT_KEYS:
            raise ValidationError("지원하지 않는 정렬 기준입니다.", field="sort_by", value=sort_by)
        descending = sort_order != "asc"

        query = (
            self.client.table(self.TABLE_PRODUCTS)
            .select("*", count="exact")
            .eq("is_active", True)
        )

        if category:
            query = query.eq("category", category)

        if search and search.strip():
            term = quote_filter_value(f"%{search.strip()}%")
            query = query.or_(f"standardized_name.ilike.{term},name.ilike.{term},category.ilike.{term}")

        if min_price is not None:
            query = query.gte("price", min_price)
        if max_price is not None:
            query = query.lte("price", max_price)

        needs_sales = sort_by in COMPUTED_SORT_KEYS
        start = (page - 1) * page_size

        if needs_sales:
            # 전체 조회 후 집계/정렬/페이지네이션
            query = query.order("created_at", desc=True)
        else:
            query = query.order(sort_by, desc=descending).range(start, start + page_size - 1)

        result = self._execute(query, self.TABLE_PRODUCTS, "select")
        rows = list(result.data or [])
        total = result.count if result.count is not None else len(rows)

        products = [Product.from_row(r) for r in rows]
        self._attach_sellers(products)

        if needs_sales:
            sales = self._sales_by_product([p.id for p in products])
            for p in products:
                p.sales_count = sales.get(p.id, 0)

            if sort_by == "sales_count":
                key = lambda p: p.sales_count
            else:
                now = datetime.now(timezone.utc)
                key = lambda p: recommended_score(p.sales_count, p.created_at, now)
            products.sort(key=key, reverse=descending)
            products = products[start:start + page_size]

        logger.info(f"상품 목록 조회 완료: {len(products)}건 / 전체 {total}건 (page={page})")
        return ProductPage(products=products, total=total, page=page, page_size=page_size)

    def get_product(self, product_id: str) -> Optional[Product]:
        """상품 단건 조회 (활성 상품만)"""
        row = self._first(
            self.client.table(self.TABLE_PRODUCTS)
            .select("*")
            .eq("id", product_id)
            .eq("is_active", True)
            .limit(1),
            self.TABLE_PRODUCTS,
            "select",
        )
        if row is None:
            return None
        product = Product.from_row(row)
        self._attach_sellers([product])
        return product

    def list_announcements(self, limit: int = 10) -> List[Announcement]:
        """공지사항 최신순 조회"""
        rows = self._rows(
            self.client.table(self.TABLE_ANNOUNCEMENTS)
            .select("*")
            .order("created_at", desc=True)
            .limit(limit),
            self.TABLE_ANNOUNCEMENTS,
            "select",
        )
        return [Announcement.from_row(r) for r in rows]

    # ========== 내부 헬퍼 ==========

    def _attach_sellers(self, products: List[Product]):
        """도매점 익명 코드/지역 채우기"""
        wholesaler_ids = sorted({p.wholesaler_id for p in products if p.wholesaler_id})
        if not wholesaler_ids:
            return

        rows = self._rows(
            self.client.table(self.TABLE_WHOLESALERS)
            .select("id, anonymous_code, address")
            .in_("id", wholesaler_ids),
            self.TABLE_WHOLESALERS,
            "select",
        )
        by_id = {r["id"]: r for r in rows}
        for p in products:
            w = by_id.get(p.wholesaler_id) or {}
            p.anonymous_seller_id = w.get("anonymous_code") or "Unknown"
            p.seller_region = seller_region(w.get("address"))

    def _sales_by_product(self, product_ids: List[str]) -> Dict[str, int]:
        """상품별 판매 수량 집계"""
        if not product_ids:
            return {}
        rows = self._rows(
            self.client.table(self.TABLE_ORDERS)
            .select("product_id, quantity, status")
            .in_("status", SALES_STATUSES)
            .in_("product_id", product_ids),
            self.TABLE_ORDERS,
            "select",
        )
        sales: Dict[str, int] = {}
        for r in rows:
            sales[r["product_id"]] = sales.get(r["product_id"], 0) + int(r.get("quantity") or 0)
        return sales

