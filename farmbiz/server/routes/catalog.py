"""
카탈로그 API (읽기 전용)
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...core.exceptions import NotFoundError
from ...domain.models import Profile
from ..container import ServiceContainer
from ..deps import current_profile, get_services

router = APIRouter(tags=["catalog"])


@router.get("/api/products")
def list_products(
    page: int = Query(1),
    page_size: int = Query(12, alias="pageSize"),
    sort_by: str = Query("created_at", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    min_price: Optional[int] = Query(None, alias="minPrice"),
    max_price: Optional[int] = Query(None, alias="maxPrice"),
    profile: Profile = Depends(current_profile),
    services: ServiceContainer = Depends(get_services),
):
    result = services.catalog.list_products(
        page=page,
        page_size=page_size,
        sort_by=sort_by,
        sort_order=sort_order,
        category=category,
        search=search,
        min_price=min_price,
        max_price=max_price,
    )
    return {"success": True, **result.to_dict()}


@router.get("/api/products/{product_id}")
def get_product(
    product_id: str,
    profile: Profile = Depends(current_profile),
    services: ServiceContainer = Depends(get_services),
):
    product = services.catalog.get_product(product_id)
    if product is None:
        raise NotFoundError("상품을 찾을 수 없습니다.", resource="product", resource_id=product_id)
    return {"success": True, "product": product.to_dict()}


@router.get("/api/announcements")
def list_announcements(
    limit: int = Query(10, ge=1, le=50),
    services: ServiceContainer = Depends(get_services),
):
    announcements = services.catalog.list_announcements(limit)
    return {"success": True, "announcements": [a.to_dict() for a in announcements]}
