"""
주문 API

소매점: 목록/상세/취소/구매 확정
도매점: 상태 변경
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ...core.exceptions import ValidationError
from ...domain.models import OrderStatus, Profile
from ..container import ServiceContainer
from ..deps import current_retailer, current_wholesaler, get_services

router = APIRouter(tags=["orders"])


def _parse_status(value: Optional[str]) -> Optional[OrderStatus]:
    if not value:
        return None
    try:
        return OrderStatus(value)
    except ValueError:
        raise ValidationError("지원하지 않는 주문 상태입니다.", field="status", value=value)


@router.get("/api/orders")
def list_orders(
    page: int = Query(1),
    page_size: int = Query(10, alias="pageSize"),
    status: Optional[str] = Query(None),
    sort_by: str = Query("created_at", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    order_number: Optional[str] = Query(None, alias="orderNumber"),
    exclude_cancelled: bool = Query(False, alias="excludeCancelled"),
    profile: Profile = Depends(current_retailer),
    services: ServiceContainer = Depends(get_services),
):
    """본인 주문 목록"""
    result = services.orders.list_orders(
        retailer_id=profile.retailer_id,
        status=_parse_status(status),
        page=page,
        page_size=page_size,
        sort_by=sort_by,
        sort_order=sort_order,
        start_date=start_date,
        end_date=end_date,
        order_number=order_number,
        exclude_cancelled=exclude_cancelled,
    )
    return {"success": True, **result.to_dict()}


@router.get("/api/orders/{order_id}")
def get_order(
    order_id: str,
    profile: Profile = Depends(current_retailer),
    services: ServiceContainer = Depends(get_services),
):
    order = services.orders.get_order_for_retailer(order_id, profile.retailer_id)
    return {"success": True, "order": order.to_dict()}


@router.post("/api/orders/{order_id}/cancel")
def cancel_order(
    order_id: str,
    profile: Profile = Depends(current_retailer),
    services: ServiceContainer = Depends(get_services),
):
    """주문 취소 (배송 시작 전만)"""
    order = services.orders.cancel_order(order_id, profile.retailer_id)
    return {"success": True, "order": order.to_dict(), "message": "주문이 취소되었습니다."}


@router.post("/api/orders/{order_id}/confirm-purchase")
def confirm_purchase(
    order_id: str,
    profile: Profile = Depends(current_retailer),
    services: ServiceContainer = Depends(get_services),
):
    order = services.orders.confirm_purchase(order_id, profile.retailer_id)
    return {"success": True, "order": order.to_dict(), "message": "구매가 확정되었습니다."}


class StatusBody(BaseModel):
    status: str


@router.patch("/api/wholesaler/orders/{order_id}/status")
def update_order_status(
    order_id: str,
    body: StatusBody,
    profile: Profile = Depends(current_wholesaler),
    services: ServiceContainer = Depends(get_services),
):
    """도매점 주문 상태 변경"""
    next_status = _parse_status(body.status)
    if next_status is None:
        raise ValidationError("변경할 상태를 입력해주세요.", field="status")
    order = services.orders.update_status(order_id, profile.wholesaler_id, next_status)
    return {"success": True, "order": order.to_dict()}
