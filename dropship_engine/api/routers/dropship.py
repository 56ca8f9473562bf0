"""
공급사 주문 자동화 API 엔드포인트
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from pydantic.alias_generators import to_camel

from dropship_engine.api.dependencies import get_services, require_admin
from dropship_engine.errors import ValidationError
from dropship_engine.monitoring import get_logger
from dropship_engine.services import DropshipServices

logger = get_logger(__name__)

router = APIRouter()


def _camelize(entry: Dict[str, Any]) -> Dict[str, Any]:
    return {to_camel(key): value for key, value in entry.items()}


@router.post("/orders", status_code=status.HTTP_201_CREATED)
async def place_order(
    customer_order: Dict[str, Any] = Body(...),
    services: DropshipServices = Depends(get_services),
):
    """고객 주문을 공급사별 주문으로 전달"""
    orders = await services.orders.place_order(customer_order)
    return {"orders": [order.to_api() for order in orders], "total": len(orders)}


@router.get("/orders")
async def list_orders(
    customer_order_id: Optional[str] = Query(None, alias="customerOrderId"),
    status_filter: Optional[str] = Query(None, alias="status"),
    supplier_id: Optional[str] = Query(None, alias="supplierId"),
    services: DropshipServices = Depends(get_services),
):
    """공급사 주문 목록"""
    orders = await services.orders.list_orders(
        customer_order_id=customer_order_id, status=status_filter, supplier_id=supplier_id
    )
    return {"items": [order.to_api() for order in orders], "total": len(orders)}


@router.get("/orders/{order_id}")
async def get_order(order_id: str, services: DropshipServices = Depends(get_services)):
    """공급사 주문 상세"""
    order = await services.orders.get_order(order_id)
    return order.to_api()


@router.post("/track-orders")
async def track_orders(
    payload: Dict[str, Any] = Body(...),
    services: DropshipServices = Depends(get_services),
):
    """주문 상태 추적"""
    order_ids = payload.get("orderIds", payload.get("order_ids"))
    if not isinstance(order_ids, list) or not all(isinstance(i, str) for i in order_ids):
        raise ValidationError("orderIds 는 주문 ID 문자열 목록이어야 합니다")

    results = await services.orders.track_orders(order_ids)
    return {"results": [result.to_api() for result in results]}


@router.post("/orders/{order_id}/cancel")
async def cancel_order(
    order_id: str,
    _: bool = Depends(require_admin),
    services: DropshipServices = Depends(get_services),
):
    """공급사 주문 취소 (관리자)"""
    order = await services.orders.cancel_order(order_id)
    return order.to_api()


@router.post("/orders/{order_id}/requeue")
async def requeue_order(
    order_id: str,
    admin: bool = Depends(require_admin),
    services: DropshipServices = Depends(get_services),
):
    """실패 주문 재전달 (관리자)"""
    order = await services.orders.requeue_failed(order_id, is_admin=admin)
    return order.to_api()


@router.get("/errors")
async def list_errors(
    order_id: Optional[str] = Query(None, alias="orderId"),
    _: bool = Depends(require_admin),
    services: DropshipServices = Depends(get_services),
) -> Dict[str, List[Dict[str, Any]]]:
    """관리자 오류 큐 (미해결)"""
    entries = await services.error_queue.list_open(order_id=order_id)
    return {"items": [_camelize(entry) for entry in entries]}


@router.post("/errors/{entry_id}/resolve")
async def resolve_error(
    entry_id: str,
    payload: Optional[Dict[str, Any]] = Body(None),
    _: bool = Depends(require_admin),
    services: DropshipServices = Depends(get_services),
):
    """관리자 오류 해결 처리"""
    resolution = (payload or {}).get("resolution") or "resolved"
    entry = await services.error_queue.resolve(entry_id, resolution)
    return _camelize(entry)


@router.get("/stats")
async def get_stats(
    supplier_id: Optional[str] = Query(None, alias="supplierId"),
    services: DropshipServices = Depends(get_services),
):
    """드롭쉬핑 통계 (전체 또는 공급사별)"""
    if supplier_id:
        await services.suppliers.get_supplier(supplier_id)
    stats = await services.stats.get_stats(supplier_id=supplier_id)
    return stats.to_api()
