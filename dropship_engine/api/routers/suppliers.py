"""
공급사 관련 API 엔드포인트
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from dropship_engine.api.dependencies import Pagination, get_services, require_admin
from dropship_engine.errors import ValidationError
from dropship_engine.monitoring import get_logger
from dropship_engine.services import DropshipServices

logger = get_logger(__name__)

router = APIRouter()


@router.get("")
async def list_suppliers(
    status_filter: Optional[str] = Query(None, alias="status"),
    country: Optional[str] = None,
    search: Optional[str] = None,
    category: Optional[str] = None,
    pagination: Pagination = Depends(),
    services: DropshipServices = Depends(get_services),
):
    """공급사 목록 조회 (인증 정보 제외)"""
    page = await services.suppliers.list_suppliers(
        status=status_filter,
        country=country,
        search=search,
        category=category,
        page=pagination.page,
        limit=pagination.limit,
    )
    return pagination.from_page(page)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_supplier(
    profile: Dict[str, Any] = Body(...),
    _: bool = Depends(require_admin),
    services: DropshipServices = Depends(get_services),
):
    """공급사 등록 (관리자)"""
    supplier = await services.suppliers.register_supplier(profile)
    return supplier.to_api()


@router.get("/{supplier_id}")
async def get_supplier(supplier_id: str, services: DropshipServices = Depends(get_services)):
    """공급사 상세 조회"""
    supplier = await services.suppliers.get_supplier(supplier_id)
    return supplier.to_api()


@router.put("/{supplier_id}")
async def update_supplier(
    supplier_id: str,
    patch: Dict[str, Any] = Body(...),
    _: bool = Depends(require_admin),
    services: DropshipServices = Depends(get_services),
):
    """공급사 부분 수정 (관리자)"""
    supplier = await services.suppliers.update_supplier(supplier_id, patch)
    if "credentials" in patch:
        services.orders.forget_adapter(supplier_id)
    return supplier.to_api()


@router.post("/{supplier_id}/suspend")
async def suspend_supplier(
    supplier_id: str,
    _: bool = Depends(require_admin),
    services: DropshipServices = Depends(get_services),
):
    """공급사 일시 중지 (관리자)"""
    supplier = await services.suppliers.suspend_supplier(supplier_id)
    return supplier.to_api()


@router.post("/{supplier_id}/activate")
async def activate_supplier(
    supplier_id: str,
    _: bool = Depends(require_admin),
    services: DropshipServices = Depends(get_services),
):
    """공급사 재활성화 (관리자)"""
    supplier = await services.suppliers.activate_supplier(supplier_id)
    return supplier.to_api()


@router.post("/{supplier_id}/rating")
async def update_rating(
    supplier_id: str,
    payload: Dict[str, Any] = Body(...),
    _: bool = Depends(require_admin),
    services: DropshipServices = Depends(get_services),
):
    """공급사 평점 갱신 (관리자, 0~5)"""
    rating = payload.get("rating")
    if isinstance(rating, bool) or not isinstance(rating, (int, float)):
        raise ValidationError("rating 은 숫자여야 합니다", {"rating": rating})
    supplier = await services.suppliers.update_rating(supplier_id, rating)
    return supplier.to_api()
