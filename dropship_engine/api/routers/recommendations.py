"""
상품 추천 검토 API 엔드포인트
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from dropship_engine.api.dependencies import Pagination, get_services, is_admin, require_admin
from dropship_engine.services import DropshipServices

router = APIRouter()


@router.get("")
async def list_recommendations(
    state: Optional[str] = None,
    supplier_id: Optional[str] = Query(None, alias="supplierId"),
    pagination: Pagination = Depends(),
    services: DropshipServices = Depends(get_services),
):
    """추천 목록 조회"""
    page = await services.recommendations.list_recommendations(
        state=state, supplier_id=supplier_id, page=pagination.page, limit=pagination.limit
    )
    return pagination.from_page(page)


@router.post("", status_code=status.HTTP_201_CREATED)
async def propose_recommendation(
    candidate: Dict[str, Any] = Body(...),
    _: bool = Depends(require_admin),
    services: DropshipServices = Depends(get_services),
):
    """상품 후보 추천 등록 (관리자)"""
    recommendation = await services.recommendations.propose(candidate)
    return recommendation.to_api()


@router.get("/{recommendation_id}")
async def get_recommendation(
    recommendation_id: str,
    admin: bool = Depends(is_admin),
    services: DropshipServices = Depends(get_services),
):
    """추천 조회 (관리자 조회 시 확인 처리)"""
    recommendation = await services.recommendations.view(recommendation_id, is_admin=admin)
    return recommendation.to_api()


@router.put("/{recommendation_id}")
async def update_recommendation(
    recommendation_id: str,
    patch: Dict[str, Any] = Body(...),
    _: bool = Depends(require_admin),
    services: DropshipServices = Depends(get_services),
):
    """추천 상태 변경 ({seen, reviewed, approved, imported, localProductId})"""
    recommendation = await services.recommendations.apply_update(
        recommendation_id, patch, is_admin=True
    )
    return recommendation.to_api()


@router.delete("/{recommendation_id}")
async def delete_recommendation(
    recommendation_id: str,
    _: bool = Depends(require_admin),
    services: DropshipServices = Depends(get_services),
):
    """추천 삭제 (가져오기 전만)"""
    deleted = await services.recommendations.delete(recommendation_id)
    return {"id": recommendation_id, "deleted": deleted}
