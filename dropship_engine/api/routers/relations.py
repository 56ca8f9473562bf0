"""
상품-공급사 연결 API 엔드포인트
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from dropship_engine.api.dependencies import get_services, require_admin
from dropship_engine.services import DropshipServices

router = APIRouter()


@router.get("")
async def find_relations(
    product_id: Optional[str] = Query(None, alias="productId"),
    provider: Optional[str] = None,
    external_id: Optional[str] = Query(None, alias="externalId"),
    services: DropshipServices = Depends(get_services),
):
    """연결 검색"""
    relations = await services.relations.find_relations(
        product_id=product_id, provider=provider, external_id=external_id
    )
    return {"items": [relation.to_api() for relation in relations], "total": len(relations)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_relation(
    payload: Dict[str, Any] = Body(...),
    services: DropshipServices = Depends(get_services),
):
    """연결 생성 (중복 조합은 400)"""
    relation = await services.relations.create_relation(payload)
    return relation.to_api()


@router.get("/{relation_id}")
async def get_relation(relation_id: str, services: DropshipServices = Depends(get_services)):
    """연결 상세 (동기화 이력 포함)"""
    relation = await services.relations.get_relation(relation_id)
    return relation.to_api()


@router.post("/{relation_id}/sync")
async def sync_relation(
    relation_id: str,
    report: Dict[str, Any] = Body(...),
    services: DropshipServices = Depends(get_services),
):
    """공급사 가격/재고 동기화 결과 기록"""
    relation = await services.relations.apply_sync_report(relation_id, report)
    return relation.to_api()


@router.delete("/products/{product_id}")
async def retire_product(
    product_id: str,
    _: bool = Depends(require_admin),
    services: DropshipServices = Depends(get_services),
):
    """폐기된 상품의 연결 삭제 (관리자)"""
    deleted = await services.relations.retire_product(product_id)
    return {"productId": product_id, "deleted": deleted}
