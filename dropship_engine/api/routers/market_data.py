"""
시장 데이터 API 엔드포인트
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from dropship_engine.api.dependencies import get_services, require_admin
from dropship_engine.services import DropshipServices

router = APIRouter()


@router.get("")
async def get_market_data(services: DropshipServices = Depends(get_services)):
    """현재 시장 데이터"""
    market_data = await services.market_data.get_current()
    return market_data.to_api()


@router.put("")
async def update_market_data(
    patch: Dict[str, Any] = Body(...),
    _: bool = Depends(require_admin),
    services: DropshipServices = Depends(get_services),
):
    """시장 데이터 수정 (새 버전 생성, 관리자)"""
    market_data = await services.market_data.update(patch, updated_by="admin")
    return market_data.to_api()
