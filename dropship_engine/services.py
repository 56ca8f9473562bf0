"""
서비스 구성
저장소와 설정으로 드롭쉬핑 엔진 구성 요소를 한 번에 생성
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from dropship_engine.catalog.relations import RelationMapper
from dropship_engine.config import Settings, get_settings
from dropship_engine.domain.market_data import MarketDataStore
from dropship_engine.domain.pricing import PricingEngine
from dropship_engine.orders.adapters.registry import AdapterRegistry, create_adapter_registry
from dropship_engine.orders.automation import OrderAutomationService
from dropship_engine.orders.error_queue import AdminErrorQueue
from dropship_engine.orders.stats import DropshipStatsService
from dropship_engine.sourcing.recommendations import LocalCatalog, RecommendationWorkflow
from dropship_engine.storage import create_storage
from dropship_engine.storage.base import BaseStorage
from dropship_engine.suppliers.credentials import CredentialVault, load_key
from dropship_engine.suppliers.registry import SupplierRegistry


@dataclass
class DropshipServices:
    """드롭쉬핑 엔진 구성 요소 모음"""

    settings: Settings
    storage: BaseStorage
    suppliers: SupplierRegistry
    relations: RelationMapper
    market_data: MarketDataStore
    pricing: PricingEngine
    recommendations: RecommendationWorkflow
    adapters: AdapterRegistry
    error_queue: AdminErrorQueue
    orders: OrderAutomationService
    stats: DropshipStatsService

    async def close(self):
        await self.orders.close()


def build_services(
    settings: Optional[Settings] = None,
    storage: Optional[BaseStorage] = None,
    adapters: Optional[AdapterRegistry] = None,
    catalog: Optional[LocalCatalog] = None,
    credential_key: Optional[bytes] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> DropshipServices:
    """
    서비스 구성 요소 생성

    Args:
        settings: 애플리케이션 설정
        storage: 저장소 (없으면 설정된 백엔드)
        adapters: 공급사 어댑터 레지스트리 (없으면 기본 어댑터)
        catalog: 로컬 상품 카탈로그 (없으면 저장소 products 컬렉션)
        credential_key: 인증 정보 암호화 키 (없으면 CREDENTIAL_KEY)
        sleep: 재시도 대기 함수
    """
    settings = settings or get_settings()
    storage = storage or create_storage(settings)

    vault = CredentialVault(
        storage, key=credential_key if credential_key is not None else load_key(settings)
    )
    suppliers = SupplierRegistry(storage, vault)
    relations = RelationMapper(storage)
    market_data = MarketDataStore(storage)
    pricing = PricingEngine()
    adapters = adapters or create_adapter_registry(settings)
    error_queue = AdminErrorQueue(storage)

    return DropshipServices(
        settings=settings,
        storage=storage,
        suppliers=suppliers,
        relations=relations,
        market_data=market_data,
        pricing=pricing,
        recommendations=RecommendationWorkflow(
            storage, suppliers, relations, market_data, pricing=pricing, catalog=catalog
        ),
        adapters=adapters,
        error_queue=error_queue,
        orders=OrderAutomationService(
            storage,
            suppliers,
            relations,
            adapters,
            error_queue,
            config=settings.orders,
            sleep=sleep,
        ),
        stats=DropshipStatsService(storage),
    )
