"""
상품 추천 검토 워크플로우
new → seen → reviewed → {approved, rejected} → imported

seen/reviewed 는 이후 결정을 막지 않는다 (검토 전 승인 가능).
추천 단위로 잠금을 걸어 승인과 가져오기가 동시에 처리되지 않게 한다.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional, Protocol, Union

from pydantic import ValidationError as PydanticValidationError

from dropship_engine.catalog.relations import RelationMapper
from dropship_engine.domain.market_data import MarketDataStore
from dropship_engine.domain.pricing import PriceRecommendation, PricingEngine
from dropship_engine.errors import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from dropship_engine.locks import KeyedLocks
from dropship_engine.models.common import Page
from dropship_engine.models.market_data import MarketData
from dropship_engine.models.recommendation import (
    OPEN_STATES,
    STATE_ORDER,
    Recommendation,
    RecommendationCandidate,
    RecommendationState,
)
from dropship_engine.models.supplier import Supplier
from dropship_engine.monitoring import get_logger
from dropship_engine.storage.base import BaseStorage
from dropship_engine.suppliers.registry import SupplierRegistry

logger = get_logger(__name__)

COLLECTION = "recommendations"
PRODUCTS_COLLECTION = "products"


class LocalCatalog(Protocol):
    """로컬 상품 카탈로그 (추천 가져오기 대상)"""

    async def create_product(self, recommendation: Recommendation) -> str:
        """추천으로부터 로컬 상품 생성 후 상품 ID 반환"""
        ...


class StorageCatalog:
    """저장소 products 컬렉션에 초안 상품을 만드는 기본 카탈로그"""

    def __init__(self, storage: BaseStorage):
        self.storage = storage

    async def create_product(self, recommendation: Recommendation) -> str:
        product = await self.storage.create(
            PRODUCTS_COLLECTION,
            {
                "title": recommendation.title,
                "description": recommendation.description,
                "category": recommendation.category,
                "price": str(recommendation.suggested_price),
                "cost": str(recommendation.supplier_cost),
                "images": recommendation.images,
                "supplier_id": recommendation.supplier_id,
                "external_id": recommendation.external_id,
                "source_recommendation_id": recommendation.id,
                "status": "draft",
            },
            id=f"prod_{uuid.uuid4().hex[:16]}",
        )
        return product["id"]


def score_candidate(
    pricing: PriceRecommendation, supplier: Supplier, market_data: MarketData
) -> float:
    """
    추천 점수 (0~100)

    - 마진: 목표 마진 대비 달성률 (50점)
    - 공급사 평점 (20점)
    - 평균 배송일: 30일 이상이면 0점 (20점)
    - 공급사 수수료: 30% 이상이면 0점 (10점)
    """
    target = market_data.target_margin or Decimal("1")
    margin_score = min(max(pricing.margin / target, Decimal("0")), Decimal("1")) * 50
    rating_score = Decimal(str(supplier.rating)) / 5 * 20
    shipping_score = max(Decimal("0"), 1 - Decimal(supplier.shipping_time) / 30) * 20

    commission = market_data.provider_commissions.get(supplier.adapter_name, supplier.commission)
    commission_score = max(Decimal("0"), 1 - commission / 30) * 10

    total = margin_score + rating_score + shipping_score + commission_score
    return float(min(total, Decimal("100")).quantize(Decimal("0.1")))


def _before(state: str, target: RecommendationState) -> bool:
    """state 가 target 보다 앞선 단계인지 (seen/reviewed 는 되돌리지 않음)"""
    return STATE_ORDER[RecommendationState(state).value] < STATE_ORDER[target.value]


class RecommendationWorkflow:
    """상품 추천 검토 워크플로우"""

    def __init__(
        self,
        storage: BaseStorage,
        registry: SupplierRegistry,
        relations: RelationMapper,
        market_data: MarketDataStore,
        pricing: Optional[PricingEngine] = None,
        catalog: Optional[LocalCatalog] = None,
    ):
        self.storage = storage
        self.registry = registry
        self.relations = relations
        self.market_data = market_data
        self.pricing = pricing or PricingEngine()
        self.catalog = catalog or StorageCatalog(storage)
        self._locks = KeyedLocks("recommendations")

    async def _load(self, recommendation_id: str) -> Recommendation:
        document = await self.storage.get(COLLECTION, recommendation_id)
        if document is None:
            raise NotFoundError("추천", recommendation_id)
        return Recommendation.from_document(document)

    async def _save(self, recommendation: Recommendation, **changes) -> Recommendation:
        updated = recommendation.model_copy(update=changes)
        document = updated.to_document()
        saved = await self.storage.update(
            COLLECTION, recommendation.id, {key: document[key] for key in changes}
        )
        return Recommendation.from_document(saved)

    async def propose(
        self, candidate: Union[RecommendationCandidate, Mapping[str, Any]]
    ) -> Recommendation:
        """
        상품 후보를 추천으로 등록

        같은 공급사 SKU 의 진행 중인 추천이 있으면 그 추천을 반환한다.

        Raises:
            ValidationError: 후보 정보 오류 또는 중지된 공급사
            NotFoundError: 공급사 없음
            MarginTooLowError: 최소 마진 미달 (accept_low_margin 미지정)
        """
        if not isinstance(candidate, RecommendationCandidate):
            try:
                candidate = RecommendationCandidate.model_validate(dict(candidate))
            except PydanticValidationError as e:
                raise ValidationError.from_pydantic("추천 후보 정보가 올바르지 않습니다", e)

        supplier = await self.registry.get_supplier(candidate.supplier_id)
        if not supplier.is_active:
            raise ValidationError(
                "중지된 공급사의 상품은 추천할 수 없습니다", {"supplier_id": supplier.id}
            )

        key = ("candidate", supplier.id, candidate.external_id)
        async with self._locks.acquire(key):
            existing = await self.storage.find_one(
                COLLECTION,
                {
                    "supplier_id": supplier.id,
                    "external_id": candidate.external_id,
                    "state__in": OPEN_STATES,
                },
            )
            if existing is not None:
                logger.debug(f"진행 중인 추천 재사용: {existing['id']}")
                return Recommendation.from_document(existing)

            market_data = await self.market_data.get_current()
            price = self.pricing.recommend_price(
                candidate.supplier_cost,
                candidate.category,
                candidate.competition_level,
                market_data,
                accept_low_margin=candidate.accept_low_margin,
            )

            linked = await self.relations.find_relations(
                provider=supplier.id, external_id=candidate.external_id
            )

            recommendation = Recommendation(
                id=f"rec_{uuid.uuid4().hex[:16]}",
                supplier_id=supplier.id,
                external_id=candidate.external_id,
                external_url=candidate.external_url,
                title=candidate.title,
                description=candidate.description,
                category=candidate.category,
                images=candidate.images,
                supplier_cost=candidate.supplier_cost,
                competition_level=price.competition_level,
                suggested_price=price.price,
                margin=price.margin,
                markup_percent=price.markup_percent,
                below_minimum_margin=price.below_minimum,
                score=score_candidate(price, supplier, market_data),
                linked_product_id=linked[0].product_id if linked else None,
            )
            saved = await self.storage.create(
                COLLECTION, recommendation.to_document(), id=recommendation.id
            )

        logger.bind(supplier_id=supplier.id).info(
            f"상품 추천 등록: {recommendation.title} ({price.price}, 마진 {price.margin}%)"
        )
        return Recommendation.from_document(saved)

    async def get(self, recommendation_id: str) -> Recommendation:
        return await self._load(recommendation_id)

    async def view(self, recommendation_id: str, is_admin: bool) -> Recommendation:
        """추천 조회 (관리자 조회는 최초 1회 seen 처리)"""
        if not is_admin:
            return await self._load(recommendation_id)

        async with self._locks.acquire(recommendation_id):
            recommendation = await self._load(recommendation_id)
            if recommendation.seen_at is not None:
                return recommendation

            changes: Dict[str, Any] = {"seen_at": datetime.now()}
            if _before(recommendation.state, RecommendationState.SEEN):
                changes["state"] = RecommendationState.SEEN
            return await self._save(recommendation, **changes)

    async def mark_reviewed(self, recommendation_id: str) -> Recommendation:
        """검토 완료 표시 (결정은 하지 않음)"""
        async with self._locks.acquire(recommendation_id):
            recommendation = await self._load(recommendation_id)
            now = datetime.now()
            changes: Dict[str, Any] = {}

            if recommendation.seen_at is None:
                changes["seen_at"] = now
            if recommendation.reviewed_at is None:
                changes["reviewed_at"] = now
            if _before(recommendation.state, RecommendationState.REVIEWED):
                changes["state"] = RecommendationState.REVIEWED

            if not changes:
                return recommendation
            return await self._save(recommendation, **changes)

    async def decide(self, recommendation_id: str, approved: bool) -> Recommendation:
        """
        승인/거절 결정 (재결정 시 덮어씀)

        가져온 추천에 대한 승인 재요청은 그대로 반환한다.

        Raises:
            ConflictError: 이미 가져온 추천을 거절
        """
        async with self._locks.acquire(recommendation_id):
            recommendation = await self._load(recommendation_id)
            if recommendation.state == RecommendationState.IMPORTED:
                if approved:
                    return recommendation
                raise ConflictError(
                    "이미 상품으로 가져온 추천은 다시 결정할 수 없습니다",
                    {"recommendation_id": recommendation_id},
                )

            state = RecommendationState.APPROVED if approved else RecommendationState.REJECTED
            saved = await self._save(recommendation, state=state, decided_at=datetime.now())

        logger.info(f"추천 {'승인' if approved else '거절'}: {recommendation_id}")
        return saved

    async def import_recommendation(
        self, recommendation_id: str, local_product_id: Optional[str] = None
    ) -> Recommendation:
        """
        승인된 추천을 로컬 상품으로 가져오기

        이미 가져온 추천이면 기존 local_product_id 를 그대로 반환한다.

        Raises:
            ConflictError: 승인되지 않은 추천
        """
        async with self._locks.acquire(recommendation_id):
            recommendation = await self._load(recommendation_id)

            if recommendation.state == RecommendationState.IMPORTED:
                logger.debug(
                    f"이미 가져온 추천: {recommendation_id} -> {recommendation.local_product_id}"
                )
                return recommendation

            if recommendation.state != RecommendationState.APPROVED:
                raise ConflictError(
                    "승인된 추천만 가져올 수 있습니다",
                    {"recommendation_id": recommendation_id, "state": recommendation.state},
                )

            product_id = local_product_id or await self.catalog.create_product(recommendation)

            await self.relations.get_or_create(
                {
                    "product_id": product_id,
                    "provider": recommendation.supplier_id,
                    "external_id": recommendation.external_id,
                    "external_url": recommendation.external_url,
                    "supplier_price": recommendation.supplier_cost,
                }
            )

            saved = await self._save(
                recommendation,
                state=RecommendationState.IMPORTED,
                imported_at=datetime.now(),
                local_product_id=product_id,
            )
            await self.registry.increment_products(recommendation.supplier_id)

        logger.bind(supplier_id=recommendation.supplier_id).info(
            f"추천 상품 가져오기 완료: {recommendation_id} -> {product_id}"
        )
        return saved

    async def apply_update(
        self, recommendation_id: str, patch: Mapping[str, Any], is_admin: bool
    ) -> Recommendation:
        """
        부분 수정 요청 처리 ({seen, reviewed, approved, imported, localProductId})

        seen → reviewed → approved → imported 순서로 적용한다.
        """
        if not is_admin:
            raise PermissionDeniedError("관리자만 추천을 수정할 수 있습니다")

        data = Recommendation.normalize_keys(dict(patch))
        recommendation = await self._load(recommendation_id)

        if data.get("seen"):
            recommendation = await self.view(recommendation_id, is_admin=True)
        if data.get("reviewed"):
            recommendation = await self.mark_reviewed(recommendation_id)
        if data.get("approved") is not None:
            recommendation = await self.decide(recommendation_id, bool(data["approved"]))
        if data.get("imported"):
            recommendation = await self.import_recommendation(
                recommendation_id, data.get("local_product_id")
            )
        return recommendation

    async def delete(self, recommendation_id: str) -> bool:
        """
        추천 삭제 (가져오기 전 상태만)

        Raises:
            ConflictError: 이미 가져온 추천
        """
        async with self._locks.acquire(recommendation_id):
            recommendation = await self._load(recommendation_id)
            if recommendation.state == RecommendationState.IMPORTED:
                raise ConflictError(
                    "상품으로 가져온 추천은 삭제할 수 없습니다",
                    {"recommendation_id": recommendation_id},
                )
            deleted = await self.storage.delete(COLLECTION, recommendation_id)

        logger.info(f"추천 삭제: {recommendation_id}")
        return deleted

    async def list_recommendations(
        self,
        state: Optional[str] = None,
        supplier_id: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Page[Recommendation]:
        filters: Dict[str, Any] = {}
        if state:
            filters["state"] = state
        if supplier_id:
            filters["supplier_id"] = supplier_id

        total = await self.storage.count(COLLECTION, filters)
        documents = await self.storage.list(
            COLLECTION,
            filters=filters,
            limit=limit,
            offset=(page - 1) * limit,
            order_by=["-score", "-created_at"],
        )
        return Page[Recommendation](
            items=[Recommendation.from_document(doc) for doc in documents],
            total=total,
            page=page,
            limit=limit,
        )
