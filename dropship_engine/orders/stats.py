"""
드롭쉬핑 집계
연결 상품 수, 공급사 주문 수/금액, 가져온 추천의 평균 마진
"""

from collections import Counter
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional

from dropship_engine.catalog.relations import COLLECTION as RELATIONS
from dropship_engine.models.order import DropshipOrder, DropshipOrderStatus, DropshipStats
from dropship_engine.models.recommendation import Recommendation, RecommendationState
from dropship_engine.models.relation import Relation
from dropship_engine.monitoring import get_logger
from dropship_engine.orders.automation import COLLECTION as ORDERS
from dropship_engine.sourcing.recommendations import COLLECTION as RECOMMENDATIONS
from dropship_engine.storage.base import BaseStorage

logger = get_logger(__name__)

# 매출에 포함하는 주문 상태 (공급사가 접수한 주문)
REVENUE_STATUSES = {
    DropshipOrderStatus.SUBMITTED.value,
    DropshipOrderStatus.CONFIRMED.value,
    DropshipOrderStatus.SHIPPED.value,
    DropshipOrderStatus.DELIVERED.value,
}

CENT = Decimal("0.01")


class DropshipStatsService:
    """저장소 문서로부터 드롭쉬핑 통계 계산"""

    def __init__(self, storage: BaseStorage):
        self.storage = storage

    async def get_stats(self, supplier_id: Optional[str] = None) -> DropshipStats:
        """
        드롭쉬핑 통계

        Args:
            supplier_id: 공급사 ID (없으면 전체)

        Returns:
            DropshipStats (상품은 재고가 0 이 아닌 연결이 하나라도 있으면 판매 가능)
        """
        relation_filters: Dict[str, Any] = {"provider": supplier_id} if supplier_id else {}
        relations = [
            Relation.from_document(doc)
            for doc in await self.storage.list(RELATIONS, filters=relation_filters, limit=None)
        ]
        products = {relation.product_id for relation in relations}
        active = {
            relation.product_id
            for relation in relations
            if relation.supplier_stock is None or relation.supplier_stock > 0
        }

        order_filters: Dict[str, Any] = {"supplier_id": supplier_id} if supplier_id else {}
        orders = [
            DropshipOrder.from_document(doc)
            for doc in await self.storage.list(ORDERS, filters=order_filters, limit=None)
        ]
        by_status = Counter(order.status for order in orders)
        revenue = sum(
            (order.total_cost for order in orders if order.status in REVENUE_STATUSES),
            Decimal("0"),
        )

        recommendation_filters: Dict[str, Any] = {"state": RecommendationState.IMPORTED.value}
        if supplier_id:
            recommendation_filters["supplier_id"] = supplier_id
        margins = [
            Recommendation.from_document(doc).margin
            for doc in await self.storage.list(
                RECOMMENDATIONS, filters=recommendation_filters, limit=None
            )
        ]
        average_margin = sum(margins, Decimal("0")) / len(margins) if margins else Decimal("0")

        stats = DropshipStats(
            supplier_id=supplier_id,
            total_products=len(products),
            active_products=len(active),
            total_orders=len(orders),
            orders_by_status=dict(by_status),
            total_revenue=revenue.quantize(CENT, rounding=ROUND_HALF_UP),
            average_margin=average_margin.quantize(CENT, rounding=ROUND_HALF_UP),
        )
        logger.debug(
            f"드롭쉬핑 통계: 상품 {stats.total_products}, 주문 {stats.total_orders} "
            f"({supplier_id or '전체'})"
        )
        return stats
