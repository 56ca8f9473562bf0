"""
드롭쉬핑 통계 테스트
"""

from decimal import Decimal

import pytest

from dropship_engine.errors import ExternalProviderError
from tests.fixtures.samples import make_candidate, make_customer_order


@pytest.fixture
async def populated(services, fake_adapter, supplier):
    """가져온 추천 1건, 품절 연결 1건, 다른 공급사 연결 1건, 주문 2건 (접수/실패)"""
    workflow = services.recommendations
    recommendation = await workflow.propose(make_candidate())
    await workflow.decide(recommendation.id, approved=True)
    await workflow.import_recommendation(recommendation.id, "P1")

    await services.relations.create_relation(
        {"productId": "P2", "provider": supplier.id, "externalId": "X2", "supplierStock": 0}
    )
    await services.relations.create_relation(
        {"productId": "P3", "provider": "aliexpress", "externalId": "X3"}
    )

    await services.orders.place_order(make_customer_order("C1"))
    fake_adapter.fail_with = ExternalProviderError("주소 오류", retryable=False)
    await services.orders.place_order(make_customer_order("C2"))
    return services


@pytest.mark.asyncio
async def test_empty_stats(services):
    stats = await services.stats.get_stats()

    assert stats.total_products == 0
    assert stats.total_orders == 0
    assert stats.total_revenue == Decimal("0")
    assert stats.average_margin == Decimal("0")


@pytest.mark.asyncio
async def test_supplier_stats(populated):
    stats = await populated.stats.get_stats(supplier_id="beauty-source")

    assert stats.total_products == 2
    assert stats.active_products == 1
    assert stats.total_orders == 2
    assert stats.orders_by_status == {"submitted": 1, "failed": 1}
    # 실패 주문은 매출에서 제외
    assert stats.total_revenue == Decimal("10.00")
    assert stats.average_margin == Decimal("37.46")


@pytest.mark.asyncio
async def test_overall_stats_include_other_suppliers(populated):
    stats = await populated.stats.get_stats()

    assert stats.supplier_id is None
    assert stats.total_products == 3
    assert stats.active_products == 2
    assert stats.to_api()["ordersByStatus"] == {"submitted": 1, "failed": 1}
