"""
시장 데이터 저장소 테스트
"""

from decimal import Decimal

import pytest

from dropship_engine.domain.market_data import MarketDataStore
from dropship_engine.errors import ValidationError


@pytest.fixture
def store(storage):
    return MarketDataStore(storage)


@pytest.mark.asyncio
async def test_default_market_data_seeded(store, storage):
    """최초 조회 시 기본값 저장"""
    current = await store.get_current()

    assert current.version == 1
    assert current.minimum_margin == Decimal("15")
    assert current.category_markup("Beauté & Bien-être") == Decimal("60")
    assert await storage.get("market_data", "v1") is not None


@pytest.mark.asyncio
async def test_update_creates_new_version(store, storage):
    await store.get_current()
    updated = await store.update(
        {"minimumMargin": 20, "categoryMarkups": {"Électronique": 28}}, updated_by="admin"
    )

    assert updated.version == 2
    assert updated.minimum_margin == Decimal("20")
    assert updated.category_markups == {"Électronique": Decimal("28")}
    assert updated.updated_by == "admin"
    # 이전 버전 보존
    assert (await storage.get("market_data", "v1"))["minimum_margin"] == "15"
    assert await storage.count("market_data") == 2


@pytest.mark.asyncio
async def test_invalid_update_keeps_current_version(store):
    with pytest.raises(ValidationError) as exc_info:
        await store.update({"bundleDiscount": 150})

    assert exc_info.value.details["errors"][0]["field"] in ("bundle_discount", "bundleDiscount")
    assert (await store.get_current()).version == 1


@pytest.mark.asyncio
async def test_invalid_band_rejected(store):
    with pytest.raises(ValidationError):
        await store.update({"competitionBands": {"low": {"minMarkup": 50, "maxMarkup": 10}}})


@pytest.mark.asyncio
async def test_new_store_loads_latest_version(store, storage):
    await store.update({"targetMargin": 40})
    await store.update({"targetMargin": 42})

    reloaded = await MarketDataStore(storage).get_current()

    assert reloaded.version == 3
    assert reloaded.target_margin == Decimal("42")
