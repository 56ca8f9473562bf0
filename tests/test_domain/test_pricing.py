"""
가격 엔진 테스트
"""

from decimal import Decimal

import pytest

from dropship_engine.domain.pricing import (
    PricingEngine,
    competition_level_for,
    recommend_price,
)
from dropship_engine.errors import MarginTooLowError, ValidationError
from dropship_engine.models.market_data import MarketData


class TestPricingEngine:
    """가격 엔진 테스트"""

    @pytest.fixture
    def engine(self):
        return PricingEngine()

    @pytest.fixture
    def market(self):
        return MarketData()

    def test_category_markup_within_band(self, engine, market):
        """카테고리 마크업이 경쟁 범위 안이면 그대로 적용"""
        result = engine.recommend_price(10, "Beauté & Bien-être", "medium", market)

        assert result.markup_percent == Decimal("60")
        assert result.raw_price == Decimal("16.00")
        assert result.price == Decimal("15.99")
        assert result.rounded is True
        assert result.margin == Decimal("37.46")
        assert result.margin_amount == Decimal("5.99")
        assert result.meets_target is True
        assert result.below_minimum is False

    def test_markup_clamped_to_band_minimum(self, engine, market):
        """카테고리 마크업이 범위 하한보다 낮으면 하한 적용"""
        result = engine.recommend_price(10, "Électronique", "medium", market)

        assert result.category_markup == Decimal("25")
        assert result.markup_percent == Decimal("30")
        assert result.raw_price == Decimal("13.00")
        assert result.price == Decimal("12.99")

    def test_markup_clamped_to_band_maximum(self, engine, market):
        """카테고리 마크업이 범위 상한보다 높으면 상한 적용"""
        result = engine.recommend_price(10, "Beauté & Bien-être", "high", market)

        assert result.markup_percent == Decimal("35")
        assert result.raw_price == Decimal("13.50")
        assert result.price == Decimal("13.99")
        assert result.margin == Decimal("28.52")

    def test_unknown_category_uses_global_average(self, engine, market):
        result = engine.recommend_price(10, "Inconnue", "medium", market)

        assert result.category_markup == Decimal("45")
        assert result.price == Decimal("14.99")

    def test_category_lookup_ignores_case_and_spaces(self, engine, market):
        result = engine.recommend_price(10, "  beauté & bien-être ", "MEDIUM", market)

        assert result.price == Decimal("15.99")
        assert result.competition_level == "medium"

    def test_deterministic(self, engine, market):
        """같은 입력은 같은 결과"""
        first = engine.recommend_price("12.40", "Mode & Accessoires", "low", market)
        second = engine.recommend_price("12.40", "Mode & Accessoires", "low", market)

        assert first == second
        assert recommend_price("12.40", "Mode & Accessoires", "low", market) == first

    def test_without_psychological_rounding(self, engine):
        market = MarketData(psychological_rounding=False)
        result = engine.recommend_price(10, "Beauté & Bien-être", "medium", market)

        assert result.price == Decimal("16.00")
        assert result.rounded is False
        assert result.margin == Decimal("37.50")

    def test_sub_unit_price_not_rounded(self, engine, market):
        """1 단위 미만 가격은 심리적 가격을 적용하지 않음"""
        result = engine.recommend_price("0.50", "Beauté & Bien-être", "medium", market)

        assert result.price == Decimal("0.80")
        assert result.rounded is False
        assert result.margin == Decimal("37.50")

    def test_margin_below_minimum_rejected(self, engine):
        market = MarketData(minimum_margin=Decimal("40"))

        with pytest.raises(MarginTooLowError) as exc_info:
            engine.recommend_price(10, "Beauté & Bien-être", "medium", market)

        assert exc_info.value.margin == Decimal("37.46")
        assert exc_info.value.minimum_margin == Decimal("40")
        assert exc_info.value.status_code == 422

    def test_margin_below_minimum_accepted_when_requested(self, engine):
        market = MarketData(minimum_margin=Decimal("40"))
        result = engine.recommend_price(
            10, "Beauté & Bien-être", "medium", market, accept_low_margin=True
        )

        assert result.below_minimum is True
        assert result.price == Decimal("15.99")

    @pytest.mark.parametrize("cost", [0, -5, "abc", None, True, "NaN"])
    def test_invalid_supplier_cost(self, engine, market, cost):
        with pytest.raises(ValidationError):
            engine.recommend_price(cost, "Électronique", "medium", market)

    def test_unknown_competition_level(self, engine, market):
        with pytest.raises(ValidationError) as exc_info:
            engine.recommend_price(10, "Électronique", "extreme", market)

        assert exc_info.value.details["allowed"] == ["high", "low", "medium"]

    def test_bundle_price(self, engine, market):
        """묶음 할인 10%"""
        assert engine.bundle_price(["15.99", "12.99"], market) == Decimal("26.08")

    def test_to_dict_serializes_decimals(self, engine, market):
        data = engine.recommend_price(10, "Beauté & Bien-être", "medium", market).to_dict()

        assert data["price"] == "15.99"
        assert data["rounded"] is True


@pytest.mark.parametrize(
    "competitors,level",
    [(0, "low"), (3, "low"), (4, "medium"), (10, "medium"), (11, "high")],
)
def test_competition_level_for(competitors, level):
    assert competition_level_for(competitors) == level
