"""
가격 엔진
공급가, 카테고리, 경쟁 수준과 시장 데이터로 권장 판매가를 계산
I/O 없는 순수 계산이며 같은 입력에는 항상 같은 결과를 낸다.
"""

from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Optional

from dropship_engine.errors import MarginTooLowError, ValidationError
from dropship_engine.models.market_data import MarketData

CENT = Decimal("0.01")
ONE = Decimal("1")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class PriceRecommendation:
    """권장 가격 계산 결과"""

    price: Decimal
    margin: Decimal  # %
    margin_amount: Decimal
    markup_percent: Decimal  # 경쟁 범위로 보정된 마크업
    raw_price: Decimal
    category_markup: Decimal
    competition_level: str
    rounded: bool
    below_minimum: bool
    meets_target: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            key: str(value) if isinstance(value, Decimal) else value
            for key, value in asdict(self).items()
        }


def to_decimal(value: Any, field: str = "value") -> Decimal:
    """숫자 입력을 Decimal 로 변환"""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field}은(는) 숫자여야 합니다", {"field": field})
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field}은(는) 숫자여야 합니다", {"field": field})
    if not result.is_finite():
        raise ValidationError(f"{field}은(는) 유한한 숫자여야 합니다", {"field": field})
    return result


def competition_level_for(competitor_count: int) -> str:
    """경쟁 판매자 수로 경쟁 수준 결정"""
    if competitor_count <= 3:
        return "low"
    if competitor_count <= 10:
        return "medium"
    return "high"


class PricingEngine:
    """
    시장 데이터 규칙을 적용하여 권장 판매가를 계산하는 엔진.
    상태를 갖지 않으므로 여러 작업에서 동시에 호출해도 안전하다.
    """

    def recommend_price(
        self,
        supplier_cost: Any,
        category: Optional[str],
        competition_level: str,
        market_data: MarketData,
        accept_low_margin: bool = False,
    ) -> PriceRecommendation:
        """
        권장 판매가 계산

        Args:
            supplier_cost: 공급가
            category: 상품 카테고리 (없거나 모르는 값이면 전체 평균 마크업)
            competition_level: 경쟁 수준 (low, medium, high)
            market_data: 시장 데이터
            accept_low_margin: 최소 마진 미달을 허용할지 여부

        Returns:
            PriceRecommendation

        Raises:
            ValidationError: 공급가가 0 이하이거나 경쟁 수준을 모를 때
            MarginTooLowError: 마진이 최소 마진보다 낮을 때
        """
        cost = to_decimal(supplier_cost, "supplier_cost")
        if cost <= 0:
            raise ValidationError("공급가는 0보다 커야 합니다", {"supplier_cost": str(cost)})

        band = market_data.band(competition_level)
        if band is None:
            raise ValidationError(
                f"알 수 없는 경쟁 수준입니다: {competition_level}",
                {
                    "competition_level": competition_level,
                    "allowed": sorted(market_data.competition_bands),
                },
            )

        # 1. 카테고리 평균 마크업
        category_markup = market_data.category_markup(category)
        if category_markup is None:
            category_markup = market_data.global_average_markup

        # 2. 경쟁 범위로 보정
        markup = min(max(category_markup, band.min_markup), band.max_markup)

        # 3. 원가 × (1 + 마크업)
        raw_price = (cost * (ONE + markup / HUNDRED)).quantize(CENT, rounding=ROUND_HALF_UP)

        # 4. 심리적 가격 (16.00 -> 15.99)
        price = raw_price
        rounded = False
        if market_data.psychological_rounding:
            price = self._psychological_price(raw_price)
            rounded = price != raw_price

        # 5. 마진 확인
        margin_amount = price - cost
        margin = (margin_amount / price * HUNDRED).quantize(CENT, rounding=ROUND_HALF_UP)
        below_minimum = margin < market_data.minimum_margin

        if below_minimum and not accept_low_margin:
            raise MarginTooLowError(margin, market_data.minimum_margin, price)

        return PriceRecommendation(
            price=price,
            margin=margin,
            margin_amount=margin_amount,
            markup_percent=markup,
            raw_price=raw_price,
            category_markup=category_markup,
            competition_level=competition_level.strip().lower(),
            rounded=rounded,
            below_minimum=below_minimum,
            meets_target=margin >= market_data.target_margin,
        )

    def bundle_price(self, prices: Iterable[Any], market_data: MarketData) -> Decimal:
        """묶음 판매가 (합계에서 묶음 할인율 적용)"""
        total = sum((to_decimal(p, "price") for p in prices), Decimal("0"))
        discount = ONE - market_data.bundle_discount / HUNDRED
        return (total * discount).quantize(CENT, rounding=ROUND_HALF_UP)

    def _psychological_price(self, price: Decimal) -> Decimal:
        """
        가장 가까운 정수 단위로 반올림 후 0.01 차감합니다.
        1 단위 미만 가격은 그대로 둡니다.
        예: 16.00 -> 15.99, 20.40 -> 19.99
        """
        if price < ONE:
            return price
        return price.quantize(ONE, rounding=ROUND_HALF_UP) - CENT


# 기본 인스턴스
pricing_engine = PricingEngine()


def recommend_price(
    supplier_cost: Any,
    category: Optional[str],
    competition_level: str,
    market_data: MarketData,
    accept_low_margin: bool = False,
) -> PriceRecommendation:
    """PricingEngine.recommend_price 의 함수형 진입점"""
    return pricing_engine.recommend_price(
        supplier_cost, category, competition_level, market_data, accept_low_margin
    )
