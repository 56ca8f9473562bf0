"""
도메인 로직
가격 엔진, 시장 데이터, 공급사 검증
"""

from dropship_engine.domain.pricing import (
    PriceRecommendation,
    PricingEngine,
    competition_level_for,
    recommend_price,
)
from dropship_engine.domain.validator import SupplierValidator, ValidationResult

__all__ = [
    "PriceRecommendation",
    "PricingEngine",
    "competition_level_for",
    "recommend_price",
    "SupplierValidator",
    "ValidationResult",
]
