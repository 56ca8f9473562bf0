"""
가격 산정용 시장 데이터 모델
관리자가 수정하는 버전 관리 설정
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional

from pydantic import Field, model_validator

from dropship_engine.models.common import DocumentModel

DEFAULT_CATEGORY_MARKUPS = {
    "Beauté & Bien-être": Decimal("60"),
    "Mode & Accessoires": Decimal("55"),
    "Maison & Jardin": Decimal("45"),
    "Électronique": Decimal("25"),
    "Sport & Loisirs": Decimal("40"),
    "Jouets & Enfants": Decimal("50"),
}


class MarkupBand(DocumentModel):
    """경쟁 수준별 마크업 범위 (%)"""

    min_markup: Decimal = Field(..., ge=0)
    max_markup: Decimal = Field(..., ge=0)

    @model_validator(mode="after")
    def check_range(self):
        if self.min_markup > self.max_markup:
            raise ValueError("min_markup 은 max_markup 보다 클 수 없습니다")
        return self


def default_bands() -> Dict[str, MarkupBand]:
    return {
        "low": MarkupBand(min_markup=Decimal("40"), max_markup=Decimal("80")),
        "medium": MarkupBand(min_markup=Decimal("30"), max_markup=Decimal("60")),
        "high": MarkupBand(min_markup=Decimal("15"), max_markup=Decimal("35")),
    }


class MarketData(DocumentModel):
    """시장 데이터 (가격 엔진 입력)"""

    id: str = "current"
    version: int = 1

    category_markups: Dict[str, Decimal] = Field(
        default_factory=lambda: dict(DEFAULT_CATEGORY_MARKUPS)
    )
    global_average_markup: Decimal = Decimal("45")
    competition_bands: Dict[str, MarkupBand] = Field(default_factory=default_bands)
    provider_commissions: Dict[str, Decimal] = Field(
        default_factory=lambda: {"aliexpress": Decimal("8"), "domeme": Decimal("10")}
    )

    # 추천 상수
    minimum_margin: Decimal = Decimal("15")
    target_margin: Decimal = Decimal("35")
    bundle_discount: Decimal = Field(Decimal("10"), ge=0, lt=100)
    psychological_rounding: bool = True

    updated_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def category_markup(self, category: Optional[str]) -> Optional[Decimal]:
        """카테고리 평균 마크업 (대소문자/공백 무시)"""
        if not category:
            return None
        key = category.strip().casefold()
        for name, markup in self.category_markups.items():
            if name.strip().casefold() == key:
                return markup
        return None

    def band(self, competition_level: str) -> Optional[MarkupBand]:
        return self.competition_bands.get((competition_level or "").strip().lower())
