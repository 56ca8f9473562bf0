"""
상품 추천(소싱 후보) 모델
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import Field, computed_field

from dropship_engine.models.common import DocumentModel


class RecommendationState(str, Enum):
    """추천 검토 상태"""

    NEW = "new"  # 신규
    SEEN = "seen"  # 관리자 확인
    REVIEWED = "reviewed"  # 검토 완료
    APPROVED = "approved"  # 승인
    REJECTED = "rejected"  # 거절
    IMPORTED = "imported"  # 상품 등록 완료 (종결)


# 진행 순서 (seen/reviewed 는 되돌리지 않음)
STATE_ORDER = {
    RecommendationState.NEW.value: 0,
    RecommendationState.SEEN.value: 1,
    RecommendationState.REVIEWED.value: 2,
    RecommendationState.APPROVED.value: 3,
    RecommendationState.REJECTED.value: 3,
    RecommendationState.IMPORTED.value: 4,
}

OPEN_STATES = [
    RecommendationState.NEW.value,
    RecommendationState.SEEN.value,
    RecommendationState.REVIEWED.value,
    RecommendationState.APPROVED.value,
]


class RecommendationCandidate(DocumentModel):
    """공급사 데이터에서 발굴된 상품 후보"""

    supplier_id: str
    external_id: str
    title: str = Field(..., min_length=1)
    category: str
    supplier_cost: Decimal = Field(..., gt=0)
    competition_level: str = "medium"
    external_url: Optional[str] = None
    description: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    accept_low_margin: bool = False


class Recommendation(DocumentModel):
    """관리자 검토 대상 상품 추천"""

    id: str
    supplier_id: str
    external_id: str
    external_url: Optional[str] = None
    title: str
    description: Optional[str] = None
    category: str
    images: List[str] = Field(default_factory=list)

    # 가격 제안
    supplier_cost: Decimal
    competition_level: str
    suggested_price: Decimal
    margin: Decimal
    markup_percent: Decimal
    below_minimum_margin: bool = False
    score: float = Field(0, ge=0, le=100)

    # 상태
    state: RecommendationState = RecommendationState.NEW
    seen_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    decided_at: Optional[datetime] = None
    imported_at: Optional[datetime] = None

    local_product_id: Optional[str] = None
    linked_product_id: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @computed_field
    @property
    def seen(self) -> bool:
        return self.seen_at is not None or self.state != RecommendationState.NEW

    @computed_field
    @property
    def reviewed(self) -> bool:
        return self.reviewed_at is not None

    @computed_field
    @property
    def approved(self) -> Optional[bool]:
        """결정 전이면 None"""
        if self.state in (RecommendationState.APPROVED, RecommendationState.IMPORTED):
            return True
        if self.state == RecommendationState.REJECTED:
            return False
        return None

    @computed_field
    @property
    def imported(self) -> bool:
        return self.state == RecommendationState.IMPORTED
