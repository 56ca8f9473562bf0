"""
공급사 관련 데이터 모델
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from dropship_engine.models.common import DocumentModel


class SupplierStatus(str, Enum):
    """공급사 상태 (물리 삭제 없음)"""

    ACTIVE = "active"
    SUSPENDED = "suspended"


class CredentialRef(BaseModel):
    """암호화 저장된 인증 정보의 불투명 참조

    값 자체는 담지 않으며 repr 에도 식별자를 노출하지 않는다.
    """

    model_config = ConfigDict(frozen=True)

    ref_id: str

    def __repr__(self) -> str:
        return "CredentialRef(<redacted>)"

    __str__ = __repr__


class ContactInfo(DocumentModel):
    """공급사 연락처"""

    email: str = Field(..., description="담당자 이메일")
    name: Optional[str] = Field(None, description="담당자명")
    phone: Optional[str] = Field(None, description="전화번호")
    address: Optional[str] = Field(None, description="주소")


class ShippingRate(DocumentModel):
    """국가/지역별 배송비"""

    country: str
    region: Optional[str] = None
    cost: Decimal = Field(Decimal("0"), ge=0)
    estimated_days: int = Field(7, ge=0)
    tracking_available: bool = True


class ReturnPolicy(DocumentModel):
    """반품 정책"""

    accepts_returns: bool = True
    return_window_days: int = Field(30, ge=0)
    restocking_fee: Decimal = Field(Decimal("0"), ge=0, le=100)  # %
    conditions: Optional[str] = None


class Compliance(DocumentModel):
    """세무/인증 준수 정보"""

    tax_compliant: bool = False
    certifications: List[str] = Field(default_factory=list)
    last_audit: Optional[datetime] = None


class Supplier(DocumentModel):
    """공급사 프로필"""

    # 식별자
    id: str = Field(..., description="공급사 ID (이름 slug)")
    name: str = Field(..., description="공급사명")
    slug: str = Field(..., description="URL용 이름")

    # 기본 정보
    description: str
    country: str
    website: Optional[str] = None
    currency: str = "EUR"
    categories: List[str] = Field(default_factory=list)
    contact: ContactInfo

    # 거래 조건
    commission: Decimal = Field(..., ge=0, le=100, description="판매 수수료율 (%)")
    shipping_time: int = Field(..., ge=0, description="평균 배송일")
    min_order: int = Field(1, ge=1, description="최소 주문 수량")
    shipping_rates: List[ShippingRate] = Field(default_factory=list)
    return_policy: ReturnPolicy = Field(default_factory=ReturnPolicy)
    compliance: Compliance = Field(default_factory=Compliance)

    # 주문 연동 어댑터 (없으면 공급사 ID)
    adapter: Optional[str] = None

    # 상태
    status: SupplierStatus = SupplierStatus.ACTIVE
    rating: float = Field(0, ge=0, le=5)

    # 집계
    total_products: int = 0
    total_revenue: Decimal = Decimal("0")
    active_stores: int = 0

    # 인증 정보 참조 (직렬화 제외)
    credential_ref: Optional[CredentialRef] = Field(default=None, exclude=True, repr=False)

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("credential_ref", mode="before")
    @classmethod
    def parse_credential_ref(cls, v):
        if isinstance(v, str):
            return CredentialRef(ref_id=v)
        return v

    @computed_field
    @property
    def has_credentials(self) -> bool:
        return self.credential_ref is not None

    @property
    def adapter_name(self) -> str:
        return self.adapter or self.id

    @property
    def is_active(self) -> bool:
        return self.status == SupplierStatus.ACTIVE
