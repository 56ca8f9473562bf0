"""
공급사 주문(섀도 주문) 관련 데이터 모델
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field, computed_field, field_validator

from dropship_engine.models.common import DocumentModel

# 통신 로그 보관 개수
COMMUNICATION_LIMIT = 50


class DropshipOrderStatus(str, Enum):
    """공급사 주문 상태"""

    PENDING = "pending"  # 전달 대기
    SUBMITTED = "submitted"  # 공급사 접수
    CONFIRMED = "confirmed"  # 공급사 확인
    SHIPPED = "shipped"  # 배송중
    DELIVERED = "delivered"  # 배송완료 (종결)
    CANCELLED = "cancelled"  # 취소 (종결)
    FAILED = "failed"  # 전달 실패


class ShippingAddress(DocumentModel):
    """고객 배송지"""

    name: str = Field(..., min_length=1)
    address1: str = Field(..., min_length=1)
    address2: Optional[str] = None
    city: str
    postal_code: str
    country: str
    state: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


class CustomerLineItem(DocumentModel):
    """고객 주문 상품 항목

    supplier_id/external_id 가 없으면 상품의 공급사 연결(Relation)로 찾는다.
    """

    product_id: str
    quantity: int
    title: Optional[str] = None
    supplier_id: Optional[str] = None
    external_id: Optional[str] = None
    unit_cost: Optional[Decimal] = Field(None, ge=0)


class CustomerOrder(DocumentModel):
    """확정된 고객 주문"""

    id: str
    line_items: List[CustomerLineItem] = Field(default_factory=list)
    shipping_address: ShippingAddress
    currency: str = "EUR"
    note: Optional[str] = None


class DropshipLineItem(DocumentModel):
    """공급사 SKU 단위 주문 항목"""

    product_id: str
    external_id: str
    quantity: int = Field(..., gt=0)
    unit_cost: Decimal = Field(Decimal("0"), ge=0)
    title: Optional[str] = None

    @property
    def line_total(self) -> Decimal:
        return self.unit_cost * self.quantity


class CommunicationEntry(DocumentModel):
    """공급사 API 호출 기록 (인증 정보 제외)"""

    at: datetime = Field(default_factory=datetime.now)
    direction: str = "outbound"  # outbound, inbound
    type: str  # submit, status, cancel
    status: str  # success, failed
    message: Optional[str] = None


class DropshipOrder(DocumentModel):
    """공급사 주문 섀도 레코드

    고객 주문 1건 × 공급사 1곳 마다 정확히 하나 생성되며 삭제하지 않는다.
    """

    id: str
    customer_order_id: str
    supplier_id: str
    adapter: str
    idempotency_token: str

    line_items: List[DropshipLineItem]
    shipping: ShippingAddress
    currency: str = "EUR"

    status: DropshipOrderStatus = DropshipOrderStatus.PENDING
    external_ref: Optional[str] = None
    tracking_number: Optional[str] = None
    carrier: Optional[str] = None
    remote_status: Optional[str] = None
    last_tracking_check: Optional[datetime] = None

    retry_count: int = 0
    last_error: Optional[str] = None
    cancelled_locally: bool = False

    submitted_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    communication: List[CommunicationEntry] = Field(default_factory=list)

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("line_items")
    @classmethod
    def validate_line_items(cls, v):
        if not v:
            raise ValueError("주문 항목이 최소 1개 필요합니다")
        return v

    @computed_field
    @property
    def total_cost(self) -> Decimal:
        return sum((item.line_total for item in self.line_items), Decimal("0"))

    def payload(self) -> Dict[str, Any]:
        """어댑터에 전달할 주문 내용"""
        return {
            "order_id": self.id,
            "customer_order_id": self.customer_order_id,
            "supplier_id": self.supplier_id,
            "currency": self.currency,
            "line_items": [item.to_document() for item in self.line_items],
            "shipping": self.shipping.to_document(),
        }

    def log_communication(self, type: str, status: str, message: Optional[str] = None):
        self.communication.append(CommunicationEntry(type=type, status=status, message=message))
        del self.communication[:-COMMUNICATION_LIMIT]


class TrackingResult(DocumentModel):
    """주문 추적 결과 (주문별)"""

    order_id: str
    previous_status: Optional[str] = None
    status: Optional[str] = None
    remote_status: Optional[str] = None
    changed: bool = False
    tracking_number: Optional[str] = None
    carrier: Optional[str] = None
    skipped: Optional[str] = None
    error: Optional[str] = None


class DropshipStats(DocumentModel):
    """드롭쉬핑 집계 (전체 또는 공급사별)"""

    supplier_id: Optional[str] = None
    total_products: int = 0
    active_products: int = 0
    total_orders: int = 0
    orders_by_status: Dict[str, int] = Field(default_factory=dict)
    total_revenue: Decimal = Decimal("0")
    average_margin: Decimal = Decimal("0")
