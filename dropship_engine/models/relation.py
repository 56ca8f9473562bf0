"""
로컬 상품과 공급사 SKU 연결 모델
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field

from dropship_engine.models.common import DocumentModel

# 동기화 이력 보관 개수
SYNC_HISTORY_LIMIT = 50


class SyncStatus(str, Enum):
    """동기화 결과"""

    SUCCESS = "success"
    FAILED = "failed"


class SyncHistoryEntry(DocumentModel):
    """가격/재고 동기화 이력"""

    synced_at: datetime = Field(default_factory=datetime.now)
    status: SyncStatus
    changes: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None


class Relation(DocumentModel):
    """로컬 상품 ↔ 공급사 SKU 연결

    (product_id, provider, external_id) 조합은 유일하다.
    """

    id: str
    product_id: str = Field(..., description="로컬 상품 ID")
    provider: str = Field(..., description="공급사 ID")
    external_id: str = Field(..., description="공급사 SKU")
    external_url: Optional[str] = None

    supplier_price: Optional[Decimal] = Field(None, ge=0)
    supplier_currency: str = "EUR"
    supplier_stock: Optional[int] = Field(None, ge=0)

    last_sync_at: Optional[datetime] = None
    sync_history: List[SyncHistoryEntry] = Field(default_factory=list)

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def triple(self):
        return (self.product_id, self.provider, self.external_id)


class SyncReport(DocumentModel):
    """공급사 가격/재고 동기화 결과 보고 (error 가 있으면 실패)"""

    supplier_price: Optional[Decimal] = Field(None, ge=0)
    supplier_stock: Optional[int] = Field(None, ge=0)
    error: Optional[str] = None
