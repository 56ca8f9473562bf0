"""
데이터 모델
"""

from dropship_engine.models.common import DocumentModel, Page
from dropship_engine.models.market_data import MarketData, MarkupBand
from dropship_engine.models.order import (
    CustomerLineItem,
    CustomerOrder,
    DropshipLineItem,
    DropshipOrder,
    DropshipOrderStatus,
    ShippingAddress,
    TrackingResult,
)
from dropship_engine.models.recommendation import (
    Recommendation,
    RecommendationCandidate,
    RecommendationState,
)
from dropship_engine.models.relation import Relation, SyncHistoryEntry, SyncStatus
from dropship_engine.models.supplier import (
    ContactInfo,
    CredentialRef,
    Supplier,
    SupplierStatus,
)

__all__ = [
    "DocumentModel",
    "Page",
    "MarketData",
    "MarkupBand",
    "CustomerLineItem",
    "CustomerOrder",
    "DropshipLineItem",
    "DropshipOrder",
    "DropshipOrderStatus",
    "ShippingAddress",
    "TrackingResult",
    "Recommendation",
    "RecommendationCandidate",
    "RecommendationState",
    "Relation",
    "SyncHistoryEntry",
    "SyncStatus",
    "ContactInfo",
    "CredentialRef",
    "Supplier",
    "SupplierStatus",
]
