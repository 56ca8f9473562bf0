"""
공급사 주문 어댑터
"""

from dropship_engine.orders.adapters.aliexpress import AliExpressAdapter
from dropship_engine.orders.adapters.base import (
    RemoteOrderStatus,
    RemoteStatus,
    SubmitResult,
    SupplierAdapter,
)
from dropship_engine.orders.adapters.domeme import DomemeAdapter
from dropship_engine.orders.adapters.registry import AdapterRegistry, create_adapter_registry

__all__ = [
    "AliExpressAdapter",
    "DomemeAdapter",
    "RemoteOrderStatus",
    "RemoteStatus",
    "SubmitResult",
    "SupplierAdapter",
    "AdapterRegistry",
    "create_adapter_registry",
]
