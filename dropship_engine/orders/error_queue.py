"""
관리자 오류 큐
자동 재시도가 끝난 공급사 주문 실패를 관리자에게 노출
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from dropship_engine.errors import DropshipError, NotFoundError
from dropship_engine.models.order import DropshipOrder
from dropship_engine.monitoring import get_logger
from dropship_engine.storage.base import BaseStorage

logger = get_logger(__name__)

COLLECTION = "admin_error_queue"


class AdminErrorQueue:
    """관리자 확인이 필요한 주문 오류 목록"""

    def __init__(self, storage: BaseStorage):
        self.storage = storage

    async def push(self, order: DropshipOrder, error: DropshipError) -> Dict[str, Any]:
        """오류 등록"""
        entry = await self.storage.create(
            COLLECTION,
            {
                "order_id": order.id,
                "customer_order_id": order.customer_order_id,
                "supplier_id": order.supplier_id,
                "error_type": type(error).__name__,
                "message": error.message,
                "details": error.details,
                "retry_count": order.retry_count,
                "status": "open",
                "resolved_at": None,
                "resolution": None,
            },
            id=f"err_{uuid.uuid4().hex[:16]}",
        )
        logger.bind(order_id=order.id, supplier_id=order.supplier_id).error(
            f"관리자 오류 큐 등록: {type(error).__name__} - {error.message}"
        )
        return entry

    async def list_open(self, order_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """미해결 오류 목록"""
        filters: Dict[str, Any] = {"status": "open"}
        if order_id:
            filters["order_id"] = order_id
        return await self.storage.list(
            COLLECTION, filters=filters, limit=None, order_by=["created_at"]
        )

    async def resolve(self, entry_id: str, resolution: str = "resolved") -> Dict[str, Any]:
        """오류 해결 처리"""
        updated = await self.storage.update(
            COLLECTION,
            entry_id,
            {"status": "resolved", "resolved_at": datetime.now().isoformat(), "resolution": resolution},
        )
        if updated is None:
            raise NotFoundError("오류 항목", entry_id)
        logger.info(f"관리자 오류 해결: {entry_id} ({resolution})")
        return updated

    async def resolve_for_order(self, order_id: str, resolution: str) -> int:
        """주문의 미해결 오류 전체 해결 처리"""
        entries = await self.list_open(order_id=order_id)
        for entry in entries:
            await self.resolve(entry["id"], resolution)
        return len(entries)
