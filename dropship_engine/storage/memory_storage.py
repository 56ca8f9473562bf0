"""
메모리 기반 저장소
개발/테스트용으로 DB 없이 프로세스 메모리에 문서 저장
"""

import asyncio
import copy
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from dropship_engine.storage.base import BaseStorage, matches_filters, resolve_field


def _sort_key(field: str):
    def key(document: Dict[str, Any]):
        value = resolve_field(document, field)
        return (value is None, value if value is not None else "")

    return key


class MemoryStorage(BaseStorage):
    """메모리 저장소 구현"""

    def __init__(self):
        self.data: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = asyncio.Lock()

    def _collection(self, collection: str) -> Dict[str, Dict[str, Any]]:
        return self.data.setdefault(collection, {})

    def _persist(self, collection: str):
        """변경 사항 영속화 (하위 클래스에서 구현)"""

    async def create(
        self, collection: str, data: Dict[str, Any], id: Optional[str] = None
    ) -> Dict[str, Any]:
        async with self._lock:
            record_id = id or data.get("id") or str(uuid.uuid4())
            items = self._collection(collection)
            if record_id in items:
                raise KeyError(f"{collection}/{record_id} 문서가 이미 존재합니다")

            now = datetime.now().isoformat()
            document = copy.deepcopy(data)
            document["id"] = record_id
            document["created_at"] = document.get("created_at") or now
            document["updated_at"] = document.get("updated_at") or now

            items[record_id] = document
            self._persist(collection)
            return copy.deepcopy(document)

    async def get(self, collection: str, id: str) -> Optional[Dict[str, Any]]:
        document = self.data.get(collection, {}).get(id)
        return copy.deepcopy(document) if document is not None else None

    async def list(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = 100,
        offset: int = 0,
        order_by: Optional[Sequence[str]] = None,
    ) -> List[Dict[str, Any]]:
        items = [
            doc for doc in self.data.get(collection, {}).values() if matches_filters(doc, filters)
        ]

        # 안정 정렬이므로 마지막 키부터 적용
        for field in reversed(list(order_by or [])):
            descending = field.startswith("-")
            items.sort(key=_sort_key(field.lstrip("-")), reverse=descending)

        end = None if limit is None else offset + limit
        return [copy.deepcopy(doc) for doc in items[offset:end]]

    async def count(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> int:
        return sum(
            1 for doc in self.data.get(collection, {}).values() if matches_filters(doc, filters)
        )

    async def update(
        self, collection: str, id: str, data: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        async with self._lock:
            items = self.data.get(collection, {})
            if id not in items:
                return None

            items[id].update(copy.deepcopy(data))
            items[id]["id"] = id
            items[id]["updated_at"] = datetime.now().isoformat()
            self._persist(collection)
            return copy.deepcopy(items[id])

    async def delete(self, collection: str, id: str) -> bool:
        async with self._lock:
            items = self.data.get(collection, {})
            if id not in items:
                return False
            del items[id]
            self._persist(collection)
            return True
