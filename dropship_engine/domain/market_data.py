"""
시장 데이터 저장소
가격 엔진이 읽는 버전 관리 설정 (관리자만 수정)
"""

import asyncio
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from dropship_engine.errors import ValidationError
from dropship_engine.models.market_data import MarketData
from dropship_engine.monitoring import get_logger
from dropship_engine.storage.base import BaseStorage

logger = get_logger(__name__)

COLLECTION = "market_data"


class MarketDataStore:
    """시장 데이터 버전 저장소

    수정할 때마다 새 버전 문서를 추가하고 최신 버전을 현재 설정으로 사용한다.
    """

    def __init__(self, storage: BaseStorage):
        self.storage = storage
        self._current: Optional[MarketData] = None
        self._lock = asyncio.Lock()

    async def get_current(self) -> MarketData:
        """현재 시장 데이터 (없으면 기본값으로 초기화)"""
        if self._current is not None:
            return self._current

        async with self._lock:
            if self._current is None:
                documents = await self.storage.list(COLLECTION, limit=1, order_by=["-version"])
                if documents:
                    self._current = MarketData.from_document(documents[0])
                else:
                    self._current = await self._save(MarketData())
                    logger.info("기본 시장 데이터 초기화")
        return self._current

    async def update(self, patch: Dict[str, Any], updated_by: Optional[str] = None) -> MarketData:
        """
        시장 데이터 수정 (새 버전 생성)

        Args:
            patch: 변경할 항목 (snake_case 또는 camelCase)
            updated_by: 수정자

        Returns:
            새 버전 MarketData
        """
        current = await self.get_current()

        async with self._lock:
            merged = current.model_dump()
            for key in ("id", "version", "created_at", "updated_at"):
                merged.pop(key, None)
            merged.update(MarketData.normalize_keys(patch))
            merged["version"] = current.version + 1
            merged["updated_by"] = updated_by

            try:
                candidate = MarketData.model_validate(merged)
            except PydanticValidationError as e:
                raise ValidationError.from_pydantic("시장 데이터 형식이 올바르지 않습니다", e)

            self._current = await self._save(candidate)

        logger.bind(version=self._current.version).info(
            f"시장 데이터 버전 갱신: v{self._current.version}"
        )
        return self._current

    async def _save(self, market_data: MarketData) -> MarketData:
        document = market_data.to_document()
        document["id"] = f"v{market_data.version}"
        saved = await self.storage.create(COLLECTION, document)
        return MarketData.from_document(saved)

    def invalidate(self):
        """캐시 무효화 (다른 프로세스가 수정한 경우)"""
        self._current = None
