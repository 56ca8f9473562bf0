"""
상품-공급사 SKU 연결 관리
(product_id, provider, external_id) 조합당 하나의 연결만 허용
"""

import hashlib
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from dropship_engine.errors import ConflictError, NotFoundError, ValidationError
from dropship_engine.locks import KeyedLocks
from dropship_engine.models.relation import (
    SYNC_HISTORY_LIMIT,
    Relation,
    SyncHistoryEntry,
    SyncReport,
    SyncStatus,
)
from dropship_engine.monitoring import get_logger
from dropship_engine.storage.base import BaseStorage

logger = get_logger(__name__)

COLLECTION = "relations"

REQUIRED_FIELDS = ("product_id", "provider", "external_id")


def relation_id(product_id: str, provider: str, external_id: str) -> str:
    """연결 트리플로부터 결정적 ID 생성"""
    digest = hashlib.sha256(f"{product_id}:{provider}:{external_id}".encode("utf-8"))
    return f"rel_{digest.hexdigest()[:24]}"


class RelationMapper:
    """로컬 상품 ↔ 공급사 SKU 연결 관리자"""

    def __init__(self, storage: BaseStorage):
        self.storage = storage
        self._locks = KeyedLocks("relations")

    async def create_relation(self, payload: Mapping[str, Any]) -> Relation:
        """
        연결 생성

        Args:
            payload: product_id, provider, external_id 필수
                (external_url, supplier_price, supplier_currency, supplier_stock 선택)

        Returns:
            생성된 Relation

        Raises:
            ValidationError: 필수 항목 누락
            ConflictError: 같은 조합의 연결이 이미 존재 (기존 레코드는 변경하지 않음)
        """
        data = Relation.normalize_keys(dict(payload))
        missing = [f for f in REQUIRED_FIELDS if not str(data.get(f) or "").strip()]
        if missing:
            raise ValidationError(
                f"필수 항목이 없습니다: {', '.join(missing)}", {"missing": missing}
            )

        triple = tuple(str(data[f]).strip() for f in REQUIRED_FIELDS)
        record_id = relation_id(*triple)

        try:
            relation = Relation.model_validate(
                {
                    **{k: v for k, v in data.items() if k not in ("id", "sync_history")},
                    "id": record_id,
                    "product_id": triple[0],
                    "provider": triple[1],
                    "external_id": triple[2],
                }
            )
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic("연결 정보가 올바르지 않습니다", e)

        async with self._locks.acquire(triple):
            existing = await self.storage.get(COLLECTION, record_id)
            if existing is not None:
                logger.warning(f"중복 연결 거부: {triple[0]} / {triple[1]} / {triple[2]}")
                raise ConflictError(
                    "이미 존재하는 상품-공급사 연결입니다",
                    {
                        "product_id": triple[0],
                        "provider": triple[1],
                        "external_id": triple[2],
                        "relation_id": record_id,
                    },
                )
            saved = await self.storage.create(COLLECTION, relation.to_document(), id=record_id)

        logger.info(f"연결 생성: {triple[0]} -> {triple[1]}:{triple[2]}")
        return Relation.from_document(saved)

    async def get_or_create(self, payload: Mapping[str, Any]) -> Relation:
        """같은 조합이 있으면 기존 연결을 반환"""
        try:
            return await self.create_relation(payload)
        except ConflictError as e:
            return await self.get_relation(e.details["relation_id"])

    async def get_relation(self, relation_id: str) -> Relation:
        document = await self.storage.get(COLLECTION, relation_id)
        if document is None:
            raise NotFoundError("연결", relation_id)
        return Relation.from_document(document)

    async def find_relations(
        self,
        product_id: Optional[str] = None,
        provider: Optional[str] = None,
        external_id: Optional[str] = None,
    ) -> List[Relation]:
        """조건에 맞는 연결 목록"""
        filters = {
            key: value
            for key, value in (
                ("product_id", product_id),
                ("provider", provider),
                ("external_id", external_id),
            )
            if value
        }
        documents = await self.storage.list(
            COLLECTION, filters=filters, limit=None, order_by=["created_at"]
        )
        return [Relation.from_document(doc) for doc in documents]

    async def relations_for_product(self, product_id: str) -> List[Relation]:
        return await self.find_relations(product_id=product_id)

    async def record_sync(
        self,
        relation_id: str,
        supplier_price: Optional[Decimal] = None,
        supplier_stock: Optional[int] = None,
        error: Optional[str] = None,
    ) -> Relation:
        """
        가격/재고 동기화 결과 기록

        성공이면 가격/재고와 last_sync_at 을 갱신하고, 실패면 이력만 남긴다.
        """
        relation = await self.get_relation(relation_id)

        async with self._locks.acquire(relation.triple):
            relation = await self.get_relation(relation_id)
            now = datetime.now()
            changes: Dict[str, Any] = {}

            if error is None:
                if supplier_price is not None and supplier_price != relation.supplier_price:
                    changes["supplier_price"] = {
                        "from": relation.supplier_price,
                        "to": Decimal(str(supplier_price)),
                    }
                    relation.supplier_price = Decimal(str(supplier_price))
                if supplier_stock is not None and supplier_stock != relation.supplier_stock:
                    changes["supplier_stock"] = {"from": relation.supplier_stock, "to": supplier_stock}
                    relation.supplier_stock = supplier_stock
                relation.last_sync_at = now
                entry = SyncHistoryEntry(synced_at=now, status=SyncStatus.SUCCESS, changes=changes)
            else:
                entry = SyncHistoryEntry(synced_at=now, status=SyncStatus.FAILED, error=error)

            history = (relation.sync_history + [entry])[-SYNC_HISTORY_LIMIT:]
            document = relation.model_copy(update={"sync_history": history}).to_document()
            saved = await self.storage.update(
                COLLECTION,
                relation_id,
                {
                    key: document[key]
                    for key in ("supplier_price", "supplier_stock", "last_sync_at", "sync_history")
                },
            )

        if error is None:
            logger.debug(f"연결 동기화 완료: {relation_id} ({len(changes)}건 변경)")
        else:
            logger.warning(f"연결 동기화 실패: {relation_id} - {error}")
        return Relation.from_document(saved)

    async def apply_sync_report(self, relation_id: str, report: Mapping[str, Any]) -> Relation:
        """API 로 받은 동기화 결과 기록 ({supplierPrice, supplierStock, error})"""
        try:
            parsed = SyncReport.model_validate(dict(report))
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic("동기화 결과가 올바르지 않습니다", e)

        return await self.record_sync(
            relation_id,
            supplier_price=parsed.supplier_price,
            supplier_stock=parsed.supplier_stock,
            error=parsed.error,
        )

    async def retire_product(self, product_id: str) -> int:
        """영구 폐기된 상품의 연결 삭제"""
        deleted = 0
        for relation in await self.relations_for_product(product_id):
            async with self._locks.acquire(relation.triple):
                if await self.storage.delete(COLLECTION, relation.id):
                    deleted += 1
        logger.info(f"상품 폐기로 연결 {deleted}건 삭제: {product_id}")
        return deleted
