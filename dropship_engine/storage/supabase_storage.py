"""
Supabase 저장소 구현
PostgreSQL 테이블을 컬렉션으로 사용하는 문서 저장소
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger
from supabase import Client, create_client
from supabase.lib.client_options import ClientOptions

from dropship_engine.config import settings
from dropship_engine.storage.base import BaseStorage, split_filter_key


def _column(field: str) -> str:
    """점(.) 경로를 PostgREST JSON 경로로 변환 (contact.email -> contact->>email)"""
    parts = field.split(".")
    if len(parts) == 1:
        return field
    return "->".join(parts[:-1]) + "->>" + parts[-1]


class SupabaseStorage(BaseStorage):
    """Supabase 저장소 구현"""

    def __init__(self, url: Optional[str] = None, service_key: Optional[str] = None):
        """
        Args:
            url: Supabase 프로젝트 URL
            service_key: Supabase service role key
        """
        self.url = url or (settings.supabase.url if settings.supabase else None)
        self.service_key = service_key or (
            settings.supabase.service_role_key if settings.supabase else None
        )

        if not self.url or not self.service_key:
            raise ValueError("Supabase URL과 Service Key가 필요합니다")

        # Supabase 클라이언트 생성
        self.client: Client = create_client(
            self.url,
            self.service_key,
            options=ClientOptions(
                auto_refresh_token=False,  # Service role key는 갱신 불필요
                persist_session=False,
            ),
        )

        logger.info(f"Supabase 저장소 초기화: {self.url}")

    def _apply_filters(self, query, filters: Optional[Dict[str, Any]]):
        for key, value in (filters or {}).items():
            field, op = split_filter_key(key)
            column = _column(field)

            if op == "eq":
                query = query.eq(column, value)
            elif op == "ne":
                query = query.neq(column, value)
            elif op == "in":
                query = query.in_(column, list(value))
            elif op == "icontains":
                query = query.ilike(column, f"%{value}%")
            elif op == "gte":
                query = query.gte(column, value)
            elif op == "lte":
                query = query.lte(column, value)
        return query

    async def create(
        self, collection: str, data: Dict[str, Any], id: Optional[str] = None
    ) -> Dict[str, Any]:
        now = datetime.now().isoformat()
        record = dict(data)
        record["id"] = id or data.get("id") or str(uuid.uuid4())
        record["created_at"] = record.get("created_at") or now
        record["updated_at"] = record.get("updated_at") or now

        try:
            result = self.client.table(collection).insert(record).execute()
        except Exception as e:
            logger.error(f"{collection} 문서 생성 실패: {str(e)}")
            raise

        if not result.data:
            raise ValueError(f"{collection} 문서 저장 실패")

        logger.debug(f"{collection} 문서 생성: {record['id']}")
        return result.data[0]

    async def get(self, collection: str, id: str) -> Optional[Dict[str, Any]]:
        result = self.client.table(collection).select("*").eq("id", id).limit(1).execute()
        return result.data[0] if result.data else None

    async def list(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = 100,
        offset: int = 0,
        order_by: Optional[Sequence[str]] = None,
    ) -> List[Dict[str, Any]]:
        query = self._apply_filters(self.client.table(collection).select("*"), filters)

        for field in order_by or []:
            query = query.order(_column(field.lstrip("-")), desc=field.startswith("-"))

        if limit is not None:
            query = query.range(offset, offset + limit - 1)
        elif offset:
            # PostgREST는 끝 없는 range를 지원하지 않음
            query = query.range(offset, offset + 9999)

        result = query.execute()
        return result.data or []

    async def count(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> int:
        query = self.client.table(collection).select("id", count="exact")
        result = self._apply_filters(query, filters).execute()
        return result.count or 0

    async def update(
        self, collection: str, id: str, data: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        record = dict(data)
        record.pop("id", None)
        record["updated_at"] = datetime.now().isoformat()

        try:
            result = self.client.table(collection).update(record).eq("id", id).execute()
        except Exception as e:
            logger.error(f"{collection} 문서 업데이트 실패: {id} - {str(e)}")
            raise

        return result.data[0] if result.data else None

    async def delete(self, collection: str, id: str) -> bool:
        result = self.client.table(collection).delete().eq("id", id).execute()
        return bool(result.data)

    async def ping(self) -> bool:
        try:
            self.client.table("market_data").select("id").limit(1).execute()
            return True
        except Exception as e:
            logger.warning(f"Supabase 연결 확인 실패: {str(e)}")
            return False
