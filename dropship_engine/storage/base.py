"""
저장소 기본 인터페이스
문서(document) 저장소 구현을 위한 추상 클래스
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

# 필터 키 접미사: field__icontains, field__in, field__gte, field__lte, field__ne
FILTER_OPERATORS = ("icontains", "in", "gte", "lte", "ne")


def split_filter_key(key: str):
    """필터 키를 (필드, 연산자)로 분리"""
    if "__" in key:
        field, op = key.rsplit("__", 1)
        if op in FILTER_OPERATORS:
            return field, op
    return key, "eq"


def resolve_field(document: Dict[str, Any], field: str) -> Any:
    """점(.) 표기 경로로 중첩 필드 값 조회"""
    value: Any = document
    for part in field.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def matches_filters(document: Dict[str, Any], filters: Optional[Dict[str, Any]]) -> bool:
    """문서가 필터 조건을 모두 만족하는지 확인"""
    if not filters:
        return True

    for key, expected in filters.items():
        field, op = split_filter_key(key)
        actual = resolve_field(document, field)

        if op == "eq":
            if actual != expected:
                return False
        elif op == "ne":
            if actual == expected:
                return False
        elif op == "in":
            if actual not in expected:
                return False
        elif op == "icontains":
            if actual is None or str(expected).lower() not in str(actual).lower():
                return False
        elif op == "gte":
            if actual is None or actual < expected:
                return False
        elif op == "lte":
            if actual is None or actual > expected:
                return False

    return True


class BaseStorage(ABC):
    """문서 저장소 추상 클래스

    모든 문서는 JSON 직렬화 가능한 dict 이며 "id" 키를 가진다.
    """

    @abstractmethod
    async def create(
        self, collection: str, data: Dict[str, Any], id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        문서 생성

        Args:
            collection: 컬렉션 이름
            data: 문서 데이터
            id: 지정할 문서 ID (없으면 data["id"] 또는 새 UUID)

        Returns:
            저장된 문서
        """
        pass

    @abstractmethod
    async def get(self, collection: str, id: str) -> Optional[Dict[str, Any]]:
        """ID로 문서 조회"""
        pass

    @abstractmethod
    async def list(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = 100,
        offset: int = 0,
        order_by: Optional[Sequence[str]] = None,
    ) -> List[Dict[str, Any]]:
        """
        문서 목록 조회

        Args:
            collection: 컬렉션 이름
            filters: 필터 조건 (field, field__icontains, field__in, field__gte, field__lte)
            limit: 조회 개수 (None이면 전체)
            offset: 시작 위치
            order_by: 정렬 필드 목록 ("-" 접두사는 내림차순)

        Returns:
            문서 목록
        """
        pass

    @abstractmethod
    async def count(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> int:
        """조건에 맞는 문서 수"""
        pass

    @abstractmethod
    async def update(
        self, collection: str, id: str, data: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        """
        문서 부분 업데이트

        Returns:
            업데이트된 문서 (없으면 None)
        """
        pass

    @abstractmethod
    async def delete(self, collection: str, id: str) -> bool:
        """문서 삭제"""
        pass

    async def find_one(
        self, collection: str, filters: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        """조건에 맞는 첫 문서 조회"""
        items = await self.list(collection, filters=filters, limit=1)
        return items[0] if items else None

    async def ping(self) -> bool:
        """저장소 연결 확인"""
        return True
