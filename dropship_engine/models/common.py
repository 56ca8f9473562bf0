"""
공통 모델 기반 클래스
저장소 문서는 snake_case, API 응답은 camelCase 필드명 사용
"""

from typing import Any, Dict, Generic, List, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class DocumentModel(BaseModel):
    """저장소 문서 모델 기반 클래스"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )

    @classmethod
    def normalize_keys(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        """camelCase 키를 필드명(snake_case)으로 변환 (최상위만)"""
        aliases = {
            info.alias: name for name, info in cls.model_fields.items() if info.alias
        }
        return {aliases.get(key, key): value for key, value in data.items()}

    @classmethod
    def from_document(cls, document: Dict[str, Any]):
        """저장소 문서에서 모델 생성"""
        return cls.model_validate(document)

    def to_document(self) -> Dict[str, Any]:
        """저장소 문서로 변환 (snake_case, 계산 필드 제외)"""
        return self.model_dump(mode="json", exclude=set(type(self).model_computed_fields))

    def to_api(self) -> Dict[str, Any]:
        """API 응답으로 변환 (camelCase)"""
        return self.model_dump(mode="json", by_alias=True)


class Page(BaseModel, Generic[T]):
    """페이지 단위 조회 결과"""

    items: List[T] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 20

    @property
    def pages(self) -> int:
        if self.limit <= 0:
            return 0
        return (self.total + self.limit - 1) // self.limit

    @property
    def has_next(self) -> bool:
        return self.page < self.pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1
