"""
공급사 레지스트리
공급사 프로필 등록/수정/조회, 상태 관리, 집계 갱신
"""

import re
import unicodedata
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from dropship_engine.domain.validator import SupplierValidator
from dropship_engine.errors import (
    DuplicateNameError,
    ExternalProviderError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from dropship_engine.locks import KeyedLocks
from dropship_engine.models.common import Page
from dropship_engine.models.supplier import Supplier, SupplierStatus
from dropship_engine.monitoring import get_logger
from dropship_engine.storage.base import BaseStorage
from dropship_engine.suppliers.credentials import CredentialDecryptionError, CredentialVault

logger = get_logger(__name__)

COLLECTION = "suppliers"

# 인증 정보를 읽을 수 있는 유일한 요청자
ORDER_AUTOMATION = "order_automation"

# 일반 수정으로 바꿀 수 없는 항목
PROTECTED_FIELDS = {
    "id",
    "slug",
    "status",
    "total_products",
    "total_revenue",
    "active_stores",
    "credential_ref",
    "has_credentials",
    "created_at",
    "updated_at",
}


def slugify(name: str) -> str:
    """공급사 이름을 ID 용 slug 로 변환 (악센트 제거, 소문자, 하이픈 구분)"""
    normalized = unicodedata.normalize("NFKD", name)
    stripped = "".join(ch for ch in normalized if not unicodedata.combining(ch))
    slug = re.sub(r"[\W_]+", "-", stripped.lower())
    return unicodedata.normalize("NFC", slug.strip("-"))


class SupplierRegistry:
    """공급사 레지스트리"""

    def __init__(
        self,
        storage: BaseStorage,
        vault: CredentialVault,
        validator: Optional[SupplierValidator] = None,
    ):
        self.storage = storage
        self.vault = vault
        self.validator = validator or SupplierValidator()
        self._locks = KeyedLocks("suppliers")

    def _check(self, profile: Mapping[str, Any], partial: bool = False):
        result = self.validator.validate(profile, partial=partial)
        if not result.is_valid:
            raise ValidationError(
                "공급사 정보가 올바르지 않습니다",
                {"errors": result.errors, "warnings": result.warnings},
            )
        for warning in result.warnings:
            logger.debug(f"공급사 검증 경고: {warning['field']} - {warning['message']}")

    @staticmethod
    def _split_credentials(data: Dict[str, Any]) -> Optional[Dict[str, str]]:
        credentials = data.pop("credentials", None)
        if credentials is None:
            return None
        if not isinstance(credentials, Mapping) or not credentials:
            raise ValidationError("credentials 는 비어 있지 않은 객체여야 합니다")
        return {str(k): str(v) for k, v in credentials.items()}

    async def register_supplier(self, profile: Mapping[str, Any]) -> Supplier:
        """
        공급사 등록

        Args:
            profile: 공급사 프로필 (name, country, description, commission,
                shipping_time, contact.email 필수, credentials 선택)

        Returns:
            등록된 Supplier

        Raises:
            ValidationError: 필수 항목 누락/형식 오류
            DuplicateNameError: 같은 이름(slug)의 공급사 존재
        """
        self._check(profile)

        data = Supplier.normalize_keys(dict(profile))
        credentials = self._split_credentials(data)
        for key in PROTECTED_FIELDS | {"rating"}:
            data.pop(key, None)

        name = str(data["name"]).strip()
        slug = slugify(name)
        if not slug:
            raise ValidationError("공급사 이름으로 ID 를 만들 수 없습니다", {"name": name})

        async with self._locks.acquire(slug):
            await self._ensure_unique(slug, name)

            try:
                supplier = Supplier.model_validate(
                    {
                        **data,
                        "id": slug,
                        "slug": slug,
                        "name": name,
                        "status": SupplierStatus.ACTIVE,
                        "rating": 0,
                        "total_products": 0,
                        "total_revenue": Decimal("0"),
                        "active_stores": 0,
                    }
                )
            except PydanticValidationError as e:
                raise ValidationError.from_pydantic("공급사 정보가 올바르지 않습니다", e)

            document = supplier.to_document()
            if credentials:
                ref = await self.vault.store(slug, credentials)
                document["credential_ref"] = ref.ref_id

            saved = await self.storage.create(COLLECTION, document, id=slug)

        logger.bind(supplier_id=slug).info(f"공급사 등록: {name}")
        return Supplier.from_document(saved)

    async def get_supplier(self, supplier_id: str) -> Supplier:
        """공급사 조회 (인증 정보 제외)"""
        document = await self.storage.get(COLLECTION, supplier_id)
        if document is None:
            raise NotFoundError("공급사", supplier_id)
        return Supplier.from_document(document)

    async def update_supplier(self, supplier_id: str, patch: Mapping[str, Any]) -> Supplier:
        """
        공급사 부분 수정

        ID, 집계, 인증 참조는 바꿀 수 없으며 credentials 가 있으면 인증 정보를 교체한다.
        """
        self._check(patch, partial=True)

        data = Supplier.normalize_keys(dict(patch))
        credentials = self._split_credentials(data)
        ignored = sorted(key for key in data if key in PROTECTED_FIELDS)
        for key in ignored:
            data.pop(key)
        if ignored:
            logger.debug(f"수정 불가 항목 무시: {', '.join(ignored)}")

        async with self._locks.acquire(supplier_id):
            current = await self.get_supplier(supplier_id)

            if "name" in data:
                data["name"] = str(data["name"]).strip()
                new_slug = slugify(data["name"])
                if not new_slug:
                    raise ValidationError("공급사 이름으로 ID 를 만들 수 없습니다")
                if new_slug != current.slug:
                    await self._ensure_unique(new_slug, data["name"], supplier_id)
                data["slug"] = new_slug

            try:
                updated = Supplier.model_validate({**current.model_dump(), **data})
            except PydanticValidationError as e:
                raise ValidationError.from_pydantic("공급사 정보가 올바르지 않습니다", e)

            document = updated.to_document()
            if credentials:
                if current.credential_ref is not None:
                    await self.vault.rotate(current.credential_ref, credentials)
                else:
                    ref = await self.vault.store(supplier_id, credentials)
                    document["credential_ref"] = ref.ref_id

            saved = await self.storage.update(COLLECTION, supplier_id, document)

        logger.bind(supplier_id=supplier_id).info(f"공급사 수정: {', '.join(sorted(data))}")
        return Supplier.from_document(saved)

    async def _ensure_unique(self, slug: str, name: str, supplier_id: Optional[str] = None):
        """ID 또는 slug 가 같은 다른 공급사가 있으면 DuplicateNameError

        이름을 바꾼 공급사는 ID 는 그대로이고 slug 만 바뀌므로 둘 다 확인한다.
        """
        if slug != supplier_id and await self.storage.get(COLLECTION, slug) is not None:
            raise DuplicateNameError(name)
        filters: Dict[str, Any] = {"slug": slug}
        if supplier_id is not None:
            filters["id__ne"] = supplier_id
        if await self.storage.find_one(COLLECTION, filters) is not None:
            raise DuplicateNameError(name)

    async def list_suppliers(
        self,
        status: Optional[str] = None,
        country: Optional[str] = None,
        search: Optional[str] = None,
        category: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Page[Supplier]:
        """
        공급사 목록 조회

        Args:
            status: 상태 필터 (active, suspended)
            country: 국가 필터
            search: 이름/설명 검색어
            category: 취급 카테고리
            page: 페이지 (1부터)
            limit: 페이지 크기
        """
        filters: Dict[str, Any] = {}
        if status:
            filters["status"] = status
        if country:
            filters["country"] = country

        documents = await self.storage.list(
            COLLECTION, filters=filters, limit=None, order_by=["name"]
        )
        suppliers: List[Supplier] = [Supplier.from_document(doc) for doc in documents]

        if search:
            keyword = search.casefold()
            suppliers = [
                s
                for s in suppliers
                if keyword in s.name.casefold() or keyword in s.description.casefold()
            ]
        if category:
            wanted = category.strip().casefold()
            suppliers = [
                s for s in suppliers if any(c.strip().casefold() == wanted for c in s.categories)
            ]

        offset = (page - 1) * limit
        return Page[Supplier](
            items=suppliers[offset : offset + limit],
            total=len(suppliers),
            page=page,
            limit=limit,
        )

    async def _set_status(self, supplier_id: str, status: SupplierStatus) -> Supplier:
        async with self._locks.acquire(supplier_id):
            await self.get_supplier(supplier_id)
            saved = await self.storage.update(COLLECTION, supplier_id, {"status": status.value})
        logger.bind(supplier_id=supplier_id).info(f"공급사 상태 변경: {status.value}")
        return Supplier.from_document(saved)

    async def suspend_supplier(self, supplier_id: str) -> Supplier:
        """공급사 일시 중지"""
        return await self._set_status(supplier_id, SupplierStatus.SUSPENDED)

    async def activate_supplier(self, supplier_id: str) -> Supplier:
        """공급사 재활성화"""
        return await self._set_status(supplier_id, SupplierStatus.ACTIVE)

    async def get_credentials(self, supplier_id: str, requester: str) -> Dict[str, str]:
        """
        공급사 인증 정보 복호화 (주문 자동화 전용)

        Raises:
            PermissionDeniedError: 주문 자동화 이외의 요청자
            ExternalProviderError: 인증 정보 없음 또는 복호화 실패 (값은 노출하지 않음)
        """
        if requester != ORDER_AUTOMATION:
            logger.warning(f"인증 정보 접근 거부: {supplier_id} (요청자: {requester})")
            raise PermissionDeniedError(
                "공급사 인증 정보는 주문 자동화만 조회할 수 있습니다", {"supplier_id": supplier_id}
            )

        supplier = await self.get_supplier(supplier_id)
        if supplier.credential_ref is None:
            raise ExternalProviderError(
                "공급사 인증 정보가 등록되지 않았습니다", provider=supplier_id, retryable=False
            )

        try:
            return await self.vault.reveal(supplier.credential_ref)
        except CredentialDecryptionError as e:
            logger.error(f"공급사 인증 정보 복호화 실패: {supplier_id} ({type(e).__name__})")
            raise ExternalProviderError(
                "공급사 인증 정보를 사용할 수 없습니다", provider=supplier_id, retryable=False
            ) from None

    async def _adjust(self, supplier_id: str, apply) -> Supplier:
        async with self._locks.acquire(supplier_id):
            supplier = await self.get_supplier(supplier_id)
            changes = apply(supplier)
            saved = await self.storage.update(COLLECTION, supplier_id, changes)
        return Supplier.from_document(saved)

    async def increment_products(self, supplier_id: str, count: int = 1) -> Supplier:
        """등록 상품 수 증가 (추천 상품 가져오기 시)"""
        return await self._adjust(
            supplier_id, lambda s: {"total_products": max(s.total_products + count, 0)}
        )

    async def record_order(self, supplier_id: str, amount: Decimal) -> Supplier:
        """공급사 주문 매출 누적"""
        return await self._adjust(
            supplier_id,
            lambda s: {"total_revenue": str(s.total_revenue + Decimal(str(amount)))},
        )

    async def update_rating(self, supplier_id: str, rating: float) -> Supplier:
        """공급사 평점 갱신 (0~5)"""
        if not 0 <= rating <= 5:
            raise ValidationError("평점은 0~5 사이여야 합니다", {"rating": rating})
        return await self._adjust(supplier_id, lambda s: {"rating": float(rating)})
