"""
공급사 프로필 검증 모듈
등록/수정 전에 필수 항목과 형식을 확인
"""

import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
URL_PATTERN = re.compile(r"^https?://\S+$")


class ValidationLevel(Enum):
    """검증 수준"""

    ERROR = "error"  # 필수 항목 오류
    WARNING = "warning"  # 권장 사항 미충족


@dataclass
class ValidationResult:
    """검증 결과"""

    is_valid: bool = True
    errors: List[Dict[str, Any]] = field(default_factory=list)
    warnings: List[Dict[str, Any]] = field(default_factory=list)

    def add_error(self, field: str, message: str, details: Optional[Dict] = None):
        """오류 추가"""
        self.errors.append(
            {
                "field": field,
                "message": message,
                "level": ValidationLevel.ERROR.value,
                "details": details or {},
            }
        )
        self.is_valid = False

    def add_warning(self, field: str, message: str, details: Optional[Dict] = None):
        """경고 추가"""
        self.warnings.append(
            {
                "field": field,
                "message": message,
                "level": ValidationLevel.WARNING.value,
                "details": details or {},
            }
        )


def pick(data: Mapping[str, Any], name: str, alias: Optional[str] = None) -> Any:
    """snake_case 또는 camelCase 키로 값 조회"""
    if name in data:
        return data[name]
    if alias and alias in data:
        return data[alias]
    return None


class SupplierValidator:
    """공급사 프로필 검증기"""

    # (필드, camelCase 별칭)
    required_fields = [
        ("name", None),
        ("country", None),
        ("description", None),
        ("commission", None),
        ("shipping_time", "shippingTime"),
    ]

    def validate(self, profile: Mapping[str, Any], partial: bool = False) -> ValidationResult:
        """
        공급사 프로필 검증

        Args:
            profile: 등록 요청 또는 수정 패치
            partial: 수정 패치 여부 (없는 항목은 검사하지 않음)

        Returns:
            ValidationResult
        """
        result = ValidationResult()

        for name, alias in self.required_fields:
            value = pick(profile, name, alias)
            present = name in profile or (alias is not None and alias in profile)
            if partial and not present:
                continue
            if value is None or (isinstance(value, str) and not value.strip()):
                result.add_error(name, f"{name}은(는) 필수 항목입니다")

        commission = pick(profile, "commission")
        if commission is not None:
            self._validate_commission(commission, result)

        shipping_time = pick(profile, "shipping_time", "shippingTime")
        if shipping_time is not None:
            if isinstance(shipping_time, bool) or not isinstance(shipping_time, int):
                result.add_error("shipping_time", "평균 배송일은 정수여야 합니다")
            elif shipping_time < 0:
                result.add_error("shipping_time", "평균 배송일은 0 이상이어야 합니다")
            elif shipping_time > 60:
                result.add_warning("shipping_time", "평균 배송일이 60일을 초과합니다")

        if not partial or "contact" in profile:
            self._validate_contact(profile.get("contact"), result)

        website = pick(profile, "website")
        if website and not URL_PATTERN.match(str(website)):
            result.add_warning("website", "웹사이트 주소 형식이 올바르지 않습니다")

        min_order = pick(profile, "min_order", "minOrder")
        if min_order is not None and (not isinstance(min_order, int) or min_order < 1):
            result.add_error("min_order", "최소 주문 수량은 1 이상이어야 합니다")

        rating = pick(profile, "rating")
        if rating is not None:
            try:
                if not 0 <= float(rating) <= 5:
                    result.add_error("rating", "평점은 0~5 사이여야 합니다")
            except (TypeError, ValueError):
                result.add_error("rating", "평점은 숫자여야 합니다")

        if not partial and not pick(profile, "categories"):
            result.add_warning("categories", "취급 카테고리가 없습니다")

        return result

    def _validate_commission(self, value: Any, result: ValidationResult):
        try:
            commission = Decimal(str(value))
        except (InvalidOperation, ValueError):
            result.add_error("commission", "수수료율은 숫자여야 합니다")
            return

        if isinstance(value, bool) or not commission.is_finite():
            result.add_error("commission", "수수료율은 숫자여야 합니다")
        elif commission < 0 or commission > 100:
            result.add_error("commission", "수수료율은 0~100 사이여야 합니다")

    def _validate_contact(self, contact: Any, result: ValidationResult):
        if not isinstance(contact, Mapping):
            result.add_error("contact.email", "연락처 이메일은 필수 항목입니다")
            return

        email = contact.get("email")
        if not email:
            result.add_error("contact.email", "연락처 이메일은 필수 항목입니다")
        elif not EMAIL_PATTERN.match(str(email)):
            result.add_error("contact.email", "이메일 형식이 올바르지 않습니다")
