"""
도메인 예외 정의
API 계층에서 HTTP 상태 코드로 변환되는 예외 계층
"""

from typing import Any, Dict, Optional


class DropshipError(Exception):
    """모든 도메인 예외의 기반 클래스"""

    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(DropshipError):
    """필수 항목 누락 또는 형식 오류 (상태 변경 전에 거부)"""

    status_code = 400

    @classmethod
    def from_pydantic(cls, message: str, error) -> "ValidationError":
        """pydantic 검증 오류를 필드별 메시지로 변환"""
        return cls(
            message,
            {
                "errors": [
                    {
                        "field": ".".join(str(part) for part in item["loc"]),
                        "message": item["msg"],
                    }
                    for item in error.errors()
                ]
            },
        )


class NotFoundError(DropshipError):
    """존재하지 않는 ID"""

    status_code = 404

    def __init__(self, resource: str, identifier: str):
        super().__init__(
            f"{resource}을(를) 찾을 수 없습니다: {identifier}",
            {"resource": resource, "id": identifier},
        )
        self.resource = resource
        self.identifier = identifier


class ConflictError(DropshipError):
    """중복 또는 허용되지 않는 상태 전이"""

    # 중복 연결(Relation)은 외부 계약상 400으로 응답
    status_code = 400


class DuplicateNameError(ConflictError):
    """같은 이름의 공급사가 이미 존재"""

    def __init__(self, name: str):
        super().__init__(f"이미 등록된 공급사 이름입니다: {name}", {"name": name})
        self.name = name


class PermissionDeniedError(DropshipError):
    """관리자 권한 또는 인증 정보 접근 권한 없음"""

    status_code = 403


class ExternalProviderError(DropshipError):
    """공급사 API 오류 (타임아웃, 2xx 이외 응답 등)"""

    status_code = 502
    retryable = True

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        retryable: Optional[bool] = None,
    ):
        super().__init__(message, details)
        self.provider = provider
        if retryable is not None:
            self.retryable = retryable


class ProviderTimeoutError(ExternalProviderError):
    """공급사 API 타임아웃"""


class UnsupportedOperationError(ExternalProviderError):
    """공급사가 지원하지 않는 기능

    어댑터는 이 예외를 raise 하지 않고 반환값으로 돌려준다.
    """

    retryable = False

    def __init__(self, operation: str, provider: Optional[str] = None):
        super().__init__(
            f"지원하지 않는 공급사 기능입니다: {operation}",
            provider=provider,
            details={"operation": operation},
        )
        self.operation = operation


class MarginTooLowError(DropshipError):
    """권장 가격의 마진이 최소 마진보다 낮음"""

    status_code = 422

    def __init__(self, margin, minimum_margin, price=None):
        super().__init__(
            f"마진 {margin}%가 최소 마진 {minimum_margin}%보다 낮습니다",
            {
                "margin": str(margin),
                "minimum_margin": str(minimum_margin),
                "price": str(price) if price is not None else None,
            },
        )
        self.margin = margin
        self.minimum_margin = minimum_margin
        self.price = price


class RetryExhaustedError(DropshipError):
    """최대 재시도 횟수 초과로 주문 전달 최종 실패"""

    status_code = 502

    def __init__(self, order_id: str, attempts: int, last_error: Optional[str] = None):
        super().__init__(
            f"공급사 주문 전달 재시도 초과: {order_id} ({attempts}회)",
            {"order_id": order_id, "attempts": attempts, "last_error": last_error},
        )
        self.order_id = order_id
        self.attempts = attempts
        self.last_error = last_error
