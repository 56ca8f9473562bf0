"""
공급사 어댑터 인터페이스
모든 공급사 주문 연동이 구현해야 하는 기능 집합 (submit / status / cancel)

어댑터는 상속 없이 이 프로토콜을 만족하도록 독립적으로 구현한다.
지원하지 않는 기능은 UnsupportedOperationError 를 raise 하지 않고 반환한다.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Protocol, Union, runtime_checkable

import httpx

from dropship_engine.errors import (
    ExternalProviderError,
    ProviderTimeoutError,
    UnsupportedOperationError,
)


class RemoteStatus(str, Enum):
    """공급사 주문 상태 (공통 어휘)"""

    PENDING = "pending"  # 공급사 대기
    ACCEPTED = "accepted"  # 접수
    PROCESSING = "processing"  # 확인/준비중
    SHIPPED = "shipped"  # 발송
    IN_TRANSIT = "in_transit"  # 배송중
    DELIVERED = "delivered"  # 배송완료
    CANCELLED = "cancelled"  # 취소
    REJECTED = "rejected"  # 공급사 거부
    UNKNOWN = "unknown"  # 알 수 없음


@dataclass
class SubmitResult:
    """주문 전달 결과"""

    external_ref: str
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass
class RemoteOrderStatus:
    """공급사 주문 상태 조회 결과"""

    status: RemoteStatus
    tracking_number: Optional[str] = None
    carrier: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class SupplierAdapter(Protocol):
    """공급사 어댑터 프로토콜"""

    name: str

    async def submit(self, payload: Dict[str, Any], idempotency_token: str) -> SubmitResult:
        """주문 전달 (같은 토큰으로 재호출해도 공급사 주문은 하나)"""
        ...

    async def status(self, external_ref: str) -> RemoteOrderStatus:
        """주문 상태 조회"""
        ...

    async def cancel(self, external_ref: str) -> Union[bool, UnsupportedOperationError]:
        """주문 취소"""
        ...


async def send_request(
    client: httpx.AsyncClient,
    provider: str,
    method: str,
    url: str,
    ok_statuses: tuple = (),
    **kwargs,
) -> httpx.Response:
    """
    공급사 API 요청

    전송 오류와 2xx 이외 응답을 ExternalProviderError 로 변환한다.
    인증 실패(401/403)는 응답 본문을 포함하지 않는다.
    """
    try:
        response = await client.request(method, url, **kwargs)
    except httpx.TimeoutException as e:
        raise ProviderTimeoutError(f"{provider} API 응답 시간 초과", provider=provider) from e
    except httpx.HTTPError as e:
        raise ExternalProviderError(
            f"{provider} API 통신 오류: {type(e).__name__}", provider=provider
        ) from e

    if response.is_success or response.status_code in ok_statuses:
        return response

    if response.status_code in (401, 403):
        raise ExternalProviderError(
            f"{provider} API 인증 실패", provider=provider, details={"status_code": response.status_code}
        )

    raise ExternalProviderError(
        f"{provider} API 오류 응답: {response.status_code}",
        provider=provider,
        details={"status_code": response.status_code},
    )
