"""
AliExpress 드롭쉬핑 주문 어댑터
JSON REST API, Idempotency-Key 헤더로 중복 주문 방지
"""

from typing import Any, Dict, Optional

import httpx
from loguru import logger

from dropship_engine.config import AliExpressConfig
from dropship_engine.errors import ExternalProviderError, UnsupportedOperationError
from dropship_engine.orders.adapters.base import (
    RemoteOrderStatus,
    RemoteStatus,
    SubmitResult,
    send_request,
)


class AliExpressAdapter:
    """AliExpress 주문 어댑터 (취소 API 없음)"""

    name = "aliexpress"

    # AliExpress 주문 상태 → 공통 상태
    status_mapping = {
        "PLACE_ORDER_SUCCESS": RemoteStatus.ACCEPTED,
        "RISK_CONTROL": RemoteStatus.PENDING,
        "WAIT_BUYER_PAY": RemoteStatus.PENDING,
        "WAIT_SELLER_SEND_GOODS": RemoteStatus.PROCESSING,
        "SELLER_PART_SEND_GOODS": RemoteStatus.PROCESSING,
        "WAIT_BUYER_ACCEPT_GOODS": RemoteStatus.SHIPPED,
        "IN_TRANSIT": RemoteStatus.IN_TRANSIT,
        "FINISH": RemoteStatus.DELIVERED,
        "IN_CANCEL": RemoteStatus.CANCELLED,
        "CANCELLED": RemoteStatus.CANCELLED,
        "REJECTED": RemoteStatus.REJECTED,
    }

    def __init__(
        self,
        credentials: Dict[str, str],
        config: Optional[AliExpressConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        """
        Args:
            credentials: api_key 필수
            config: AliExpress API 설정
            client: 공유 HTTP 클라이언트 (테스트용)
            timeout: 요청 타임아웃(초)
        """
        self.config = config or AliExpressConfig()
        self.base_url = self.config.api_url.rstrip("/")
        self._api_key = credentials.get("api_key", "")

        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)

    def _headers(self, **extra) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Accept": "application/json",
            **extra,
        }

    def _build_order(self, payload: Dict[str, Any], idempotency_token: str) -> Dict[str, Any]:
        shipping = payload["shipping"]
        return {
            "outOrderId": idempotency_token,
            "currency": payload.get("currency", "EUR"),
            "items": [
                {
                    "productId": item["external_id"],
                    "quantity": item["quantity"],
                    "unitPrice": str(item.get("unit_cost", "0")),
                }
                for item in payload["line_items"]
            ],
            "shippingAddress": {
                "contactName": shipping["name"],
                "address": shipping["address1"],
                "address2": shipping.get("address2") or "",
                "city": shipping["city"],
                "province": shipping.get("state") or "",
                "zip": shipping["postal_code"],
                "country": shipping["country"],
                "phone": shipping.get("phone") or "",
            },
        }

    def _read_body(self, response: httpx.Response) -> Dict[str, Any]:
        """응답 JSON 에서 data 객체 추출"""
        try:
            data = response.json()
        except ValueError as e:
            raise ExternalProviderError(
                "AliExpress 응답 파싱 오류",
                provider=self.name,
                details={"status_code": response.status_code},
            ) from e

        body = data.get("data", data) if isinstance(data, dict) else None
        if not isinstance(body, dict):
            raise ExternalProviderError(
                "AliExpress 응답 형식 오류",
                provider=self.name,
                details={"status_code": response.status_code},
            )
        return body

    async def submit(self, payload: Dict[str, Any], idempotency_token: str) -> SubmitResult:
        """주문 전달 (같은 토큰의 재요청은 기존 주문 번호 반환)"""
        response = await send_request(
            self.client,
            self.name,
            "POST",
            f"{self.base_url}/orders",
            ok_statuses=(409,),
            json=self._build_order(payload, idempotency_token),
            headers=self._headers(**{"Idempotency-Key": idempotency_token}),
        )

        body = self._read_body(response)
        order_id = body.get("orderId")
        if not order_id:
            raise ExternalProviderError(
                "AliExpress 주문 번호가 응답에 없습니다",
                provider=self.name,
                details={"status_code": response.status_code},
            )

        if response.status_code == 409:
            logger.info(f"AliExpress 기존 주문 재사용: {order_id}")
        else:
            logger.info(f"AliExpress 주문 성공: {order_id}")
        return SubmitResult(external_ref=str(order_id), raw=body)

    async def status(self, external_ref: str) -> RemoteOrderStatus:
        """주문 상태 조회"""
        response = await send_request(
            self.client,
            self.name,
            "GET",
            f"{self.base_url}/orders/{external_ref}",
            headers=self._headers(),
        )

        body = self._read_body(response)
        remote = str(body.get("status", "")).upper()

        return RemoteOrderStatus(
            status=self.status_mapping.get(remote, RemoteStatus.UNKNOWN),
            tracking_number=body.get("trackingNumber"),
            carrier=body.get("logisticsService") or body.get("carrier"),
            raw=body,
        )

    async def cancel(self, external_ref: str) -> UnsupportedOperationError:
        """AliExpress 는 주문 취소 API 를 제공하지 않음"""
        return UnsupportedOperationError("cancel", provider=self.name)

    async def close(self):
        """HTTP 클라이언트 종료"""
        if self._owns_client:
            await self.client.aclose()
