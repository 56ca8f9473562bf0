"""
도매매(Domeme) 주문 어댑터
도매매 XML API 를 통한 주문 전달, 상태 조회, 취소
"""

import xml.etree.ElementTree as ET
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

import httpx
from loguru import logger

from dropship_engine.config import DomemeConfig
from dropship_engine.errors import ExternalProviderError
from dropship_engine.orders.adapters.base import (
    RemoteOrderStatus,
    RemoteStatus,
    SubmitResult,
    send_request,
)

SUCCESS_CODE = "00"
DUPLICATE_ORDER_CODE = "10"  # 같은 orderKey 로 이미 접수됨


def _text(root: ET.Element, path: str) -> Optional[str]:
    node = root.find(path)
    return node.text if node is not None else None


class DomemeAdapter:
    """도매매 주문 어댑터"""

    name = "domeme"

    # 도매매 주문 상태 코드 → 공통 상태
    status_mapping = {
        "01": RemoteStatus.ACCEPTED,  # 주문완료
        "02": RemoteStatus.PROCESSING,  # 주문확인
        "03": RemoteStatus.PROCESSING,  # 상품준비중
        "04": RemoteStatus.SHIPPED,  # 발송
        "05": RemoteStatus.DELIVERED,  # 배송완료
        "98": RemoteStatus.REJECTED,  # 주문거부
        "99": RemoteStatus.CANCELLED,  # 취소
    }

    def __init__(
        self,
        credentials: Dict[str, str],
        config: Optional[DomemeConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        """
        Args:
            credentials: api_key, api_secret
            config: 도매매 API 설정
            client: 공유 HTTP 클라이언트 (테스트용)
            timeout: 요청 타임아웃(초)
        """
        self.config = config or DomemeConfig()
        self.base_url = self.config.api_url.rstrip("/")
        self.company_code = self.config.company_code
        self._api_key = credentials.get("api_key", "")
        self._api_secret = credentials.get("api_secret", "")

        # 배송 방법 코드 (01: 택배)
        self.delivery_method = credentials.get("delivery_method", "01")

        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/xml; charset=utf-8",
            "X-API-KEY": self._api_key,
            "X-API-SECRET": self._api_secret,
        }

    async def _post(self, path: str, root: ET.Element) -> ET.Element:
        body = ET.tostring(root, encoding="unicode", xml_declaration=True)
        response = await send_request(
            self.client,
            self.name,
            "POST",
            f"{self.base_url}{path}",
            content=body.encode("utf-8"),
            headers=self._headers(),
        )

        try:
            return ET.fromstring(response.text)
        except ET.ParseError as e:
            raise ExternalProviderError(
                f"도매매 응답 파싱 오류: {e}", provider=self.name
            ) from e

    def _build_order_xml(self, payload: Dict[str, Any], idempotency_token: str) -> ET.Element:
        """주문 XML 생성"""
        shipping = payload["shipping"]
        order = ET.Element("order")
        ET.SubElement(order, "companyCode").text = self.company_code
        ET.SubElement(order, "orderKey").text = idempotency_token
        ET.SubElement(order, "orderDate").text = datetime.now().strftime("%Y%m%d")

        # 수령자 정보
        receiver = ET.SubElement(order, "receiver")
        ET.SubElement(receiver, "name").text = shipping["name"]
        ET.SubElement(receiver, "phone").text = shipping.get("phone") or ""
        ET.SubElement(receiver, "zipCode").text = shipping["postal_code"]
        ET.SubElement(receiver, "address").text = f"{shipping['city']} {shipping['address1']}"
        ET.SubElement(receiver, "addressDetail").text = shipping.get("address2") or ""

        # 상품 정보
        items = ET.SubElement(order, "items")
        total = Decimal("0")
        for line in payload["line_items"]:
            unit_cost = Decimal(str(line.get("unit_cost", "0")))
            total += unit_cost * line["quantity"]

            item = ET.SubElement(items, "item")
            ET.SubElement(item, "productNo").text = str(line["external_id"]).replace("DM", "")
            ET.SubElement(item, "productName").text = line.get("title") or ""
            ET.SubElement(item, "quantity").text = str(line["quantity"])
            ET.SubElement(item, "price").text = str(int(unit_cost))

        payment = ET.SubElement(order, "payment")
        ET.SubElement(payment, "totalAmount").text = str(int(total))

        delivery = ET.SubElement(order, "delivery")
        ET.SubElement(delivery, "method").text = self.delivery_method
        return order

    def _order_query(self, tag: str, external_ref: str) -> ET.Element:
        root = ET.Element(tag)
        ET.SubElement(root, "companyCode").text = self.company_code
        ET.SubElement(root, "orderNo").text = external_ref
        return root

    async def submit(self, payload: Dict[str, Any], idempotency_token: str) -> SubmitResult:
        """도매매에 주문 전달"""
        root = await self._post("/order/register", self._build_order_xml(payload, idempotency_token))

        code = _text(root, "code")
        order_no = _text(root, "orderNo")
        if code in (SUCCESS_CODE, DUPLICATE_ORDER_CODE) and order_no:
            if code == DUPLICATE_ORDER_CODE:
                logger.info(f"도매매 기존 주문 재사용: {order_no}")
            else:
                logger.info(f"도매매 주문 성공: {order_no}")
            return SubmitResult(external_ref=order_no, raw={"code": code})

        raise ExternalProviderError(
            f"도매매 주문 실패: {_text(root, 'message') or code}",
            provider=self.name,
            details={"code": code},
        )

    async def status(self, external_ref: str) -> RemoteOrderStatus:
        """도매매 주문 상태 확인"""
        root = await self._post("/order/status", self._order_query("order", external_ref))

        code = _text(root, "code")
        if code != SUCCESS_CODE:
            raise ExternalProviderError(
                f"도매매 상태 조회 실패: {_text(root, 'message') or code}",
                provider=self.name,
                details={"code": code},
            )

        status_code = _text(root, "orderStatus")
        return RemoteOrderStatus(
            status=self.status_mapping.get(status_code, RemoteStatus.UNKNOWN),
            tracking_number=_text(root, "tracking/trackingNo"),
            carrier=_text(root, "tracking/carrier"),
            raw={"status_code": status_code, "status_name": _text(root, "orderStatusName")},
        )

    async def cancel(self, external_ref: str) -> bool:
        """도매매 주문 취소"""
        query = self._order_query("cancel", external_ref)
        ET.SubElement(query, "cancelReason").text = "판매자 요청"
        root = await self._post("/order/cancel", query)
        return _text(root, "code") == SUCCESS_CODE

    async def close(self):
        """HTTP 클라이언트 종료"""
        if self._owns_client:
            await self.client.aclose()
