"""
공급사 주문 자동화 서비스
고객 주문을 공급사별 섀도 주문으로 나누어 전달하고 상태를 추적

- 고객 주문 × 공급사 마다 결정적 멱등 토큰으로 주문 1건만 생성/전달
- 공급사 API 실패는 지수 백오프로 재시도, 한도 초과 시 failed + 관리자 오류 큐
- 같은 주문에 대한 전달/추적/취소는 주문 단위 잠금으로 직렬화
"""

import asyncio
import hashlib
from collections import OrderedDict
from datetime import datetime
from decimal import Decimal
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError as PydanticValidationError
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from dropship_engine.catalog.relations import RelationMapper
from dropship_engine.config import OrderAutomationConfig, get_settings
from dropship_engine.errors import (
    ConflictError,
    DropshipError,
    ExternalProviderError,
    NotFoundError,
    PermissionDeniedError,
    ProviderTimeoutError,
    RetryExhaustedError,
    UnsupportedOperationError,
    ValidationError,
)
from dropship_engine.locks import KeyedLocks
from dropship_engine.models.order import (
    CustomerOrder,
    DropshipLineItem,
    DropshipOrder,
    DropshipOrderStatus,
    TrackingResult,
)
from dropship_engine.models.supplier import Supplier
from dropship_engine.monitoring import get_logger, global_metrics
from dropship_engine.orders.adapters.base import RemoteStatus, SupplierAdapter
from dropship_engine.orders.adapters.registry import AdapterRegistry
from dropship_engine.orders.error_queue import AdminErrorQueue
from dropship_engine.orders.state import (
    CANCELLABLE,
    OPEN_STATUSES,
    can_transition,
    is_stale,
    is_terminal,
    tracking_target,
)
from dropship_engine.storage.base import BaseStorage
from dropship_engine.suppliers.registry import ORDER_AUTOMATION, SupplierRegistry

logger = get_logger(__name__)

COLLECTION = "dropship_orders"


def idempotency_token(customer_order_id: str, supplier_id: str) -> str:
    """고객 주문 ID 와 공급사 ID 로 결정적 멱등 토큰 생성"""
    return hashlib.sha256(f"{customer_order_id}:{supplier_id}".encode("utf-8")).hexdigest()


def dropship_order_id(token: str) -> str:
    return f"dso_{token[:24]}"


def _is_retryable(error: BaseException) -> bool:
    return isinstance(error, ExternalProviderError) and error.retryable


class OrderAutomationService:
    """공급사 주문 자동화 서비스"""

    def __init__(
        self,
        storage: BaseStorage,
        registry: SupplierRegistry,
        relations: RelationMapper,
        adapters: AdapterRegistry,
        error_queue: AdminErrorQueue,
        config: Optional[OrderAutomationConfig] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Args:
            storage: 저장소
            registry: 공급사 레지스트리 (인증 정보 조회)
            relations: 상품-공급사 연결
            adapters: 공급사 어댑터 레지스트리
            error_queue: 관리자 오류 큐
            config: 재시도/타임아웃 설정
            sleep: 백오프 대기 함수 (테스트에서 대체)
        """
        self.storage = storage
        self.registry = registry
        self.relations = relations
        self.adapters = adapters
        self.error_queue = error_queue
        self.config = config or get_settings().orders
        self._sleep = sleep
        self._locks = KeyedLocks("dropship_orders")
        self._adapter_cache: Dict[str, SupplierAdapter] = {}

    # ------------------------------------------------------------------
    # 공통
    # ------------------------------------------------------------------

    async def _adapter_for(self, supplier: Supplier) -> SupplierAdapter:
        adapter = self._adapter_cache.get(supplier.id)
        if adapter is None:
            credentials = await self.registry.get_credentials(supplier.id, ORDER_AUTOMATION)
            adapter = self.adapters.create(supplier.adapter_name, credentials)
            self._adapter_cache[supplier.id] = adapter
        return adapter

    def forget_adapter(self, supplier_id: str):
        """인증 정보 교체 후 어댑터 재생성"""
        self._adapter_cache.pop(supplier_id, None)

    async def _persist(self, order: DropshipOrder) -> DropshipOrder:
        document = order.to_document()
        document.pop("created_at", None)
        saved = await self.storage.update(COLLECTION, order.id, document)
        return DropshipOrder.from_document(saved)

    async def _load(self, order_id: str) -> DropshipOrder:
        document = await self.storage.get(COLLECTION, order_id)
        if document is None:
            raise NotFoundError("공급사 주문", order_id)
        return DropshipOrder.from_document(document)

    async def _call(self, awaitable):
        """어댑터 호출 (타임아웃 적용)"""
        try:
            return await asyncio.wait_for(awaitable, timeout=self.config.adapter_timeout)
        except asyncio.TimeoutError:
            raise ProviderTimeoutError(
                f"공급사 API 응답 시간 초과 ({self.config.adapter_timeout}초)"
            ) from None

    # ------------------------------------------------------------------
    # 주문 전달
    # ------------------------------------------------------------------

    def _parse_order(self, customer_order: Union[CustomerOrder, Mapping[str, Any]]) -> CustomerOrder:
        if not isinstance(customer_order, CustomerOrder):
            try:
                customer_order = CustomerOrder.model_validate(dict(customer_order))
            except PydanticValidationError as e:
                raise ValidationError.from_pydantic("고객 주문 정보가 올바르지 않습니다", e)

        if not customer_order.id.strip():
            raise ValidationError("고객 주문 ID 가 필요합니다")
        if not customer_order.line_items:
            raise ValidationError("주문 항목이 최소 1개 필요합니다", {"order_id": customer_order.id})

        invalid = [item.product_id for item in customer_order.line_items if item.quantity <= 0]
        if invalid:
            raise ValidationError("주문 수량은 1 이상이어야 합니다", {"product_ids": invalid})
        return customer_order

    async def _group_by_supplier(
        self, customer_order: CustomerOrder
    ) -> "OrderedDict[str, Tuple[Supplier, List[DropshipLineItem]]]":
        """주문 항목을 공급사별로 분류 (공급사 연결이 없는 항목은 제외)"""
        groups: "OrderedDict[str, Tuple[Supplier, List[DropshipLineItem]]]" = OrderedDict()

        for item in customer_order.line_items:
            supplier_id, external_id, unit_cost = item.supplier_id, item.external_id, item.unit_cost

            if not (supplier_id and external_id):
                relations = await self.relations.relations_for_product(item.product_id)
                if not relations:
                    logger.debug(f"드롭쉬핑 대상 아님: {item.product_id}")
                    continue
                relation = relations[0]
                supplier_id, external_id = relation.provider, relation.external_id
                if unit_cost is None:
                    unit_cost = relation.supplier_price

            if supplier_id not in groups:
                groups[supplier_id] = (await self.registry.get_supplier(supplier_id), [])

            groups[supplier_id][1].append(
                DropshipLineItem(
                    product_id=item.product_id,
                    external_id=external_id,
                    quantity=item.quantity,
                    unit_cost=unit_cost if unit_cost is not None else Decimal("0"),
                    title=item.title,
                )
            )
        return groups

    async def place_order(
        self, customer_order: Union[CustomerOrder, Mapping[str, Any]]
    ) -> List[DropshipOrder]:
        """
        고객 주문을 공급사별 주문으로 전달

        같은 고객 주문으로 여러 번 호출해도 공급사별 주문은 하나만 만들어지며,
        이미 전달된 주문은 그대로 반환한다.

        Returns:
            공급사별 DropshipOrder 목록 (드롭쉬핑 항목이 없으면 빈 목록)

        Raises:
            ValidationError: 주문 정보 오류 (아무것도 저장하기 전)
            NotFoundError: 연결된 공급사 없음
        """
        order = self._parse_order(customer_order)
        groups = await self._group_by_supplier(order)

        if not groups:
            logger.info(f"드롭쉬핑 항목 없는 주문: {order.id}")
            return []

        results = await asyncio.gather(
            *(
                self._place_for_supplier(order, supplier, lines)
                for supplier, lines in groups.values()
            )
        )
        logger.info(f"고객 주문 {order.id} → 공급사 주문 {len(results)}건 처리")
        return list(results)

    async def _place_for_supplier(
        self, customer_order: CustomerOrder, supplier: Supplier, lines: List[DropshipLineItem]
    ) -> DropshipOrder:
        token = idempotency_token(customer_order.id, supplier.id)
        order_id = dropship_order_id(token)

        async with self._locks.acquire(order_id):
            document = await self.storage.get(COLLECTION, order_id)

            if document is not None:
                existing = DropshipOrder.from_document(document)
                if existing.status != DropshipOrderStatus.PENDING:
                    logger.bind(order_id=order_id).debug(
                        f"이미 처리된 공급사 주문: {existing.status}"
                    )
                    return existing
                return await self._submit(existing, supplier)

            order = DropshipOrder(
                id=order_id,
                customer_order_id=customer_order.id,
                supplier_id=supplier.id,
                adapter=supplier.adapter_name,
                idempotency_token=token,
                line_items=lines,
                shipping=customer_order.shipping_address,
                currency=customer_order.currency,
            )
            saved = await self.storage.create(COLLECTION, order.to_document(), id=order_id)
            logger.bind(order_id=order_id, supplier_id=supplier.id).info(
                f"공급사 주문 생성: {customer_order.id} ({len(lines)}개 항목)"
            )
            return await self._submit(DropshipOrder.from_document(saved), supplier)

    async def _submit(self, order: DropshipOrder, supplier: Supplier) -> DropshipOrder:
        """
        공급사에 주문 전달 (주문 잠금 안에서 호출)

        실패한 시도마다 retry_count 를 저장하며 상태는 pending 으로 유지한다.
        """
        log = logger.bind(order_id=order.id, supplier_id=supplier.id)

        try:
            adapter = await self._adapter_for(supplier)
        except ExternalProviderError as e:
            return await self._fail(order, e)

        remaining = self.config.max_attempts - order.retry_count
        if remaining <= 0:
            return await self._fail(order, ExternalProviderError("재시도 한도 초과"))

        retrying = AsyncRetrying(
            stop=stop_after_attempt(remaining),
            wait=wait_exponential(multiplier=self.config.base_delay, max=self.config.max_delay),
            retry=retry_if_exception(_is_retryable),
            sleep=self._sleep,
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    result = await self._submit_once(order, adapter)
        except ExternalProviderError as e:
            return await self._fail(order, e)

        order.status = DropshipOrderStatus.SUBMITTED
        order.external_ref = result.external_ref
        order.submitted_at = datetime.now()
        order.last_error = None
        order.log_communication("submit", "success", f"external_ref={result.external_ref}")
        order = await self._persist(order)

        global_metrics.increment("orders.submitted")
        log.info(f"공급사 주문 전달 성공: {result.external_ref} (재시도 {order.retry_count}회)")

        try:
            await self.registry.record_order(supplier.id, order.total_cost)
        except DropshipError as e:
            log.warning(f"공급사 매출 집계 실패: {e.message}")
        return order

    async def _submit_once(self, order: DropshipOrder, adapter: SupplierAdapter):
        try:
            result = await self._call(adapter.submit(order.payload(), order.idempotency_token))
            if isinstance(result, UnsupportedOperationError):
                raise result
            return result
        except ExternalProviderError as e:
            error = e
        except Exception as e:
            logger.bind(order_id=order.id).exception(f"공급사 어댑터 예외: {type(e).__name__}")
            error = ExternalProviderError(f"공급사 어댑터 오류: {type(e).__name__}")

        order.retry_count += 1
        order.last_error = error.message
        order.log_communication("submit", "failed", error.message)
        await self._persist(order)

        global_metrics.increment("orders.submit_failures")
        logger.bind(order_id=order.id).warning(
            f"공급사 주문 전달 실패 ({order.retry_count}/{self.config.max_attempts}): {error.message}"
        )
        raise error

    async def _fail(self, order: DropshipOrder, error: ExternalProviderError) -> DropshipOrder:
        """주문을 최종 실패 처리하고 관리자 오류 큐에 등록"""
        order.status = DropshipOrderStatus.FAILED
        order.last_error = error.message
        order = await self._persist(order)

        if error.retryable:
            queued: DropshipError = RetryExhaustedError(order.id, order.retry_count, error.message)
        else:
            queued = error
        await self.error_queue.push(order, queued)

        global_metrics.increment("orders.failed")
        return order

    async def requeue_failed(self, order_id: str, is_admin: bool) -> DropshipOrder:
        """
        실패한 주문을 다시 전달 (관리자 전용)

        failed → pending 으로 되돌리고 재시도 횟수를 초기화한 뒤 전달한다.
        """
        if not is_admin:
            raise PermissionDeniedError("관리자만 실패 주문을 재전달할 수 있습니다")

        async with self._locks.acquire(order_id):
            order = await self._load(order_id)
            if not can_transition(order.status, DropshipOrderStatus.PENDING.value):
                raise ConflictError(
                    "실패한 주문만 재전달할 수 있습니다", {"order_id": order_id, "status": order.status}
                )

            order.status = DropshipOrderStatus.PENDING
            order.retry_count = 0
            order.last_error = None
            order = await self._persist(order)
            await self.error_queue.resolve_for_order(order_id, "requeued")
            logger.bind(order_id=order_id).info("실패 주문 재전달 요청")

            supplier = await self.registry.get_supplier(order.supplier_id)
            self.forget_adapter(supplier.id)
            return await self._submit(order, supplier)

    # ------------------------------------------------------------------
    # 추적
    # ------------------------------------------------------------------

    async def track_orders(self, order_ids: List[str]) -> List[TrackingResult]:
        """
        주문 상태 추적

        주문별로 독립적으로 처리하며, 상태는 앞으로만 진행한다.
        중간에 취소되어도 이미 저장된 전이는 그대로 유지된다.
        """
        semaphore = asyncio.Semaphore(self.config.tracking_concurrency)

        async def run(order_id: str) -> TrackingResult:
            async with semaphore:
                return await self._track_one(order_id)

        results = await asyncio.gather(*(run(order_id) for order_id in order_ids))
        return list(results)

    async def track_open_orders(self) -> List[TrackingResult]:
        """진행 중인 모든 주문 추적"""
        documents = await self.storage.list(
            COLLECTION, filters={"status__in": OPEN_STATUSES}, limit=None
        )
        order_ids = [doc["id"] for doc in documents]
        logger.info(f"진행 중 주문 추적 시작: {len(order_ids)}건")
        return await self.track_orders(order_ids)

    async def _track_one(self, order_id: str) -> TrackingResult:
        async with self._locks.acquire(order_id):
            try:
                order = await self._load(order_id)
            except NotFoundError as e:
                return TrackingResult(order_id=order_id, error=e.message)

            result = TrackingResult(
                order_id=order_id, previous_status=order.status, status=order.status
            )
            if not order.external_ref:
                result.skipped = "no_external_ref"
                return result
            if is_terminal(order.status) or order.status == DropshipOrderStatus.FAILED:
                result.skipped = "terminal"
                return result

            log = logger.bind(order_id=order_id, supplier_id=order.supplier_id)
            try:
                supplier = await self.registry.get_supplier(order.supplier_id)
                adapter = await self._adapter_for(supplier)
                remote = await self._call(adapter.status(order.external_ref))
            except DropshipError as e:
                log.warning(f"주문 상태 조회 실패: {e.message}")
                result.error = e.message
                return result
            except Exception as e:
                log.exception(f"공급사 어댑터 예외: {type(e).__name__}")
                result.error = f"공급사 어댑터 오류: {type(e).__name__}"
                return result

            remote_status = RemoteStatus(remote.status)
            target = tracking_target(order.status, remote_status)
            order.remote_status = remote_status.value
            order.last_tracking_check = datetime.now()
            if remote.tracking_number:
                order.tracking_number = remote.tracking_number
            if remote.carrier:
                order.carrier = remote.carrier
            order.log_communication("status", "success", remote_status.value)

            if target is not None:
                order.status = target
                if is_terminal(target):
                    order.completed_at = datetime.now()
                if target == DropshipOrderStatus.FAILED.value:
                    order.last_error = f"공급사 주문 거부: {remote_status.value}"
                global_metrics.increment("orders.transitions")
                log.info(f"주문 상태 변경: {result.previous_status} → {target}")
            elif is_stale(order.status, remote_status):
                log.debug(f"이전 상태 무시: {remote_status.value} (현재 {order.status})")

            order = await self._persist(order)
            global_metrics.increment("orders.tracked")

            if target == DropshipOrderStatus.FAILED.value:
                rejection = ExternalProviderError(
                    "공급사가 주문을 거부했습니다",
                    provider=order.adapter,
                    details={"remote_status": remote_status.value},
                    retryable=False,
                )
                await self.error_queue.push(order, rejection)
                global_metrics.increment("orders.failed")

            result.status = order.status
            result.remote_status = remote_status.value
            result.changed = target is not None
            result.tracking_number = order.tracking_number
            result.carrier = order.carrier
            return result

    # ------------------------------------------------------------------
    # 취소 / 조회
    # ------------------------------------------------------------------

    async def cancel_order(self, order_id: str) -> DropshipOrder:
        """
        공급사 주문 취소

        공급사가 취소를 지원하지 않으면 로컬에서만 취소 처리한다.

        Raises:
            ConflictError: 취소할 수 없는 상태
            ExternalProviderError: 공급사가 취소를 거부
        """
        async with self._locks.acquire(order_id):
            order = await self._load(order_id)
            if order.status not in CANCELLABLE:
                raise ConflictError(
                    "취소할 수 없는 주문 상태입니다", {"order_id": order_id, "status": order.status}
                )

            log = logger.bind(order_id=order_id, supplier_id=order.supplier_id)
            if order.external_ref:
                supplier = await self.registry.get_supplier(order.supplier_id)
                adapter = await self._adapter_for(supplier)
                outcome = await self._call(adapter.cancel(order.external_ref))

                if isinstance(outcome, UnsupportedOperationError):
                    order.cancelled_locally = True
                    order.log_communication("cancel", "unsupported", outcome.message)
                    log.warning("공급사 취소 미지원: 로컬에서만 취소 처리")
                elif not outcome:
                    order.log_communication("cancel", "failed", "공급사 취소 거부")
                    await self._persist(order)
                    raise ExternalProviderError(
                        "공급사가 주문 취소를 거부했습니다", provider=order.adapter
                    )
                else:
                    order.log_communication("cancel", "success")

            order.status = DropshipOrderStatus.CANCELLED
            order.completed_at = datetime.now()
            order = await self._persist(order)

        log.info("공급사 주문 취소")
        return order

    async def get_order(self, order_id: str) -> DropshipOrder:
        return await self._load(order_id)

    async def list_orders(
        self,
        customer_order_id: Optional[str] = None,
        status: Optional[str] = None,
        supplier_id: Optional[str] = None,
    ) -> List[DropshipOrder]:
        filters = {
            key: value
            for key, value in (
                ("customer_order_id", customer_order_id),
                ("status", status),
                ("supplier_id", supplier_id),
            )
            if value
        }
        documents = await self.storage.list(
            COLLECTION, filters=filters, limit=None, order_by=["created_at"]
        )
        return [DropshipOrder.from_document(doc) for doc in documents]

    async def close(self):
        """어댑터 HTTP 클라이언트 종료"""
        for adapter in self._adapter_cache.values():
            close = getattr(adapter, "close", None)
            if close is not None:
                await close()
        self._adapter_cache.clear()

