"""
공급사 주문 상태 전이 규칙

pending → submitted → {confirmed, failed} → {shipped, cancelled} → delivered
failed → pending 은 명시적 재시도 경로에서만 허용한다.
"""

from typing import Dict, Optional, Set

from dropship_engine.models.order import DropshipOrderStatus as S
from dropship_engine.orders.adapters.base import RemoteStatus

TRANSITIONS: Dict[str, Set[str]] = {
    S.PENDING.value: {S.SUBMITTED.value, S.FAILED.value, S.CANCELLED.value},
    S.SUBMITTED.value: {
        S.CONFIRMED.value,
        S.SHIPPED.value,
        S.DELIVERED.value,
        S.FAILED.value,
        S.CANCELLED.value,
    },
    S.CONFIRMED.value: {S.SHIPPED.value, S.DELIVERED.value, S.CANCELLED.value},
    S.SHIPPED.value: {S.DELIVERED.value},
    S.FAILED.value: {S.PENDING.value},
    S.DELIVERED.value: set(),
    S.CANCELLED.value: set(),
}

# 진행 순서 (추적 결과로 되돌아가지 않음)
RANK: Dict[str, int] = {
    S.PENDING.value: 0,
    S.SUBMITTED.value: 1,
    S.CONFIRMED.value: 2,
    S.SHIPPED.value: 3,
    S.DELIVERED.value: 4,
}

TERMINAL = {S.DELIVERED.value, S.CANCELLED.value}

# 추적 대상 상태
OPEN_STATUSES = [S.SUBMITTED.value, S.CONFIRMED.value, S.SHIPPED.value]

CANCELLABLE = {S.PENDING.value, S.SUBMITTED.value, S.CONFIRMED.value}

# 공급사 상태 → 로컬 상태 (None 은 변경 없음)
REMOTE_TO_LOCAL: Dict[str, Optional[str]] = {
    RemoteStatus.PENDING.value: None,
    RemoteStatus.ACCEPTED.value: S.SUBMITTED.value,
    RemoteStatus.PROCESSING.value: S.CONFIRMED.value,
    RemoteStatus.SHIPPED.value: S.SHIPPED.value,
    RemoteStatus.IN_TRANSIT.value: S.SHIPPED.value,
    RemoteStatus.DELIVERED.value: S.DELIVERED.value,
    RemoteStatus.CANCELLED.value: S.CANCELLED.value,
    RemoteStatus.REJECTED.value: S.FAILED.value,
    RemoteStatus.UNKNOWN.value: None,
}


def can_transition(current: str, target: str) -> bool:
    return target in TRANSITIONS.get(current, set())


def is_terminal(status: str) -> bool:
    return status in TERMINAL


def local_status_for(remote: RemoteStatus) -> Optional[str]:
    return REMOTE_TO_LOCAL.get(RemoteStatus(remote).value)


def tracking_target(current: str, remote: RemoteStatus) -> Optional[str]:
    """
    추적 결과로 적용할 다음 상태

    전이 표에 있고 진행 순서를 되돌리지 않는 경우에만 반환한다.
    취소/실패는 순서와 무관하게 전이 표만 따른다.
    """
    target = local_status_for(remote)
    if target is None or target == current:
        return None
    if not can_transition(current, target):
        return None
    if target in RANK and current in RANK and RANK[target] <= RANK[current]:
        return None
    return target


def is_stale(current: str, remote: RemoteStatus) -> bool:
    """공급사 상태가 현재 로컬 상태보다 뒤처졌는지 여부"""
    mapped = local_status_for(remote)
    return mapped in RANK and current in RANK and RANK[mapped] < RANK[current]
