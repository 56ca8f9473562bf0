"""
공급사 주문 상태 전이 규칙 테스트
"""

import pytest

from dropship_engine.orders.adapters.base import RemoteStatus
from dropship_engine.orders.state import (
    can_transition,
    is_stale,
    is_terminal,
    local_status_for,
    tracking_target,
)


@pytest.mark.parametrize(
    "current,remote,expected",
    [
        ("submitted", RemoteStatus.PROCESSING, "confirmed"),
        ("submitted", RemoteStatus.SHIPPED, "shipped"),
        ("submitted", RemoteStatus.DELIVERED, "delivered"),
        ("confirmed", RemoteStatus.IN_TRANSIT, "shipped"),
        ("shipped", RemoteStatus.DELIVERED, "delivered"),
        ("submitted", RemoteStatus.REJECTED, "failed"),
        ("confirmed", RemoteStatus.CANCELLED, "cancelled"),
        # 변경 없음
        ("submitted", RemoteStatus.ACCEPTED, None),
        ("submitted", RemoteStatus.PENDING, None),
        ("submitted", RemoteStatus.UNKNOWN, None),
        # 되돌아가지 않음
        ("shipped", RemoteStatus.PROCESSING, None),
        ("shipped", RemoteStatus.ACCEPTED, None),
        ("shipped", RemoteStatus.CANCELLED, None),
        ("delivered", RemoteStatus.SHIPPED, None),
    ],
)
def test_tracking_target(current, remote, expected):
    assert tracking_target(current, remote) == expected


def test_stale_remote_status():
    assert is_stale("shipped", RemoteStatus.PROCESSING)
    assert is_stale("confirmed", RemoteStatus.ACCEPTED)
    assert not is_stale("submitted", RemoteStatus.SHIPPED)
    assert not is_stale("shipped", RemoteStatus.UNKNOWN)


def test_transitions():
    assert can_transition("pending", "submitted")
    assert can_transition("failed", "pending")
    assert not can_transition("delivered", "cancelled")
    assert not can_transition("cancelled", "pending")
    assert not can_transition("shipped", "cancelled")


def test_terminal_statuses():
    assert is_terminal("delivered")
    assert is_terminal("cancelled")
    assert not is_terminal("failed")


def test_local_status_accepts_plain_values():
    assert local_status_for("in_transit") == "shipped"
