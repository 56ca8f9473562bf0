"""
주문 추적 스케줄러 테스트
"""

from unittest.mock import AsyncMock

import pytest

from dropship_engine.orders.adapters.base import RemoteOrderStatus, RemoteStatus
from dropship_engine.orders.scheduler import JOB_LOG_COLLECTION, TrackingScheduler
from tests.fixtures.samples import make_customer_order


@pytest.fixture
def scheduler(services, storage, mock_settings):
    return TrackingScheduler(services.orders, storage, mock_settings.orders)


def test_job_registered(scheduler):
    jobs = scheduler.get_jobs()

    assert [job["id"] for job in jobs] == ["track_open_orders"]
    assert "0:30:00" in jobs[0]["trigger"]


@pytest.mark.asyncio
async def test_track_open_orders_summary(scheduler, services, storage, fake_adapter, supplier):
    order = (await services.orders.place_order(make_customer_order()))[0]
    fake_adapter.remote[order.external_ref] = RemoteOrderStatus(status=RemoteStatus.SHIPPED)

    summary = await scheduler.track_open_orders()

    assert summary == {"total": 1, "changed": 1, "failed": 0, "skipped": 0}
    logs = await storage.list(JOB_LOG_COLLECTION)
    assert logs[0]["status"] == "success"
    assert logs[0]["results"] == summary


@pytest.mark.asyncio
async def test_job_failure_logged(scheduler, storage):
    scheduler.automation = AsyncMock()
    scheduler.automation.track_open_orders.side_effect = RuntimeError("storage down")

    summary = await scheduler.track_open_orders()

    assert summary == {"error": "storage down"}
    logs = await storage.list(JOB_LOG_COLLECTION)
    assert logs[0]["status"] == "error"
    assert logs[0]["error_message"] == "storage down"
