"""
pytest 공통 fixtures 및 설정
"""

import os
import sys
from pathlib import Path
from typing import Any, Dict, List
from unittest.mock import patch

import pytest

# 프로젝트 루트를 Python 경로에 추가
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from tests.fixtures.fake_adapter import FakeAdapter  # noqa: E402
from tests.fixtures.samples import SHIPPING_ADDRESS, make_supplier_profile  # noqa: E402

# 테스트용 고정 암호화 키 (32바이트)
TEST_CREDENTIAL_KEY = bytes(range(32))


@pytest.fixture(scope="session")
def test_env():
    """테스트 환경 설정"""
    os.environ["ENV"] = "test"
    os.environ["DEBUG"] = "true"
    os.environ["LOG_LEVEL"] = "DEBUG"
    os.environ["STORAGE_BACKEND"] = "memory"
    os.environ["SCHEDULER_ENABLED"] = "false"

    yield


@pytest.fixture
def mock_settings(test_env):
    """Mock 설정 객체"""
    from dropship_engine.config import OrderAutomationConfig, Settings

    settings = Settings(
        env="test",
        debug=True,
        log_level="DEBUG",
        storage_backend="memory",
        scheduler_enabled=False,
    )
    settings._orders = OrderAutomationConfig(
        max_attempts=3,
        base_delay=0.5,
        max_delay=2.0,
        adapter_timeout=1.0,
        tracking_concurrency=4,
        tracking_interval_minutes=30,
    )

    with patch("dropship_engine.config.get_settings", return_value=settings):
        yield settings


@pytest.fixture
def storage():
    """메모리 저장소"""
    from dropship_engine.storage.memory_storage import MemoryStorage

    return MemoryStorage()


@pytest.fixture
def fake_adapter():
    return FakeAdapter()


@pytest.fixture
def adapter_registry(mock_settings, fake_adapter):
    """테스트 어댑터가 등록된 어댑터 레지스트리"""
    from dropship_engine.orders.adapters.registry import AdapterRegistry

    registry = AdapterRegistry(mock_settings)
    registry.register(FakeAdapter.name, fake_adapter.factory)
    return registry


@pytest.fixture
def sleeps() -> List[float]:
    """재시도 대기 기록"""
    return []


@pytest.fixture
def services(mock_settings, storage, adapter_registry, sleeps):
    """테스트용 서비스 구성 (재시도 대기 없음)"""
    from dropship_engine.services import build_services

    async def no_sleep(delay: float):
        sleeps.append(delay)

    return build_services(
        settings=mock_settings,
        storage=storage,
        adapters=adapter_registry,
        credential_key=TEST_CREDENTIAL_KEY,
        sleep=no_sleep,
    )


@pytest.fixture
def supplier_profile() -> Dict[str, Any]:
    return make_supplier_profile()


@pytest.fixture
async def supplier(services, supplier_profile):
    """등록된 공급사 (beauty-source)"""
    return await services.suppliers.register_supplier(supplier_profile)


@pytest.fixture
async def second_supplier(services):
    """두 번째 공급사 (home-goods)"""
    return await services.suppliers.register_supplier(
        make_supplier_profile(
            "Home Goods",
            description="생활용품 공급사",
            categories=["Maison & Jardin"],
            contact={"email": "sales@home-goods.example"},
        )
    )


@pytest.fixture
def shipping_address() -> Dict[str, Any]:
    return dict(SHIPPING_ADDRESS)
