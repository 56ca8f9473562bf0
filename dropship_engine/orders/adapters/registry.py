"""
어댑터 레지스트리
어댑터 이름 → 생성 함수 (인증 정보, 설정) 매핑
"""

from typing import Callable, Dict, List, Optional

from dropship_engine.config import Settings, get_settings
from dropship_engine.errors import ExternalProviderError
from dropship_engine.orders.adapters.aliexpress import AliExpressAdapter
from dropship_engine.orders.adapters.base import SupplierAdapter
from dropship_engine.orders.adapters.domeme import DomemeAdapter

AdapterFactory = Callable[[Dict[str, str], Settings], SupplierAdapter]


class AdapterRegistry:
    """공급사 어댑터 레지스트리

    새 공급사는 생성 함수를 등록하여 추가한다.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._factories: Dict[str, AdapterFactory] = {}

    def register(self, name: str, factory: AdapterFactory):
        self._factories[name] = factory

    def names(self) -> List[str]:
        return sorted(self._factories)

    def supports(self, name: str) -> bool:
        return name in self._factories

    def create(self, name: str, credentials: Dict[str, str]) -> SupplierAdapter:
        """어댑터 생성

        Raises:
            ExternalProviderError: 등록되지 않은 어댑터 (재시도 불가)
        """
        factory = self._factories.get(name)
        if factory is None:
            raise ExternalProviderError(
                f"등록되지 않은 공급사 어댑터입니다: {name}", provider=name, retryable=False
            )
        return factory(credentials, self.settings)


def create_adapter_registry(settings: Optional[Settings] = None) -> AdapterRegistry:
    """기본 공급사 어댑터가 등록된 레지스트리 생성"""
    registry = AdapterRegistry(settings)
    timeout = registry.settings.orders.adapter_timeout

    registry.register(
        AliExpressAdapter.name,
        lambda credentials, s: AliExpressAdapter(credentials, s.aliexpress, timeout=timeout),
    )
    registry.register(
        DomemeAdapter.name,
        lambda credentials, s: DomemeAdapter(credentials, s.domeme, timeout=timeout),
    )
    return registry
