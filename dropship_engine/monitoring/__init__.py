"""
모니터링 시스템
로깅, 메트릭 기능 제공
"""

from .logger import get_logger, setup_logging
from .metrics import MetricsCollector

# 프로세스 전역 메트릭
global_metrics = MetricsCollector()

__all__ = [
    "setup_logging",
    "get_logger",
    "MetricsCollector",
    "global_metrics",
]
