"""
운영 메트릭
API 요청과 공급사 주문 처리 건수를 프로세스 메모리에 집계해 /health 로 노출
"""

import statistics
from collections import Counter, deque
from datetime import datetime
from typing import Any, Deque, Dict

# /health 에 노출하는 주문 카운터 (orders.<이름>)
ORDER_COUNTERS = ("submitted", "submit_failures", "failed", "tracked", "transitions")


class LatencyWindow:
    """최근 처리 시간(초) 표본"""

    def __init__(self, size: int = 100):
        self.samples: Deque[float] = deque(maxlen=size)

    def add(self, seconds: float):
        self.samples.append(seconds)

    def stats(self) -> Dict[str, float]:
        if not self.samples:
            return {"count": 0, "mean": 0.0, "p50": 0.0, "p95": 0.0, "max": 0.0}

        ordered = sorted(self.samples)
        count = len(ordered)
        return {
            "count": count,
            "mean": round(statistics.mean(ordered), 6),
            "p50": ordered[count // 2],
            "p95": ordered[min(count - 1, int(count * 0.95))],
            "max": ordered[-1],
        }


class MetricsCollector:
    """메트릭 수집기

    카운터 이름은 점으로 구분한다 (api.requests, orders.submitted).
    """

    def __init__(self, window_size: int = 100):
        self.window_size = window_size
        self.counters: Counter = Counter()
        self.latencies: Dict[str, LatencyWindow] = {}
        self.started_at = datetime.now()

    def increment(self, name: str, amount: int = 1):
        """카운터 증가"""
        self.counters[name] += amount

    def record(self, name: str, seconds: float):
        """처리 시간 기록"""
        window = self.latencies.get(name)
        if window is None:
            window = self.latencies[name] = LatencyWindow(self.window_size)
        window.add(seconds)

    def get_value(self, name: str) -> int:
        return self.counters.get(name, 0)

    def reset(self):
        self.counters.clear()
        self.latencies.clear()
        self.started_at = datetime.now()

    def get_summary(self) -> Dict[str, Any]:
        """메트릭 요약"""
        requests = self.get_value("api.requests")
        errors = self.get_value("api.errors")
        latency = self.latencies.get("api.latency") or LatencyWindow()

        return {
            "timestamp": datetime.now().isoformat(),
            "uptime_seconds": int((datetime.now() - self.started_at).total_seconds()),
            "api": {
                "total_requests": requests,
                "total_errors": errors,
                "validation_errors": self.get_value("api.validation_errors"),
                "error_rate": round(errors / max(requests, 1), 4),
                "latency": latency.stats(),
            },
            "orders": {name: self.get_value(f"orders.{name}") for name in ORDER_COUNTERS},
        }
