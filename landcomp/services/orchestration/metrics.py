"""오케스트레이션 메트릭

컴포넌트(오케스트레이터 단계, 에이전트)별 실행 시간과 성공/실패를 추적합니다.
프로세스 내 조회용 MetricsTracker와 함께 Prometheus 히스토그램/카운터로도 내보냅니다.
"""

import logging
import threading
from collections import deque
from typing import Optional

from prometheus_client import Counter, Histogram

logger = logging.getLogger(__name__)

MAX_EXECUTION_SAMPLES = 100

STAGE_LATENCY = Histogram(
    "landcomp_stage_duration_seconds",
    "Time spent in each orchestration stage",
    ["component"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, float("inf")],
)

STAGE_RESULTS = Counter(
    "landcomp_stage_results_total",
    "Orchestration stage results",
    ["component", "status"],
)


class ComponentMetrics:
    """컴포넌트 하나의 누적 메트릭 (잠금은 MetricsTracker가 담당)"""

    def __init__(self, name: str):
        self.name = name
        self.success_count = 0
        self.error_count = 0
        self.execution_times_ms: deque[float] = deque(maxlen=MAX_EXECUTION_SAMPLES)

    @property
    def total(self) -> int:
        return self.success_count + self.error_count

    @property
    def success_rate(self) -> float:
        return self.success_count / self.total if self.total else 0.0

    @property
    def average_time_ms(self) -> float:
        if not self.execution_times_ms:
            return 0.0
        return sum(self.execution_times_ms) / len(self.execution_times_ms)

    def to_dict(self) -> dict:
        times = self.execution_times_ms
        return {
            "component": self.name,
            "total_executions": self.total,
            "success_count": self.success_count,
            "error_count": self.error_count,
            "success_rate": self.success_rate,
            "average_time_ms": self.average_time_ms,
            "min_time_ms": min(times) if times else 0.0,
            "max_time_ms": max(times) if times else 0.0,
        }


class MetricsTracker:
    """스레드 안전 메트릭 추적기"""

    def __init__(self):
        self._lock = threading.Lock()
        self._components: dict[str, ComponentMetrics] = {}

    def track_execution(self, component: str, elapsed_ms: float, success: bool) -> None:
        """실행 결과 기록

        Args:
            component: 컴포넌트 이름 (예: "orchestrator", "classification", 에이전트 ID)
            elapsed_ms: 실행 시간 (밀리초)
            success: 성공 여부
        """
        with self._lock:
            metrics = self._components.setdefault(component, ComponentMetrics(component))
            metrics.execution_times_ms.append(elapsed_ms)
            if success:
                metrics.success_count += 1
            else:
                metrics.error_count += 1

        STAGE_LATENCY.labels(component=component).observe(elapsed_ms / 1000)
        STAGE_RESULTS.labels(component=component, status="success" if success else "error").inc()

    def get_metrics(self, component: str) -> Optional[dict]:
        """컴포넌트 메트릭 (기록이 없으면 None)"""
        with self._lock:
            metrics = self._components.get(component)
            return metrics.to_dict() if metrics else None

    def get_all_metrics(self) -> dict[str, dict]:
        with self._lock:
            return {name: m.to_dict() for name, m in self._components.items()}

    def get_summary(self) -> dict:
        """전체 요약"""
        with self._lock:
            total = sum(m.total for m in self._components.values())
            errors = sum(m.error_count for m in self._components.values())
            return {
                "component_count": len(self._components),
                "total_executions": total,
                "total_errors": errors,
                "overall_success_rate": (total - errors) / total if total else 0.0,
            }

    def get_top_performers(self, limit: int = 5) -> list[dict]:
        """성공률 높은 순 (동률이면 평균 시간 짧은 순)"""
        with self._lock:
            ranked = sorted(
                (m for m in self._components.values() if m.total),
                key=lambda m: (-m.success_rate, m.average_time_ms),
            )
            return [m.to_dict() for m in ranked[:limit]]

    def get_slowest_components(self, limit: int = 5) -> list[dict]:
        with self._lock:
            ranked = sorted(
                (m for m in self._components.values() if m.total),
                key=lambda m: -m.average_time_ms,
            )
            return [m.to_dict() for m in ranked[:limit]]

    def get_components_with_errors(self) -> list[str]:
        with self._lock:
            return [name for name, m in self._components.items() if m.error_count]

    def reset(self) -> None:
        """모든 메트릭 초기화 (Prometheus 누적값은 유지)"""
        with self._lock:
            self._components.clear()
        logger.info("메트릭 초기화")
