"""에이전트 레지스트리 (AgentRegistry)

등록 순서를 유지하는 에이전트 목록과 에이전트별 실행 메트릭을 관리합니다.
여러 요청이 동시에 메트릭을 갱신할 수 있으므로 모든 접근은 RLock으로 보호합니다.
"""

import logging
import threading
from collections import deque
from typing import Optional

from .base import AgentCapability, BaseAgent

logger = logging.getLogger(__name__)

MAX_EXECUTION_SAMPLES = 100


class AgentRegistry:
    """스레드 안전 에이전트 레지스트리"""

    def __init__(self):
        self._lock = threading.RLock()
        self._agents: dict[str, BaseAgent] = {}  # dict는 삽입 순서 유지
        self._metrics: dict[str, dict] = {}

    @staticmethod
    def _empty_metrics() -> dict:
        return {
            "success_count": 0,
            "error_count": 0,
            "execution_times_ms": deque(maxlen=MAX_EXECUTION_SAMPLES),
            "last_execution": None,
        }

    def register(self, agent: BaseAgent) -> None:
        """에이전트 등록 (같은 ID가 있으면 교체하되 순서는 유지)"""
        with self._lock:
            if agent.id in self._agents:
                logger.warning(f"에이전트 {agent.id} 재등록")
            self._agents[agent.id] = agent
            self._metrics.setdefault(agent.id, self._empty_metrics())
        logger.info(f"에이전트 등록: {agent.id} ({agent.name})")

    def unregister(self, agent_id: str) -> bool:
        """에이전트 제거 (없으면 False)"""
        with self._lock:
            agent = self._agents.pop(agent_id, None)
            self._metrics.pop(agent_id, None)
        if agent is None:
            return False
        logger.info(f"에이전트 제거: {agent_id}")
        return True

    def get(self, agent_id: str) -> Optional[BaseAgent]:
        with self._lock:
            return self._agents.get(agent_id)

    def all_agents(self) -> list[BaseAgent]:
        """등록 순서대로 모든 에이전트"""
        with self._lock:
            return list(self._agents.values())

    def by_capability(self, capability: AgentCapability) -> list[BaseAgent]:
        with self._lock:
            return [a for a in self._agents.values() if a.has_capability(capability)]

    def all_capabilities(self) -> set[AgentCapability]:
        with self._lock:
            capabilities: set[AgentCapability] = set()
            for agent in self._agents.values():
                capabilities |= agent.capabilities
            return capabilities

    def __len__(self) -> int:
        with self._lock:
            return len(self._agents)

    def __contains__(self, agent_id: object) -> bool:
        with self._lock:
            return agent_id in self._agents

    def track_execution(self, agent_id: str, elapsed_ms: float, success: bool) -> None:
        """에이전트 실행 결과 기록

        Args:
            agent_id: 에이전트 ID
            elapsed_ms: 실행 시간 (밀리초)
            success: 성공 여부
        """
        with self._lock:
            metrics = self._metrics.setdefault(agent_id, self._empty_metrics())
            metrics["execution_times_ms"].append(elapsed_ms)
            metrics["last_execution"] = success
            if success:
                metrics["success_count"] += 1
            else:
                metrics["error_count"] += 1

    def success_rate(self, agent_id: str) -> Optional[float]:
        """성공률 (실행 기록이 없으면 None)"""
        with self._lock:
            metrics = self._metrics.get(agent_id)
            if not metrics:
                return None
            total = metrics["success_count"] + metrics["error_count"]
            return metrics["success_count"] / total if total else None

    def get_agent_metrics(self, agent_id: str) -> dict:
        """에이전트 메트릭 스냅샷"""
        with self._lock:
            metrics = self._metrics.get(agent_id) or self._empty_metrics()
            times = list(metrics["execution_times_ms"])
            total = metrics["success_count"] + metrics["error_count"]
            return {
                "agent_id": agent_id,
                "total_executions": total,
                "success_count": metrics["success_count"],
                "error_count": metrics["error_count"],
                "success_rate": metrics["success_count"] / total if total else None,
                "average_time_ms": sum(times) / len(times) if times else 0.0,
                "recent_samples": len(times),
                "last_execution_success": metrics["last_execution"],
            }

    def get_registry_metrics(self) -> dict:
        with self._lock:
            agent_ids = list(self._agents)
            return {
                "agent_count": len(agent_ids),
                "capabilities": sorted(c.value for c in self.all_capabilities()),
                "agents": {agent_id: self.get_agent_metrics(agent_id) for agent_id in agent_ids},
            }

    def clear_metrics(self) -> None:
        """실행 메트릭 초기화 (등록된 에이전트는 유지)"""
        with self._lock:
            self._metrics = {agent_id: self._empty_metrics() for agent_id in self._agents}
        logger.info("에이전트 메트릭 초기화")
