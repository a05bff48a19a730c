"""오케스트레이터 (Orchestrator)

컨텍스트 생성 → 의도 분류 → 이미지 선택 → 에이전트 선택 → 실행 파이프라인을 관리합니다.
단계별 지연 시간과 성공 여부를 기록하며, 어떤 예외도 process_request 밖으로 던지지 않습니다.
"""

import logging
import time
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import TYPE_CHECKING, Iterator, Optional, Sequence

from landcomp.models.chat import Attachment, Message

from .context_builder import ContextBuilder
from .errors import ExecutionError
from .image_selector import ImageSelector
from .intent_classifier import IntentClassifier
from .metrics import MetricsTracker
from .models import AgentRequest, AgentResponse

if TYPE_CHECKING:
    from landcomp.services.agents.registry import AgentRegistry
    from landcomp.services.agents.scorer import AgentScorer

logger = logging.getLogger(__name__)

ORCHESTRATOR_COMPONENT = "orchestrator"


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class Orchestrator:
    """에이전트 오케스트레이터"""

    def __init__(
        self,
        classifier: IntentClassifier,
        registry: "AgentRegistry",
        scorer: "AgentScorer",
        context_builder: Optional[ContextBuilder] = None,
        image_selector: Optional[ImageSelector] = None,
        metrics: Optional[MetricsTracker] = None,
    ):
        """
        Args:
            classifier: 의도 분류기
            registry: 에이전트 레지스트리
            scorer: 에이전트 선택기 (보통 같은 registry를 참조)
            context_builder: 컨텍스트 빌더 (None이면 기본값)
            image_selector: 이미지 선택기 (None이면 기본값)
            metrics: 메트릭 추적기 (None이면 새로 생성)
        """
        self.classifier = classifier
        self.registry = registry
        self.scorer = scorer
        self.context_builder = context_builder or ContextBuilder()
        self.image_selector = image_selector or ImageSelector()
        self.metrics = metrics or MetricsTracker()

    @contextmanager
    def _stage(self, component: str, timings: dict[str, float]) -> Iterator[None]:
        """단계 실행 시간 기록 (예외 발생 시 실패로 기록 후 전파)"""
        start = time.perf_counter()
        success = False
        try:
            yield
            success = True
        finally:
            elapsed = _elapsed_ms(start)
            timings[component] = elapsed
            self.metrics.track_execution(component, elapsed, success)

    def process_request(
        self,
        user_message: str,
        history: Sequence[Message] = (),
        attachments: Optional[Sequence[Attachment]] = None,
        current_agent_id: Optional[str] = None,
    ) -> AgentResponse:
        """요청 처리

        Args:
            user_message: 사용자 입력
            history: 대화 기록 (오래된 것 → 최신 순, 임시 메시지 포함 가능)
            attachments: 이번 요청의 첨부파일
            current_agent_id: 현재 에이전트 힌트

        Returns:
            AgentResponse (실패 시에도 success=False 응답, 예외 없음)
        """
        request_id = str(uuid.uuid4())
        start = time.perf_counter()
        timings: dict[str, float] = {}
        logger.info(f"[{request_id}] 요청 처리 시작: {user_message[:50]}")

        try:
            with self._stage("context", timings):
                context = self.context_builder.build(
                    user_message, history, attachments, current_agent_id
                )

            with self._stage("classification", timings):
                intent = self.classifier.classify(user_message, context)

            with self._stage("image_selection", timings):
                selected_images = self.image_selector.select(
                    user_message,
                    context.conversation_history,
                    intent,
                    current_attachments=context.attachments,
                )
                context = context.with_updates(
                    attachments=selected_images,
                    metadata={
                        **context.metadata,
                        "original_attachments_count": len(attachments or ()),
                        "selected_images_count": len(selected_images),
                        "image_intent": intent.image_intent.value if intent.image_intent else None,
                    },
                )

            request = AgentRequest(
                request_id=request_id,
                context=context,
                intent=intent,
                timestamp=datetime.now(),
            )

            with self._stage("agent_selection", timings):
                agent = self.scorer.select_agent(request)

            response = self._execute_agent(agent, request, timings)
            response.metadata.setdefault("agent_id", agent.id)
            response.metadata["intent"] = intent.to_dict()
            response.metadata["stage_timings_ms"] = dict(timings)
            response.metadata["execution_time_ms"] = _elapsed_ms(start)

            self.metrics.track_execution(
                ORCHESTRATOR_COMPONENT, _elapsed_ms(start), response.success
            )
            logger.info(
                f"[{request_id}] 처리 완료: agent={agent.id}, success={response.success}, "
                f"{_elapsed_ms(start):.0f}ms"
            )
            return response

        except Exception as e:
            elapsed = _elapsed_ms(start)
            self.metrics.track_execution(ORCHESTRATOR_COMPONENT, elapsed, False)
            logger.error(f"[{request_id}] 요청 처리 실패: {type(e).__name__}: {e}")
            metadata = {
                "execution_time_ms": elapsed,
                "error_type": type(e).__name__,
                "stage_timings_ms": dict(timings),
            }
            if isinstance(e, ExecutionError) and e.agent_id:
                metadata["agent_id"] = e.agent_id
            return AgentResponse.failure(
                request_id=request_id,
                error=f"Request processing failed: {e}",
                metadata=metadata,
            )

    def _execute_agent(
        self, agent, request: AgentRequest, timings: dict[str, float]
    ) -> AgentResponse:
        """에이전트 실행 + 에이전트 메트릭 기록

        ExecutionError는 에이전트 메트릭을 남긴 뒤 다시 던져 오류 응답으로 변환됩니다.
        """
        start = time.perf_counter()
        try:
            with self._stage("execution", timings):
                response = agent.execute(request)
        except Exception as e:
            self.registry.track_execution(agent.id, _elapsed_ms(start), False)
            if isinstance(e, ExecutionError):
                raise
            raise ExecutionError(f"{agent.id} 실행 실패: {e}", agent_id=agent.id) from e

        self.registry.track_execution(agent.id, _elapsed_ms(start), response.success)
        return response

    def get_status(self) -> dict:
        """오케스트레이터 상태"""
        return {
            "agent_count": len(self.registry),
            "agents": [agent.to_dict() for agent in self.registry.all_agents()],
            "metrics": self.metrics.get_metrics(ORCHESTRATOR_COMPONENT),
            "registry_metrics": self.registry.get_registry_metrics(),
            "classification_stats": self.classifier.get_classification_stats(),
        }

    def get_performance_summary(self) -> dict:
        return {
            "orchestrator": self.metrics.get_metrics(ORCHESTRATOR_COMPONENT),
            "summary": self.metrics.get_summary(),
            "top_performers": self.metrics.get_top_performers(limit=5),
            "slowest_components": self.metrics.get_slowest_components(limit=5),
            "components_with_errors": self.metrics.get_components_with_errors(),
        }

    def reset_metrics(self) -> None:
        """모든 메트릭 초기화"""
        self.metrics.reset()
        self.registry.clear_metrics()
        self.classifier.reset_stats()
        logger.info("오케스트레이터 메트릭 초기화")
