"""에이전트 점수 계산기 (AgentScorer)

1단계: 각 에이전트의 can_handle로 후보를 거르고 (예외를 던진 에이전트는 제외),
2단계: 의도/세부 의도/컨텍스트/키워드/성능 점수를 더해 최고점 에이전트를 선택합니다.
동점이면 먼저 등록된 에이전트가 선택됩니다.
"""

import logging
from typing import Optional

from landcomp.services.orchestration.errors import CapabilityError, NoCapableAgentError
from landcomp.services.orchestration.fuzzy_matcher import keyword_score
from landcomp.services.orchestration.models import (
    AgentRequest,
    Intent,
    IntentSubtype,
    IntentType,
    RequestContext,
)
from landcomp.settings import settings

from .base import AgentCapability, BaseAgent
from .registry import AgentRegistry

logger = logging.getLogger(__name__)

BASE_SCORE = 1.0
UNKNOWN_PERFORMANCE_PRIOR = 0.5

# 의도 유형 → (필요 능력, 보너스). 능력이 None이면 모든 에이전트에 적용
INTENT_BONUS: dict[IntentType, tuple[Optional[AgentCapability], float]] = {
    IntentType.CONSULTATION: (AgentCapability.CONSULTATION, 2.0),
    IntentType.ANALYSIS: (AgentCapability.ANALYSIS, 2.0),
    IntentType.GENERATION: (AgentCapability.TEXT_GENERATION, 2.0),
    IntentType.MODIFICATION: (AgentCapability.CONSULTATION, 1.5),
    IntentType.UNCLEAR: (None, 0.5),
}

# 세부 의도 → (필요 능력, 보너스). 표에 없는 세부 의도는 보너스 없음
SUBTYPE_BONUS: dict[IntentSubtype, tuple[Optional[AgentCapability], float]] = {
    IntentSubtype.LANDSCAPE_PLANNING: (AgentCapability.LANDSCAPE_DESIGN, 1.5),
    IntentSubtype.PLANT_SELECTION: (AgentCapability.GARDENING, 1.5),
    IntentSubtype.CONSTRUCTION_ADVICE: (AgentCapability.CONSTRUCTION, 1.5),
    IntentSubtype.MAINTENANCE_ADVICE: (AgentCapability.GARDENING, 1.0),
    IntentSubtype.GENERAL_QUESTION: (None, 0.5),
    IntentSubtype.IMAGE_GENERATION: (AgentCapability.IMAGE_GENERATION, 1.0),
    IntentSubtype.TEXT_GENERATION: (AgentCapability.TEXT_GENERATION, 1.0),
    IntentSubtype.PLAN_GENERATION: (AgentCapability.PLANNING, 1.0),
    IntentSubtype.IMAGE_ANALYSIS: (AgentCapability.IMAGE_ANALYSIS, 1.0),
    IntentSubtype.SITE_ANALYSIS: (AgentCapability.ANALYSIS, 1.0),
    IntentSubtype.PROBLEM_DIAGNOSIS: (AgentCapability.ANALYSIS, 1.0),
    IntentSubtype.DESIGN_MODIFICATION: (AgentCapability.LANDSCAPE_DESIGN, 1.0),
    IntentSubtype.PLAN_ADJUSTMENT: (AgentCapability.PLANNING, 1.0),
    IntentSubtype.CONTENT_UPDATE: (None, 0.5),
}

NEW_IMAGES_BONUS = 1.5
RECENT_IMAGES_BONUS = 1.0
CONVERSATION_BONUS = 0.5


def _table_bonus(
    agent: BaseAgent, entry: Optional[tuple[Optional[AgentCapability], float]]
) -> float:
    if entry is None:
        return 0.0
    capability, bonus = entry
    if capability is None or agent.has_capability(capability):
        return bonus
    return 0.0


class AgentScorer:
    """에이전트 선택기"""

    def __init__(self, registry: AgentRegistry, performance_weight: Optional[float] = None):
        """
        Args:
            registry: 에이전트 레지스트리 (후보 목록과 성공률 제공)
            performance_weight: 성공률 가중치 (None이면 설정값)
        """
        self.registry = registry
        self.performance_weight = (
            settings.performance_weight if performance_weight is None else performance_weight
        )

    def intent_score(self, agent: BaseAgent, intent: Intent) -> float:
        score = _table_bonus(agent, INTENT_BONUS.get(intent.intent_type))
        if intent.subtype is not None:
            score += _table_bonus(agent, SUBTYPE_BONUS.get(intent.subtype))
        return score

    def context_score(self, agent: BaseAgent, context: RequestContext) -> float:
        score = 0.0
        if agent.has_capability(AgentCapability.IMAGE_ANALYSIS):
            if context.has_images:
                score += NEW_IMAGES_BONUS
            if context.has_recent_images_in_history:
                score += RECENT_IMAGES_BONUS
        if context.conversation_length > 0:
            score += CONVERSATION_BONUS
        return score

    def keyword_score(self, agent: BaseAgent, user_message: str) -> float:
        return keyword_score(user_message, agent.keywords)

    def performance_score(self, agent: BaseAgent) -> float:
        rate = self.registry.success_rate(agent.id)
        if rate is None:
            rate = UNKNOWN_PERFORMANCE_PRIOR
        return self.performance_weight * rate

    def score_breakdown(self, agent: BaseAgent, request: AgentRequest) -> dict[str, float]:
        """점수 구성 요소별 값 (total 포함)"""
        breakdown = {
            "base": BASE_SCORE,
            "intent": self.intent_score(agent, request.intent),
            "context": self.context_score(agent, request.context),
            "keywords": self.keyword_score(agent, request.user_message),
            "performance": self.performance_score(agent),
        }
        breakdown["total"] = sum(breakdown.values())
        return breakdown

    def score(self, agent: BaseAgent, request: AgentRequest) -> float:
        return self.score_breakdown(agent, request)["total"]

    def capable_agents(self, request: AgentRequest) -> list[BaseAgent]:
        """1단계: 처리 가능한 에이전트 (등록 순서 유지)"""
        capable = []
        for agent in self.registry.all_agents():
            try:
                if agent.can_handle(request.intent, request.context):
                    capable.append(agent)
            except Exception as e:
                error = CapabilityError(agent.id, e)
                logger.warning(f"에이전트 능력 검사 실패로 제외: {error}")
        return capable

    def select_agent(self, request: AgentRequest) -> BaseAgent:
        """최고점 에이전트 선택

        Args:
            request: 에이전트 요청

        Returns:
            선택된 에이전트

        Raises:
            NoCapableAgentError: 처리 가능한 에이전트가 없음
        """
        candidates = self.capable_agents(request)
        if not candidates:
            raise NoCapableAgentError(
                f"No agents available to handle intent: {request.intent.intent_type.value}"
            )

        best_agent: Optional[BaseAgent] = None
        best_score = float("-inf")
        for agent in candidates:
            breakdown = self.score_breakdown(agent, request)
            logger.debug(
                f"{agent.id}: total {breakdown['total']:.2f} "
                f"(intent {breakdown['intent']:.2f}, context {breakdown['context']:.2f}, "
                f"keywords {breakdown['keywords']:.2f}, performance {breakdown['performance']:.2f})"
            )
            # 엄격한 비교로 동점 시 먼저 등록된 에이전트 유지
            if breakdown["total"] > best_score:
                best_agent, best_score = agent, breakdown["total"]

        logger.info(f"에이전트 선택: {best_agent.id} (score {best_score:.2f})")
        return best_agent
