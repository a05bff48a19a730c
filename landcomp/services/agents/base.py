"""에이전트 기본 인터페이스

에이전트는 의도를 처리할 수 있는지 스스로 판단(can_handle)하고,
선택되면 요청을 실행(execute)해 AgentResponse를 돌려줍니다.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Callable, Iterable, Optional, TypeVar

from landcomp.services.orchestration.errors import ProviderError
from landcomp.services.orchestration.models import (
    AgentRequest,
    AgentResponse,
    Intent,
    RequestContext,
)

if TYPE_CHECKING:
    from landcomp.services.llm.base import BaseLLMService

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AgentCapability(Enum):
    """에이전트 능력"""

    CONSULTATION = "consultation"
    ANALYSIS = "analysis"
    TEXT_GENERATION = "text_generation"
    IMAGE_GENERATION = "image_generation"
    IMAGE_ANALYSIS = "image_analysis"
    PLANNING = "planning"
    MODIFICATION = "modification"
    GARDENING = "gardening"
    LANDSCAPE_DESIGN = "landscape_design"
    CONSTRUCTION = "construction"
    ECOLOGY = "ecology"


class BaseAgent(ABC):
    """에이전트 기본 추상 클래스"""

    def __init__(
        self,
        agent_id: str,
        name: str,
        capabilities: Iterable[AgentCapability],
        system_prompt: str = "",
        keywords: Iterable[str] = (),
        description: str = "",
    ):
        """
        Args:
            agent_id: 레지스트리 내 고유 ID
            name: 표시 이름
            capabilities: 능력 집합
            system_prompt: LLM 시스템 프롬프트
            keywords: 도메인 키워드 (점수 계산용)
            description: 설명
        """
        self.id = agent_id
        self.name = name
        self.capabilities = frozenset(capabilities)
        self.system_prompt = system_prompt
        self.keywords = tuple(keywords)
        self.description = description

    def has_capability(self, capability: AgentCapability) -> bool:
        return capability in self.capabilities

    @abstractmethod
    def can_handle(self, intent: Intent, context: RequestContext) -> bool:
        """의도/컨텍스트를 처리할 수 있는지 여부"""
        pass

    @abstractmethod
    def execute(self, request: AgentRequest) -> AgentResponse:
        """요청 실행

        Raises:
            ExecutionError: 실행 실패 (오케스트레이터가 오류 응답으로 변환)
        """
        pass

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "capabilities": sorted(c.value for c in self.capabilities),
            "keywords": list(self.keywords),
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"


def call_with_fallback(
    primary: "BaseLLMService",
    fallback: Optional["BaseLLMService"],
    operation: Callable[["BaseLLMService"], T],
    retry_on: tuple[type[Exception], ...] = (ProviderError,),
) -> tuple[T, str]:
    """기본 제공자로 실행하고 실패하면 폴백 제공자로 1회 재시도

    Args:
        primary: 기본 LLM 서비스
        fallback: 폴백 LLM 서비스 (None이면 재시도 없음)
        operation: LLM 서비스를 받아 결과를 돌려주는 호출
        retry_on: 폴백을 유발하는 예외 타입

    Returns:
        (결과, 응답한 제공자 이름)
    """
    try:
        return operation(primary), primary.provider_name
    except retry_on as e:
        if fallback is None:
            raise
        logger.warning(
            f"{primary.provider_name} 호출 실패: {e} → {fallback.provider_name}로 폴백"
        )
    return operation(fallback), fallback.provider_name
