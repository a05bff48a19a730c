"""기본 에이전트 카탈로그"""

from typing import TYPE_CHECKING, Optional

from landcomp.prompts.agents import (
    BUILDER_SYSTEM_PROMPT,
    ECOLOGIST_SYSTEM_PROMPT,
    GARDENER_SYSTEM_PROMPT,
    LANDSCAPE_DESIGNER_SYSTEM_PROMPT,
)

from .base import AgentCapability
from .consultant import ConsultantAgent
from .generation import GenerationAgent
from .registry import AgentRegistry

if TYPE_CHECKING:
    from landcomp.services.llm.base import BaseLLMService


GARDENER_KEYWORDS = (
    "растение", "цветок", "дерево", "сад", "огород", "посадка", "уход",
    "полив", "удобрение", "обрезка", "сезон",
    "plant", "flower", "tree", "garden", "care", "season",
)

LANDSCAPE_DESIGNER_KEYWORDS = (
    "участок", "преобразовать", "дизайн", "планировка", "зонирование", "ландшафт",
    "территория", "площадь", "размещение", "организация",
    "plot", "transform", "design", "planning", "zoning", "landscape",
)

BUILDER_KEYWORDS = (
    "строительство", "дом", "фундамент", "материалы", "конструкция",
    "building", "construction", "house", "foundation", "materials",
)

ECOLOGIST_KEYWORDS = (
    "экология", "экологичный", "устойчивый", "природный", "переработка",
    "ecology", "ecological", "sustainable", "natural", "recycling",
)


def build_default_registry(
    llm_primary: "BaseLLMService",
    llm_fallback: Optional["BaseLLMService"] = None,
) -> AgentRegistry:
    """내장 에이전트를 등록한 레지스트리 생성

    등록 순서(동점 처리 순서): gardener, landscape_designer, builder, ecologist, generation

    Args:
        llm_primary: 기본 LLM 서비스
        llm_fallback: 폴백 LLM 서비스

    Returns:
        AgentRegistry
    """
    registry = AgentRegistry()

    registry.register(
        ConsultantAgent(
            agent_id="gardener",
            name="Gardener",
            description="Expert in plants, care, and seasonal work",
            capabilities=[AgentCapability.GARDENING],
            system_prompt=GARDENER_SYSTEM_PROMPT,
            keywords=GARDENER_KEYWORDS,
            primary=llm_primary,
            fallback=llm_fallback,
        )
    )
    registry.register(
        ConsultantAgent(
            agent_id="landscape_designer",
            name="Landscape Designer",
            description="Specialist in site planning and zoning",
            capabilities=[AgentCapability.LANDSCAPE_DESIGN, AgentCapability.PLANNING],
            system_prompt=LANDSCAPE_DESIGNER_SYSTEM_PROMPT,
            keywords=LANDSCAPE_DESIGNER_KEYWORDS,
            primary=llm_primary,
            fallback=llm_fallback,
        )
    )
    registry.register(
        ConsultantAgent(
            agent_id="builder",
            name="Builder",
            description="Expert in construction and materials",
            capabilities=[AgentCapability.CONSTRUCTION],
            system_prompt=BUILDER_SYSTEM_PROMPT,
            keywords=BUILDER_KEYWORDS,
            primary=llm_primary,
            fallback=llm_fallback,
        )
    )
    registry.register(
        ConsultantAgent(
            agent_id="ecologist",
            name="Ecologist",
            description="Specialist in eco-friendly solutions",
            capabilities=[AgentCapability.ECOLOGY],
            system_prompt=ECOLOGIST_SYSTEM_PROMPT,
            keywords=ECOLOGIST_KEYWORDS,
            primary=llm_primary,
            fallback=llm_fallback,
        )
    )
    registry.register(GenerationAgent(primary=llm_primary, fallback=llm_fallback))

    return registry
