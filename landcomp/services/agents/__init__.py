"""에이전트 레이어

요청을 실제로 처리하는 도메인 에이전트, 레지스트리, 점수 기반 선택기.
"""

from .base import AgentCapability, BaseAgent
from .catalog import build_default_registry
from .consultant import ConsultantAgent
from .generation import GenerationAgent
from .registry import AgentRegistry
from .scorer import SUBTYPE_BONUS, AgentScorer

__all__ = [
    "AgentCapability",
    "BaseAgent",
    "ConsultantAgent",
    "GenerationAgent",
    "AgentRegistry",
    "AgentScorer",
    "SUBTYPE_BONUS",
    "build_default_registry",
]
