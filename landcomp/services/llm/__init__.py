"""LLM 제공자 레이어

오케스트레이션 코어의 외부 협력자. 기본/폴백 두 제공자를 독립적으로 사용합니다.
"""

from .base import BaseLLMService, LLMMessage, LLMResponse
from .key_ring import ApiKeyRing

__all__ = [
    "BaseLLMService",
    "LLMMessage",
    "LLMResponse",
    "ApiKeyRing",
]
