"""LLM 서비스 팩토리"""

from landcomp.settings import settings

from .anthropic_llm import AnthropicLLM
from .base import BaseLLMService
from .dummy_llm import DummyLLM
from .openai_llm import OpenAILLM


def get_llm_service(provider: str | None = None) -> BaseLLMService:
    """설정에 따라 적절한 LLM 서비스 반환

    Args:
        provider: 제공자 이름 (None이면 settings.primary_provider)

    Returns:
        BaseLLMService 인스턴스
    """
    provider = provider or settings.primary_provider
    if provider == "openai":
        return OpenAILLM()
    elif provider == "anthropic":
        return AnthropicLLM()
    elif provider == "dummy":
        return DummyLLM()
    else:
        raise ValueError(f"지원하지 않는 LLM 제공자: {provider}")


def get_provider_pair() -> tuple[BaseLLMService, BaseLLMService]:
    """(기본, 폴백) 제공자 쌍 반환

    폴백은 기본 제공자가 실패했을 때만 사용합니다 (부하 분산 아님).
    """
    return (
        get_llm_service(settings.primary_provider),
        get_llm_service(settings.fallback_provider),
    )
