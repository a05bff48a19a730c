"""테스트 픽스처 및 설정"""

from datetime import datetime, timedelta
from unittest.mock import Mock

import pytest

from landcomp.models.chat import Attachment, Message, MessageRole
from landcomp.services.agents import AgentScorer, build_default_registry
from landcomp.services.llm.base import BaseLLMService, LLMResponse
from landcomp.services.llm.dummy_llm import DummyLLM
from landcomp.services.orchestration import ContextBuilder, IntentClassifier, Orchestrator
from landcomp.utils.images import placeholder_png

FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0)


def make_image(name: str = "image", color: str = "white") -> Attachment:
    """테스트용 PNG 이미지 첨부"""
    return Attachment.image(placeholder_png(size=8, color=color), mime_type="image/png", name=name)


def user(content: str, *attachments: Attachment, minutes: int = 0, **kwargs) -> Message:
    return Message(
        role=MessageRole.USER,
        content=content,
        attachments=tuple(attachments),
        timestamp=FIXED_NOW + timedelta(minutes=minutes),
        **kwargs,
    )


def assistant(content: str, minutes: int = 0, **kwargs) -> Message:
    return Message(
        role=MessageRole.ASSISTANT,
        content=content,
        timestamp=FIXED_NOW + timedelta(minutes=minutes),
        **kwargs,
    )


def mock_llm(content: str = "", provider_name: str = "mock") -> Mock:
    """generate()가 고정 응답을 돌려주는 Mock LLM 서비스"""
    service = Mock(spec=BaseLLMService)
    service.provider_name = provider_name
    service.generate = Mock(return_value=LLMResponse(content=content, model=f"{provider_name}-model"))
    return service


@pytest.fixture
def image1():
    return make_image("image1", "green")


@pytest.fixture
def image2():
    return make_image("image2", "blue")


@pytest.fixture
def context_builder():
    """고정 시계 컨텍스트 빌더"""
    return ContextBuilder(clock=lambda: FIXED_NOW)


@pytest.fixture
def dummy_llm_service():
    """더미 LLM 서비스 픽스처"""
    return DummyLLM()


@pytest.fixture
def registry(dummy_llm_service):
    """내장 에이전트 레지스트리 (더미 LLM)"""
    return build_default_registry(dummy_llm_service, dummy_llm_service)


@pytest.fixture
def orchestrator(dummy_llm_service, registry, context_builder):
    """더미 LLM 기반 오케스트레이터"""
    return Orchestrator(
        classifier=IntentClassifier(dummy_llm_service),
        registry=registry,
        scorer=AgentScorer(registry),
        context_builder=context_builder,
    )
