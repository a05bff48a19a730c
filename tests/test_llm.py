"""LLM 서비스 테스트"""

import json
from unittest.mock import Mock

import anthropic
import httpx
import openai
import pytest

from landcomp.prompts.intent_classification import ClassificationPrompt
from landcomp.services.llm.anthropic_llm import AnthropicLLM
from landcomp.services.llm.base import LLMMessage
from landcomp.services.llm.dummy_llm import DummyLLM
from landcomp.services.llm.factory import get_llm_service
from landcomp.services.llm.key_ring import ApiKeyRing
from landcomp.services.llm.openai_llm import OpenAILLM
from landcomp.services.orchestration.errors import (
    ProviderAuthError,
    ProviderError,
    ProviderQuotaError,
    ProviderTimeoutError,
)
from landcomp.utils.images import image_dimensions

from conftest import make_image


def test_dummy_llm_generate(dummy_llm_service):
    """더미 LLM 응답 생성 테스트"""
    messages = [
        LLMMessage(role="system", content="You are a helpful assistant."),
        LLMMessage(role="user", content="Hello!"),
    ]

    response = dummy_llm_service.generate(messages)

    assert response.content is not None
    assert len(response.content) > 0
    assert response.model == "dummy-model"
    assert response.usage is not None
    assert response.metadata["provider"] == "dummy"


def test_dummy_llm_classification_reply(dummy_llm_service):
    """분류 프롬프트에는 JSON 의도 응답"""
    prompt = ClassificationPrompt.from_context("Что посадить?").render()
    response = dummy_llm_service.generate([LLMMessage(role="user", content=prompt)])

    data = json.loads(response.content)
    assert data["type"] == "consultation"
    assert data["imageIntent"] == "noImageNeeded"


def test_dummy_llm_complete(dummy_llm_service):
    """간단한 완성 인터페이스"""
    response = dummy_llm_service.complete("Tell me about roses", system_message="You are a gardener.")

    assert isinstance(response, str)
    assert "Tell me about roses" in response


def test_dummy_llm_generate_image(dummy_llm_service):
    response = dummy_llm_service.generate_image("a garden")

    assert len(response.images) == 1
    assert image_dimensions(response.images[0].data) == (64, 64)


def test_factory():
    assert isinstance(get_llm_service("dummy"), DummyLLM)
    with pytest.raises(ValueError):
        get_llm_service("gemini")


class TestApiKeyRing:
    """API 키 순환"""

    def test_rotate(self):
        ring = ApiKeyRing(["k1", "k2", "k3"], provider="openai")
        assert ring.current == "k1"
        assert ring.rotate("k1") == "k2"
        assert ring.rotate() == "k3"
        assert ring.rotate() == "k1"

    def test_stale_failure_does_not_skip(self):
        """다른 요청이 이미 순환한 키의 실패는 포인터를 움직이지 않음"""
        ring = ApiKeyRing(["k1", "k2", "k3"])
        ring.rotate("k1")
        assert ring.rotate("k1") == "k2"
        assert ring.current == "k2"

    def test_single_or_empty(self):
        assert ApiKeyRing(["only"]).rotate("only") == "only"
        empty = ApiKeyRing([])
        assert empty.current is None
        assert len(empty) == 0


class TestMessageConversion:
    """제공자별 메시지 변환"""

    def test_openai_images_on_last_user_message(self):
        image = make_image()
        messages = [
            LLMMessage(role="system", content="sys"),
            LLMMessage(role="user", content="first"),
            LLMMessage(role="assistant", content="ok"),
            LLMMessage(role="user", content="look"),
        ]

        converted = OpenAILLM._to_openai_messages(messages, [image])

        assert converted[1]["content"] == "first"
        parts = converted[3]["content"]
        assert parts[0] == {"type": "text", "text": "look"}
        assert parts[1]["image_url"]["url"].startswith("data:image/png;base64,")

    def test_anthropic_image_blocks(self):
        image = make_image()
        conversation = [{"role": "user", "content": "look"}]

        AnthropicLLM._attach_images(conversation, [image])

        blocks = conversation[0]["content"]
        assert blocks[-1] == {"type": "text", "text": "look"}
        assert blocks[0]["type"] == "image"
        assert blocks[0]["source"]["media_type"] == "image/png"


def _http_response(status_code: int, url: str) -> httpx.Response:
    return httpx.Response(status_code, request=httpx.Request("POST", url))


class TestErrorTranslation:
    """SDK 예외 → ProviderError 계층 변환과 키 순환"""

    OPENAI_URL = "https://api.openai.com/v1/chat/completions"
    ANTHROPIC_URL = "https://api.anthropic.com/v1/messages"

    @pytest.fixture
    def openai_llm(self, monkeypatch):
        llm = OpenAILLM(key_ring=ApiKeyRing(["k1", "k2"], provider="openai"))
        client = Mock()
        monkeypatch.setattr(llm, "_client", lambda key: client)
        return llm, client

    @pytest.fixture
    def anthropic_llm(self, monkeypatch):
        llm = AnthropicLLM(key_ring=ApiKeyRing(["k1", "k2"], provider="anthropic"))
        client = Mock()
        monkeypatch.setattr(llm, "_client", lambda key: client)
        return llm, client

    def test_openai_rate_limit_rotates_key(self, openai_llm):
        llm, client = openai_llm
        client.chat.completions.create.side_effect = openai.RateLimitError(
            "slow down", response=_http_response(429, self.OPENAI_URL), body=None
        )

        with pytest.raises(ProviderQuotaError):
            llm.generate([LLMMessage(role="user", content="hi")])
        assert llm.key_ring.current == "k2"

    def test_openai_timeout_keeps_key(self, openai_llm):
        llm, client = openai_llm
        client.chat.completions.create.side_effect = openai.APITimeoutError(
            request=httpx.Request("POST", self.OPENAI_URL)
        )

        with pytest.raises(ProviderTimeoutError):
            llm.generate([LLMMessage(role="user", content="hi")])
        assert llm.key_ring.current == "k1"

    def test_openai_server_error_is_provider_error(self, openai_llm):
        llm, client = openai_llm
        client.images.generate.side_effect = openai.InternalServerError(
            "oops", response=_http_response(500, self.OPENAI_URL), body=None
        )

        with pytest.raises(ProviderError) as exc_info:
            llm.generate_image("a garden")
        assert type(exc_info.value) is ProviderError
        assert exc_info.value.provider == "openai"

    def test_anthropic_auth_error_rotates_key(self, anthropic_llm):
        llm, client = anthropic_llm
        client.messages.create.side_effect = anthropic.AuthenticationError(
            "bad key", response=_http_response(401, self.ANTHROPIC_URL), body=None
        )

        with pytest.raises(ProviderAuthError):
            llm.generate([LLMMessage(role="user", content="hi")])
        assert llm.key_ring.current == "k2"

    def test_anthropic_rate_limit(self, anthropic_llm):
        llm, client = anthropic_llm
        client.messages.create.side_effect = anthropic.RateLimitError(
            "slow down", response=_http_response(429, self.ANTHROPIC_URL), body=None
        )

        with pytest.raises(ProviderQuotaError):
            llm.generate([LLMMessage(role="user", content="hi")])
        assert llm.key_ring.current == "k2"

    def test_openai_missing_credentials_is_provider_error(self, monkeypatch):
        """키가 없어 클라이언트 생성이 실패해도 ProviderError로 변환"""
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        llm = OpenAILLM(key_ring=ApiKeyRing([], provider="openai"))

        with pytest.raises(ProviderError):
            llm.generate_image("a garden")
        with pytest.raises(ProviderError):
            llm.generate([LLMMessage(role="user", content="hi")])
