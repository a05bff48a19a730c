"""Anthropic API LLM 구현"""

from typing import Sequence

import anthropic
from anthropic import Anthropic

from landcomp.models.chat import Attachment
from landcomp.services.orchestration.errors import (
    ProviderAuthError,
    ProviderError,
    ProviderQuotaError,
    ProviderTimeoutError,
)
from landcomp.settings import settings

from .base import BaseLLMService, LLMMessage, LLMResponse
from .key_ring import ApiKeyRing


class AnthropicLLM(BaseLLMService):
    """Anthropic API를 사용한 LLM 서비스"""

    provider_name = "anthropic"

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        key_ring: ApiKeyRing | None = None,
        timeout: float | None = None,
    ):
        """Anthropic 클라이언트 초기화

        Args:
            api_key: Anthropic API 키 (None이면 환경변수 사용, 쉼표 구분 시 순환)
            model: 모델명 (None이면 설정값 사용)
            key_ring: 공유 키 순환기
            timeout: 호출 타임아웃 (초)
        """
        keys = [api_key] if api_key else settings.api_keys_for("anthropic")
        self.key_ring = key_ring or ApiKeyRing(keys, provider=self.provider_name)
        self.model = model or settings.anthropic_model
        self.timeout = timeout or settings.llm_timeout_seconds
        self._clients: dict[str, Anthropic] = {}

    def _client(self, key: str | None) -> Anthropic:
        cache_key = key or ""
        if cache_key not in self._clients:
            self._clients[cache_key] = Anthropic(api_key=key, timeout=self.timeout, max_retries=0)
        return self._clients[cache_key]

    def generate(
        self,
        messages: list[LLMMessage],
        images: Sequence[Attachment] | None = None,
        **kwargs,
    ) -> LLMResponse:
        """메시지를 기반으로 응답 생성

        Args:
            messages: 대화 메시지 리스트
            images: 마지막 사용자 메시지에 첨부할 이미지
            **kwargs: 추가 파라미터 (temperature, max_tokens 등)

        Returns:
            LLMResponse 객체
        """
        # system 메시지 분리
        system_message = None
        conversation_messages: list[dict] = []

        for msg in messages:
            if msg.role == "system":
                system_message = msg.content
            else:
                conversation_messages.append({"role": msg.role, "content": msg.content})

        if images:
            self._attach_images(conversation_messages, images)

        # 다른 제공자용 파라미터는 무시
        kwargs.pop("model", None)
        request = {
            "model": self.model,
            "max_tokens": kwargs.pop("max_tokens", 4096),
            "messages": conversation_messages,
            **kwargs,
        }
        if system_message:
            request["system"] = system_message

        key = self.key_ring.current
        try:
            response = self._client(key).messages.create(**request)
        except anthropic.AnthropicError as e:
            raise self._translate_error(e, key) from e

        text_blocks = [b.text for b in response.content if getattr(b, "type", "") == "text"]
        content = "".join(text_blocks)
        if not content:
            raise ProviderError("Anthropic 응답이 비어 있습니다.", provider=self.provider_name)

        # 응답 변환
        return LLMResponse(
            content=content,
            model=response.model,
            usage={
                "input_tokens": response.usage.input_tokens,
                "output_tokens": response.usage.output_tokens,
            },
            metadata={"provider": self.provider_name, "stop_reason": response.stop_reason},
        )

    @staticmethod
    def _attach_images(conversation_messages: list[dict], images: Sequence[Attachment]) -> None:
        """마지막 user 메시지를 이미지 블록 + 텍스트 블록으로 교체"""
        for msg in reversed(conversation_messages):
            if msg["role"] == "user":
                blocks: list[dict] = [
                    {
                        "type": "image",
                        "source": {
                            "type": "base64",
                            "media_type": a.mime_type,
                            "data": a.to_base64(),
                        },
                    }
                    for a in images
                ]
                blocks.append({"type": "text", "text": msg["content"]})
                msg["content"] = blocks
                break

    def _translate_error(self, error: Exception, key: str | None) -> ProviderError:
        message = f"Anthropic 호출 실패: {error}"
        if isinstance(error, (anthropic.APITimeoutError, anthropic.APIConnectionError)):
            return ProviderTimeoutError(message, provider=self.provider_name)
        if isinstance(error, (anthropic.AuthenticationError, anthropic.PermissionDeniedError)):
            self.key_ring.rotate(key)
            return ProviderAuthError(message, provider=self.provider_name)
        if isinstance(error, anthropic.RateLimitError):
            self.key_ring.rotate(key)
            return ProviderQuotaError(message, provider=self.provider_name)
        return ProviderError(message, provider=self.provider_name)
