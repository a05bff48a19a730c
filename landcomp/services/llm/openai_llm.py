"""OpenAI API LLM 구현"""

import base64
from typing import Sequence

import openai
from openai import OpenAI

from landcomp.models.chat import Attachment
from landcomp.services.orchestration.errors import (
    ProviderAuthError,
    ProviderError,
    ProviderQuotaError,
    ProviderTimeoutError,
)
from landcomp.settings import settings
from landcomp.utils.images import image_dimensions

from .base import BaseLLMService, LLMMessage, LLMResponse
from .key_ring import ApiKeyRing


class OpenAILLM(BaseLLMService):
    """OpenAI API를 사용한 LLM 서비스"""

    provider_name = "openai"

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        key_ring: ApiKeyRing | None = None,
        timeout: float | None = None,
    ):
        """OpenAI 클라이언트 초기화

        Args:
            api_key: OpenAI API 키 (None이면 환경변수 사용, 쉼표 구분 시 순환)
            model: 모델명 (None이면 설정값 사용)
            key_ring: 공유 키 순환기 (None이면 api_key/설정값으로 생성)
            timeout: 호출 타임아웃 (초)
        """
        keys = [api_key] if api_key else settings.api_keys_for("openai")
        self.key_ring = key_ring or ApiKeyRing(keys, provider=self.provider_name)
        self.model = model or settings.openai_model
        self.timeout = timeout or settings.llm_timeout_seconds
        self._clients: dict[str, OpenAI] = {}

    def _client(self, key: str | None) -> OpenAI:
        """활성 키에 해당하는 클라이언트 (키별로 캐시)"""
        cache_key = key or ""
        if cache_key not in self._clients:
            # SDK 자체 재시도는 끄고, 재시도는 폴백 제공자 전환 1회로 한정
            self._clients[cache_key] = OpenAI(api_key=key, timeout=self.timeout, max_retries=0)
        return self._clients[cache_key]

    def generate(
        self,
        messages: list[LLMMessage],
        images: Sequence[Attachment] | None = None,
        **kwargs,
    ) -> LLMResponse:
        """메시지를 기반으로 응답 생성 (동기, 논-스트리밍)

        Args:
            messages: 대화 메시지 리스트
            images: 마지막 사용자 메시지에 첨부할 이미지
            **kwargs: 추가 파라미터 (temperature, max_tokens, model 등)

        Returns:
            LLMResponse 객체
        """
        openai_messages = self._to_openai_messages(messages, images or [])
        model = kwargs.pop("model", None) or self.model
        key = self.key_ring.current

        try:
            response = self._client(key).chat.completions.create(
                model=model, messages=openai_messages, **kwargs
            )
        except openai.OpenAIError as e:
            raise self._translate_error(e, key) from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ProviderError("OpenAI 응답이 비어 있습니다.", provider=self.provider_name)

        usage = None
        if response.usage is not None:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        return LLMResponse(
            content=content,
            model=response.model,
            usage=usage,
            metadata={"provider": self.provider_name, "images_sent": len(images or [])},
        )

    def generate_image(
        self, prompt: str, images: Sequence[Attachment] | None = None, **kwargs
    ) -> LLMResponse:
        """이미지 생성 (기반 이미지가 있으면 편집 API 사용)

        Args:
            prompt: 생성 프롬프트
            images: 기반 이미지 (선택)

        Returns:
            images 필드에 생성 이미지가 담긴 LLMResponse
        """
        model = kwargs.pop("model", None) or settings.openai_model_image
        key = self.key_ring.current

        try:
            client = self._client(key)
            if images:
                files = [(a.name or f"{a.id}.png", a.data, a.mime_type) for a in images]
                result = client.images.edit(model=model, image=files, prompt=prompt, **kwargs)
            else:
                result = client.images.generate(model=model, prompt=prompt, **kwargs)
        except openai.OpenAIError as e:
            raise self._translate_error(e, key) from e

        generated = []
        for item in result.data or []:
            if not getattr(item, "b64_json", None):
                continue
            data = base64.b64decode(item.b64_json)
            width, height = image_dimensions(data) or (None, None)
            generated.append(
                Attachment.image(data, mime_type="image/png", width=width, height=height)
            )
        if not generated:
            raise ProviderError("이미지 생성 결과가 비어 있습니다.", provider=self.provider_name)

        return LLMResponse(
            content="",
            model=model,
            metadata={"provider": self.provider_name, "images_used": len(images or [])},
            images=generated,
        )

    @staticmethod
    def _to_openai_messages(
        messages: list[LLMMessage], images: Sequence[Attachment]
    ) -> list[dict]:
        """LLMMessage → OpenAI 형식 (이미지는 마지막 user 메시지에 image_url 파트로 첨부)"""
        openai_messages: list[dict] = [{"role": m.role, "content": m.content} for m in messages]
        if not images:
            return openai_messages

        for msg in reversed(openai_messages):
            if msg["role"] == "user":
                parts: list[dict] = [{"type": "text", "text": msg["content"]}]
                parts.extend(
                    {"type": "image_url", "image_url": {"url": a.to_data_url()}} for a in images
                )
                msg["content"] = parts
                break
        return openai_messages

    def _translate_error(self, error: Exception, key: str | None) -> ProviderError:
        """SDK 예외 → ProviderError 계층 변환 (인증/쿼터 실패 시 키 순환)"""
        message = f"OpenAI 호출 실패: {error}"
        if isinstance(error, (openai.APITimeoutError, openai.APIConnectionError)):
            return ProviderTimeoutError(message, provider=self.provider_name)
        if isinstance(error, (openai.AuthenticationError, openai.PermissionDeniedError)):
            self.key_ring.rotate(key)
            return ProviderAuthError(message, provider=self.provider_name)
        if isinstance(error, openai.RateLimitError):
            self.key_ring.rotate(key)
            return ProviderQuotaError(message, provider=self.provider_name)
        return ProviderError(message, provider=self.provider_name)
