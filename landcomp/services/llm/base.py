"""LLM 서비스 기본 인터페이스

오케스트레이션 코어가 요구하는 외부 협력자의 유일한 능력:
"프롬프트(+선택적 이미지)를 보내고 텍스트(및/또는 이미지)를 받는다".
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Sequence

from landcomp.models.chat import Attachment


@dataclass
class LLMMessage:
    """채팅 메시지"""

    role: str  # "system" | "user" | "assistant"
    content: str


@dataclass
class LLMResponse:
    """LLM 응답 데이터 클래스"""

    content: str
    model: str | None = None
    usage: dict | None = None
    metadata: dict | None = None
    images: list[Attachment] = field(default_factory=list)


class BaseLLMService(ABC):
    """LLM 서비스 기본 추상 클래스"""

    #: 로그/메트릭에 사용하는 제공자 이름
    provider_name: str = "base"

    @abstractmethod
    def generate(
        self,
        messages: list[LLMMessage],
        images: Sequence[Attachment] | None = None,
        **kwargs,
    ) -> LLMResponse:
        """메시지를 기반으로 응답 생성 (동기, 논-스트리밍)

        Args:
            messages: 대화 메시지 리스트
            images: 마지막 사용자 메시지에 함께 보낼 이미지 (선택)
            **kwargs: 추가 파라미터 (temperature, max_tokens 등)

        Returns:
            LLMResponse 객체

        Raises:
            ProviderError: 네트워크/타임아웃/인증/쿼터 실패
        """
        pass

    def generate_image(
        self, prompt: str, images: Sequence[Attachment] | None = None, **kwargs
    ) -> LLMResponse:
        """이미지 생성 (지원하는 제공자만 오버라이드)

        Args:
            prompt: 생성 프롬프트
            images: 기반 이미지 (선택)

        Returns:
            images 필드에 생성 결과가 담긴 LLMResponse
        """
        raise NotImplementedError(f"{self.provider_name}은(는) 이미지 생성을 지원하지 않습니다.")

    def complete(
        self,
        prompt: str,
        history: Sequence[LLMMessage] | None = None,
        images: Sequence[Attachment] | None = None,
        system_message: str | None = None,
        **kwargs,
    ) -> str:
        """간단한 완성 인터페이스

        Args:
            prompt: 사용자 프롬프트
            history: 이전 대화 메시지 (선택)
            images: 함께 보낼 이미지 (선택)
            system_message: 시스템 메시지 (선택)

        Returns:
            응답 텍스트
        """
        messages = []
        if system_message:
            messages.append(LLMMessage(role="system", content=system_message))
        messages.extend(history or [])
        messages.append(LLMMessage(role="user", content=prompt))

        response = self.generate(messages, images=images, **kwargs)
        return response.content
