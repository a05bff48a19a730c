"""더미 LLM 구현 (테스트/오프라인용)"""

import json
from typing import Sequence

from landcomp.models.chat import Attachment
from landcomp.utils.images import placeholder_png

from .base import BaseLLMService, LLMMessage, LLMResponse

# 분류 프롬프트 감지용 마커 (ClassificationPrompt의 응답 형식 섹션)
_CLASSIFICATION_MARKER = "Return JSON response"


class DummyLLM(BaseLLMService):
    """테스트용 더미 LLM 서비스

    분류 프롬프트에는 고정된 JSON 의도를, 그 외에는 안내 문구를 반환합니다.
    """

    provider_name = "dummy"

    def generate(
        self,
        messages: list[LLMMessage],
        images: Sequence[Attachment] | None = None,
        **kwargs,
    ) -> LLMResponse:
        """더미 응답 생성

        Args:
            messages: 대화 메시지 리스트
            images: 첨부 이미지 (개수만 기록)
            **kwargs: 추가 파라미터 (무시됨)

        Returns:
            LLMResponse 객체
        """
        # 마지막 사용자 메시지 추출
        user_message = ""
        for msg in reversed(messages):
            if msg.role == "user":
                user_message = msg.content
                break

        if _CLASSIFICATION_MARKER in user_message:
            response_text = json.dumps(
                {
                    "type": "consultation",
                    "subtype": "generalQuestion",
                    "confidence": 0.5,
                    "reasoning": "dummy classification",
                    "imageIntent": "analyzeNew" if images else "noImageNeeded",
                    "extracted_entities": [],
                }
            )
        else:
            response_text = (
                "[더미 응답 모드 - 실제 LLM 대신 테스트용 응답입니다]\n\n"
                f"사용자 질문: {user_message[:100]}"
            )

        return LLMResponse(
            content=response_text,
            model="dummy-model",
            usage={"prompt_tokens": 100, "completion_tokens": 150, "total_tokens": 250},
            metadata={"provider": self.provider_name, "images_sent": len(images or [])},
        )

    def generate_image(
        self, prompt: str, images: Sequence[Attachment] | None = None, **kwargs
    ) -> LLMResponse:
        """단색 PNG 한 장을 생성 결과로 반환"""
        return LLMResponse(
            content="",
            model="dummy-image-model",
            metadata={"provider": self.provider_name, "images_used": len(images or [])},
            images=[Attachment.image(placeholder_png(), mime_type="image/png", width=64, height=64)],
        )
