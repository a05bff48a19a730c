"""이미지 생성 에이전트 (GenerationAgent)

요청을 이미지 생성 프롬프트로 다듬은 뒤, 선택된 시드 이미지(최대 1장)를 기반으로 이미지를 생성합니다.
"""

import logging
from typing import TYPE_CHECKING, Iterable, Optional

from landcomp.prompts.agents import GENERATION_SYSTEM_PROMPT
from landcomp.services.llm.base import LLMMessage
from landcomp.services.orchestration.errors import ExecutionError, ProviderError
from landcomp.services.orchestration.models import (
    AgentRequest,
    AgentResponse,
    ImageIntent,
    Intent,
    IntentSubtype,
    IntentType,
    RequestContext,
)

from .base import AgentCapability, BaseAgent, call_with_fallback

if TYPE_CHECKING:
    from landcomp.services.llm.base import BaseLLMService

logger = logging.getLogger(__name__)

GENERATION_KEYWORDS = (
    "создай",
    "сделай",
    "нарисуй",
    "сгенерируй",
    "покажи как будет",
    "визуализируй",
    "create",
    "draw",
    "generate",
    "visualize",
    "render",
    "show how it will look",
)


class GenerationAgent(BaseAgent):
    """이미지 생성 에이전트"""

    def __init__(
        self,
        primary: "BaseLLMService",
        fallback: Optional["BaseLLMService"] = None,
        agent_id: str = "generation",
        name: str = "Image Generation Agent",
        keywords: Iterable[str] = GENERATION_KEYWORDS,
        enhance_prompt: bool = True,
    ):
        """
        Args:
            primary: 기본 LLM 서비스 (이미지 생성 지원 필요)
            fallback: 폴백 LLM 서비스
            agent_id: 에이전트 ID
            name: 표시 이름
            keywords: 생성 요청 키워드
            enhance_prompt: 텍스트 모델로 생성 프롬프트를 다듬을지 여부
        """
        super().__init__(
            agent_id=agent_id,
            name=name,
            capabilities=(AgentCapability.IMAGE_GENERATION, AgentCapability.TEXT_GENERATION),
            system_prompt=GENERATION_SYSTEM_PROMPT,
            keywords=keywords,
            description="Generates landscape visualizations from text and a base image",
        )
        self.primary = primary
        self.fallback = fallback
        self.enhance_prompt = enhance_prompt

    def can_handle(self, intent: Intent, context: RequestContext) -> bool:
        if intent.image_intent == ImageIntent.GENERATE_BASED:
            return True
        return (
            intent.intent_type == IntentType.GENERATION
            and intent.subtype == IntentSubtype.IMAGE_GENERATION
        )

    def _build_prompt(self, request: AgentRequest) -> str:
        """생성 프롬프트 (다듬기 실패 시 사용자 메시지 그대로)"""
        if not self.enhance_prompt:
            return request.user_message

        messages = [
            LLMMessage(role="system", content=self.system_prompt),
            LLMMessage(role="user", content=request.user_message),
        ]
        try:
            response, _ = call_with_fallback(
                self.primary, self.fallback, lambda llm: llm.generate(messages)
            )
        except ProviderError as e:
            logger.warning(f"[{self.id}] 프롬프트 다듬기 실패, 원문 사용: {e}")
            return request.user_message
        return response.content.strip() or request.user_message

    def execute(self, request: AgentRequest) -> AgentResponse:
        """이미지 생성

        Raises:
            ExecutionError: 기본/폴백 제공자 모두 생성 실패
        """
        seed_images = request.context.image_attachments[:1]
        prompt = self._build_prompt(request)
        logger.info(f"[{self.id}] 이미지 생성: 시드 {len(seed_images)}장")

        try:
            response, provider = call_with_fallback(
                self.primary,
                self.fallback,
                lambda llm: llm.generate_image(prompt, images=seed_images),
                retry_on=(ProviderError, NotImplementedError),
            )
        except (ProviderError, NotImplementedError) as e:
            raise ExecutionError(f"이미지 생성 실패: {e}", agent_id=self.id) from e

        return AgentResponse.ok(
            request_id=request.request_id,
            message=response.content or prompt,
            selected_agent=self,
            generated_attachments=list(response.images),
            metadata={
                "agent_id": self.id,
                "agent_name": self.name,
                "provider": provider,
                "images_used": len(seed_images),
                "images_generated": len(response.images),
                "enhanced_prompt": prompt,
            },
        )
