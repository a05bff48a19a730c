"""상담 에이전트 (ConsultantAgent)

정원사, 조경 디자이너, 시공자, 생태 전문가처럼 시스템 프롬프트만 다른 도메인 상담 에이전트.
모델에 보이는 대화 기록과 선택된 이미지를 함께 LLM에 전달해 답변을 생성합니다.
"""

import logging
from typing import TYPE_CHECKING, Iterable, Optional

from landcomp.models.chat import MessageRole
from landcomp.prompts.agents import format_image_analysis_note
from landcomp.services.llm.base import LLMMessage
from landcomp.services.orchestration.errors import ExecutionError, ProviderError
from landcomp.services.orchestration.models import (
    AgentRequest,
    AgentResponse,
    Intent,
    IntentSubtype,
    IntentType,
    RequestContext,
)
from landcomp.settings import settings

from .base import AgentCapability, BaseAgent, call_with_fallback

if TYPE_CHECKING:
    from landcomp.services.llm.base import BaseLLMService

logger = logging.getLogger(__name__)

# 의도 유형 → 필요한 능력 (None이면 모든 에이전트 처리 가능)
INTENT_REQUIREMENTS: dict[IntentType, Optional[AgentCapability]] = {
    IntentType.CONSULTATION: AgentCapability.CONSULTATION,
    IntentType.ANALYSIS: AgentCapability.ANALYSIS,
    IntentType.GENERATION: AgentCapability.TEXT_GENERATION,
    IntentType.MODIFICATION: AgentCapability.CONSULTATION,
    IntentType.UNCLEAR: None,
}

# 세부 의도 → 허용 능력 (하나라도 있으면 처리 가능, 표에 없으면 제한 없음)
SUBTYPE_REQUIREMENTS: dict[IntentSubtype, tuple[AgentCapability, ...]] = {
    IntentSubtype.LANDSCAPE_PLANNING: (AgentCapability.LANDSCAPE_DESIGN, AgentCapability.PLANNING),
    IntentSubtype.PLANT_SELECTION: (AgentCapability.GARDENING,),
    IntentSubtype.CONSTRUCTION_ADVICE: (AgentCapability.CONSTRUCTION,),
    IntentSubtype.IMAGE_ANALYSIS: (AgentCapability.IMAGE_ANALYSIS,),
    IntentSubtype.IMAGE_GENERATION: (AgentCapability.IMAGE_GENERATION,),
    IntentSubtype.PLAN_GENERATION: (AgentCapability.PLANNING,),
}

# 모든 상담 에이전트 공통 능력
COMMON_CAPABILITIES = (
    AgentCapability.TEXT_GENERATION,
    AgentCapability.CONSULTATION,
    AgentCapability.ANALYSIS,
    AgentCapability.IMAGE_ANALYSIS,
)


class ConsultantAgent(BaseAgent):
    """LLM 기반 도메인 상담 에이전트"""

    def __init__(
        self,
        agent_id: str,
        name: str,
        capabilities: Iterable[AgentCapability],
        system_prompt: str,
        keywords: Iterable[str],
        primary: "BaseLLMService",
        fallback: Optional["BaseLLMService"] = None,
        description: str = "",
        history_window: Optional[int] = None,
    ):
        """
        Args:
            agent_id: 에이전트 ID
            name: 표시 이름
            capabilities: 도메인 능력 (공통 능력은 자동 추가)
            system_prompt: 시스템 프롬프트
            keywords: 도메인 키워드
            primary: 기본 LLM 서비스
            fallback: 폴백 LLM 서비스
            description: 설명
            history_window: LLM에 전달할 최근 메시지 수 (None이면 설정값)
        """
        super().__init__(
            agent_id=agent_id,
            name=name,
            capabilities=set(capabilities) | set(COMMON_CAPABILITIES),
            system_prompt=system_prompt,
            keywords=keywords,
            description=description,
        )
        self.primary = primary
        self.fallback = fallback
        self.history_window = history_window or settings.history_window

    def can_handle(self, intent: Intent, context: RequestContext) -> bool:
        required = INTENT_REQUIREMENTS.get(intent.intent_type)
        if required is not None and not self.has_capability(required):
            return False

        if intent.subtype is not None:
            allowed = SUBTYPE_REQUIREMENTS.get(intent.subtype)
            if allowed and not any(self.has_capability(c) for c in allowed):
                return False

        # 이미지 유무는 처리 가능 여부가 아니라 점수에만 반영
        return True

    def _build_messages(self, request: AgentRequest) -> list[LLMMessage]:
        """시스템 프롬프트 + 최근 대화 + 현재 메시지"""
        system_prompt = self.system_prompt
        note = format_image_analysis_note(request.context.previous_image_analyses)
        if note:
            system_prompt = f"{system_prompt}\n\n{note}"

        messages = [LLMMessage(role="system", content=system_prompt)]
        for message in request.conversation_history[-self.history_window :]:
            if message.role == MessageRole.SYSTEM or not message.content:
                continue
            messages.append(LLMMessage(role=message.role.value, content=message.content))
        messages.append(LLMMessage(role="user", content=request.user_message))
        return messages

    def execute(self, request: AgentRequest) -> AgentResponse:
        """상담 응답 생성

        Args:
            request: 에이전트 요청 (context.attachments에는 선택된 이미지만 있음)

        Returns:
            성공 AgentResponse

        Raises:
            ExecutionError: 기본/폴백 제공자 모두 실패
        """
        messages = self._build_messages(request)
        images = request.context.image_attachments
        logger.info(
            f"[{self.id}] 실행: 기록 {len(messages) - 2}개, 이미지 {len(images)}개"
        )

        try:
            response, provider = call_with_fallback(
                self.primary,
                self.fallback,
                lambda llm: llm.generate(
                    messages, images=images, max_tokens=settings.agent_max_tokens
                ),
            )
        except ProviderError as e:
            raise ExecutionError(f"{self.name} 응답 생성 실패: {e}", agent_id=self.id) from e

        return AgentResponse.ok(
            request_id=request.request_id,
            message=response.content,
            selected_agent=self,
            metadata={
                "agent_id": self.id,
                "agent_name": self.name,
                "provider": provider,
                "model": response.model,
                "has_images": bool(images),
                "images_sent": len(images),
                "history_length": len(request.conversation_history),
            },
        )
