"""오케스트레이션 데이터 모델"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional, Tuple

from landcomp.models.chat import Attachment, Message, MessageRole

if TYPE_CHECKING:
    from landcomp.services.agents.base import BaseAgent


class IntentType(Enum):
    """사용자 의도 유형"""

    CONSULTATION = "consultation"  # 질문/조언 요청
    GENERATION = "generation"  # 이미지/콘텐츠 생성 요청
    MODIFICATION = "modification"  # 기존 결과 수정 요청
    ANALYSIS = "analysis"  # 상황/이미지 분석 요청
    UNCLEAR = "unclear"  # 분류 불가


class IntentSubtype(Enum):
    """세부 의도 유형"""

    LANDSCAPE_PLANNING = "landscapePlanning"
    PLANT_SELECTION = "plantSelection"
    CONSTRUCTION_ADVICE = "constructionAdvice"
    MAINTENANCE_ADVICE = "maintenanceAdvice"
    GENERAL_QUESTION = "generalQuestion"
    IMAGE_GENERATION = "imageGeneration"
    TEXT_GENERATION = "textGeneration"
    PLAN_GENERATION = "planGeneration"
    IMAGE_ANALYSIS = "imageAnalysis"
    SITE_ANALYSIS = "siteAnalysis"
    PROBLEM_DIAGNOSIS = "problemDiagnosis"
    DESIGN_MODIFICATION = "designModification"
    PLAN_ADJUSTMENT = "planAdjustment"
    CONTENT_UPDATE = "contentUpdate"
    AMBIGUOUS = "ambiguous"
    INCOMPLETE = "incomplete"


class ImageIntent(Enum):
    """이미지 의도 - 어떤 이미지를 모델에 전달할지 결정"""

    ANALYZE_NEW = "analyzeNew"  # 방금 첨부한 이미지
    ANALYZE_RECENT = "analyzeRecent"  # 특정되지 않은 최근 이미지
    COMPARE_MULTIPLE = "compareMultiple"  # 2장 이상 함께 비교
    REFERENCE_SPECIFIC = "referenceSpecific"  # 서수 참조 ("첫 번째 사진")
    GENERATE_BASED = "generateBased"  # 시드 이미지 1장 기반 생성
    NO_IMAGE_NEEDED = "noImageNeeded"
    UNCLEAR = "unclear"


def coerce_enum(enum_cls: type[Enum], raw: Any, default: Enum) -> Enum:
    """외부 값 → Enum 변환 (알 수 없는 값은 안전한 기본값)"""
    if isinstance(raw, enum_cls):
        return raw
    if isinstance(raw, str):
        for member in enum_cls:
            if member.value == raw or member.value.lower() == raw.strip().lower():
                return member
    return default


@dataclass
class Intent:
    """의도 분류 결과"""

    intent_type: IntentType
    confidence: float = 1.0  # 0.0 ~ 1.0
    reasoning: str = ""
    subtype: Optional[IntentSubtype] = None
    image_intent: Optional[ImageIntent] = None
    referenced_image_indices: Optional[list[int]] = None
    images_needed: Optional[int] = None
    extracted_entities: list[str] = field(default_factory=list)
    metadata: dict = field(default_factory=dict)

    @property
    def is_consultation(self) -> bool:
        return self.intent_type == IntentType.CONSULTATION

    @property
    def is_generation(self) -> bool:
        return self.intent_type == IntentType.GENERATION

    @property
    def is_analysis(self) -> bool:
        return self.intent_type == IntentType.ANALYSIS

    @property
    def is_modification(self) -> bool:
        return self.intent_type == IntentType.MODIFICATION

    @property
    def is_unclear(self) -> bool:
        return self.intent_type == IntentType.UNCLEAR

    @property
    def is_high_confidence(self) -> bool:
        return self.confidence >= 0.8

    @property
    def is_medium_confidence(self) -> bool:
        return self.confidence >= 0.5

    @property
    def is_low_confidence(self) -> bool:
        return self.confidence < 0.5

    def to_dict(self) -> dict:
        return {
            "type": self.intent_type.value,
            "subtype": self.subtype.value if self.subtype else None,
            "confidence": self.confidence,
            "reasoning": self.reasoning,
            "image_intent": self.image_intent.value if self.image_intent else None,
            "referenced_image_indices": self.referenced_image_indices,
            "images_needed": self.images_needed,
            "extracted_entities": list(self.extracted_entities),
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class RequestContext:
    """요청 단위 컨텍스트 (불변)

    요청마다 새로 생성되며, 갱신은 with_updates()로 새 인스턴스를 만들어 수행합니다.
    conversation_history에는 임시 메시지(is_typing/is_error)가 포함되지 않습니다.
    """

    user_message: str
    conversation_history: Tuple[Message, ...]
    timestamp: datetime
    attachments: Tuple[Attachment, ...] = ()
    current_agent_id: Optional[str] = None
    user_language: Optional[str] = None
    previous_image_analyses: Tuple[str, ...] = ()
    has_recent_images: bool = False
    metadata: dict = field(default_factory=dict)

    def with_updates(self, **changes: Any) -> "RequestContext":
        """일부 필드를 바꾼 새 컨텍스트 반환"""
        if "attachments" in changes:
            changes["attachments"] = tuple(changes["attachments"] or ())
        return dataclasses.replace(self, **changes)

    @property
    def has_attachments(self) -> bool:
        return bool(self.attachments)

    @property
    def has_images(self) -> bool:
        return any(a.is_image for a in self.attachments)

    @property
    def image_attachments(self) -> list[Attachment]:
        return [a for a in self.attachments if a.is_image]

    @property
    def has_recent_images_in_history(self) -> bool:
        """최근 5개 메시지 안에 이미지가 있는지 (기록이 5개 미만이면 현재 첨부 기준)"""
        if len(self.conversation_history) < 5:
            return self.has_images
        return any(m.has_images for m in self.conversation_history[-5:])

    @property
    def conversation_length(self) -> int:
        return len(self.conversation_history)

    @property
    def user_message_count(self) -> int:
        return sum(1 for m in self.conversation_history if m.role == MessageRole.USER)

    @property
    def ai_message_count(self) -> int:
        return sum(1 for m in self.conversation_history if m.role == MessageRole.ASSISTANT)

    def __repr__(self) -> str:
        return (
            f"RequestContext(user_message={len(self.user_message)} chars, "
            f"conversation_length={self.conversation_length}, "
            f"attachments={len(self.attachments)}, language={self.user_language})"
        )


@dataclass(frozen=True)
class AgentRequest:
    """에이전트에 전달되는 요청"""

    request_id: str
    context: RequestContext
    intent: Intent
    timestamp: datetime

    @property
    def user_message(self) -> str:
        return self.context.user_message

    @property
    def conversation_history(self) -> Tuple[Message, ...]:
        return self.context.conversation_history


@dataclass
class AgentResponse:
    """에이전트 처리 결과 (오케스트레이터 경계의 유일한 출력)"""

    request_id: str
    success: bool
    message: Optional[str] = None
    selected_agent: Optional["BaseAgent"] = None
    generated_attachments: Optional[list[Attachment]] = None
    error: Optional[str] = None
    metadata: dict = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    @classmethod
    def ok(
        cls,
        request_id: str,
        message: str,
        selected_agent: Optional["BaseAgent"] = None,
        generated_attachments: Optional[list[Attachment]] = None,
        metadata: Optional[dict] = None,
    ) -> "AgentResponse":
        return cls(
            request_id=request_id,
            success=True,
            message=message,
            selected_agent=selected_agent,
            generated_attachments=generated_attachments,
            metadata=metadata or {},
        )

    @classmethod
    def failure(
        cls,
        request_id: str,
        error: str,
        message: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> "AgentResponse":
        return cls(
            request_id=request_id,
            success=False,
            message=message,
            error=error,
            metadata=metadata or {},
        )

    @property
    def has_generated_images(self) -> bool:
        return any(a.is_image for a in self.generated_attachments or [])

    @property
    def selected_agent_id(self) -> Optional[str]:
        return self.selected_agent.id if self.selected_agent else None

    def to_dict(self) -> dict:
        agent = None
        if self.selected_agent is not None:
            agent = {"id": self.selected_agent.id, "name": self.selected_agent.name}
        return {
            "request_id": self.request_id,
            "success": self.success,
            "message": self.message,
            "selected_agent": agent,
            "generated_attachments": (
                [a.to_dict() for a in self.generated_attachments]
                if self.generated_attachments is not None
                else None
            ),
            "error": self.error,
            "metadata": dict(self.metadata),
            "timestamp": self.timestamp.isoformat(),
        }
