"""
의도 분류용 프롬프트.

분류기는 하나의 구조화된 프롬프트 문서를 기본/폴백 제공자에 동일하게 보냅니다.
정적 분류 체계 텍스트와 요청 컨텍스트 섹션을 조립하는 ClassificationPrompt를 제공합니다.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from landcomp.services.orchestration.models import RequestContext


INTENT_CLASSIFICATION_SYSTEM_PROMPT = """You are the intent classifier of a landscape and garden consulting assistant.
Read the user's request and the conversation context, then reply with a single JSON object and nothing else."""


INTENT_TYPE_DEFINITIONS = """Analyze the user's intent and classify it into one of these types:
- consultation: User asking question/advice
- generation: User wants image or content generated
- modification: User wants to modify existing result
- analysis: User wants analysis of situation/image
- unclear: Intent is unclear"""


INTENT_SUBTYPE_DEFINITIONS = """Also determine the subtype:
- landscapePlanning: Planning, design, transformation of plots/landscapes
- plantSelection: Plant care, gardening, plant selection
- constructionAdvice: Building, construction, materials
- maintenanceAdvice: Care, maintenance, seasonal work
- generalQuestion: General questions not related to specific areas
- imageGeneration / textGeneration / planGeneration: what should be generated
- imageAnalysis / siteAnalysis / problemDiagnosis: what should be analyzed
- designModification / planAdjustment / contentUpdate: what should be modified
- ambiguous / incomplete: request cannot be classified further"""


DOMAIN_KEYWORD_HINTS = """Key words for landscape planning: участок, преобразовать, дизайн, планировка, зонирование, ландшафт, территория, площадь, размещение, организация, plot, layout, zoning
Key words for plant selection: растение, цветок, дерево, сад, огород, посадка, уход, полив, удобрение, обрезка, сезон, plant, flower, tree, garden"""


IMAGE_INTENT_TAXONOMY = """Determine which images the answer needs (imageIntent):
- analyzeNew: the images attached to the current message
- analyzeRecent: recent images from the conversation, not a specific one
- compareMultiple: two or more images compared together
- referenceSpecific: specific earlier images ("the first photo"); list their 0-based indices in referencedImageIndices
- generateBased: generate a new image based on one existing image
- noImageNeeded: the answer does not need any image
- unclear: cannot tell"""


RESPONSE_SCHEMA = """Return JSON response:
{
  "type": "consultation|generation|modification|analysis|unclear",
  "subtype": "landscapePlanning|plantSelection|constructionAdvice|maintenanceAdvice|generalQuestion|imageGeneration|textGeneration|planGeneration|imageAnalysis|siteAnalysis|problemDiagnosis|designModification|planAdjustment|contentUpdate|ambiguous|incomplete",
  "confidence": 0.0-1.0,
  "reasoning": "explanation of classification",
  "imageIntent": "analyzeNew|analyzeRecent|compareMultiple|referenceSpecific|generateBased|noImageNeeded|unclear",
  "referencedImageIndices": [0, 1],
  "imagesNeeded": 1,
  "extracted_entities": ["entity1", "entity2"]
}"""


@dataclass
class ClassificationPrompt:
    """분류 프롬프트 문서

    섹션 데이터만 보관하고, 텍스트는 render()에서 조립합니다.
    """

    user_message: str
    recent_turns: list[tuple[str, str]] = field(default_factory=list)
    context_flags: list[str] = field(default_factory=list)

    @classmethod
    def from_context(
        cls, user_message: str, context: Optional["RequestContext"] = None
    ) -> "ClassificationPrompt":
        """요청 컨텍스트로부터 프롬프트 구성

        Args:
            user_message: 현재 사용자 입력
            context: 요청 컨텍스트 (None이면 컨텍스트 섹션 생략)

        Returns:
            ClassificationPrompt
        """
        # 순환 import 방지
        from landcomp.services.orchestration.context_builder import recent_turns

        if context is None:
            return cls(user_message=user_message)

        flags = []
        if context.has_images:
            flags.append(
                f"User has uploaded {len(context.image_attachments)} image(s) with current message"
            )
        if context.has_recent_images:
            flags.append("Recent conversation includes images")
        if context.conversation_length > 0:
            flags.append(f"Conversation has {context.conversation_length} messages")
        if context.user_language:
            flags.append(f"User language detected as {context.user_language}")
        if context.previous_image_analyses:
            flags.append(
                f"{len(context.previous_image_analyses)} previous image analyses are available"
            )

        return cls(
            user_message=user_message,
            recent_turns=recent_turns(context),
            context_flags=flags,
        )

    def render(self) -> str:
        """프롬프트 텍스트 생성"""
        sections = [INTENT_TYPE_DEFINITIONS, INTENT_SUBTYPE_DEFINITIONS, DOMAIN_KEYWORD_HINTS]

        if self.recent_turns:
            lines = ["Recent conversation context:"]
            for role, content in self.recent_turns:
                speaker = "User" if role == "user" else "Assistant"
                lines.append(f'  {speaker}: "{content}"')
            sections.append("\n".join(lines))

        sections.append(f'Current user message: "{self.user_message}"')

        if self.context_flags:
            sections.append("\n".join(f"Context: {flag}" for flag in self.context_flags))

        sections.append(IMAGE_INTENT_TAXONOMY)
        sections.append(RESPONSE_SCHEMA)
        return "\n\n".join(sections) + "\n"
