"""
Orchestration prompts module.

이 패키지는 의도 분류와 에이전트 응답에 사용되는 LLM 프롬프트를 중앙 관리합니다.
"""

from .agents import (
    BUILDER_SYSTEM_PROMPT,
    ECOLOGIST_SYSTEM_PROMPT,
    GARDENER_SYSTEM_PROMPT,
    GENERATION_SYSTEM_PROMPT,
    LANDSCAPE_DESIGNER_SYSTEM_PROMPT,
    format_image_analysis_note,
)

from .intent_classification import (
    INTENT_CLASSIFICATION_SYSTEM_PROMPT,
    ClassificationPrompt,
)

__all__ = [
    # 에이전트
    "GARDENER_SYSTEM_PROMPT",
    "LANDSCAPE_DESIGNER_SYSTEM_PROMPT",
    "BUILDER_SYSTEM_PROMPT",
    "ECOLOGIST_SYSTEM_PROMPT",
    "GENERATION_SYSTEM_PROMPT",
    "format_image_analysis_note",
    # 의도 분류
    "INTENT_CLASSIFICATION_SYSTEM_PROMPT",
    "ClassificationPrompt",
]
