"""의도 분류기 (IntentClassifier)

사용자 입력의 의도를 LLM으로 분류합니다.
빠른 응답을 위해 경량 모델(gpt-4o-mini 등)을 사용하며,
기본 제공자 실패 시 폴백 제공자로 동일한 프롬프트를 1회 재시도합니다.
"""

import json
import logging
import math
import re
import threading
from typing import TYPE_CHECKING, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from landcomp.prompts.intent_classification import (
    INTENT_CLASSIFICATION_SYSTEM_PROMPT,
    ClassificationPrompt,
)
from landcomp.services.llm.base import LLMMessage
from landcomp.settings import settings

from .errors import ParseError, ProviderError
from .models import (
    ImageIntent,
    Intent,
    IntentSubtype,
    IntentType,
    RequestContext,
    coerce_enum,
)

if TYPE_CHECKING:
    from landcomp.services.llm.base import BaseLLMService

logger = logging.getLogger(__name__)

_FENCE_PATTERN = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")


class ClassificationPayload(BaseModel):
    """분류기 응답 JSON 스키마 (값 검증은 느슨하게, Enum 변환은 별도)"""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    type: Any = None
    subtype: Any = None
    confidence: float = 0.5
    reasoning: Optional[str] = None
    image_intent: Any = Field(default=None, alias="imageIntent")
    referenced_image_indices: Optional[list[Any]] = Field(
        default=None, alias="referencedImageIndices"
    )
    images_needed: Optional[int] = Field(default=None, alias="imagesNeeded")
    extracted_entities: list[Any] = Field(default_factory=list)

    @field_validator("confidence", mode="before")
    @classmethod
    def _default_confidence(cls, value: Any) -> Any:
        return 0.5 if value is None else value

    @field_validator("confidence")
    @classmethod
    def _finite_confidence(cls, value: float) -> float:
        # NaN/Infinity는 json.loads가 허용하므로 기본값으로 대체
        return value if math.isfinite(value) else 0.5

    @field_validator("images_needed", mode="before")
    @classmethod
    def _drop_invalid_count(cls, value: Any) -> Any:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return int(value) if value >= 0 else None

    @field_validator("extracted_entities", mode="before")
    @classmethod
    def _entities_list(cls, value: Any) -> Any:
        return value if isinstance(value, list) else []


class IntentClassifier:
    """LLM 기반 의도 분류기 (기본 → 폴백)"""

    def __init__(
        self,
        primary: "BaseLLMService",
        fallback: Optional["BaseLLMService"] = None,
        model: Optional[str] = None,
    ):
        """
        Args:
            primary: 기본 LLM 서비스
            fallback: 폴백 LLM 서비스 (None이면 재시도 없음)
            model: 분류 모델명 (None이면 OpenAI 기본 제공자일 때 settings.openai_model_intent)
        """
        self.primary = primary
        self.fallback = fallback
        self.model = model
        self._lock = threading.Lock()
        self._stats: dict[str, Any] = {}
        self._reset_stats()

    def classify(self, user_message: str, context: Optional[RequestContext] = None) -> Intent:
        """사용자 입력의 의도를 분류 (예외를 던지지 않음)

        Args:
            user_message: 사용자 입력 텍스트
            context: 요청 컨텍스트 (최근 대화, 이미지 플래그 등)

        Returns:
            Intent 객체 (완전 실패 시 unclear / confidence 0.1)
        """
        logger.info(f"의도 분류 시작: {user_message[:50]}")
        prompt = ClassificationPrompt.from_context(user_message, context).render()

        try:
            intent, provider = self._classify_with_failover(prompt)
        except (ProviderError, ParseError) as e:
            logger.warning(f"의도 분류 실패, 기본 의도 사용: {e}")
            self._record_default()
            return self._create_default_intent(user_message, str(e))
        except Exception as e:
            logger.exception(f"의도 분류 중 예기치 않은 오류: {e}")
            self._record_default()
            return self._create_default_intent(user_message, str(e))

        intent.metadata["provider"] = provider
        self._record_success(provider, intent.confidence)

        subtype = intent.subtype.value if intent.subtype else None
        logger.info(
            f"의도 분류 완료: {intent.intent_type.value}/{subtype} "
            f"(confidence={intent.confidence:.2f}, image_intent={intent.image_intent.value}, "
            f"provider={provider})"
        )
        return intent

    def _classify_with_failover(self, prompt: str) -> tuple[Intent, str]:
        """기본 제공자 호출, ProviderError일 때만 폴백 1회

        ParseError는 재시도하지 않습니다 (같은 프롬프트로 다시 보내도 형식 문제는 반복됨).
        """
        try:
            return self._classify_with(self.primary, prompt), self.primary.provider_name
        except ProviderError as e:
            self._record_failure(self.primary.provider_name)
            if self.fallback is None:
                raise
            logger.warning(
                f"{self.primary.provider_name} 분류 실패: {e} → "
                f"{self.fallback.provider_name}로 폴백"
            )

        with self._lock:
            self._stats["fallback_count"] += 1
        try:
            return self._classify_with(self.fallback, prompt), self.fallback.provider_name
        except ProviderError:
            self._record_failure(self.fallback.provider_name)
            raise

    def _classify_with(self, llm: "BaseLLMService", prompt: str) -> Intent:
        messages = [
            LLMMessage(role="system", content=INTENT_CLASSIFICATION_SYSTEM_PROMPT),
            LLMMessage(role="user", content=prompt),
        ]
        kwargs: dict[str, Any] = {"max_tokens": settings.intent_max_tokens}
        model = self.model or (
            settings.openai_model_intent if llm.provider_name == "openai" else None
        )
        if model:
            kwargs["model"] = model

        response = llm.generate(messages, **kwargs)
        if not response.content or not response.content.strip():
            raise ProviderError("분류 응답이 비어 있습니다.", provider=llm.provider_name)
        return self.parse_response(response.content)

    @staticmethod
    def _extract_json(response_text: str) -> str:
        """마크다운 펜스를 제거하고 첫 번째 JSON 객체 추출"""
        cleaned = _FENCE_PATTERN.sub("", response_text.strip()).strip()
        start = cleaned.find("{")
        if start == -1:
            raise ParseError("응답에 JSON 객체가 없습니다.", raw_response=response_text)

        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(cleaned)):
            char = cleaned[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
            elif char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return cleaned[start : index + 1]

        raise ParseError("JSON 객체가 닫히지 않았습니다.", raw_response=response_text)

    def parse_response(self, response_text: str) -> Intent:
        """LLM 응답을 Intent 객체로 파싱

        Args:
            response_text: LLM 응답 텍스트

        Returns:
            Intent 객체

        Raises:
            ParseError: JSON이 없거나 스키마 검증에 실패한 경우
        """
        json_text = self._extract_json(response_text)
        try:
            data = json.loads(json_text)
        except json.JSONDecodeError as e:
            raise ParseError(f"JSON 파싱 실패: {e}", raw_response=response_text) from e
        if not isinstance(data, dict):
            raise ParseError("JSON 최상위 값이 객체가 아닙니다.", raw_response=response_text)

        try:
            payload = ClassificationPayload.model_validate(data)
        except ValidationError as e:
            raise ParseError(f"응답 스키마 검증 실패: {e}", raw_response=response_text) from e

        intent_type = coerce_enum(IntentType, payload.type, IntentType.UNCLEAR)
        subtype = None
        if payload.subtype is not None:
            subtype = coerce_enum(IntentSubtype, payload.subtype, IntentSubtype.GENERAL_QUESTION)
        image_intent = coerce_enum(ImageIntent, payload.image_intent, ImageIntent.UNCLEAR)

        indices = None
        if payload.referenced_image_indices is not None:
            indices = [
                i
                for i in payload.referenced_image_indices
                if isinstance(i, int) and not isinstance(i, bool) and i >= 0
            ]

        return Intent(
            intent_type=intent_type,
            subtype=subtype,
            confidence=min(max(payload.confidence, 0.0), 1.0),
            reasoning=payload.reasoning or "No reasoning provided",
            image_intent=image_intent,
            referenced_image_indices=indices,
            images_needed=payload.images_needed,
            extracted_entities=[str(e) for e in payload.extracted_entities],
            metadata={
                "classification_method": "ai_classification",
                "raw_response": response_text,
            },
        )

    def _create_default_intent(self, user_message: str, error: str) -> Intent:
        """분류 실패 시 기본 의도"""
        return Intent(
            intent_type=IntentType.UNCLEAR,
            confidence=0.1,
            reasoning=f"Classification failed: {error}",
            image_intent=ImageIntent.UNCLEAR,
            metadata={
                "classification_method": "default_fallback",
                "error": error,
                "user_message": user_message,
            },
        )

    # ---- 통계 ----

    def _reset_stats(self) -> None:
        with self._lock:
            self._stats = {
                "total": 0,
                "default_count": 0,
                "fallback_count": 0,
                "confidence_sum": 0.0,
                "providers": {},
            }

    def _provider_stats(self, provider: str) -> dict:
        return self._stats["providers"].setdefault(provider, {"success": 0, "failure": 0})

    def _record_success(self, provider: str, confidence: float) -> None:
        with self._lock:
            self._stats["total"] += 1
            self._stats["confidence_sum"] += confidence
            self._provider_stats(provider)["success"] += 1

    def _record_failure(self, provider: str) -> None:
        with self._lock:
            self._provider_stats(provider)["failure"] += 1

    def _record_default(self) -> None:
        with self._lock:
            self._stats["total"] += 1
            self._stats["default_count"] += 1
            self._stats["confidence_sum"] += 0.1

    def get_classification_stats(self) -> dict:
        """분류 통계 반환

        Returns:
            total_classifications, 제공자별 성공률, 폴백/기본 의도 횟수, 평균 confidence
        """
        with self._lock:
            total = self._stats["total"]
            providers = {}
            for name, counts in self._stats["providers"].items():
                attempts = counts["success"] + counts["failure"]
                providers[name] = {
                    **counts,
                    "success_rate": counts["success"] / attempts if attempts else 0.0,
                }
            return {
                "total_classifications": total,
                "providers": providers,
                "fallback_count": self._stats["fallback_count"],
                "default_count": self._stats["default_count"],
                "average_confidence": self._stats["confidence_sum"] / total if total else 0.0,
            }

    def reset_stats(self) -> None:
        """통계 초기화"""
        self._reset_stats()
