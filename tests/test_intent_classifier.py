"""IntentClassifier 테스트"""

import json
from unittest.mock import Mock

import pytest

from landcomp.prompts.intent_classification import ClassificationPrompt
from landcomp.services.orchestration import IntentClassifier
from landcomp.services.orchestration.errors import ParseError, ProviderError, ProviderTimeoutError
from landcomp.services.orchestration.models import ImageIntent, Intent, IntentSubtype, IntentType

from conftest import assistant, mock_llm, user


def classification_json(**overrides) -> str:
    data = {
        "type": "consultation",
        "subtype": "plantSelection",
        "confidence": 0.9,
        "reasoning": "asks about plants",
        "imageIntent": "noImageNeeded",
        "extracted_entities": ["растения"],
    }
    data.update(overrides)
    return json.dumps(data, ensure_ascii=False)


class TestClassificationPrompt:
    """분류 프롬프트 빌더"""

    def test_render_sections(self, context_builder, image1):
        history = [user("Вот мой участок", image1), assistant("Красивый участок")]
        context = context_builder.build("Проанализируй это фото", history, attachments=[image1])
        text = ClassificationPrompt.from_context("Проанализируй это фото", context).render()

        assert 'Current user message: "Проанализируй это фото"' in text
        assert "User has uploaded 1 image(s) with current message" in text
        assert "Recent conversation includes images" in text
        assert "User language detected as ru" in text
        assert 'User: "Вот мой участок"' in text
        assert "referenceSpecific" in text
        assert "Return JSON response" in text

    def test_transient_messages_not_in_prompt(self, context_builder):
        history = [user("Привет"), assistant("секретная ошибка", is_error=True)]
        context = context_builder.build("вопрос", history)
        text = ClassificationPrompt.from_context("вопрос", context).render()
        assert "секретная ошибка" not in text

    def test_without_context(self):
        text = ClassificationPrompt.from_context("hello").render()
        assert 'Current user message: "hello"' in text
        assert "Context:" not in text


class TestIntentClassifier:
    """분류 및 폴백 동작"""

    def test_scenario_a_analyze_new(self, context_builder, image1):
        """새 사진 분석 요청 → analysis / analyzeNew"""
        primary = mock_llm(
            classification_json(type="analysis", subtype="siteAnalysis", imageIntent="analyzeNew")
        )
        context = context_builder.build("Проанализируй это фото участка", [], attachments=[image1])

        intent = IntentClassifier(primary).classify("Проанализируй это фото участка", context)

        assert intent.intent_type == IntentType.ANALYSIS
        assert intent.image_intent == ImageIntent.ANALYZE_NEW
        assert intent.subtype == IntentSubtype.SITE_ANALYSIS

    def test_scenario_c_no_image_needed(self, context_builder):
        primary = mock_llm(classification_json())
        context = context_builder.build("Какие растения подходят для тени?", [])

        intent = IntentClassifier(primary).classify("Какие растения подходят для тени?", context)

        assert intent.is_consultation
        assert intent.image_intent == ImageIntent.NO_IMAGE_NEEDED
        assert intent.extracted_entities == ["растения"]

    def test_scenario_d_both_providers_fail(self, context_builder):
        """두 제공자 모두 실패 → unclear / 0.1"""
        primary = mock_llm(provider_name="openai")
        primary.generate.side_effect = ProviderTimeoutError("timeout", provider="openai")
        fallback = mock_llm(provider_name="anthropic")
        fallback.generate.side_effect = ProviderError("quota", provider="anthropic")

        intent = IntentClassifier(primary, fallback).classify(
            "вопрос", context_builder.build("вопрос", [])
        )

        assert intent.intent_type == IntentType.UNCLEAR
        assert intent.confidence == 0.1
        assert intent.reasoning.startswith("Classification failed:")
        assert "error" in intent.metadata
        assert fallback.generate.call_count == 1

    def test_fallback_uses_identical_prompt(self):
        primary = mock_llm(provider_name="openai")
        primary.generate.side_effect = ProviderError("auth", provider="openai")
        fallback = mock_llm(classification_json(), provider_name="anthropic")

        classifier = IntentClassifier(primary, fallback)
        intent = classifier.classify("Что посадить?")

        assert intent.intent_type == IntentType.CONSULTATION
        assert intent.metadata["provider"] == "anthropic"
        primary_messages = primary.generate.call_args.args[0]
        fallback_messages = fallback.generate.call_args.args[0]
        assert primary_messages == fallback_messages

        stats = classifier.get_classification_stats()
        assert stats["fallback_count"] == 1
        assert stats["providers"]["openai"]["success_rate"] == 0.0
        assert stats["providers"]["anthropic"]["success_rate"] == 1.0

    def test_parse_error_not_retried(self):
        """JSON 파싱 실패는 폴백 없이 기본 의도"""
        primary = mock_llm("I think it is a consultation", provider_name="openai")
        fallback = mock_llm(classification_json(), provider_name="anthropic")

        intent = IntentClassifier(primary, fallback).classify("вопрос")

        assert intent.is_unclear
        assert intent.confidence == 0.1
        fallback.generate.assert_not_called()

    def test_empty_reply_triggers_fallback(self):
        primary = mock_llm("   ", provider_name="openai")
        fallback = mock_llm(classification_json(), provider_name="anthropic")

        intent = IntentClassifier(primary, fallback).classify("вопрос")

        assert intent.is_consultation
        fallback.generate.assert_called_once()

    def test_unexpected_exception_degrades(self):
        primary = Mock()
        primary.provider_name = "broken"
        primary.generate.side_effect = RuntimeError("boom")

        intent = IntentClassifier(primary).classify("вопрос")
        assert intent.is_unclear


class TestParseResponse:
    """응답 파싱"""

    @pytest.fixture
    def classifier(self):
        return IntentClassifier(mock_llm())

    def test_strips_markdown_fence(self, classifier):
        text = f"```json\n{classification_json()}\n```"
        intent = classifier.parse_response(text)
        assert intent.subtype == IntentSubtype.PLANT_SELECTION

    def test_extracts_first_object_with_prose(self, classifier):
        text = f"Here you go: {classification_json(reasoning='uses {braces}')} Hope it helps"
        intent = classifier.parse_response(text)
        assert intent.reasoning == "uses {braces}"

    def test_unknown_enums_coerced(self, classifier):
        intent = classifier.parse_response(
            classification_json(type="smalltalk", subtype="poetry", imageIntent="sketch")
        )
        assert intent.intent_type == IntentType.UNCLEAR
        assert intent.subtype == IntentSubtype.GENERAL_QUESTION
        assert intent.image_intent == ImageIntent.UNCLEAR

    def test_missing_image_intent_is_unclear(self, classifier):
        intent = classifier.parse_response('{"type": "consultation", "confidence": 0.7}')
        assert intent.image_intent == ImageIntent.UNCLEAR
        assert intent.subtype is None

    def test_confidence_clamped(self, classifier):
        assert classifier.parse_response(classification_json(confidence=1.7)).confidence == 1.0
        assert classifier.parse_response(classification_json(confidence=-2)).confidence == 0.0

    @pytest.mark.parametrize("raw", ["NaN", "Infinity", "-Infinity"])
    def test_non_finite_confidence_uses_default(self, classifier, raw):
        """json.loads가 허용하는 NaN/Infinity도 [0, 1] 범위로 보정"""
        intent = classifier.parse_response(
            f'{{"type": "analysis", "confidence": {raw}, "imageIntent": "analyzeNew"}}'
        )
        assert intent.confidence == 0.5
        assert intent.intent_type == IntentType.ANALYSIS

    def test_reference_indices_sanitized(self, classifier):
        intent = classifier.parse_response(
            classification_json(
                imageIntent="referenceSpecific", referencedImageIndices=[0, -1, "2", 3, True]
            )
        )
        assert intent.referenced_image_indices == [0, 3]

    def test_invalid_json_raises(self, classifier):
        with pytest.raises(ParseError):
            classifier.parse_response('{"type": consultation}')
        with pytest.raises(ParseError):
            classifier.parse_response("no json here")


class TestIntentModel:
    """Intent 편의 속성"""

    def test_type_flags(self):
        assert Intent(IntentType.ANALYSIS).is_analysis
        assert Intent(IntentType.GENERATION).is_generation
        assert Intent(IntentType.MODIFICATION).is_modification
        assert not Intent(IntentType.CONSULTATION).is_analysis

    @pytest.mark.parametrize(
        "confidence,high,medium,low",
        [(0.9, True, True, False), (0.6, False, True, False), (0.2, False, False, True)],
    )
    def test_confidence_bands(self, confidence, high, medium, low):
        intent = Intent(IntentType.CONSULTATION, confidence=confidence)
        assert intent.is_high_confidence is high
        assert intent.is_medium_confidence is medium
        assert intent.is_low_confidence is low
