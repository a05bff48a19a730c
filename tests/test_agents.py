"""에이전트 레지스트리 / 점수 계산 / 에이전트 실행 테스트"""

from datetime import datetime
from unittest.mock import Mock

import pytest

from landcomp.services.agents import (
    AgentCapability,
    AgentRegistry,
    AgentScorer,
    BaseAgent,
    ConsultantAgent,
    GenerationAgent,
)
from landcomp.services.llm.base import LLMResponse
from landcomp.services.llm.key_ring import ApiKeyRing
from landcomp.services.llm.openai_llm import OpenAILLM
from landcomp.services.orchestration.errors import (
    ExecutionError,
    NoCapableAgentError,
    ProviderError,
)
from landcomp.services.orchestration.models import (
    AgentRequest,
    AgentResponse,
    ImageIntent,
    Intent,
    IntentSubtype,
    IntentType,
)

from conftest import assistant, mock_llm, user


class StubAgent(BaseAgent):
    """고정 판단을 하는 테스트용 에이전트"""

    def __init__(self, agent_id, capabilities=(AgentCapability.CONSULTATION,), keywords=(), handles=True):
        super().__init__(agent_id, agent_id.title(), capabilities, keywords=keywords)
        self.handles = handles

    def can_handle(self, intent, context):
        if isinstance(self.handles, Exception):
            raise self.handles
        return self.handles

    def execute(self, request):
        return AgentResponse.ok(request.request_id, f"from {self.id}", selected_agent=self)


def make_request(context_builder, message="вопрос", intent=None, history=(), attachments=None):
    context = context_builder.build(message, list(history), attachments)
    return AgentRequest(
        request_id="req-1",
        context=context,
        intent=intent or Intent(intent_type=IntentType.CONSULTATION),
        timestamp=datetime(2024, 5, 1),
    )


class TestAgentRegistry:
    """레지스트리 테스트"""

    def test_registration_order(self):
        registry = AgentRegistry()
        for agent_id in ("b", "a", "c"):
            registry.register(StubAgent(agent_id))

        assert [a.id for a in registry.all_agents()] == ["b", "a", "c"]
        assert len(registry) == 3
        assert "a" in registry

    def test_unregister(self):
        registry = AgentRegistry()
        registry.register(StubAgent("a"))
        assert registry.unregister("a") is True
        assert registry.unregister("a") is False
        assert registry.get("a") is None

    def test_by_capability(self):
        registry = AgentRegistry()
        registry.register(StubAgent("a", capabilities=[AgentCapability.GARDENING]))
        registry.register(StubAgent("b", capabilities=[AgentCapability.CONSTRUCTION]))

        assert [a.id for a in registry.by_capability(AgentCapability.GARDENING)] == ["a"]
        assert registry.all_capabilities() == {AgentCapability.GARDENING, AgentCapability.CONSTRUCTION}

    def test_track_execution_metrics(self):
        registry = AgentRegistry()
        registry.register(StubAgent("a"))
        assert registry.success_rate("a") is None

        registry.track_execution("a", 10.0, True)
        registry.track_execution("a", 30.0, False)

        metrics = registry.get_agent_metrics("a")
        assert metrics["total_executions"] == 2
        assert metrics["success_rate"] == 0.5
        assert metrics["average_time_ms"] == 20.0

    def test_execution_samples_capped(self):
        registry = AgentRegistry()
        registry.register(StubAgent("a"))
        for i in range(150):
            registry.track_execution("a", float(i), True)

        metrics = registry.get_agent_metrics("a")
        assert metrics["recent_samples"] == 100
        assert metrics["total_executions"] == 150

    def test_clear_metrics(self):
        registry = AgentRegistry()
        registry.register(StubAgent("a"))
        registry.track_execution("a", 5.0, True)
        registry.clear_metrics()
        assert registry.success_rate("a") is None
        assert len(registry) == 1


class TestAgentScorer:
    """점수 기반 선택 테스트"""

    def test_no_capable_agent(self, context_builder):
        registry = AgentRegistry()
        registry.register(StubAgent("a", handles=False))

        with pytest.raises(NoCapableAgentError):
            AgentScorer(registry).select_agent(make_request(context_builder))

    def test_capability_exception_excludes_agent(self, context_builder):
        """can_handle 예외는 해당 에이전트만 제외"""
        registry = AgentRegistry()
        registry.register(StubAgent("broken", handles=RuntimeError("boom")))
        registry.register(StubAgent("ok"))

        agent = AgentScorer(registry).select_agent(make_request(context_builder))
        assert agent.id == "ok"

    def test_tie_breaks_by_registration_order(self, context_builder):
        registry = AgentRegistry()
        registry.register(StubAgent("first"))
        registry.register(StubAgent("second"))

        agent = AgentScorer(registry).select_agent(make_request(context_builder))
        assert agent.id == "first"

    def test_keyword_match_wins(self, context_builder):
        registry = AgentRegistry()
        registry.register(StubAgent("builder", keywords=["фундамент"]))
        registry.register(StubAgent("gardener", keywords=["растение", "сад"]))

        request = make_request(context_builder, message="Какое растение посадить в сад?")
        assert AgentScorer(registry).select_agent(request).id == "gardener"

    def test_exact_keyword_monotonicity(self, context_builder):
        """정확한 키워드가 하나 더 맞으면 점수가 낮아지지 않음"""
        registry = AgentRegistry()
        agent = StubAgent("gardener", keywords=["растение", "полив", "сад"])
        registry.register(agent)
        scorer = AgentScorer(registry)

        without = scorer.score(agent, make_request(context_builder, message="Какое растение выбрать"))
        with_extra = scorer.score(
            agent, make_request(context_builder, message="Какое растение выбрать полив")
        )
        assert with_extra >= without

    def test_subtype_bonus_from_table(self, context_builder):
        registry = AgentRegistry()
        gardener = StubAgent("gardener", capabilities=[AgentCapability.CONSULTATION, AgentCapability.GARDENING])
        builder = StubAgent("builder", capabilities=[AgentCapability.CONSULTATION, AgentCapability.CONSTRUCTION])
        registry.register(builder)
        registry.register(gardener)
        scorer = AgentScorer(registry)

        intent = Intent(intent_type=IntentType.CONSULTATION, subtype=IntentSubtype.PLANT_SELECTION)
        request = make_request(context_builder, intent=intent)

        assert scorer.score_breakdown(gardener, request)["intent"] == pytest.approx(3.5)
        assert scorer.score_breakdown(builder, request)["intent"] == pytest.approx(2.0)
        assert scorer.select_agent(request).id == "gardener"

    def test_image_context_bonus(self, context_builder, image1):
        registry = AgentRegistry()
        viewer = StubAgent("viewer", capabilities=[AgentCapability.IMAGE_ANALYSIS])
        registry.register(viewer)
        scorer = AgentScorer(registry)

        request = make_request(context_builder, attachments=[image1])
        # 새 이미지 1.5 + (기록 5개 미만이면 현재 첨부 기준) 최근 이미지 1.0
        assert scorer.context_score(viewer, request.context) == pytest.approx(2.5)

    def test_performance_prior_and_history(self, context_builder):
        registry = AgentRegistry()
        agent = StubAgent("a")
        registry.register(agent)
        scorer = AgentScorer(registry, performance_weight=2.0)

        assert scorer.performance_score(agent) == pytest.approx(1.0)
        registry.track_execution("a", 1.0, True)
        assert scorer.performance_score(agent) == pytest.approx(2.0)


class TestConsultantAgent:
    """상담 에이전트 테스트"""

    @pytest.fixture
    def gardener(self):
        return ConsultantAgent(
            agent_id="gardener",
            name="Gardener",
            capabilities=[AgentCapability.GARDENING],
            system_prompt="You are a gardener.",
            keywords=["сад"],
            primary=mock_llm("Посадите хосту.", provider_name="openai"),
            fallback=mock_llm("Fallback answer", provider_name="anthropic"),
        )

    def test_can_handle_subtypes(self, gardener, context_builder):
        context = context_builder.build("вопрос", [])
        plant = Intent(intent_type=IntentType.CONSULTATION, subtype=IntentSubtype.PLANT_SELECTION)
        build = Intent(intent_type=IntentType.CONSULTATION, subtype=IntentSubtype.CONSTRUCTION_ADVICE)
        unclear = Intent(intent_type=IntentType.UNCLEAR)

        assert gardener.can_handle(plant, context) is True
        assert gardener.can_handle(build, context) is False
        assert gardener.can_handle(unclear, context) is True

    def test_execute_sends_history_and_images(self, gardener, context_builder, image1):
        history = [user("Привет"), assistant("Здравствуйте"), assistant("...", is_typing=True)]
        request = make_request(
            context_builder, message="Что посадить в тени?", history=history, attachments=[image1]
        )

        response = gardener.execute(request)

        assert response.success is True
        assert response.message == "Посадите хосту."
        assert response.selected_agent is gardener
        messages = gardener.primary.generate.call_args.args[0]
        assert [m.role for m in messages] == ["system", "user", "assistant", "user"]
        assert gardener.primary.generate.call_args.kwargs["images"] == [image1]

    def test_execute_falls_back(self, gardener, context_builder):
        gardener.primary.generate.side_effect = ProviderError("down", provider="openai")
        response = gardener.execute(make_request(context_builder))
        assert response.message == "Fallback answer"
        assert response.metadata["provider"] == "anthropic"

    def test_execute_raises_when_both_fail(self, gardener, context_builder):
        gardener.primary.generate.side_effect = ProviderError("down", provider="openai")
        gardener.fallback.generate.side_effect = ProviderError("down", provider="anthropic")
        with pytest.raises(ExecutionError):
            gardener.execute(make_request(context_builder))


class TestGenerationAgent:
    """이미지 생성 에이전트 테스트"""

    def test_can_handle(self, context_builder):
        agent = GenerationAgent(primary=mock_llm())
        context = context_builder.build("нарисуй сад", [])

        assert agent.can_handle(
            Intent(intent_type=IntentType.GENERATION, subtype=IntentSubtype.IMAGE_GENERATION), context
        )
        assert agent.can_handle(
            Intent(intent_type=IntentType.MODIFICATION, image_intent=ImageIntent.GENERATE_BASED), context
        )
        assert not agent.can_handle(Intent(intent_type=IntentType.CONSULTATION), context)

    def test_execute_with_dummy(self, dummy_llm_service, context_builder, image1):
        agent = GenerationAgent(primary=dummy_llm_service, enhance_prompt=False)
        request = make_request(context_builder, message="нарисуй сад", attachments=[image1])

        response = agent.execute(request)

        assert response.success is True
        assert response.has_generated_images is True
        assert response.metadata["images_used"] == 1

    def test_unsupported_primary_falls_back(self, dummy_llm_service, context_builder):
        primary = mock_llm(provider_name="text-only")
        primary.generate_image = Mock(side_effect=NotImplementedError("no images"))
        agent = GenerationAgent(primary=primary, fallback=dummy_llm_service, enhance_prompt=False)

        response = agent.execute(make_request(context_builder, message="draw a garden"))
        assert response.metadata["provider"] == "dummy"

    def test_missing_openai_key_falls_back(self, monkeypatch, dummy_llm_service, context_builder):
        """키 없는 OpenAI 기본 제공자는 ProviderError로 실패하고 폴백이 생성"""
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        primary = OpenAILLM(key_ring=ApiKeyRing([], provider="openai"))
        agent = GenerationAgent(primary=primary, fallback=dummy_llm_service, enhance_prompt=False)

        response = agent.execute(make_request(context_builder, message="draw a garden"))

        assert response.success is True
        assert response.metadata["provider"] == "dummy"
        assert response.has_generated_images is True

    def test_prompt_enhancement(self, context_builder):
        primary = mock_llm("A sunny cottage garden with lavender", provider_name="openai")
        primary.generate_image = Mock(
            return_value=LLMResponse(content="", images=[], model="img")
        )
        agent = GenerationAgent(primary=primary)

        agent.execute(make_request(context_builder, message="нарисуй сад"))
        assert primary.generate_image.call_args.args[0] == "A sunny cottage garden with lavender"
