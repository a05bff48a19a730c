"""오케스트레이션 레이어

컨텍스트 생성 → 의도분류 → 이미지 선택 → 에이전트 선택 → 실행 파이프라인을 관리합니다.

구성:
- ContextBuilder: 대화 기록/첨부로부터 요청 컨텍스트 생성
- IntentClassifier: 사용자 입력의 의도를 분류 (기본 → 폴백 제공자)
- ImageSelector: 이미지 의도에 따라 모델에 보낼 이미지 선택
- MetricsTracker: 단계/컴포넌트별 실행 메트릭
- Orchestrator: 전체 파이프라인과 오류 격리
"""

from .models import (
    AgentRequest,
    AgentResponse,
    ImageIntent,
    Intent,
    IntentSubtype,
    IntentType,
    RequestContext,
)
from .errors import (
    CapabilityError,
    ExecutionError,
    NoCapableAgentError,
    OrchestrationError,
    ParseError,
    ProviderError,
)
from .context_builder import ContextBuilder
from .intent_classifier import IntentClassifier
from .image_selector import ImageSelector
from .metrics import MetricsTracker
from .orchestrator import Orchestrator

__all__ = [
    # models
    "AgentRequest",
    "AgentResponse",
    "ImageIntent",
    "Intent",
    "IntentSubtype",
    "IntentType",
    "RequestContext",
    # errors
    "OrchestrationError",
    "ProviderError",
    "ParseError",
    "CapabilityError",
    "NoCapableAgentError",
    "ExecutionError",
    # components
    "ContextBuilder",
    "IntentClassifier",
    "ImageSelector",
    "MetricsTracker",
    "Orchestrator",
]
