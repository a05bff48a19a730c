"""오케스트레이션 예외 계층

각 단계의 실패는 오케스트레이터 경계 아래에서 복구됩니다.
- ProviderError: 폴백 제공자로 1회 재시도, 그래도 실패하면 기본 의도로 강등
- ParseError: 재시도 없이 기본 의도로 강등
- CapabilityError: 해당 에이전트만 후보에서 제외
- NoCapableAgentError / ExecutionError: AgentResponse 오류로 변환
"""


class OrchestrationError(Exception):
    """오케스트레이션 코어 예외의 기본 클래스"""


class ProviderError(OrchestrationError):
    """LLM 제공자 호출 실패 (네트워크/타임아웃/인증/쿼터)"""

    def __init__(self, message: str, provider: str | None = None):
        super().__init__(message)
        self.provider = provider


class ProviderTimeoutError(ProviderError):
    """제공자 호출 타임아웃 또는 연결 실패"""


class ProviderAuthError(ProviderError):
    """인증 실패 (잘못된/만료된 API 키)"""


class ProviderQuotaError(ProviderError):
    """쿼터 초과 / 요청 한도 초과"""


class ParseError(OrchestrationError):
    """분류기 응답 JSON 파싱 실패"""

    def __init__(self, message: str, raw_response: str | None = None):
        super().__init__(message)
        self.raw_response = raw_response


class CapabilityError(OrchestrationError):
    """에이전트의 can_handle 검사 중 발생한 예외"""

    def __init__(self, agent_id: str, cause: Exception):
        super().__init__(f"{agent_id}: {cause}")
        self.agent_id = agent_id
        self.cause = cause


class NoCapableAgentError(OrchestrationError):
    """의도를 처리할 수 있는 에이전트가 없음"""


class ExecutionError(OrchestrationError):
    """선택된 에이전트 실행 실패"""

    def __init__(self, message: str, agent_id: str | None = None):
        super().__init__(message)
        self.agent_id = agent_id


__all__ = [
    "OrchestrationError",
    "ProviderError",
    "ProviderTimeoutError",
    "ProviderAuthError",
    "ProviderQuotaError",
    "ParseError",
    "CapabilityError",
    "NoCapableAgentError",
    "ExecutionError",
]
