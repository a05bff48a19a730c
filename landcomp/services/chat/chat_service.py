"""채팅 서비스 - 세션별 대화 기록과 오케스트레이터를 연결"""

import logging
import threading
from typing import Optional, Sequence

from landcomp.logging_config import setup_logging
from landcomp.models.chat import Attachment, Message, MessageRole
from landcomp.services.agents import AgentScorer, build_default_registry
from landcomp.services.llm.factory import get_provider_pair
from landcomp.services.orchestration import IntentClassifier, Orchestrator
from landcomp.services.orchestration.models import AgentResponse

logger = logging.getLogger(__name__)

ERROR_REPLY = "요청을 처리하지 못했습니다. 잠시 후 다시 시도해 주세요."


class ConversationStore:
    """메모리 내 세션별 대화 저장소 (스레드 안전, 영속화 없음)"""

    def __init__(self):
        self._lock = threading.Lock()
        self._histories: dict[str, list[Message]] = {}
        self._current_agents: dict[str, str] = {}

    def get_history(self, session_id: str) -> list[Message]:
        """세션 대화 기록 사본 (오래된 것 → 최신 순)"""
        with self._lock:
            return list(self._histories.get(session_id, []))

    def append(self, session_id: str, *messages: Message) -> None:
        with self._lock:
            self._histories.setdefault(session_id, []).extend(messages)

    def get_current_agent(self, session_id: str) -> Optional[str]:
        with self._lock:
            return self._current_agents.get(session_id)

    def set_current_agent(self, session_id: str, agent_id: str) -> None:
        with self._lock:
            self._current_agents[session_id] = agent_id

    def clear(self, session_id: str) -> None:
        with self._lock:
            self._histories.pop(session_id, None)
            self._current_agents.pop(session_id, None)

    def sessions(self) -> list[str]:
        with self._lock:
            return list(self._histories)


class ChatService:
    """채팅 서비스 - 세션 기록을 관리하며 요청을 오케스트레이터에 위임"""

    def __init__(self, orchestrator: Orchestrator, store: Optional[ConversationStore] = None):
        """ChatService 초기화

        Args:
            orchestrator: 오케스트레이터
            store: 대화 저장소 (None이면 새 메모리 저장소)
        """
        self.orchestrator = orchestrator
        self.store = store or ConversationStore()

    def send_message(
        self,
        session_id: str,
        user_message: str,
        attachments: Optional[Sequence[Attachment]] = None,
    ) -> AgentResponse:
        """사용자 메시지 처리

        Args:
            session_id: 세션 ID
            user_message: 사용자 메시지
            attachments: 새 첨부파일

        Returns:
            AgentResponse (실패 응답도 기록에는 is_error 메시지로 남음)
        """
        history = self.store.get_history(session_id)
        response = self.orchestrator.process_request(
            user_message,
            history,
            attachments=attachments,
            current_agent_id=self.store.get_current_agent(session_id),
        )

        user_entry = Message(
            role=MessageRole.USER,
            content=user_message,
            attachments=tuple(attachments or ()),
        )

        agent_id = response.selected_agent_id
        if response.success:
            reply = Message(
                role=MessageRole.ASSISTANT,
                content=response.message or "",
                attachments=tuple(response.generated_attachments or ()),
                agent_id=agent_id,
            )
            if agent_id:
                self.store.set_current_agent(session_id, agent_id)
        else:
            logger.warning(f"세션 {session_id} 요청 실패: {response.error}")
            reply = Message(
                role=MessageRole.ASSISTANT,
                content=response.message or ERROR_REPLY,
                is_error=True,
            )

        self.store.append(session_id, user_entry, reply)
        return response

    def get_history(self, session_id: str) -> list[Message]:
        return self.store.get_history(session_id)

    def clear_history(self, session_id: str) -> None:
        """세션 대화 기록 초기화"""
        self.store.clear(session_id)


def create_chat_service(
    store: Optional[ConversationStore] = None, configure_logging: bool = True
) -> ChatService:
    """설정값으로 제공자/레지스트리/오케스트레이터를 구성한 ChatService 생성

    Args:
        store: 대화 저장소 (None이면 새 메모리 저장소)
        configure_logging: True면 config/logging.yml 기반 로깅 초기화
    """
    if configure_logging:
        setup_logging()

    primary, fallback = get_provider_pair()
    registry = build_default_registry(primary, fallback)
    orchestrator = Orchestrator(
        classifier=IntentClassifier(primary, fallback),
        registry=registry,
        scorer=AgentScorer(registry),
    )
    return ChatService(orchestrator, store)
