"""컨텍스트 빌더 (ContextBuilder)

원본 대화 기록 + 이번 요청의 첨부파일로부터 요청 단위 불변 컨텍스트를 조립합니다.
언어 감지 휴리스틱을 제외하면 순수 함수이며, 실패하지 않습니다.
"""

import logging
import re
from collections import Counter
from datetime import datetime
from typing import Callable, Optional, Sequence

from landcomp.models.chat import Attachment, Message, MessageRole, model_visible

from .models import RequestContext

logger = logging.getLogger(__name__)

MAX_IMAGE_ANALYSES = 5  # 유지할 최근 이미지 분석 수
RECENT_IMAGE_WINDOW = 10  # 최근 이미지 탐색 범위 (메시지 수)
LANGUAGE_VOTE_WINDOW = 5  # 언어 다수결 범위
ATTACHMENT_BORROW_WINDOW = 5  # 이전 첨부 재사용 탐색 범위

_CYRILLIC = re.compile(r"[а-яё]", re.IGNORECASE)
_LATIN = re.compile(r"[a-z]", re.IGNORECASE)


def detect_script_language(text: str) -> Optional[str]:
    """문자 체계로 언어 판별 (키릴 문자만 → ru, 라틴 문자만 → en, 그 외 None)"""
    has_cyrillic = bool(_CYRILLIC.search(text))
    has_latin = bool(_LATIN.search(text))
    if has_cyrillic and not has_latin:
        return "ru"
    if has_latin and not has_cyrillic:
        return "en"
    return None


class ContextBuilder:
    """요청 컨텍스트 생성기"""

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        """
        Args:
            clock: 타임스탬프 공급 함수 (테스트에서 고정 가능)
        """
        self.clock = clock

    def build(
        self,
        user_message: str,
        history: Sequence[Message],
        attachments: Optional[Sequence[Attachment]] = None,
        current_agent_id: Optional[str] = None,
    ) -> RequestContext:
        """요청 컨텍스트 생성

        Args:
            user_message: 현재 사용자 입력
            history: 대화 기록 (오래된 것 → 최신 순)
            attachments: 이번 요청의 첨부파일 (없으면 최근 기록에서 빌려옴)
            current_agent_id: 현재 선택된 에이전트 힌트

        Returns:
            RequestContext (임시 메시지는 제외된 기록 스냅샷 포함)
        """
        visible = model_visible(history)

        final_attachments: tuple[Attachment, ...] = tuple(attachments or ())
        if not final_attachments:
            final_attachments = self._borrow_attachments(visible)

        context = RequestContext(
            user_message=user_message,
            conversation_history=tuple(visible),
            timestamp=self.clock(),
            attachments=final_attachments,
            current_agent_id=current_agent_id,
            user_language=self._detect_language(user_message, visible),
            previous_image_analyses=self._extract_image_analyses(visible),
            has_recent_images=self._check_recent_images(visible),
            metadata=self._build_metadata(visible, current_agent_id),
        )

        logger.debug(
            f"컨텍스트 생성: 기록 {len(visible)}개 (제외 {len(history) - len(visible)}개), "
            f"첨부 {len(final_attachments)}개, 언어 {context.user_language}"
        )
        return context

    def _extract_image_analyses(self, history: list[Message]) -> tuple[str, ...]:
        """최근 이미지 분석 텍스트 (최대 5개, 오래된 것부터 제거)"""
        analyses = [m.image_analysis for m in history if m.image_analysis]
        return tuple(analyses[-MAX_IMAGE_ANALYSES:])

    def _check_recent_images(self, history: list[Message]) -> bool:
        """최근 10개 메시지 안에 이미지 첨부가 있는지"""
        return any(m.has_images for m in history[-RECENT_IMAGE_WINDOW:])

    def _detect_language(self, user_message: str, history: list[Message]) -> Optional[str]:
        """현재 메시지 → 최근 사용자 메시지 다수결 순으로 언어 감지 (동률이면 None)"""
        language = detect_script_language(user_message)
        if language:
            return language

        votes: Counter = Counter()
        for message in history[-LANGUAGE_VOTE_WINDOW:]:
            if message.role != MessageRole.USER:
                continue
            if _CYRILLIC.search(message.content):
                votes["ru"] += 1
            if _LATIN.search(message.content):
                votes["en"] += 1

        if votes["ru"] > votes["en"]:
            return "ru"
        if votes["en"] > votes["ru"]:
            return "en"
        return None

    def _borrow_attachments(self, history: list[Message]) -> tuple[Attachment, ...]:
        """새 첨부가 없을 때 가장 최근 이미지 메시지의 첨부를 재사용"""
        for message in reversed(history[-ATTACHMENT_BORROW_WINDOW:]):
            if message.has_images:
                logger.debug(f"메시지 {message.id}의 첨부 {len(message.attachments)}개 재사용")
                return tuple(message.attachments)
        return ()

    def _build_metadata(self, history: list[Message], current_agent_id: Optional[str]) -> dict:
        """대화 통계 메타데이터"""
        role_counts = Counter(m.role for m in history)
        metadata: dict = {
            "conversation_length": len(history),
            "user_message_count": role_counts[MessageRole.USER],
            "ai_message_count": role_counts[MessageRole.ASSISTANT],
            "system_message_count": role_counts[MessageRole.SYSTEM],
            "current_agent_id": current_agent_id,
            "has_attachments": any(m.attachments for m in history),
            "has_image_analyses": any(m.image_analysis for m in history),
        }

        # 에이전트별 응답 수
        agent_usage: dict[str, int] = {}
        for message in history:
            if message.role == MessageRole.ASSISTANT and message.agent_id:
                agent_usage[message.agent_id] = agent_usage.get(message.agent_id, 0) + 1
        metadata["agent_usage"] = agent_usage

        if history:
            metadata["recent_message_types"] = [m.role.value for m in history[-5:]]

        if len(history) >= 2:
            duration = history[-1].timestamp - history[0].timestamp
            metadata["conversation_duration_minutes"] = int(duration.total_seconds() // 60)

        return metadata


def recent_turns(
    context: RequestContext, turns: int = 3, limit: int = 100
) -> list[tuple[str, str]]:
    """분류기에 보여줄 최근 대화 (role, 잘린 본문) 목록

    컨텍스트의 기록은 이미 임시 메시지가 제외된 스냅샷입니다.
    """
    result = []
    for message in context.conversation_history[-turns:] if turns > 0 else []:
        content = message.content
        if len(content) > limit:
            content = content[:limit] + "..."
        result.append((message.role.value, content))
    return result
