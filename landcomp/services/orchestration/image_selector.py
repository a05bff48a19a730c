"""이미지 선택기 (ImageSelector)

이미지 의도(ImageIntent)에 따라 다운스트림 모델 호출에 전달할 이미지 부분집합을 결정합니다.
응답기마다 "어떤 이미지를 보낼지"를 중복 구현하지 않도록 정책을 한 곳에 모으고,
제공자의 요청 크기/이미지당 비용 제한에 맞춰 페이로드를 제한합니다.

순수 함수이며 결정적입니다. 첨부파일은 복사하지 않고 참조만 합니다.
"""

import logging
from typing import Callable, Optional, Sequence

from landcomp.models.chat import Attachment, Message, model_visible
from landcomp.settings import settings

from .models import ImageIntent, Intent

logger = logging.getLogger(__name__)

DEFAULT_RECENT_LIMIT = 5
COMPARE_LIMIT = 5


class ImageSelector:
    """이미지 의도 기반 이미지 선택 정책"""

    def __init__(self, max_images: Optional[int] = None):
        """
        Args:
            max_images: 요청당 최대 이미지 수 (None이면 설정값)
        """
        self.max_images = max_images or settings.max_images_per_request
        self._policies: dict[ImageIntent, Callable[..., list[Attachment]]] = {
            ImageIntent.ANALYZE_NEW: self._select_new,
            ImageIntent.ANALYZE_RECENT: self._select_recent,
            ImageIntent.COMPARE_MULTIPLE: self._select_comparison,
            ImageIntent.REFERENCE_SPECIFIC: self._select_specific,
            ImageIntent.GENERATE_BASED: self._select_generation_seed,
        }

    def select(
        self,
        user_message: str,
        history: Sequence[Message],
        intent: Intent,
        current_attachments: Optional[Sequence[Attachment]] = None,
    ) -> list[Attachment]:
        """의도에 맞는 이미지 목록 반환

        Args:
            user_message: 현재 사용자 입력 (정책 판단에는 사용하지 않음)
            history: 대화 기록 (오래된 것 → 최신 순)
            intent: 분류된 의도 (image_intent 기준)
            current_attachments: 이번 요청에 새로 첨부된 파일

        Returns:
            선택된 이미지 목록 (noImageNeeded / unclear / 미지정이면 빈 목록)
        """
        policy = self._policies.get(intent.image_intent)
        if policy is None:
            return []

        visible = model_visible(history)
        current = [a for a in current_attachments or [] if a.is_image]
        selected = policy(visible, current, intent)[: self.max_images]

        logger.info(
            f"이미지 선택: {intent.image_intent.value} → {len(selected)}개 "
            f"(새 첨부 {len(current)}개)"
        )
        return selected

    @staticmethod
    def _history_images_newest_first(history: list[Message]) -> list[Attachment]:
        images = []
        for message in reversed(history):
            images.extend(message.image_attachments)
        return images

    @staticmethod
    def _history_images_chronological(history: list[Message]) -> list[Attachment]:
        images = []
        for message in history:
            images.extend(message.image_attachments)
        return images

    def _select_new(
        self, history: list[Message], current: list[Attachment], intent: Intent
    ) -> list[Attachment]:
        """이번 메시지에 첨부된 이미지 (images_needed가 있으면 그 수로 제한)"""
        if intent.images_needed is not None and intent.images_needed > 0:
            return current[: intent.images_needed]
        return current

    def _select_recent(
        self, history: list[Message], current: list[Attachment], intent: Intent
    ) -> list[Attachment]:
        """최신 → 과거 순으로 images_needed(기본 5)개까지"""
        limit = intent.images_needed if intent.images_needed and intent.images_needed > 0 else None
        return self._history_images_newest_first(history)[: limit or DEFAULT_RECENT_LIMIT]

    def _select_comparison(
        self, history: list[Message], current: list[Attachment], intent: Intent
    ) -> list[Attachment]:
        """새 이미지 우선, 부족분은 기록에서 채워 최대 5개 (같은 첨부는 한 번만)"""
        images = list(current[:COMPARE_LIMIT])
        seen = {a.id for a in images}
        for attachment in self._history_images_newest_first(history):
            if len(images) >= COMPARE_LIMIT:
                break
            if attachment.id not in seen:
                images.append(attachment)
                seen.add(attachment.id)
        return images

    def _select_specific(
        self, history: list[Message], current: list[Attachment], intent: Intent
    ) -> list[Attachment]:
        """기록 전체 이미지를 시간순으로 펼친 뒤 참조된 인덱스만 (범위 밖은 무시)"""
        if not intent.referenced_image_indices:
            return []
        all_images = self._history_images_chronological(history)
        return [
            all_images[index]
            for index in intent.referenced_image_indices
            if 0 <= index < len(all_images)
        ]

    def _select_generation_seed(
        self, history: list[Message], current: list[Attachment], intent: Intent
    ) -> list[Attachment]:
        """생성용 시드 이미지 최대 1장 (새 첨부 우선)"""
        if current:
            return current[:1]
        return self._history_images_newest_first(history)[:1]
