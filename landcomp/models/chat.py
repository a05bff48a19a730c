"""대화 메시지 / 첨부파일 모델

오케스트레이션 코어가 외부(UI, 저장소)로부터 받는 대화 단위 데이터.
첨부파일은 메시지가 소유하며, 이미지 선택 단계에서는 복사 없이 참조만 합니다.
"""
from __future__ import annotations

import base64
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple


class MessageRole(Enum):
    """메시지 작성 주체"""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class AttachmentKind(Enum):
    """첨부파일 종류"""

    IMAGE = "image"
    FILE = "file"


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Attachment:
    """메시지 첨부파일 (이미지/파일)"""

    kind: AttachmentKind
    data: bytes
    mime_type: str
    id: str = field(default_factory=_new_id)
    name: str = ""
    width: Optional[int] = None
    height: Optional[int] = None

    @classmethod
    def image(cls, data: bytes, mime_type: str = "image/jpeg", **kwargs) -> "Attachment":
        """이미지 첨부파일 생성 헬퍼"""
        return cls(kind=AttachmentKind.IMAGE, data=data, mime_type=mime_type, **kwargs)

    @property
    def is_image(self) -> bool:
        return self.kind == AttachmentKind.IMAGE

    @property
    def size(self) -> int:
        return len(self.data)

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    def to_data_url(self) -> str:
        """data URL 형식 (OpenAI 비전 입력용)"""
        return f"data:{self.mime_type};base64,{self.to_base64()}"

    def to_dict(self) -> dict:
        """직렬화용 요약 (바이트 본문 제외)"""
        return {
            "id": self.id,
            "kind": self.kind.value,
            "name": self.name,
            "mime_type": self.mime_type,
            "size": self.size,
            "width": self.width,
            "height": self.height,
        }


@dataclass(frozen=True)
class Message:
    """대화 메시지

    is_typing / is_error 플래그가 켜진 메시지는 UI 임시 산출물이므로
    모델에 전달되는 어떤 컨텍스트에도 포함되지 않아야 합니다.
    """

    role: MessageRole
    content: str
    id: str = field(default_factory=_new_id)
    attachments: Tuple[Attachment, ...] = ()
    image_analysis: Optional[str] = None  # 이전 이미지 분석 결과 텍스트
    agent_id: Optional[str] = None  # 응답한 에이전트 (assistant 메시지)
    timestamp: datetime = field(default_factory=datetime.now)
    is_typing: bool = False
    is_error: bool = False

    @property
    def is_transient(self) -> bool:
        """모델 컨텍스트에서 제외해야 하는 임시 메시지 여부"""
        return self.is_typing or self.is_error

    @property
    def image_attachments(self) -> list[Attachment]:
        return [a for a in self.attachments if a.is_image]

    @property
    def has_images(self) -> bool:
        return any(a.is_image for a in self.attachments)


def model_visible(history: "list[Message] | tuple[Message, ...]") -> list[Message]:
    """임시 메시지(is_typing/is_error)를 제외한 대화 기록"""
    return [m for m in history if not m.is_transient]


__all__ = [
    "MessageRole",
    "AttachmentKind",
    "Attachment",
    "Message",
    "model_visible",
]
