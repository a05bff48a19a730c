from .chat import Attachment, AttachmentKind, Message, MessageRole, model_visible

__all__ = [
    "Attachment",
    "AttachmentKind",
    "Message",
    "MessageRole",
    "model_visible",
]
