"""채팅 서비스"""

from .chat_service import ChatService, ConversationStore, create_chat_service

__all__ = [
    "ChatService",
    "ConversationStore",
    "create_chat_service",
]
