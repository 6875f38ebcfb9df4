"""Convenience exports for service layer."""
from .auth_service import get_current_user
from .chat_gateway import ChatGateway, get_chat_gateway
from .chat_protocol import ChatProtocolHandler
from .connection_registry import ClientConnection, ConnectionRegistry
from .conversation_service import (
    ConversationOverview,
    create_conversation,
    get_conversation,
    get_conversation_by_participants,
    get_user,
    list_conversations_for_user,
    require_participant,
)
from .liveness import LivenessMonitor
from .message_service import (
    MessageStoreError,
    create_message,
    get_message,
    list_messages,
    mark_conversation_read,
    update_message_status,
)
from .message_store import MessageStore, SqlMessageStore

__all__ = [
    "get_current_user",
    "ChatGateway",
    "get_chat_gateway",
    "ChatProtocolHandler",
    "ClientConnection",
    "ConnectionRegistry",
    "ConversationOverview",
    "create_conversation",
    "get_conversation",
    "get_conversation_by_participants",
    "get_user",
    "list_conversations_for_user",
    "require_participant",
    "LivenessMonitor",
    "MessageStoreError",
    "create_message",
    "get_message",
    "list_messages",
    "mark_conversation_read",
    "update_message_status",
    "MessageStore",
    "SqlMessageStore",
]
