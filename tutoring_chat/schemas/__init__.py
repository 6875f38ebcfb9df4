"""Convenience exports for schema layer."""
from .conversations import (
    ConversationCreate,
    ConversationMessageCreate,
    ConversationResponse,
    ConversationSummary,
)
from .frames import (
    AuthFrame,
    ChatMessageFrame,
    ErrorFrame,
    MessageFrame,
    MessageSentFrame,
    PingFrame,
    PongFrame,
    ReadReceiptFrame,
    ReadReceiptRequestFrame,
)
from .messages import MessageResponse
from .users import UserResponse

__all__ = [
    "AuthFrame",
    "ChatMessageFrame",
    "ConversationCreate",
    "ConversationMessageCreate",
    "ConversationResponse",
    "ConversationSummary",
    "ErrorFrame",
    "MessageFrame",
    "MessageResponse",
    "MessageSentFrame",
    "PingFrame",
    "PongFrame",
    "ReadReceiptFrame",
    "ReadReceiptRequestFrame",
    "UserResponse",
]
