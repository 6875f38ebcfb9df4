"""Convenience exports for ORM models."""
from .conversation import Conversation
from .message import Message, MessageStatus
from .user import User, UserRole

__all__ = [
    "Conversation",
    "Message",
    "MessageStatus",
    "User",
    "UserRole",
]
