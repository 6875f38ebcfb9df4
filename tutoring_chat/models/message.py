"""SQLAlchemy ORM model for chat messages and their delivery status."""
from __future__ import annotations

from enum import StrEnum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from tutoring_chat.database import Base


class MessageStatus(StrEnum):
    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)

    def advances_to(self, target: "MessageStatus") -> bool:
        """Return True when moving to ``target`` is a forward step."""

        return MessageStatus(target).rank > self.rank


_STATUS_ORDER = (MessageStatus.SENT, MessageStatus.DELIVERED, MessageStatus.READ)


class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    conversation_id = Column(Integer, ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    receiver_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    status = Column(String(16), nullable=False, server_default=MessageStatus.SENT.value, default=MessageStatus.SENT.value)
    sent_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    conversation = relationship("Conversation", back_populates="messages")
    sender = relationship("User", foreign_keys=[sender_id])
    receiver = relationship("User", foreign_keys=[receiver_id])


__all__ = ["Message", "MessageStatus"]
