"""ORM model representing a one-to-one conversation between two users."""
from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Integer
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from tutoring_chat.database import Base


class Conversation(Base):
    __tablename__ = "conversations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    participant_one_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    participant_two_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    last_message_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    participant_one = relationship("User", foreign_keys=[participant_one_id])
    participant_two = relationship("User", foreign_keys=[participant_two_id])
    messages = relationship("Message", back_populates="conversation", order_by="Message.id")

    def involves(self, user_id: int) -> bool:
        return user_id in {self.participant_one_id, self.participant_two_id}

    def other_participant_id(self, user_id: int) -> int:
        if user_id == self.participant_one_id:
            return self.participant_two_id
        return self.participant_one_id


__all__ = ["Conversation"]
