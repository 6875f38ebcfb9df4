"""Schemas used by the conversation endpoints."""
from __future__ import annotations

from datetime import datetime

from pydantic import Field

from .base import CamelModel
from .messages import MessageResponse
from .users import UserResponse


class ConversationCreate(CamelModel):
    participant_one_id: int = Field(..., gt=0)
    participant_two_id: int = Field(..., gt=0)


class ConversationResponse(CamelModel):
    id: int
    participant_one_id: int
    participant_two_id: int
    last_message_at: datetime
    created_at: datetime


class ConversationSummary(ConversationResponse):
    other_participant: UserResponse
    last_message: MessageResponse | None = None


class ConversationMessageCreate(CamelModel):
    content: str = Field(..., min_length=1, max_length=2000)


__all__ = [
    "ConversationCreate",
    "ConversationResponse",
    "ConversationSummary",
    "ConversationMessageCreate",
]
