"""Schemas used for persisted chat messages."""
from __future__ import annotations

from datetime import datetime

from ..models import MessageStatus
from .base import CamelModel


class MessageResponse(CamelModel):
    id: int
    conversation_id: int
    sender_id: int
    receiver_id: int
    content: str
    status: MessageStatus
    sent_at: datetime


__all__ = ["MessageResponse"]
