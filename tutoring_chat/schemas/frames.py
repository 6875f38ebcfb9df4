"""Typed frames exchanged over the realtime messaging socket.

Inbound frames are validated after the ``type`` discriminator has been read;
outbound frames are serialised with :meth:`CamelModel.as_payload`.
"""
from __future__ import annotations

from typing import Literal

from pydantic import Field

from .base import CamelModel
from .messages import MessageResponse


# Inbound


class AuthFrame(CamelModel):
    user_id: int = Field(..., gt=0)


class ChatMessageFrame(CamelModel):
    conversation_id: int = Field(..., gt=0)
    receiver_id: int = Field(..., gt=0)
    content: str = Field(..., min_length=1)


class ReadReceiptRequestFrame(CamelModel):
    message_id: int = Field(..., gt=0)


# Outbound


class MessageFrame(CamelModel):
    type: Literal["message"] = "message"
    message: MessageResponse


class MessageSentFrame(CamelModel):
    type: Literal["message_sent"] = "message_sent"
    message_id: int


class ReadReceiptFrame(CamelModel):
    type: Literal["read_receipt"] = "read_receipt"
    message_id: int


class ErrorFrame(CamelModel):
    type: Literal["error"] = "error"
    message: str


# Liveness


class PingFrame(CamelModel):
    type: Literal["ping"] = "ping"


class PongFrame(CamelModel):
    type: Literal["pong"] = "pong"


__all__ = [
    "AuthFrame",
    "ChatMessageFrame",
    "ReadReceiptRequestFrame",
    "MessageFrame",
    "MessageSentFrame",
    "ReadReceiptFrame",
    "ErrorFrame",
    "PingFrame",
    "PongFrame",
]
