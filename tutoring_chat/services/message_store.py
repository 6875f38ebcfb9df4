"""Async message store consumed by the realtime gateway.

The gateway only ever awaits these calls; the SQL implementation runs the
synchronous SQLAlchemy helpers in a worker thread with one session per call
and hands back detached Pydantic snapshots.
"""
from __future__ import annotations

import asyncio
from typing import Callable, Protocol

from sqlalchemy.orm import Session

from ..database import create_session
from ..models import MessageStatus
from ..schemas import MessageResponse
from . import message_service


class MessageStore(Protocol):
    async def create_message(
        self,
        conversation_id: int,
        sender_id: int,
        receiver_id: int,
        content: str,
        status: MessageStatus = MessageStatus.SENT,
    ) -> MessageResponse: ...

    async def get_message(self, message_id: int) -> MessageResponse | None: ...

    async def update_message_status(self, message_id: int, status: MessageStatus) -> MessageResponse | None: ...


class SqlMessageStore:
    """:class:`MessageStore` backed by the application's SQLAlchemy sessions."""

    def __init__(self, session_factory: Callable[[], Session] = create_session) -> None:
        self._session_factory = session_factory

    async def create_message(
        self,
        conversation_id: int,
        sender_id: int,
        receiver_id: int,
        content: str,
        status: MessageStatus = MessageStatus.SENT,
    ) -> MessageResponse:
        return await asyncio.to_thread(
            self._create_message,
            conversation_id=conversation_id,
            sender_id=sender_id,
            receiver_id=receiver_id,
            content=content,
            status=status,
        )

    async def get_message(self, message_id: int) -> MessageResponse | None:
        return await asyncio.to_thread(self._get_message, message_id)

    async def update_message_status(self, message_id: int, status: MessageStatus) -> MessageResponse | None:
        return await asyncio.to_thread(self._update_message_status, message_id, status)

    def _create_message(self, **fields) -> MessageResponse:
        with self._session_factory() as db:
            message = message_service.create_message(db, **fields)
            return MessageResponse.model_validate(message)

    def _get_message(self, message_id: int) -> MessageResponse | None:
        with self._session_factory() as db:
            message = message_service.get_message(db, message_id)
            return MessageResponse.model_validate(message) if message is not None else None

    def _update_message_status(self, message_id: int, status: MessageStatus) -> MessageResponse | None:
        with self._session_factory() as db:
            message = message_service.update_message_status(db, message_id, status)
            return MessageResponse.model_validate(message) if message is not None else None


__all__ = ["MessageStore", "SqlMessageStore"]
