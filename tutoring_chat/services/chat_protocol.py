"""Frame handling for the realtime chat socket.

Each connection starts unauthenticated and only an ``auth`` frame moves it
forward. Once authenticated it may send ``message`` and ``read_receipt``
frames. Every failure while handling a frame is reported back to the
offending connection as an ``error`` frame; nothing propagates to the
gateway and the socket stays open.
"""
from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from ..models import MessageStatus
from ..schemas import (
    AuthFrame,
    ChatMessageFrame,
    ErrorFrame,
    MessageFrame,
    MessageResponse,
    MessageSentFrame,
    PongFrame,
    ReadReceiptFrame,
    ReadReceiptRequestFrame,
)
from ..schemas.base import CamelModel
from .connection_registry import TRANSPORT_ERRORS, ClientConnection, ConnectionRegistry
from .message_service import MessageStoreError
from .message_store import MessageStore

logger = logging.getLogger(__name__)

AUTHENTICATION_REQUIRED = "Authentication required"
INVALID_MESSAGE_DATA = "Invalid message data"
INVALID_READ_RECEIPT_DATA = "Invalid read receipt data"
INVALID_MESSAGE_FORMAT = "Invalid message format"

# Close code sent to a socket displaced by a newer login of the same user.
SUPERSEDED_CLOSE_CODE = 4000


class MalformedFrameError(ValueError):
    """Raised when an inbound frame is not a JSON object."""


def decode_frame(raw: str | bytes) -> dict[str, Any]:
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedFrameError("Binary frame is not UTF-8 text") from exc
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise MalformedFrameError("Frame is not valid JSON") from exc
    if not isinstance(payload, dict):
        raise MalformedFrameError("Frame must be a JSON object")
    return payload


class ChatProtocolHandler:
    """Dispatch inbound frames for one gateway's connections."""

    def __init__(
        self,
        store: MessageStore,
        registry: ConnectionRegistry,
        *,
        close_superseded: bool = False,
    ) -> None:
        self._store = store
        self._registry = registry
        self._close_superseded = close_superseded

    async def handle_frame(self, connection: ClientConnection, raw: str | bytes) -> None:
        try:
            payload = decode_frame(raw)
            await self._dispatch(connection, payload)
        except MalformedFrameError as exc:
            logger.warning("Rejected malformed frame from %r: %s", connection, exc)
            await self._send(connection, ErrorFrame(message=INVALID_MESSAGE_FORMAT))
        except MessageStoreError:
            logger.exception("Message store failure while handling frame from %r", connection)
            await self._send(connection, ErrorFrame(message=INVALID_MESSAGE_FORMAT))
        except Exception:
            logger.exception("Unexpected error while handling frame from %r", connection)
            await self._send(connection, ErrorFrame(message=INVALID_MESSAGE_FORMAT))

    async def _dispatch(self, connection: ClientConnection, payload: dict[str, Any]) -> None:
        frame_type = payload.get("type")

        # Liveness frames are answered in any state.
        if frame_type == "pong":
            connection.mark_alive()
            return
        if frame_type == "ping":
            await self._send(connection, PongFrame())
            return

        if frame_type == "auth":
            await self._handle_auth(connection, payload)
            return

        if not connection.is_authenticated:
            await self._send(connection, ErrorFrame(message=AUTHENTICATION_REQUIRED))
            return

        if frame_type == "message":
            await self._handle_message(connection, payload)
        elif frame_type == "read_receipt":
            await self._handle_read_receipt(connection, payload)
        else:
            logger.debug("Ignoring unsupported frame type %r from %r", frame_type, connection)

    async def _handle_auth(self, connection: ClientConnection, payload: dict[str, Any]) -> None:
        try:
            frame = AuthFrame.model_validate(payload)
        except ValidationError:
            logger.warning("Ignoring auth frame without a usable userId from %r", connection)
            return

        user_id = frame.user_id
        previous_user = connection.user_id
        if previous_user is not None and previous_user != user_id:
            self._registry.remove_if(previous_user, connection)

        displaced = self._registry.get(user_id)
        self._registry.bind(user_id, connection)
        connection.user_id = user_id
        logger.info("User %s authenticated", user_id)

        if displaced is not None and displaced is not connection:
            logger.info("User %s reconnected; previous socket %r is no longer registered", user_id, displaced)
            if self._close_superseded:
                await displaced.terminate(code=SUPERSEDED_CLOSE_CODE)

    async def _handle_message(self, connection: ClientConnection, payload: dict[str, Any]) -> None:
        try:
            frame = ChatMessageFrame.model_validate(payload)
        except ValidationError:
            await self._send(connection, ErrorFrame(message=INVALID_MESSAGE_DATA))
            return

        message = await self._store.create_message(
            frame.conversation_id,
            connection.user_id,
            frame.receiver_id,
            frame.content,
            MessageStatus.SENT,
        )
        await self.deliver(message)
        await self._send(connection, MessageSentFrame(message_id=message.id))

    async def _handle_read_receipt(self, connection: ClientConnection, payload: dict[str, Any]) -> None:
        try:
            frame = ReadReceiptRequestFrame.model_validate(payload)
        except ValidationError:
            await self._send(connection, ErrorFrame(message=INVALID_READ_RECEIPT_DATA))
            return

        message = await self._store.get_message(frame.message_id)
        if message is None or message.receiver_id != connection.user_id:
            # Unknown or foreign messages are dropped without telling the caller.
            logger.debug("Dropping read receipt for message %s from user %s", frame.message_id, connection.user_id)
            return

        await self._store.update_message_status(message.id, MessageStatus.READ)
        await self.notify_read(message)

    async def deliver(self, message: MessageResponse) -> bool:
        """Push ``message`` to its receiver when online and mark it delivered.

        Returns True when the push went out. The stored status only advances
        after a successful push; failures to record it are logged so the
        sender's acknowledgement still goes out.
        """

        recipient = self._registry.get(message.receiver_id)
        if recipient is None or not recipient.is_open:
            return False

        delivered = message.model_copy(update={"status": MessageStatus.DELIVERED})
        if not await self._send(recipient, MessageFrame(message=delivered)):
            return False

        try:
            await self._store.update_message_status(message.id, MessageStatus.DELIVERED)
        except MessageStoreError:
            logger.exception("Message %s was pushed but could not be marked delivered", message.id)
        return True

    async def notify_read(self, message: MessageResponse) -> bool:
        """Tell the original sender, if online, that ``message`` was read."""

        sender = self._registry.get(message.sender_id)
        if sender is None or not sender.is_open:
            return False
        return await self._send(sender, ReadReceiptFrame(message_id=message.id))

    async def _send(self, connection: ClientConnection, frame: CamelModel) -> bool:
        try:
            await connection.send_frame(frame)
        except TRANSPORT_ERRORS:
            logger.warning("Failed to send %s frame to %r", frame.type, connection)
            return False
        return True


__all__ = [
    "AUTHENTICATION_REQUIRED",
    "INVALID_MESSAGE_DATA",
    "INVALID_READ_RECEIPT_DATA",
    "INVALID_MESSAGE_FORMAT",
    "ChatProtocolHandler",
    "MalformedFrameError",
    "decode_frame",
]
