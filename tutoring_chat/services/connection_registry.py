"""Bookkeeping for live chat sockets and the users bound to them."""
from __future__ import annotations

import json
import logging

from fastapi import WebSocket, WebSocketDisconnect, status
from starlette.websockets import WebSocketState

from ..schemas import PingFrame
from ..schemas.base import CamelModel

logger = logging.getLogger(__name__)

# Errors raised by Starlette/Uvicorn when writing to a socket the peer already left.
TRANSPORT_ERRORS: tuple[type[BaseException], ...] = (WebSocketDisconnect, RuntimeError, OSError)


class ClientConnection:
    """A single accepted WebSocket and the gateway state attached to it."""

    def __init__(self, websocket: WebSocket) -> None:
        self.websocket = websocket
        self.user_id: int | None = None
        self.is_alive = True

    def __repr__(self) -> str:
        return f"<ClientConnection user={self.user_id} peer={self.websocket.client}>"

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def is_open(self) -> bool:
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    def mark_alive(self) -> None:
        self.is_alive = True

    async def send_frame(self, frame: CamelModel) -> None:
        await self.websocket.send_text(json.dumps(frame.as_payload(), default=str))

    async def ping(self) -> None:
        await self.send_frame(PingFrame())

    async def terminate(self, code: int = status.WS_1001_GOING_AWAY) -> None:
        """Close the socket without waiting on the peer; repeated calls are no-ops."""

        if self.websocket.application_state == WebSocketState.DISCONNECTED:
            return
        try:
            await self.websocket.close(code=code)
        except TRANSPORT_ERRORS:
            logger.debug("Socket for %r was already gone when closing", self)


class ConnectionRegistry:
    """Maps authenticated user ids to their single live connection.

    Pure bookkeeping: the registry never opens or closes sockets. All
    mutations are synchronous so they complete without yielding to the loop.
    """

    def __init__(self) -> None:
        self._entries: dict[int, ClientConnection] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._entries

    def bind(self, user_id: int, connection: ClientConnection) -> None:
        self._entries[user_id] = connection

    def get(self, user_id: int) -> ClientConnection | None:
        return self._entries.get(user_id)

    def remove(self, user_id: int) -> None:
        self._entries.pop(user_id, None)

    def remove_if(self, user_id: int, connection: ClientConnection) -> bool:
        """Remove ``user_id`` only while it still points at ``connection``."""

        if self._entries.get(user_id) is connection:
            del self._entries[user_id]
            return True
        return False

    def clear(self) -> None:
        self._entries.clear()


__all__ = ["ClientConnection", "ConnectionRegistry", "TRANSPORT_ERRORS"]
