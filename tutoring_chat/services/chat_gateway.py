"""Realtime messaging gateway: accepts chat sockets and wires their frames."""
from __future__ import annotations

import logging

from fastapi import WebSocket, WebSocketDisconnect
from starlette.requests import HTTPConnection

from .chat_protocol import ChatProtocolHandler
from .connection_registry import ClientConnection, ConnectionRegistry
from .liveness import DEFAULT_HEARTBEAT_INTERVAL, LivenessMonitor
from .message_store import MessageStore

logger = logging.getLogger(__name__)


class ChatGateway:
    """Owns one registry, the set of open sockets, and the liveness monitor.

    Instances are built at application startup and torn down with
    :meth:`shutdown`; nothing is shared between gateways.
    """

    def __init__(
        self,
        store: MessageStore,
        *,
        registry: ConnectionRegistry | None = None,
        heartbeat_interval: float = DEFAULT_HEARTBEAT_INTERVAL,
        close_superseded: bool = False,
    ) -> None:
        self.store = store
        self.registry = registry if registry is not None else ConnectionRegistry()
        self._connections: set[ClientConnection] = set()
        self.protocol = ChatProtocolHandler(store, self.registry, close_superseded=close_superseded)
        self.monitor = LivenessMonitor(self.connections, self.registry, interval=heartbeat_interval)

    def connections(self) -> list[ClientConnection]:
        return list(self._connections)

    def start(self) -> None:
        self.monitor.start()

    async def shutdown(self) -> None:
        """Stop the liveness timer first, then close every remaining socket."""

        await self.monitor.stop()
        for connection in self.connections():
            await connection.terminate()
        self._connections.clear()
        self.registry.clear()

    async def serve(self, websocket: WebSocket) -> None:
        """Run one socket until it disconnects, handling frames in arrival order."""

        await websocket.accept()
        connection = ClientConnection(websocket)
        self._connections.add(connection)
        logger.info("Chat socket connected from %s", websocket.client)
        try:
            while True:
                try:
                    message = await websocket.receive()
                except WebSocketDisconnect:
                    break
                except Exception:
                    logger.exception("Chat socket receive failed for %r", connection)
                    break

                if message.get("type") == "websocket.disconnect":
                    break
                raw = message.get("text")
                if raw is None:
                    raw = message.get("bytes") or b""

                # Any inbound frame proves the peer is still there.
                connection.mark_alive()
                await self.protocol.handle_frame(connection, raw)
        finally:
            self.discard(connection)

    def discard(self, connection: ClientConnection) -> None:
        self._connections.discard(connection)
        if connection.user_id is not None:
            self.registry.remove_if(connection.user_id, connection)
            logger.info("User %s disconnected", connection.user_id)
        else:
            logger.info("Chat socket disconnected from %s", connection.websocket.client)


def get_chat_gateway(conn: HTTPConnection) -> ChatGateway:
    """FastAPI dependency returning the gateway created at application startup."""

    return conn.app.state.chat_gateway


__all__ = ["ChatGateway", "get_chat_gateway"]
