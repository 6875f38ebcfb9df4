"""WebSocket endpoint for the realtime chat gateway."""
from __future__ import annotations

from fastapi import APIRouter, WebSocket

from ..services.chat_gateway import get_chat_gateway


async def chat_socket(websocket: WebSocket) -> None:
    """Hand the socket to the gateway owned by the running application."""

    await get_chat_gateway(websocket).serve(websocket)


def build_realtime_router(path: str = "/ws") -> APIRouter:
    router = APIRouter()
    router.add_api_websocket_route(path, chat_socket)
    return router


__all__ = ["build_realtime_router", "chat_socket"]
