"""Application entry point for the messaging gateway."""
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, get_settings
from .database import init_db
from .routers import build_realtime_router, conversations_router
from .services import ChatGateway, MessageStore, SqlMessageStore

logger = logging.getLogger(__name__)


def _cors_origins() -> Iterable[str]:
    cors_origins = os.getenv("CORS_ORIGINS")
    if cors_origins:
        return [origin.strip() for origin in cors_origins.split(",") if origin.strip()]
    return ["*"]


def create_app(settings: Settings | None = None, *, store: MessageStore | None = None) -> FastAPI:
    """Build the FastAPI application and the chat gateway it owns."""

    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            init_db()
        except Exception:  # pragma: no cover - best effort logging
            logger.exception("Database initialisation failed")
            raise

        gateway = ChatGateway(
            store if store is not None else SqlMessageStore(),
            heartbeat_interval=settings.ws_heartbeat_interval,
            close_superseded=settings.ws_close_superseded,
        )
        gateway.start()
        app.state.chat_gateway = gateway
        logger.info(
            "Chat gateway listening on %s (heartbeat every %.0fs)",
            settings.ws_path,
            settings.ws_heartbeat_interval,
        )
        try:
            yield
        finally:
            await gateway.shutdown()
            logger.info("Chat gateway stopped")

    app = FastAPI(title=settings.app_name, version=settings.api_version, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(_cors_origins()),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(conversations_router)
    app.include_router(build_realtime_router(settings.ws_path))

    @app.get("/health", tags=["system"])
    async def healthcheck(request: Request) -> dict[str, str | int]:
        gateway: ChatGateway = request.app.state.chat_gateway
        return {
            "service": settings.app_name,
            "version": settings.api_version,
            "open_sockets": len(gateway.connections()),
            "authenticated_users": len(gateway.registry),
        }

    return app


app = create_app()
