"""Aggregate router exports."""
from .conversations import router as conversations_router
from .realtime import build_realtime_router

__all__ = [
    "conversations_router",
    "build_realtime_router",
]
