"""Schemas describing marketplace users."""
from __future__ import annotations

from datetime import datetime

from .base import CamelModel


class UserResponse(CamelModel):
    id: int
    username: str
    full_name: str | None = None
    role: str
    created_at: datetime | None = None


__all__ = ["UserResponse"]
