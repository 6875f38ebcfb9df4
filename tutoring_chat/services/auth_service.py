"""Resolve the calling user for the REST endpoints.

Session mechanics belong to the marketplace's auth layer. This dependency
trusts an ``X-User-Id`` header set by that layer and only checks that the user
exists; deployments override it through ``app.dependency_overrides``.
"""
from __future__ import annotations

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import User
from .conversation_service import get_user


async def get_current_user(
    x_user_id: int | None = Header(default=None, alias="X-User-Id"),
    db: Session = Depends(get_session),
) -> User:
    if x_user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    user = get_user(db, x_user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown user")
    return user


__all__ = ["get_current_user"]
