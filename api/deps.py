"""Shared FastAPI dependencies."""
from typing import Optional
from uuid import UUID

from fastapi import Header, HTTPException, status

from db.connection import get_session

__all__ = ["get_session", "get_user_id", "not_found"]


async def get_user_id(x_user_id: Optional[str] = Header(default=None)) -> UUID:
    """The caller's user id from the X-User-Id header. Missing or malformed → 401."""
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="X-User-Id header is required")
    try:
        return UUID(x_user_id)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="X-User-Id must be a UUID")


def not_found(kind: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{kind} not found")
