"""Shared route dependencies."""

from fastapi import Header, HTTPException

from ..errors import (
    AccessDeniedError,
    RoomLockedError,
    RoomNotFoundError,
    ValidationError,
    WorkroomError,
)


async def current_user_id(
    x_user_id: str | None = Header(None, alias="X-User-Id"),
) -> str:
    """Opaque caller identity; sessions live outside this service."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return x_user_id


def http_error(e: WorkroomError) -> HTTPException:
    """Map a domain error to an HTTP error."""
    if isinstance(e, RoomNotFoundError):
        return HTTPException(status_code=404, detail="Workroom not found")
    if isinstance(e, AccessDeniedError):
        return HTTPException(status_code=403, detail=str(e))
    if isinstance(e, RoomLockedError):
        return HTTPException(status_code=409, detail="Chat is finalized")
    if isinstance(e, ValidationError):
        return HTTPException(status_code=400, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))
