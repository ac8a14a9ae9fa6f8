"""Auth API routes."""

from fastapi import APIRouter, Depends

from ...app import IApplication
from ..deps import current_user_id


def create_auth_router(app: IApplication) -> APIRouter:
    """Create auth router."""
    router = APIRouter(prefix="/api/auth", tags=["auth"])

    @router.get("/me")
    async def me(user_id: str = Depends(current_user_id)) -> dict:
        """Who is calling."""
        return {"user": {"_id": user_id}}

    return router
