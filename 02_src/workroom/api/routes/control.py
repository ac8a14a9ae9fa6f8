"""Control API routes for local runs."""

from typing import Any

from pydantic import BaseModel
from fastapi import APIRouter, HTTPException

from ...app import IApplication


class StatusResponse(BaseModel):
    """Response model for status."""

    status: str


class PurgeResponse(StatusResponse):
    purged: int


def create_control_router(app: IApplication, sim: Any = None) -> APIRouter:
    """Create control router. `sim` is anything with async start()/stop()."""
    router = APIRouter(prefix="/api/control", tags=["control"])

    @router.post("/reset", response_model=StatusResponse)
    async def reset_system() -> dict:
        """Drop all rooms and messages."""
        await app.reset()
        return {"status": "ok"}

    @router.post("/purge", response_model=PurgeResponse)
    async def purge_expired() -> dict:
        """Run the retention sweep now."""
        purged = await app.service.purge_expired()
        return {"status": "ok", "purged": purged}

    @router.post("/sim/start", response_model=StatusResponse)
    async def start_sim() -> dict:
        """Start the scripted two-party scenario."""
        if sim is None:
            raise HTTPException(status_code=404, detail="SIM not configured")
        await sim.start()
        return {"status": "ok"}

    @router.post("/sim/stop", response_model=StatusResponse)
    async def stop_sim() -> dict:
        """Stop the scripted scenario."""
        if sim is None:
            raise HTTPException(status_code=404, detail="SIM not configured")
        await sim.stop()
        return {"status": "ok"}

    return router
