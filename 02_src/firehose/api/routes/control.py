"""Control API routes."""

from pydantic import BaseModel
from fastapi import APIRouter, HTTPException

from ...app import IApplication


class StatusResponse(BaseModel):
    """Response model for status."""

    status: str


def create_control_router(app: IApplication) -> APIRouter:
    """Create control router."""
    router = APIRouter(prefix="/api/control", tags=["control"])

    @router.post("/start", response_model=StatusResponse)
    async def start_monitoring() -> dict:
        """Request monitoring start. Clears a previous manual stop."""
        try:
            await app.coordinator.request_start()
            return {"status": "ok"}
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.post("/stop", response_model=StatusResponse)
    async def stop_monitoring() -> dict:
        """Request monitoring stop. Suppresses auto-start until the next start."""
        try:
            await app.coordinator.request_stop()
            return {"status": "ok"}
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    return router
