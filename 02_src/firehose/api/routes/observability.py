"""Observability API routes."""

from pydantic import BaseModel
from fastapi import APIRouter, HTTPException

from ...app import IApplication


class SessionStatusResponse(BaseModel):
    """Response model for the monitoring session status."""

    monitoring_active: bool
    phase: str
    manual_stop: bool
    start_pending: bool
    viewer_count: int
    message: str


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str


def create_observability_router(app: IApplication) -> APIRouter:
    """Create observability router."""
    router = APIRouter(prefix="/api", tags=["observability"])

    @router.get("/health", response_model=HealthResponse)
    async def health() -> dict:
        """Liveness check. Independent of broker state."""
        return {"status": "ok"}

    @router.get("/status", response_model=SessionStatusResponse)
    async def get_status() -> dict:
        """Current monitoring session state."""
        try:
            state = app.coordinator.snapshot()
            return {
                "monitoring_active": state.monitoring_active,
                "phase": state.phase.value,
                "manual_stop": state.manual_stop,
                "start_pending": state.start_pending,
                "viewer_count": state.viewer_count,
                "message": state.status_message(),
            }
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    return router
