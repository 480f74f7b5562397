"""Control API routes."""

from fastapi import APIRouter
from pydantic import BaseModel

from ...app import Application


class StatusResponse(BaseModel):
    """Response model for status."""

    status: str


class SimStatusResponse(BaseModel):
    """Response model for generator status."""

    running: bool
    in_flight: int
    transactions_started: int
    transactions_completed: int
    tick_interval_ms: int


def create_control_router(app: Application) -> APIRouter:
    """Create control router."""
    router = APIRouter(prefix="/api/control", tags=["control"])

    @router.post("/reset", response_model=StatusResponse)
    async def reset_system() -> dict:
        """Clear stored records."""
        await app.reset()
        return {"status": "ok"}

    @router.post("/sim/start", response_model=StatusResponse)
    async def start_sim() -> dict:
        """Start the traffic generator."""
        await app.generator.start()
        return {"status": "ok"}

    @router.post("/sim/stop", response_model=StatusResponse)
    async def stop_sim() -> dict:
        """Stop the traffic generator, draining in-flight transactions."""
        await app.generator.stop()
        return {"status": "ok"}

    @router.get("/sim/status", response_model=SimStatusResponse)
    async def sim_status() -> dict:
        """Report generator state."""
        generator = app.generator
        return {
            "running": generator.running,
            "in_flight": generator.in_flight,
            "transactions_started": generator.transactions_started,
            "transactions_completed": generator.transactions_completed,
            "tick_interval_ms": app.settings.tick_interval_ms,
        }

    return router
