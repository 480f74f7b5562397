"""FastAPI application setup."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from ..app import Application
from ..capture import CaptureMiddleware
from .routes import create_control_router, create_observability_router, create_payments_router


def create_fastapi_app(application: Application | None = None) -> FastAPI:
    """Create and configure FastAPI application."""
    application = application or Application()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage application lifespan."""
        await application.start()
        yield
        await application.stop()

    fastapi_app = FastAPI(
        title="Synthetic Traffic API",
        description="Simulated payments service with correlated logs and traces",
        version="0.1.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CaptureMiddleware,
        emitter=application.emitter,
        timeout_seconds=application.settings.capture_timeout_seconds,
    )

    fastapi_app.include_router(create_payments_router(application))
    fastapi_app.include_router(create_observability_router(application))
    fastapi_app.include_router(create_control_router(application))

    @fastapi_app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    return fastapi_app
