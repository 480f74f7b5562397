"""Observability API routes."""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from ...app import Application


class InteractionResponse(BaseModel):
    """Response model for a stored summary record."""

    request_id: str
    tenant_id: str
    channel: str
    level: str
    message: str
    timestamp: datetime
    fields: dict[str, Any]


class SpanResponse(BaseModel):
    """Response model for a stored span."""

    span_id: str
    parent_id: str | None
    name: str
    status: str
    status_message: str | None
    start_offset_ms: int
    duration_ms: int
    attributes: dict[str, Any]


def create_observability_router(app: Application) -> APIRouter:
    """Create observability router."""
    router = APIRouter(prefix="/api/interactions", tags=["observability"])

    @router.get("", response_model=list[InteractionResponse])
    async def get_interactions(
        request_id: str | None = Query(None, description="Filter by request id"),
        tenant_id: str | None = Query(None, description="Filter by tenant id"),
        status: int | None = Query(None, description="Filter by response status"),
        limit: int = Query(100, ge=1, le=1000),
    ) -> list[dict]:
        """Get emitted summary records, newest first."""
        records = await app.storage.get_interactions(
            request_id=request_id,
            tenant_id=tenant_id,
            status=status,
            limit=limit,
        )
        return [
            {
                "request_id": r.request_id,
                "tenant_id": r.tenant_id,
                "channel": r.channel,
                "level": r.level,
                "message": r.message,
                "timestamp": r.timestamp,
                "fields": r.fields(),
            }
            for r in records
        ]

    @router.get("/{request_id}/spans", response_model=list[SpanResponse])
    async def get_spans(request_id: str) -> list[dict]:
        """Get the span tree emitted for a request id."""
        spans = await app.storage.get_spans(request_id)
        if not spans:
            raise HTTPException(status_code=404, detail=f"No spans for {request_id}")
        return [
            {
                "span_id": s.span_id,
                "parent_id": s.parent_id,
                "name": s.name,
                "status": s.status,
                "status_message": s.status_message,
                "start_offset_ms": s.start_offset_ms,
                "duration_ms": s.duration_ms,
                "attributes": s.attributes,
            }
            for s in spans
        ]

    return router
