"""Simulated payments API routes."""

from fastapi import APIRouter, Request, Response

from ...app import Application
from ...capture import get_correlation
from ...emitter import CHANNEL_INBOUND
from ...models import (
    REQUEST_ID_HEADER,
    TENANT_ID_HEADER,
    CorrelationContext,
    EndpointAction,
    HttpMethod,
)

ITEM_PATH = "/api/payments/{id}"
COLLECTION_PATH = "/api/payments"


def create_payments_router(app: Application) -> APIRouter:
    """Create router serving the simulated handler over HTTP."""
    router = APIRouter(prefix=COLLECTION_PATH, tags=["payments"])

    async def serve(request: Request, action: EndpointAction, resource_id: str | None = None) -> Response:
        ctx = get_correlation(request.scope)
        captured = ctx is not None
        if ctx is None:
            ctx = CorrelationContext.inbound(
                method=request.method,
                uri=request.url.path,
                request_id_header=request.headers.get(REQUEST_ID_HEADER),
                tenant_id_header=request.headers.get(TENANT_ID_HEADER),
            )

        if action.requires_body:
            ctx.request_body = (await request.body()).decode("utf-8", errors="replace")

        await app.handler.handle(ctx, action, resource_id)

        if not captured:
            await app.emitter.emit(ctx, CHANNEL_INBOUND)

        return Response(
            content=ctx.response_body,
            status_code=ctx.final_status,
            media_type="application/json",
        )

    @router.get("")
    async def list_payments(request: Request) -> Response:
        """List payments."""
        return await serve(request, EndpointAction(HttpMethod.GET, COLLECTION_PATH))

    @router.get("/{id}")
    async def get_payment(id: str, request: Request) -> Response:
        """Fetch one payment."""
        return await serve(request, EndpointAction(HttpMethod.GET, ITEM_PATH), id)

    @router.post("")
    async def create_payment(request: Request) -> Response:
        """Create a payment."""
        return await serve(
            request, EndpointAction(HttpMethod.POST, COLLECTION_PATH, requires_body=True)
        )

    @router.put("/{id}")
    async def update_payment(id: str, request: Request) -> Response:
        """Update a payment."""
        return await serve(
            request, EndpointAction(HttpMethod.PUT, ITEM_PATH, requires_body=True), id
        )

    @router.delete("/{id}")
    async def delete_payment(id: str, request: Request) -> Response:
        """Delete a payment."""
        return await serve(request, EndpointAction(HttpMethod.DELETE, ITEM_PATH), id)

    return router
