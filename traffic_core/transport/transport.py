"""Outbound transport boundary used by the traffic generator."""

from dataclasses import dataclass, field
from typing import Protocol

import httpx

from ..models import REQUEST_ID_HEADER, TENANT_ID_HEADER, CorrelationContext

CONTENT_TYPE_JSON = "application/json"
BODY_METHODS = ("POST", "PUT")


class TransportError(Exception):
    """An outbound call could not complete."""


@dataclass
class OutboundRequest:
    """Transport-neutral description of an outbound call."""

    method: str
    uri: str
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""

    @classmethod
    def for_context(cls, ctx: CorrelationContext) -> "OutboundRequest":
        """Outbound call carrying the context's correlation headers."""
        return cls(
            method=ctx.method,
            uri=ctx.resolved_uri,
            headers={
                REQUEST_ID_HEADER: ctx.request_id,
                TENANT_ID_HEADER: ctx.tenant_id,
                "Content-Type": CONTENT_TYPE_JSON,
            },
            body=ctx.request_body,
        )


@dataclass
class TransportResponse:
    """Status and body returned by the transport."""

    status: int
    body: str


class ITransport(Protocol):
    """Sends outbound calls; serialization and pooling live behind it."""

    async def send(self, request: OutboundRequest) -> TransportResponse:
        """Send a request and return the response."""
        ...

    async def close(self) -> None:
        """Release connections."""
        ...


class HttpTransport:
    """httpx-backed transport against the simulated service."""

    def __init__(
        self,
        base_url: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ):
        self._base_url = base_url
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def send(self, request: OutboundRequest) -> TransportResponse:
        """Send a request; connection-level failures raise TransportError."""
        content = request.body.encode("utf-8") if request.method in BODY_METHODS else None
        try:
            response = await self._client.request(
                request.method,
                request.uri,
                headers=request.headers,
                content=content,
            )
        except httpx.HTTPError as e:
            raise TransportError(f"{request.method} {request.uri} failed: {e}") from e

        return TransportResponse(status=response.status_code, body=response.text)

    async def close(self) -> None:
        """Close the client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()
