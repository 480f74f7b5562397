"""Transport boundary module."""

from .transport import (
    HttpTransport,
    ITransport,
    OutboundRequest,
    TransportError,
    TransportResponse,
)

__all__ = [
    "HttpTransport",
    "ITransport",
    "OutboundRequest",
    "TransportError",
    "TransportResponse",
]
