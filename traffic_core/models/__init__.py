"""Core data models for the traffic simulator."""

from .context import (
    REQUEST_ID_HEADER,
    TENANT_ID_HEADER,
    AttributeValue,
    CorrelationContext,
    Phase,
    PhaseOutcome,
    new_request_id,
)
from .endpoints import ID_PLACEHOLDER, EndpointAction, HttpMethod
from .records import SPAN_STATUS_ERROR, SPAN_STATUS_OK, InteractionRecord, SpanRecord

__all__ = [
    # Endpoints
    "EndpointAction",
    "HttpMethod",
    "ID_PLACEHOLDER",
    # Context
    "CorrelationContext",
    "Phase",
    "PhaseOutcome",
    "AttributeValue",
    "REQUEST_ID_HEADER",
    "TENANT_ID_HEADER",
    "new_request_id",
    # Records
    "InteractionRecord",
    "SpanRecord",
    "SPAN_STATUS_OK",
    "SPAN_STATUS_ERROR",
]
