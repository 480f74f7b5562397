"""Records handed to the log and span sinks."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

SPAN_STATUS_OK = "OK"
SPAN_STATUS_ERROR = "ERROR"


@dataclass
class InteractionRecord:
    """Summary record of one completed transaction."""

    request_id: str
    tenant_id: str
    channel: str  # "inbound", "in_process" or "client"
    method: str
    uri: str
    request_body: str
    status: int
    response_body: str
    took_ms: int
    level: str
    message: str
    timestamp: datetime

    def fields(self) -> dict[str, Any]:
        """Structured fields attached to the summary log record."""
        return {
            "requestId": self.request_id,
            "tenantId": self.tenant_id,
            "request.method": self.method,
            "request.uri": self.uri,
            "request.body": self.request_body,
            "response.status": self.status,
            "response.body": self.response_body,
            "response.took": self.took_ms,
        }


@dataclass
class SpanRecord:
    """One node of a transaction's span tree."""

    span_id: str
    request_id: str
    name: str
    parent_id: str | None
    attributes: dict[str, Any] = field(default_factory=dict)
    status: str = SPAN_STATUS_OK
    status_message: str | None = None
    start_offset_ms: int = 0
    duration_ms: int = 0

    @property
    def is_root(self) -> bool:
        return self.parent_id is None
