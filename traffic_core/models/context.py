"""Per-transaction correlation context."""

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Union

REQUEST_ID_HEADER = "X-Request-Id"
TENANT_ID_HEADER = "X-Tenant-Id"

AttributeValue = Union[str, int, float, bool]


def new_request_id() -> str:
    """Generate a fresh request id."""
    return str(uuid.uuid4())


class PhaseOutcome(str, Enum):
    """Outcome of a single simulated work phase."""

    OK = "ok"
    ERROR = "error"


@dataclass(frozen=True)
class Phase:
    """One named unit of simulated work inside a transaction."""

    name: str
    start_offset_ms: int
    duration_ms: int
    attributes: dict[str, AttributeValue] = field(default_factory=dict)
    outcome: PhaseOutcome = PhaseOutcome.OK
    error_message: str | None = None

    @property
    def failed(self) -> bool:
        return self.outcome is PhaseOutcome.ERROR


@dataclass
class CorrelationContext:
    """
    Identity and accumulated facts of one transaction.

    Created once per transaction and passed explicitly to every component
    that needs the request or tenant id. Phases are append-only and the
    final status is set exactly once.
    """

    request_id: str
    tenant_id: str
    method: str
    resolved_uri: str
    request_body: str = ""
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    start_monotonic: float = field(default_factory=time.monotonic)
    start_time_ns: int = field(default_factory=time.time_ns)
    final_status: int | None = None
    response_body: str | None = None
    _phases: list[Phase] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.request_id:
            raise ValueError("request_id must not be empty")
        if self.tenant_id is None:
            raise ValueError("tenant_id must be explicit; use '' for no tenant")

    @classmethod
    def generated(
        cls,
        method: str,
        uri: str,
        tenant_id: str,
        request_body: str = "",
        request_id: str | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> "CorrelationContext":
        """Create a context for a self-generated transaction."""
        return cls(
            request_id=request_id or new_request_id(),
            tenant_id=tenant_id,
            method=method,
            resolved_uri=uri,
            request_body=request_body,
            start_monotonic=clock(),
        )

    @classmethod
    def inbound(
        cls,
        method: str,
        uri: str,
        request_id_header: str | None,
        tenant_id_header: str | None,
        clock: Callable[[], float] = time.monotonic,
        id_factory: Callable[[], str] = new_request_id,
    ) -> "CorrelationContext":
        """Create a context from inbound request metadata."""
        return cls(
            request_id=request_id_header or id_factory(),
            tenant_id=tenant_id_header or "",
            method=method,
            resolved_uri=uri,
            start_monotonic=clock(),
        )

    @property
    def phases(self) -> tuple[Phase, ...]:
        return tuple(self._phases)

    @property
    def completed(self) -> bool:
        return self.final_status is not None

    @property
    def failed_phase(self) -> Phase | None:
        """First phase that signalled an error, if any."""
        for phase in self._phases:
            if phase.failed:
                return phase
        return None

    @property
    def phase_duration_ms(self) -> int:
        return sum(phase.duration_ms for phase in self._phases)

    def add_phase(self, phase: Phase) -> None:
        """Append a phase record."""
        if self.completed:
            raise RuntimeError(
                f"Transaction {self.request_id} already completed; cannot add phase {phase.name}"
            )
        self._phases.append(phase)

    def complete(self, status: int, body: str) -> None:
        """Record the final status and response body."""
        if self.completed:
            raise RuntimeError(f"Transaction {self.request_id} already completed")
        self.final_status = status
        self.response_body = body
