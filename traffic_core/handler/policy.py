"""Latency and failure injection policy per phase."""

from dataclasses import dataclass, replace

from ..errors import ConfigurationError


@dataclass(frozen=True)
class PhasePolicy:
    """Latency range and failure behaviour of one named phase."""

    min_ms: int = 5
    max_ms: int = 150
    failure_probability: float = 0.0
    failure_status: int = 500
    failure_message: str = "phase_failed"

    def validate(self, name: str = "phase") -> None:
        """Raise ConfigurationError if the policy cannot be sampled."""
        if self.min_ms < 0 or self.max_ms < self.min_ms:
            raise ConfigurationError(
                f"Invalid latency range for {name}: [{self.min_ms}, {self.max_ms}] ms"
            )
        if not 0.0 <= self.failure_probability <= 1.0:
            raise ConfigurationError(
                f"Failure probability for {name} must be within [0, 1], "
                f"got {self.failure_probability}"
            )
        if self.failure_status < 400:
            raise ConfigurationError(
                f"Failure status for {name} must be an error code, got {self.failure_status}"
            )

    def with_latency(self, min_ms: int, max_ms: int) -> "PhasePolicy":
        return replace(self, min_ms=min_ms, max_ms=max_ms)

    def with_failure_probability(self, probability: float) -> "PhasePolicy":
        return replace(self, failure_probability=probability)


DEFAULT_PHASE_POLICIES: dict[str, PhasePolicy] = {
    "query": PhasePolicy(failure_probability=0.1, failure_message="query_error"),
    "lookup": PhasePolicy(
        failure_probability=0.2,
        failure_status=404,
        failure_message="payment_not_found",
    ),
    "enrich": PhasePolicy(failure_message="enrich_error"),
    "validate": PhasePolicy(failure_message="validation_error"),
    "process": PhasePolicy(failure_probability=0.2, failure_message="processor_error"),
    "update": PhasePolicy(failure_probability=0.1, failure_message="update_error"),
    "delete": PhasePolicy(failure_probability=0.1, failure_message="delete_error"),
}
