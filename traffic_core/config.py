"""Project-level configuration, path helpers and runtime settings."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Union

from .catalog import DEFAULT_ENDPOINTS, DEFAULT_TENANTS
from .errors import ConfigurationError
from .handler.policy import DEFAULT_PHASE_POLICIES, PhasePolicy
from .models import EndpointAction
from .storage.storage import IN_MEMORY_DB

PROJECT_ROOT = Path(__file__).resolve().parent.parent
LOGS_DIR = PROJECT_ROOT / "logs"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"

TRANSPORT_IN_PROCESS = "in_process"
TRANSPORT_HTTP = "http"
TRACE_EXPORTERS = ("none", "console", "otlp")

PathLike = Union[str, Path]

__all__ = ["ConfigurationError", "Settings", "resolve_db_path"]


def resolve_db_path(env_value: PathLike | None = None) -> PathLike:
    """Resolve DATABASE_URL; records stay in memory unless a file is named."""
    if not env_value or str(env_value) == IN_MEMORY_DB:
        return IN_MEMORY_DB

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def _split(value: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in value.split(",") if item.strip())


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _as_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}") from None


def _as_float(env: Mapping[str, str], key: str) -> float | None:
    raw = env.get(key)
    if raw is None or raw == "":
        return None
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be a number, got {raw!r}") from None


@dataclass
class Settings:
    """Runtime settings for the simulator and its HTTP surface."""

    tick_interval_ms: int = 200
    serialize_ticks: bool = False
    autostart: bool = True
    tenants: tuple[str, ...] = DEFAULT_TENANTS
    endpoints: tuple[EndpointAction, ...] = DEFAULT_ENDPOINTS
    latency_min_ms: int | None = None
    latency_max_ms: int | None = None
    failure_probabilities: dict[str, float] = field(default_factory=dict)
    transport: str = TRANSPORT_IN_PROCESS
    drain_timeout_seconds: float | None = 5.0
    capture_timeout_seconds: float | None = None
    seed: int | None = None
    api_host: str = "localhost"
    api_port: int = 8080
    db_path: PathLike = IN_MEMORY_DB
    log_level: str = "INFO"
    log_file: str | None = None
    trace_exporter: str = "none"
    service_name: str = "synthetic-traffic"
    otlp_endpoint: str | None = None

    @property
    def api_url(self) -> str:
        return f"http://{self.api_host}:{self.api_port}"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables (defaults for anything unset)."""
        if env is None:
            env = os.environ

        defaults = cls()
        endpoints = defaults.endpoints
        if env.get("SIM_ENDPOINTS"):
            endpoints = tuple(EndpointAction.parse(spec) for spec in _split(env["SIM_ENDPOINTS"]))

        failure_probabilities = {}
        for key, raw in env.items():
            if key.startswith("SIM_FAILURE_") and raw != "":
                phase = key[len("SIM_FAILURE_"):].lower()
                failure_probabilities[phase] = _as_float(env, key)

        drain = _as_float(env, "SIM_DRAIN_TIMEOUT_SECONDS")
        seed = env.get("SIM_SEED")

        return cls(
            tick_interval_ms=_as_int(env, "SIM_TICK_INTERVAL_MS", defaults.tick_interval_ms),
            serialize_ticks=_as_bool(env.get("SIM_SERIALIZE_TICKS", "false")),
            autostart=_as_bool(env.get("SIM_AUTOSTART", "true")),
            tenants=_split(env["SIM_TENANTS"]) if "SIM_TENANTS" in env else defaults.tenants,
            endpoints=endpoints,
            latency_min_ms=_as_int(env, "SIM_LATENCY_MIN_MS", None),
            latency_max_ms=_as_int(env, "SIM_LATENCY_MAX_MS", None),
            failure_probabilities=failure_probabilities,
            transport=env.get("SIM_TRANSPORT", defaults.transport).lower(),
            drain_timeout_seconds=drain if drain is not None else defaults.drain_timeout_seconds,
            capture_timeout_seconds=_as_float(env, "CAPTURE_TIMEOUT_SECONDS"),
            seed=int(seed) if seed else None,
            api_host=env.get("API_HOST", defaults.api_host),
            api_port=_as_int(env, "API_PORT", defaults.api_port),
            db_path=resolve_db_path(env.get("DATABASE_URL")),
            log_level=env.get("LOG_LEVEL", defaults.log_level),
            log_file=env.get("LOG_FILE") or None,
            trace_exporter=env.get("TRACE_EXPORTER", defaults.trace_exporter).lower(),
            service_name=env.get("OTEL_SERVICE_NAME", defaults.service_name),
            otlp_endpoint=env.get("OTEL_EXPORTER_OTLP_ENDPOINT") or None,
        )

    def phase_policies(self) -> dict[str, PhasePolicy]:
        """Default phase policies with latency and failure overrides applied."""
        policies = dict(DEFAULT_PHASE_POLICIES)
        for name, policy in policies.items():
            min_ms = policy.min_ms if self.latency_min_ms is None else self.latency_min_ms
            max_ms = policy.max_ms if self.latency_max_ms is None else self.latency_max_ms
            policies[name] = policy.with_latency(min_ms, max_ms)

        for name, probability in self.failure_probabilities.items():
            if name not in policies:
                raise ConfigurationError(f"Unknown phase in failure override: {name!r}")
            policies[name] = policies[name].with_failure_probability(probability)
        return policies

    def validate(self) -> None:
        """Fail fast on settings the scheduler cannot run with."""
        if self.tick_interval_ms <= 0:
            raise ConfigurationError(
                f"Tick interval must be positive, got {self.tick_interval_ms} ms"
            )
        if not self.endpoints:
            raise ConfigurationError("Endpoint catalog must not be empty")
        if not self.tenants:
            raise ConfigurationError("Tenant set must not be empty")
        if self.transport not in (TRANSPORT_IN_PROCESS, TRANSPORT_HTTP):
            raise ConfigurationError(f"Unknown transport: {self.transport!r}")
        if self.trace_exporter not in TRACE_EXPORTERS:
            raise ConfigurationError(f"Unknown trace exporter: {self.trace_exporter!r}")
        if self.drain_timeout_seconds is not None and self.drain_timeout_seconds < 0:
            raise ConfigurationError("Drain timeout must not be negative")
        if self.capture_timeout_seconds is not None and self.capture_timeout_seconds <= 0:
            raise ConfigurationError("Capture timeout must be positive")
        for name, policy in self.phase_policies().items():
            policy.validate(name)
