"""Synthetic traffic and telemetry-correlation core."""

from .app import Application, IApplication
from .capture import CaptureMiddleware
from .catalog import DEFAULT_ENDPOINTS, DEFAULT_TENANTS, EndpointCatalog
from .config import Settings
from .emitter import EventEmitter, build_span_tree
from .errors import ConfigurationError
from .generator import TrafficGenerator
from .handler import PHASE_PLANS, PhasePolicy, SimulatedHandler
from .models import (
    CorrelationContext,
    EndpointAction,
    HttpMethod,
    InteractionRecord,
    Phase,
    PhaseOutcome,
    SpanRecord,
)
from .randomness import IRandomSource, RandomSource
from .storage import IStorage, Storage
from .transport import HttpTransport, ITransport, OutboundRequest, TransportError, TransportResponse

__all__ = [
    # Application
    "Application",
    "IApplication",
    "Settings",
    "ConfigurationError",
    # Models
    "CorrelationContext",
    "EndpointAction",
    "HttpMethod",
    "Phase",
    "PhaseOutcome",
    "InteractionRecord",
    "SpanRecord",
    # Components
    "DEFAULT_ENDPOINTS",
    "DEFAULT_TENANTS",
    "EndpointCatalog",
    "IRandomSource",
    "RandomSource",
    "PHASE_PLANS",
    "PhasePolicy",
    "SimulatedHandler",
    "EventEmitter",
    "build_span_tree",
    "TrafficGenerator",
    "CaptureMiddleware",
    "IStorage",
    "Storage",
    "ITransport",
    "HttpTransport",
    "OutboundRequest",
    "TransportError",
    "TransportResponse",
]
