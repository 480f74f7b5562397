"""OpenTelemetry tracer provider setup."""

from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.trace import Tracer

from .errors import ConfigurationError
from .logging_config import get_logger

logger = get_logger(__name__)

TRACER_NAME = "synthetic-traffic"


def setup_tracing(
    service_name: str = "synthetic-traffic",
    exporter: str = "none",
    otlp_endpoint: str | None = None,
) -> TracerProvider:
    """
    Build a tracer provider for the simulator.

    Args:
        service_name: Value of the ``service.name`` resource attribute.
        exporter: ``none`` (spans are created but not exported), ``console`` or ``otlp``.
        otlp_endpoint: Collector endpoint for the OTLP exporter.

    Returns:
        The configured provider. It is not installed globally; callers pass
        tracers from it explicitly.
    """
    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))

    if exporter == "console":
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    elif exporter == "otlp":
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True))
        )
    elif exporter != "none":
        raise ConfigurationError(f"Unknown trace exporter: {exporter!r}")

    logger.info("Tracing configured: service=%s exporter=%s", service_name, exporter)
    return provider


def get_tracer(provider: TracerProvider) -> Tracer:
    """Tracer used for transaction span trees."""
    return provider.get_tracer(TRACER_NAME)
