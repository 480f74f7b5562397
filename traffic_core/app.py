"""Application bootstrap and lifecycle management."""

from typing import Protocol

from opentelemetry.sdk.trace import TracerProvider

from .catalog import EndpointCatalog
from .config import TRANSPORT_HTTP, Settings
from .emitter import EventEmitter
from .generator import TrafficGenerator
from .handler import SimulatedHandler
from .logging_config import get_logger
from .randomness import RandomSource
from .storage import IStorage, Storage
from .tracing_config import get_tracer, setup_tracing
from .transport import HttpTransport, ITransport

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    async def reset(self) -> None:
        """Clear stored records."""
        ...


class Application:
    """Main application bootstrap."""

    def __init__(
        self,
        settings: Settings | None = None,
        tracer_provider: TracerProvider | None = None,
        transport: ITransport | None = None,
    ):
        self._settings = settings or Settings.from_env()
        self._owns_provider = tracer_provider is None
        self._tracer_provider = tracer_provider or setup_tracing(
            service_name=self._settings.service_name,
            exporter=self._settings.trace_exporter,
            otlp_endpoint=self._settings.otlp_endpoint,
        )
        self._rng = RandomSource(self._settings.seed)

        # Storage and emitter exist before start() so the capture boundary can hold them
        self._storage: IStorage = Storage(self._settings.db_path)
        self._emitter = EventEmitter(
            tracer=get_tracer(self._tracer_provider),
            storage=self._storage,
        )
        self._transport = transport

        # Components (will be initialized in start())
        self._catalog: EndpointCatalog | None = None
        self._handler: SimulatedHandler | None = None
        self._generator: TrafficGenerator | None = None
        self._started = False

    async def start(self) -> None:
        """Validate configuration, then initialize components in dependency order."""
        logger.info("Starting application")
        settings = self._settings

        # 1. Configuration, catalog and phase plans (fail fast before any tick)
        settings.validate()
        self._catalog = EndpointCatalog(settings.endpoints, rng=self._rng)
        self._handler = SimulatedHandler(settings.phase_policies(), rng=self._rng)
        self._handler.validate_catalog(self._catalog)

        # 2. Storage (record sink)
        await self._storage.init()
        logger.info("Storage initialized")

        # 3. Transport (only when traffic goes over HTTP)
        if self._transport is None and settings.transport == TRANSPORT_HTTP:
            self._transport = HttpTransport(settings.api_url)

        # 4. Generator (depends on catalog, handler, emitter, transport)
        self._generator = TrafficGenerator(
            catalog=self._catalog,
            handler=self._handler,
            emitter=self._emitter,
            tenants=settings.tenants,
            tick_interval_ms=settings.tick_interval_ms,
            transport=self._transport,
            rng=self._rng,
            serialize_ticks=settings.serialize_ticks,
            drain_timeout=settings.drain_timeout_seconds,
        )
        self._started = True

        if settings.autostart:
            await self._generator.start()
        logger.info("All components initialized successfully")

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        if self._generator:
            await self._generator.stop()
        if self._transport:
            await self._transport.close()
        if self._owns_provider:
            self._tracer_provider.shutdown()
        await self._storage.close()
        self._started = False
        logger.info("Application stopped")

    async def reset(self) -> None:
        """Clear stored records between test runs."""
        await self._storage.clear()
        logger.info("Storage cleared")

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def emitter(self) -> EventEmitter:
        return self._emitter

    @property
    def storage(self) -> IStorage:
        """Get storage instance."""
        if not self._started:
            raise RuntimeError("Application not started")
        return self._storage

    @property
    def catalog(self) -> EndpointCatalog:
        """Get endpoint catalog."""
        if not self._catalog:
            raise RuntimeError("Application not started")
        return self._catalog

    @property
    def handler(self) -> SimulatedHandler:
        """Get simulated handler."""
        if not self._handler:
            raise RuntimeError("Application not started")
        return self._handler

    @property
    def generator(self) -> TrafficGenerator:
        """Get traffic generator."""
        if not self._generator:
            raise RuntimeError("Application not started")
        return self._generator
