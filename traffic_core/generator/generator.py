"""Traffic generator: fixed-rate scheduler of synthetic transactions."""

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Protocol, Sequence

from ..catalog import DEFAULT_TENANTS, IEndpointCatalog
from ..emitter import CHANNEL_CLIENT, CHANNEL_IN_PROCESS, IEventEmitter
from ..errors import ConfigurationError
from ..handler import ISimulatedHandler, to_json
from ..logging_config import get_logger
from ..models import CorrelationContext, EndpointAction, new_request_id
from ..randomness import IRandomSource, RandomSource
from ..transport import ITransport, OutboundRequest, TransportError

logger = get_logger(__name__)

TRANSPORT_FAILURE_STATUS = 502
HANDLER_FAILURE_STATUS = 500


@dataclass
class SyntheticCall:
    """One fabricated call: the chosen endpoint, its resource id and its context."""

    action: EndpointAction
    resource_id: str | None
    context: CorrelationContext


class ITrafficGenerator(Protocol):
    """Scheduled driver of synthetic transactions."""

    async def start(self) -> None:
        """Start ticking."""
        ...

    async def stop(self) -> None:
        """Stop ticking and drain in-flight transactions."""
        ...


class TrafficGenerator:
    """Fires one synthetic transaction per tick, each in its own task."""

    def __init__(
        self,
        catalog: IEndpointCatalog,
        handler: ISimulatedHandler,
        emitter: IEventEmitter,
        tenants: Sequence[str] = DEFAULT_TENANTS,
        tick_interval_ms: int = 200,
        transport: ITransport | None = None,
        rng: IRandomSource | None = None,
        serialize_ticks: bool = False,
        drain_timeout: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        id_factory: Callable[[], str] = new_request_id,
    ):
        if not tenants:
            raise ConfigurationError("Tenant set must not be empty")
        if tick_interval_ms <= 0:
            raise ConfigurationError(f"Tick interval must be positive, got {tick_interval_ms} ms")

        self._catalog = catalog
        self._handler = handler
        self._emitter = emitter
        self._tenants = tuple(tenants)
        self._tick_interval_ms = tick_interval_ms
        self._transport = transport
        self._rng = rng or RandomSource()
        self._serialize_ticks = serialize_ticks
        self._drain_timeout = drain_timeout
        self._clock = clock
        self._id_factory = id_factory

        self._running = False
        self._task: asyncio.Task | None = None
        self._stop_event = asyncio.Event()
        self._in_flight: set[asyncio.Task] = set()
        self._started = 0
        self._completed = 0

    @property
    def running(self) -> bool:
        return self._running

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    @property
    def transactions_started(self) -> int:
        return self._started

    @property
    def transactions_completed(self) -> int:
        return self._completed

    def build_call(self, rng: IRandomSource) -> SyntheticCall:
        """Pick an endpoint and tenant and build a self-generated context."""
        action = self._catalog.pick(rng)
        request_id = self._id_factory()
        resource_id = request_id if action.has_placeholder else None
        body = to_json({"data": f"value_{rng.token(4)}"}) if action.requires_body else ""

        context = CorrelationContext.generated(
            method=action.method.value,
            uri=self._catalog.resolve(action, resource_id),
            tenant_id=rng.pick_one(self._tenants),
            request_body=body,
            request_id=request_id,
            clock=self._clock,
        )
        return SyntheticCall(action=action, resource_id=resource_id, context=context)

    async def run_once(self) -> CorrelationContext:
        """Run one full synthetic transaction and emit it."""
        rng = self._rng.spawn()
        call = self.build_call(rng)
        ctx = call.context
        self._started += 1

        if self._transport is None:
            try:
                await self._handler.handle(ctx, call.action, call.resource_id, rng)
            except Exception:
                logger.exception("Handler failed for request %s", ctx.request_id)
                if not ctx.completed:
                    ctx.complete(HANDLER_FAILURE_STATUS, to_json({"error": "handler_error"}))
            await self._emitter.emit(ctx, CHANNEL_IN_PROCESS)
        else:
            try:
                response = await self._transport.send(OutboundRequest.for_context(ctx))
            except TransportError as e:
                logger.debug("Request failed: %s %s - %s", ctx.method, ctx.resolved_uri, e)
                ctx.complete(
                    TRANSPORT_FAILURE_STATUS,
                    to_json({"error": "transport_error", "detail": str(e)}),
                )
            except Exception as e:
                logger.exception("Transport crashed for request %s", ctx.request_id)
                ctx.complete(
                    TRANSPORT_FAILURE_STATUS,
                    to_json({"error": "transport_error", "detail": repr(e)}),
                )
            else:
                ctx.complete(response.status, response.body)
            await self._emitter.emit(ctx, CHANNEL_CLIENT)

        self._completed += 1
        return ctx

    async def start(self) -> None:
        """Start the fixed-rate scheduler."""
        if self._running:
            return

        self._running = True
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run_schedule())
        logger.info(
            "Traffic generator started: tick=%s ms, transport=%s",
            self._tick_interval_ms,
            "in_process" if self._transport is None else "transport",
        )

    async def stop(self) -> None:
        """Stop ticking; in-flight transactions finish and emit before this returns."""
        if not self._running:
            return

        self._running = False
        self._stop_event.set()

        pending = [task for task in (self._task, *self._in_flight) if task is not None]
        if pending:
            _, not_done = await asyncio.wait(pending, timeout=self._drain_timeout)
            if not_done:
                logger.warning("Cancelling %s transactions after drain timeout", len(not_done))
                for task in not_done:
                    task.cancel()
                await asyncio.gather(*not_done, return_exceptions=True)

        self._task = None
        logger.info(
            "Traffic generator stopped: started=%s completed=%s",
            self._started,
            self._completed,
        )

    async def _run_schedule(self) -> None:
        loop = asyncio.get_running_loop()
        interval = self._tick_interval_ms / 1000
        next_tick = loop.time()

        # First tick fires one interval after start, never at start.
        while True:
            next_tick += interval
            delay = next_tick - loop.time()
            if delay < 0:
                # Fell behind; skip missed ticks rather than bursting.
                next_tick = loop.time()
                delay = 0

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass
            if not self._running:
                return

            if self._serialize_ticks:
                await self._run_guarded()
            else:
                task = asyncio.create_task(self._run_guarded())
                self._in_flight.add(task)
                task.add_done_callback(self._in_flight.discard)

    async def _run_guarded(self) -> None:
        try:
            await self.run_once()
        except Exception:
            logger.exception("Synthetic transaction failed")
