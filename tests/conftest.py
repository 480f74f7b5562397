"""Pytest configuration and fixtures."""

import asyncio
import sys
from pathlib import Path

import pytest
import pytest_asyncio
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))


class FakeClock:
    """Monotonic clock that only advances when a simulated phase sleeps."""

    def __init__(self, start: float = 100.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock():
    """Clock shared by handler, emitter and contexts."""
    return FakeClock()


@pytest.fixture
def rng():
    """Seeded random source."""
    from traffic_core.randomness import RandomSource

    return RandomSource(seed=1234)


@pytest_asyncio.fixture
async def storage():
    """Create in-memory storage for testing."""
    from traffic_core.storage import Storage

    st = Storage(":memory:")
    await st.init()
    yield st
    await st.close()


@pytest.fixture
def span_exporter():
    """In-memory span exporter."""
    return InMemorySpanExporter()


@pytest.fixture
def tracer_provider(span_exporter):
    """Tracer provider exporting synchronously to memory."""
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    yield provider
    provider.shutdown()


@pytest.fixture
def tracer(tracer_provider):
    from traffic_core.tracing_config import get_tracer

    return get_tracer(tracer_provider)


@pytest.fixture
def policies():
    """Deterministic phase policies: fixed latency, no failures."""
    from traffic_core.handler import DEFAULT_PHASE_POLICIES

    return {
        name: policy.with_latency(10, 10).with_failure_probability(0.0)
        for name, policy in DEFAULT_PHASE_POLICIES.items()
    }


@pytest.fixture
def make_handler(fake_clock, rng):
    """Factory for handlers running on the fake clock."""
    from traffic_core.handler import SimulatedHandler

    def factory(policies=None, **kwargs):
        return SimulatedHandler(
            policies=policies,
            sleep=fake_clock.sleep,
            clock=fake_clock,
            rng=rng,
            **kwargs,
        )

    return factory


@pytest.fixture
def handler(make_handler, policies):
    """Handler that never fails."""
    return make_handler(policies)


@pytest.fixture
def emitter(tracer, storage, fake_clock):
    """Emitter wired to the in-memory tracer and storage."""
    from traffic_core.emitter import EventEmitter

    return EventEmitter(tracer=tracer, storage=storage, clock=fake_clock)


@pytest.fixture
def make_context(fake_clock):
    """Factory for self-generated contexts on the fake clock."""
    from traffic_core.models import CorrelationContext

    def factory(method="GET", uri="/api/payments/abc", tenant_id="tenant1", **kwargs):
        return CorrelationContext.generated(
            method=method,
            uri=uri,
            tenant_id=tenant_id,
            clock=fake_clock,
            **kwargs,
        )

    return factory
