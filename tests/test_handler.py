"""Tests for SimulatedHandler."""

import asyncio
import json
import time

import pytest

from traffic_core.errors import ConfigurationError
from traffic_core.handler import PHASE_PLANS, PhasePolicy, SimulatedHandler
from traffic_core.models import EndpointAction, HttpMethod, PhaseOutcome

GET_ITEM = EndpointAction(HttpMethod.GET, "/api/payments/{id}")
GET_LIST = EndpointAction(HttpMethod.GET, "/api/payments")
CREATE = EndpointAction(HttpMethod.POST, "/api/payments", requires_body=True)
UPDATE = EndpointAction(HttpMethod.PUT, "/api/payments/{id}", requires_body=True)
DELETE = EndpointAction(HttpMethod.DELETE, "/api/payments/{id}")


def with_failure(policies, phase, probability):
    updated = dict(policies)
    updated[phase] = updated[phase].with_failure_probability(probability)
    return updated


class TestHandlerSuccess:
    """Tests for successful phase execution."""

    @pytest.mark.asyncio
    async def test_get_payment_abc(self, handler, make_context):
        """Test GET /api/payments/abc with no lookup failures."""
        ctx = make_context(uri="/api/payments/abc")

        await handler.handle(ctx, GET_ITEM, "abc")

        assert [p.name for p in ctx.phases] == ["lookup", "enrich"]
        assert all(p.outcome is PhaseOutcome.OK for p in ctx.phases)
        assert ctx.final_status == 200
        assert '"id":"abc"' in ctx.response_body
        body = json.loads(ctx.response_body)
        assert body["status"] == "SETTLED"

    @pytest.mark.asyncio
    async def test_thousand_gets_all_succeed(self, handler, make_context):
        """Test that p=0 everywhere yields the nominal code every time."""
        statuses = set()
        for i in range(1000):
            ctx = make_context(uri=f"/api/payments/{i}")
            await handler.handle(ctx, GET_ITEM, str(i))
            statuses.add(ctx.final_status)

        assert statuses == {200}

    @pytest.mark.asyncio
    async def test_create_returns_201(self, make_handler, policies, make_context):
        """Test that creates complete with 201 and a new id."""
        handler = make_handler(policies, id_factory=lambda: "new-payment")
        ctx = make_context(method="POST", uri="/api/payments", request_body='{"data":"value_ab12"}')

        await handler.handle(ctx, CREATE)

        assert [p.name for p in ctx.phases] == ["validate", "process"]
        assert ctx.final_status == 201
        assert json.loads(ctx.response_body) == {"id": "new-payment"}
        assert ctx.phases[0].attributes["payment.hasBody"] is True

    @pytest.mark.asyncio
    async def test_list_payments(self, handler, make_context):
        """Test the list endpoint payload."""
        ctx = make_context(uri="/api/payments")

        await handler.handle(ctx, GET_LIST)

        body = json.loads(ctx.response_body)
        assert ctx.final_status == 200
        assert body["count"] == len(body["items"])
        assert [p.name for p in ctx.phases] == ["query"]

    @pytest.mark.asyncio
    async def test_update_and_delete(self, handler, make_context):
        """Test PUT and DELETE plans and payloads."""
        put_ctx = make_context(method="PUT", uri="/api/payments/p1", request_body="{}")
        await handler.handle(put_ctx, UPDATE, "p1")
        assert [p.name for p in put_ctx.phases] == ["lookup", "validate", "update"]
        assert json.loads(put_ctx.response_body) == {"id": "p1", "status": "UPDATED"}

        delete_ctx = make_context(method="DELETE", uri="/api/payments/p1")
        await handler.handle(delete_ctx, DELETE, "p1")
        assert [p.name for p in delete_ctx.phases] == ["lookup", "delete"]
        assert json.loads(delete_ctx.response_body) == {"id": "p1", "deleted": True}

    @pytest.mark.asyncio
    async def test_phase_attributes(self, handler, make_context):
        """Test attributes recorded on lookup and enrich."""
        ctx = make_context()

        await handler.handle(ctx, GET_ITEM, "abc")

        lookup, enrich = ctx.phases
        assert lookup.attributes == {"payment.id": "abc"}
        assert enrich.attributes == {"payment.status": "SETTLED"}

    @pytest.mark.asyncio
    async def test_process_records_amount(self, handler, make_context):
        """Test that process picks up an amount carried in the body."""
        ctx = make_context(method="POST", uri="/api/payments", request_body='{"amount": 12.5}')

        await handler.handle(ctx, CREATE)

        assert ctx.phases[1].attributes == {"payment.amount": 12.5}


class TestHandlerLatency:
    """Tests for latency injection."""

    @pytest.mark.asyncio
    async def test_latency_within_range(self, make_handler, fake_clock, make_context):
        """Test that sampled delays stay within [min_ms, max_ms]."""
        policies = {
            "lookup": PhasePolicy(min_ms=5, max_ms=150),
            "enrich": PhasePolicy(min_ms=5, max_ms=150),
        }
        handler = make_handler(policies)

        for _ in range(200):
            await handler.handle(make_context(), GET_ITEM, "abc")

        assert len(fake_clock.sleeps) == 400
        assert all(0.005 <= s <= 0.150 for s in fake_clock.sleeps)

    @pytest.mark.asyncio
    async def test_phase_offsets_are_sequential(self, handler, make_context):
        """Test that each phase starts after its predecessor ends."""
        ctx = make_context()

        await handler.handle(ctx, GET_ITEM, "abc")

        lookup, enrich = ctx.phases
        assert lookup.start_offset_ms == 0
        assert enrich.start_offset_ms >= lookup.start_offset_ms + lookup.duration_ms
        assert ctx.phase_duration_ms >= 18

    @pytest.mark.asyncio
    async def test_sleep_does_not_block_other_transactions(self, policies, make_context):
        """Test that concurrent transactions overlap their simulated latency."""
        slow = {name: p.with_latency(50, 50) for name, p in policies.items()}
        handler = SimulatedHandler(slow)

        started = time.monotonic()
        contexts = [make_context() for _ in range(20)]
        await asyncio.gather(*(handler.handle(ctx, GET_ITEM, "abc") for ctx in contexts))
        elapsed = time.monotonic() - started

        assert all(ctx.final_status == 200 for ctx in contexts)
        assert elapsed < 1.0


class TestHandlerFailures:
    """Tests for failure injection."""

    @pytest.mark.asyncio
    async def test_first_post_phase_always_fails(self, make_handler, policies, make_context):
        """Test that a failing first phase short-circuits the create."""
        handler = make_handler(with_failure(policies, "validate", 1.0))

        for _ in range(50):
            ctx = make_context(method="POST", uri="/api/payments")
            await handler.handle(ctx, CREATE)

            assert [p.name for p in ctx.phases] == ["validate"]
            assert ctx.phases[0].outcome is PhaseOutcome.ERROR
            assert 500 <= ctx.final_status < 600

    @pytest.mark.asyncio
    async def test_processor_error(self, make_handler, policies, make_context):
        """Test a failing process phase after a successful validate."""
        handler = make_handler(with_failure(policies, "process", 1.0))
        ctx = make_context(method="POST", uri="/api/payments")

        await handler.handle(ctx, CREATE)

        assert [p.outcome for p in ctx.phases] == [PhaseOutcome.OK, PhaseOutcome.ERROR]
        assert ctx.final_status == 500
        assert json.loads(ctx.response_body) == {"error": "processor_error"}
        assert ctx.failed_phase.error_message == "processor_error"

    @pytest.mark.asyncio
    async def test_lookup_not_found(self, make_handler, policies, make_context):
        """Test that lookup failures surface as 404 and skip enrich."""
        handler = make_handler(with_failure(policies, "lookup", 1.0))
        ctx = make_context()

        await handler.handle(ctx, GET_ITEM, "abc")

        assert [p.name for p in ctx.phases] == ["lookup"]
        assert ctx.final_status == 404
        assert json.loads(ctx.response_body) == {"error": "payment_not_found", "id": "abc"}

    @pytest.mark.asyncio
    async def test_failures_follow_probability(self, make_handler, policies, make_context):
        """Test that a 20% failure rate is roughly observed."""
        handler = make_handler(with_failure(policies, "lookup", 0.2))
        failures = 0
        for _ in range(1000):
            ctx = make_context()
            await handler.handle(ctx, GET_ITEM, "abc")
            failures += ctx.final_status == 404

        assert 120 < failures < 280


class TestHandlerPlans:
    """Tests for phase plan lookup and validation."""

    def test_plan_contract(self):
        """Test the declared endpoint to phase mapping."""
        assert PHASE_PLANS[("GET", "/api/payments/{id}")] == ("lookup", "enrich")
        assert PHASE_PLANS[("POST", "/api/payments")] == ("validate", "process")

    def test_unknown_endpoint(self, handler):
        """Test that endpoints without a plan are rejected."""
        with pytest.raises(LookupError):
            handler.plan_for(EndpointAction(HttpMethod.GET, "/api/refunds"))

    def test_validate_catalog_accepts_defaults(self, handler):
        """Test that the default catalog is servable."""
        from traffic_core.catalog import DEFAULT_ENDPOINTS

        handler.validate_catalog(DEFAULT_ENDPOINTS)

    def test_validate_catalog_missing_plan(self, handler):
        """Test that an unplanned endpoint fails fast."""
        with pytest.raises(ConfigurationError):
            handler.validate_catalog([EndpointAction(HttpMethod.GET, "/api/refunds")])

    def test_validate_catalog_missing_policy(self):
        """Test that a plan referencing an unknown phase fails fast."""
        handler = SimulatedHandler(policies={"lookup": PhasePolicy()})
        with pytest.raises(ConfigurationError):
            handler.validate_catalog([GET_ITEM])

    @pytest.mark.parametrize(
        "policy",
        [
            PhasePolicy(min_ms=-1),
            PhasePolicy(min_ms=100, max_ms=10),
            PhasePolicy(failure_probability=1.5),
            PhasePolicy(failure_status=200),
        ],
    )
    def test_invalid_policy(self, policy):
        """Test that invalid ranges and probabilities are rejected."""
        with pytest.raises(ConfigurationError):
            policy.validate("lookup")
