"""Simulated payments handler with latency and failure injection."""

import asyncio
import json
import time
import uuid
from typing import Any, Awaitable, Callable, Iterable, Mapping, Protocol

from ..errors import ConfigurationError
from ..logging_config import get_logger
from ..models import (
    AttributeValue,
    CorrelationContext,
    EndpointAction,
    HttpMethod,
    Phase,
    PhaseOutcome,
)
from ..randomness import IRandomSource, RandomSource
from .policy import DEFAULT_PHASE_POLICIES, PhasePolicy

logger = get_logger(__name__)

Sleep = Callable[[float], Awaitable[Any]]

# Endpoint -> ordered phase names. Changing a plan changes the trace shape.
PHASE_PLANS: dict[tuple[str, str], tuple[str, ...]] = {
    ("GET", "/api/payments"): ("query",),
    ("GET", "/api/payments/{id}"): ("lookup", "enrich"),
    ("POST", "/api/payments"): ("validate", "process"),
    ("PUT", "/api/payments/{id}"): ("lookup", "validate", "update"),
    ("DELETE", "/api/payments/{id}"): ("lookup", "delete"),
}

SUCCESS_STATUS: dict[HttpMethod, int] = {
    HttpMethod.GET: 200,
    HttpMethod.POST: 201,
    HttpMethod.PUT: 200,
    HttpMethod.DELETE: 200,
}


def to_json(payload: Any) -> str:
    """Compact JSON used for every synthetic body."""
    return json.dumps(payload, separators=(",", ":"))


class ISimulatedHandler(Protocol):
    """Executes an endpoint's phases against a correlation context."""

    def plan_for(self, action: EndpointAction) -> tuple[str, ...]:
        """Ordered phase names for an endpoint."""
        ...

    async def handle(
        self,
        ctx: CorrelationContext,
        action: EndpointAction,
        resource_id: str | None = None,
        rng: IRandomSource | None = None,
    ) -> CorrelationContext:
        """Run all phases and complete the context."""
        ...


class SimulatedHandler:
    """Runs per-endpoint phase plans with randomized latency and failures."""

    def __init__(
        self,
        policies: Mapping[str, PhasePolicy] | None = None,
        plans: Mapping[tuple[str, str], tuple[str, ...]] | None = None,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        rng: IRandomSource | None = None,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ):
        self._policies = dict(DEFAULT_PHASE_POLICIES if policies is None else policies)
        self._plans = dict(PHASE_PLANS if plans is None else plans)
        self._sleep = sleep
        self._clock = clock
        self._rng = rng or RandomSource()
        self._id_factory = id_factory

    @property
    def policies(self) -> dict[str, PhasePolicy]:
        return dict(self._policies)

    def plan_for(self, action: EndpointAction) -> tuple[str, ...]:
        try:
            return self._plans[action.key]
        except KeyError:
            raise LookupError(f"No phase plan declared for {action}") from None

    def validate_catalog(self, actions: Iterable[EndpointAction]) -> None:
        """Fail fast if any endpoint cannot be served."""
        for action in actions:
            if action.key not in self._plans:
                raise ConfigurationError(f"No phase plan declared for {action}")
            for name in self._plans[action.key]:
                policy = self._policies.get(name)
                if policy is None:
                    raise ConfigurationError(f"No policy configured for phase {name!r}")
                policy.validate(name)

    async def handle(
        self,
        ctx: CorrelationContext,
        action: EndpointAction,
        resource_id: str | None = None,
        rng: IRandomSource | None = None,
    ) -> CorrelationContext:
        """Run the endpoint's phases in declared order, stopping at the first failure."""
        plan = self.plan_for(action)
        rng = rng or self._rng.spawn()

        for name in plan:
            policy = self._policies[name]
            phase = await self._run_phase(ctx, name, policy, resource_id, rng)
            ctx.add_phase(phase)

            if phase.failed:
                body: dict[str, Any] = {"error": policy.failure_message}
                if resource_id is not None:
                    body["id"] = resource_id
                ctx.complete(policy.failure_status, to_json(body))
                if policy.failure_status >= 500:
                    logger.error(
                        "Payment %s failed: %s (request %s)",
                        name,
                        policy.failure_message,
                        ctx.request_id,
                    )
                else:
                    logger.warning(
                        "Payment %s: %s %s (request %s)",
                        name,
                        policy.failure_message,
                        resource_id,
                        ctx.request_id,
                    )
                return ctx

        payload = self._success_payload(action, resource_id, rng)
        ctx.complete(SUCCESS_STATUS[action.method], to_json(payload))
        logger.info("Handled %s for request %s", action, ctx.request_id)
        return ctx

    async def _run_phase(
        self,
        ctx: CorrelationContext,
        name: str,
        policy: PhasePolicy,
        resource_id: str | None,
        rng: IRandomSource,
    ) -> Phase:
        started = self._clock()
        delay_ms = rng.uniform_int(policy.min_ms, policy.max_ms)
        await self._sleep(delay_ms / 1000)
        failed = rng.bernoulli(policy.failure_probability)
        finished = self._clock()

        # Durations come from floored offsets; their sum never exceeds took_ms.
        start_offset_ms = max(0, int((started - ctx.start_monotonic) * 1000))
        end_offset_ms = max(start_offset_ms, int((finished - ctx.start_monotonic) * 1000))

        return Phase(
            name=name,
            start_offset_ms=start_offset_ms,
            duration_ms=end_offset_ms - start_offset_ms,
            attributes=self._phase_attributes(name, ctx, resource_id, failed),
            outcome=PhaseOutcome.ERROR if failed else PhaseOutcome.OK,
            error_message=policy.failure_message if failed else None,
        )

    def _phase_attributes(
        self,
        name: str,
        ctx: CorrelationContext,
        resource_id: str | None,
        failed: bool,
    ) -> dict[str, AttributeValue]:
        attributes: dict[str, AttributeValue] = {}
        if name in ("lookup", "update", "delete") and resource_id is not None:
            attributes["payment.id"] = resource_id
        elif name == "enrich" and not failed:
            attributes["payment.status"] = "SETTLED"
        elif name == "validate":
            attributes["payment.hasBody"] = bool(ctx.request_body)
        elif name == "process":
            amount = _amount_from_body(ctx.request_body)
            if amount is not None:
                attributes["payment.amount"] = amount
        return attributes

    def _success_payload(
        self, action: EndpointAction, resource_id: str | None, rng: IRandomSource
    ) -> dict[str, Any]:
        if action.method is HttpMethod.POST:
            return {"id": self._id_factory()}
        if action.method is HttpMethod.PUT:
            return {"id": resource_id, "status": "UPDATED"}
        if action.method is HttpMethod.DELETE:
            return {"id": resource_id, "deleted": True}
        if resource_id is None:
            count = rng.uniform_int(0, 5)
            items = [_payment(self._id_factory(), rng) for _ in range(count)]
            return {"items": items, "count": count}
        return _payment(resource_id, rng)


def _payment(payment_id: str, rng: IRandomSource) -> dict[str, Any]:
    return {
        "id": payment_id,
        "amount": rng.uniform_int(100, 100_000) / 100,
        "status": "SETTLED",
    }


def _amount_from_body(body: str) -> float | None:
    try:
        data = json.loads(body) if body else None
    except ValueError:
        return None
    if isinstance(data, dict) and isinstance(data.get("amount"), (int, float)):
        return float(data["amount"])
    return None
