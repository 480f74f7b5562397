"""Structured event emission: one summary log record and one span tree per transaction."""

import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Callable, Protocol

from opentelemetry import trace
from opentelemetry.trace import SpanKind, Status, StatusCode, Tracer, format_trace_id

from ..handler import to_json
from ..logging_config import INTERACTIONS_LOGGER, get_logger
from ..models import (
    SPAN_STATUS_ERROR,
    SPAN_STATUS_OK,
    CorrelationContext,
    InteractionRecord,
    SpanRecord,
)
from ..storage import IStorage

logger = get_logger(__name__)

CHANNEL_INBOUND = "inbound"
CHANNEL_IN_PROCESS = "in_process"
CHANNEL_CLIENT = "client"

SPAN_KINDS = {
    CHANNEL_INBOUND: SpanKind.SERVER,
    CHANNEL_IN_PROCESS: SpanKind.INTERNAL,
    CHANNEL_CLIENT: SpanKind.CLIENT,
}

INCOMPLETE_STATUS = 500


def level_for_status(status: int) -> int:
    """INFO for success, WARNING for client-class outcomes, ERROR for server failures."""
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


def _span_id() -> str:
    return uuid.uuid4().hex[:16]


def build_span_tree(
    ctx: CorrelationContext,
    took_ms: int,
    id_factory: Callable[[], str] = _span_id,
) -> list[SpanRecord]:
    """Parent span for the transaction followed by one child per phase, in phase order."""
    status = ctx.final_status if ctx.final_status is not None else INCOMPLETE_STATUS
    failed = ctx.failed_phase

    root = SpanRecord(
        span_id=id_factory(),
        request_id=ctx.request_id,
        name=f"{ctx.method} {ctx.resolved_uri}",
        parent_id=None,
        attributes={
            "request.id": ctx.request_id,
            "tenant.id": ctx.tenant_id,
            "http.method": ctx.method,
            "http.uri": ctx.resolved_uri,
            "http.status_code": status,
        },
        start_offset_ms=0,
        duration_ms=took_ms,
    )
    if failed is not None:
        root.status = SPAN_STATUS_ERROR
        root.status_message = failed.error_message
    elif status >= 500:
        root.status = SPAN_STATUS_ERROR
        root.status_message = f"HTTP {status}"

    spans = [root]
    for phase in ctx.phases:
        attributes = dict(phase.attributes)
        attributes["request.id"] = ctx.request_id
        attributes["tenant.id"] = ctx.tenant_id
        spans.append(
            SpanRecord(
                span_id=id_factory(),
                request_id=ctx.request_id,
                name=f"payment.{phase.name}",
                parent_id=root.span_id,
                attributes=attributes,
                status=SPAN_STATUS_ERROR if phase.failed else SPAN_STATUS_OK,
                status_message=phase.error_message,
                start_offset_ms=phase.start_offset_ms,
                duration_ms=phase.duration_ms,
            )
        )
    return spans


class IEventEmitter(Protocol):
    """Renders a completed transaction to the log and span sinks."""

    async def emit(self, ctx: CorrelationContext, channel: str = CHANNEL_INBOUND) -> None:
        """Emit the summary record and span tree. Never raises."""
        ...


class EventEmitter:
    """Emits the summary log record, OpenTelemetry spans and stored records."""

    def __init__(
        self,
        tracer: Tracer | None = None,
        storage: IStorage | None = None,
        clock: Callable[[], float] = time.monotonic,
        logger_name: str = INTERACTIONS_LOGGER,
    ):
        self._tracer = tracer
        self._storage = storage
        self._clock = clock
        self._logger_name = logger_name

    def build_record(self, ctx: CorrelationContext, channel: str, took_ms: int) -> InteractionRecord:
        """Summary record for a completed context."""
        status = ctx.final_status if ctx.final_status is not None else INCOMPLETE_STATUS
        return InteractionRecord(
            request_id=ctx.request_id,
            tenant_id=ctx.tenant_id,
            channel=channel,
            method=ctx.method,
            uri=ctx.resolved_uri,
            request_body=ctx.request_body,
            status=status,
            response_body=ctx.response_body or "",
            took_ms=took_ms,
            level=logging.getLevelName(level_for_status(status)),
            message=f"[{ctx.method}] {ctx.resolved_uri} -> {status} {took_ms} ms",
            timestamp=datetime.now(timezone.utc),
        )

    async def emit(self, ctx: CorrelationContext, channel: str = CHANNEL_INBOUND) -> None:
        """Emit the transaction. Sink failures are logged here and never propagated."""
        try:
            took_ms = max(0, int((self._clock() - ctx.start_monotonic) * 1000))
            if not ctx.completed:
                logger.warning("Emitting incomplete transaction %s", ctx.request_id)
                ctx.complete(INCOMPLETE_STATUS, to_json({"error": "incomplete_transaction"}))
            record = self.build_record(ctx, channel, took_ms)
            spans = build_span_tree(ctx, took_ms)
        except Exception:
            logger.exception("Failed to render transaction %s", ctx.request_id)
            return

        trace_id = None
        if self._tracer is not None:
            try:
                trace_id = self._export_spans(ctx, spans, channel)
            except Exception:
                logger.exception("Span export failed for transaction %s", ctx.request_id)

        try:
            self._log(record, channel, trace_id)
        except Exception:
            logger.exception("Log emission failed for transaction %s", ctx.request_id)

        if self._storage is not None:
            try:
                await self._storage.save_interaction(record)
                await self._storage.save_spans(spans)
            except Exception:
                logger.exception("Failed to store records for transaction %s", ctx.request_id)

    def _log(self, record: InteractionRecord, channel: str, trace_id: str | None) -> None:
        name = f"{self._logger_name}.client" if channel == CHANNEL_CLIENT else self._logger_name
        get_logger(name).log(
            level_for_status(record.status),
            "[%s] %s -> %s %s ms",
            record.method,
            record.uri,
            record.status,
            record.took_ms,
            extra={"fields": record.fields(), "trace_id": trace_id},
        )

    def _export_spans(self, ctx: CorrelationContext, spans: list[SpanRecord], channel: str) -> str:
        root_record, children = spans[0], spans[1:]
        kind = SPAN_KINDS.get(channel, SpanKind.INTERNAL)

        root = self._tracer.start_span(
            root_record.name,
            kind=kind,
            attributes=root_record.attributes,
            start_time=ctx.start_time_ns,
        )
        try:
            parent = trace.set_span_in_context(root)
            for record in children:
                start_ns = ctx.start_time_ns + record.start_offset_ms * 1_000_000
                span = self._tracer.start_span(
                    record.name,
                    context=parent,
                    attributes=record.attributes,
                    start_time=start_ns,
                )
                try:
                    if record.status == SPAN_STATUS_ERROR:
                        span.set_status(Status(StatusCode.ERROR, record.status_message))
                finally:
                    span.end(end_time=start_ns + record.duration_ms * 1_000_000)

            if root_record.status == SPAN_STATUS_ERROR:
                root.set_status(Status(StatusCode.ERROR, root_record.status_message))
            return format_trace_id(root.get_span_context().trace_id)
        finally:
            root.end(end_time=ctx.start_time_ns + root_record.duration_ms * 1_000_000)
