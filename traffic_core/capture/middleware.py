"""Inbound capture boundary: ASGI middleware that observes each exchange and emits it."""

import asyncio
import time
from typing import Callable

from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..emitter import CHANNEL_INBOUND, IEventEmitter
from ..handler import to_json
from ..logging_config import get_logger
from ..models import REQUEST_ID_HEADER, TENANT_ID_HEADER, CorrelationContext

logger = get_logger(__name__)

STATE_KEY = "correlation"
DEFAULT_EXCLUDED_PREFIXES = (
    "/health",
    "/api/control",
    "/api/interactions",
    "/docs",
    "/openapi.json",
)


class CapturedExchange:
    """Request and response bytes observed on the way through."""

    def __init__(self, max_body_bytes: int):
        self._max_body_bytes = max_body_bytes
        self._request = bytearray()
        self._response = bytearray()
        self.status: int | None = None

    @property
    def response_started(self) -> bool:
        return self.status is not None

    @property
    def request_body(self) -> str:
        return self._request.decode("utf-8", errors="replace")

    @property
    def response_body(self) -> str:
        return self._response.decode("utf-8", errors="replace")

    def add_request_chunk(self, chunk: bytes) -> None:
        remaining = self._max_body_bytes - len(self._request)
        if remaining > 0:
            self._request.extend(chunk[:remaining])

    def add_response_chunk(self, chunk: bytes) -> None:
        self._response.extend(chunk)


def get_correlation(scope: Scope) -> CorrelationContext | None:
    """Context attached to a request scope by CaptureMiddleware."""
    return scope.get("state", {}).get(STATE_KEY)


class CaptureMiddleware:
    """
    Builds an inbound correlation context, captures bodies and emits on completion.

    Every ASGI message is forwarded unchanged; the middleware only observes.
    The structured event is emitted whether the wrapped app succeeded, raised
    or timed out. If it failed before a response started, the caller still
    receives a well-formed JSON error.
    """

    def __init__(
        self,
        app: ASGIApp,
        emitter: IEventEmitter,
        excluded_prefixes: tuple[str, ...] = DEFAULT_EXCLUDED_PREFIXES,
        max_body_bytes: int = 10_000,
        timeout_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.app = app
        self._emitter = emitter
        self._excluded_prefixes = excluded_prefixes
        self._max_body_bytes = max_body_bytes
        self._timeout_seconds = timeout_seconds
        self._clock = clock

    def should_skip(self, path: str) -> bool:
        return path.startswith(self._excluded_prefixes)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or self.should_skip(scope["path"]):
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        ctx = CorrelationContext.inbound(
            method=scope["method"],
            uri=scope["path"],
            request_id_header=headers.get(REQUEST_ID_HEADER),
            tenant_id_header=headers.get(TENANT_ID_HEADER),
            clock=self._clock,
        )
        scope.setdefault("state", {})[STATE_KEY] = ctx
        exchange = CapturedExchange(self._max_body_bytes)

        async def capture_receive() -> Message:
            message = await receive()
            if message["type"] == "http.request":
                exchange.add_request_chunk(message.get("body", b""))
            return message

        async def capture_send(message: Message) -> None:
            if message["type"] == "http.response.start":
                exchange.status = message["status"]
            elif message["type"] == "http.response.body":
                exchange.add_response_chunk(message.get("body", b""))
            await send(message)

        try:
            if self._timeout_seconds is None:
                await self.app(scope, capture_receive, capture_send)
            else:
                await asyncio.wait_for(
                    self.app(scope, capture_receive, capture_send),
                    timeout=self._timeout_seconds,
                )
        except asyncio.TimeoutError:
            logger.warning(
                "Timed out serving %s %s (request %s)",
                ctx.method,
                ctx.resolved_uri,
                ctx.request_id,
            )
            if not exchange.response_started:
                await _send_error(capture_send, 504, "timeout")
        except Exception:
            logger.exception(
                "Unhandled error serving %s %s (request %s)",
                ctx.method,
                ctx.resolved_uri,
                ctx.request_id,
            )
            if exchange.response_started:
                raise
            await _send_error(capture_send, 500, "internal_error")
        finally:
            if not ctx.request_body:
                ctx.request_body = exchange.request_body
            if not ctx.completed:
                ctx.complete(exchange.status or 500, exchange.response_body)
            await self._emitter.emit(ctx, CHANNEL_INBOUND)


async def _send_error(send: Send, status: int, error: str) -> None:
    body = to_json({"error": error}).encode("utf-8")
    await send(
        {
            "type": "http.response.start",
            "status": status,
            "headers": [
                (b"content-type", b"application/json"),
                (b"content-length", str(len(body)).encode("ascii")),
            ],
        }
    )
    await send({"type": "http.response.body", "body": body})
