"""Structured event emitter module."""

from .emitter import (
    CHANNEL_CLIENT,
    CHANNEL_IN_PROCESS,
    CHANNEL_INBOUND,
    EventEmitter,
    IEventEmitter,
    build_span_tree,
    level_for_status,
)

__all__ = [
    "CHANNEL_CLIENT",
    "CHANNEL_IN_PROCESS",
    "CHANNEL_INBOUND",
    "EventEmitter",
    "IEventEmitter",
    "build_span_tree",
    "level_for_status",
]
