"""Inbound capture boundary module."""

from .middleware import STATE_KEY, CapturedExchange, CaptureMiddleware, get_correlation

__all__ = ["STATE_KEY", "CapturedExchange", "CaptureMiddleware", "get_correlation"]
