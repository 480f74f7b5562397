"""Traffic generator module."""

from .generator import ITrafficGenerator, SyntheticCall, TrafficGenerator

__all__ = ["ITrafficGenerator", "SyntheticCall", "TrafficGenerator"]
