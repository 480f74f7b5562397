"""Simulated handler module."""

from .handler import PHASE_PLANS, SUCCESS_STATUS, ISimulatedHandler, SimulatedHandler, to_json
from .policy import DEFAULT_PHASE_POLICIES, PhasePolicy

__all__ = [
    "DEFAULT_PHASE_POLICIES",
    "ISimulatedHandler",
    "PHASE_PLANS",
    "PhasePolicy",
    "SUCCESS_STATUS",
    "SimulatedHandler",
    "to_json",
]
