"""Dynamical systems evaluated by the integrators."""

from .protocol import DynamicalSystemProtocol
from .base import DynamicalSystem, DynamicsEvaluationError
from .systems import FunctionSystem, LinearSystem, Pendulum


__all__ = [
    # Interface
    "DynamicalSystemProtocol",
    "DynamicalSystem",
    "DynamicsEvaluationError",

    # Systems
    "FunctionSystem",
    "LinearSystem",
    "Pendulum",
]
