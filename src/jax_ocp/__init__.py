"""
JAX optimal control building blocks

Fixed-step integrators for controlled dynamical systems and the trapezoidal
collocation constraints consumed by direct-transcription solvers.

Main components:
- integrate: Time-stepping schemes, dynamical systems, collocation
"""

from .integrate import (
    solve_ivp,
    RK4,
    ForwardEuler,
    ImplicitTrapezoidal,
    DynamicalSystem,
    FunctionSystem,
)

__all__ = [
    "solve_ivp",
    "RK4",
    "ForwardEuler",
    "ImplicitTrapezoidal",
    "DynamicalSystem",
    "FunctionSystem",
]
