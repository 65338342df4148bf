"""Linear solvers used by the Newton iteration of implicit schemes."""

from .protocol import LinearSolverProtocol
from .direct import DirectDense, DirectLU


__all__ = [
    # Protocol
    "LinearSolverProtocol",

    # Direct solvers
    "DirectDense",
    "DirectLU",
]
