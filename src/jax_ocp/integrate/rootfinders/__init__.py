"""Root-finding algorithms used in implicit time stepping schemes."""

from .protocol import RootFinderProtocol
from .newtonraphson import NewtonRaphson, DEFAULT_TOL, DEFAULT_MAXITER


__all__ = [
    "RootFinderProtocol",
    "NewtonRaphson",
    "DEFAULT_TOL",
    "DEFAULT_MAXITER",
]
