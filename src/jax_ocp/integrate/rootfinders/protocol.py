"""Protocol for root-finding algorithms."""

from typing import Protocol, runtime_checkable

from jax import Array

from ..custom_types import LinearMap, JacobianConstructor
from ..results import NewtonResult


@runtime_checkable
class RootFinderProtocol(Protocol):
    """
    Protocol for root-finding algorithms.

    Defines the interface for finding roots of nonlinear equations.
    Used by implicit time-stepping schemes to solve the nonlinear systems
    that arise from implicit discretization.
    """

    def __call__(
        self,
        residual_fn: LinearMap,
        y_guess: Array,
        jac_fn: JacobianConstructor,
    ) -> NewtonResult:
        """
        Find the root of residual_fn(y) = 0.

        Args:
            residual_fn: Function mapping y -> R(y), where we seek R(y) = 0
            y_guess: Initial guess for the solution
            jac_fn: Dense Jacobian function y -> dR/dy

        Returns:
            Final iterate together with its residual norm, the number of
            iterations and a convergence flag
        """
        ...
