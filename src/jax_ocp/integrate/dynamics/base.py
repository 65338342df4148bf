"""Abstract base class for dynamical systems."""

from abc import ABC, abstractmethod

import jax
from jax import Array
import jax.numpy as jnp


class DynamicsEvaluationError(RuntimeError):
    """Raised by a dynamical system that cannot be evaluated at a given point."""


class DynamicalSystem(ABC):
    """
    Base class for dynamical systems dx/dt = f(t, x, u).

    Subclasses implement `dynamics`. Both Jacobians default to forward-mode
    automatic differentiation with `jax.jacfwd`; override them to supply
    analytic expressions.

    Attributes:
        state_dimension: Number of states n (at least 1).
        control_dimension: Number of controls m (zero for autonomous or
            uncontrolled systems).
    """

    def __init__(self, state_dimension: int, control_dimension: int = 0):
        if int(state_dimension) != state_dimension or state_dimension < 1:
            raise ValueError(
                f"state_dimension must be a positive integer, got {state_dimension}"
            )
        if int(control_dimension) != control_dimension or control_dimension < 0:
            raise ValueError(
                "control_dimension must be a non-negative integer, "
                f"got {control_dimension}"
            )
        self._state_dimension = int(state_dimension)
        self._control_dimension = int(control_dimension)

    @property
    def state_dimension(self) -> int:
        return self._state_dimension

    @property
    def control_dimension(self) -> int:
        return self._control_dimension

    @abstractmethod
    def dynamics(self, t: float, x: Array, u: Array) -> Array:
        """
        Evaluate the state derivative.

        Arrays are concrete when the integrators call this method, so it may
        branch on the values of x and u. Returning non-finite values is an
        alternative to raising.

        Args:
            t: Time.
            x: State, shape (n,).
            u: Control, shape (m,). Empty when m == 0.

        Returns:
            dx/dt, shape (n,).

        Raises:
            DynamicsEvaluationError: If f is undefined at (t, x, u).
        """
        ...

    def dynamics_state_jacobian(self, t: float, x: Array, u: Array) -> Array:
        """Partial derivative df/dx, shape (n, n)."""
        return jax.jacfwd(lambda x_: self.dynamics(t, x_, u))(x)

    def dynamics_control_jacobian(self, t: float, x: Array, u: Array) -> Array:
        """Partial derivative df/du, shape (n, m)."""
        if self.control_dimension == 0:
            return jnp.zeros((self.state_dimension, 0), dtype=jnp.result_type(x))
        return jax.jacfwd(lambda u_: self.dynamics(t, x, u_))(u)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(state_dimension={self.state_dimension}, "
            f"control_dimension={self.control_dimension})"
        )
