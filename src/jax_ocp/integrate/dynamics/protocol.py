"""Protocol for dynamical systems consumed by the integrators."""

from typing import Protocol, runtime_checkable

from jax import Array


@runtime_checkable
class DynamicalSystemProtocol(Protocol):
    """
    Protocol for dynamical systems dx/dt = f(t, x, u).

    Integrators hold a shared, non-owning reference to an object satisfying
    this protocol and never mutate it. The integrators call these methods
    eagerly with concrete arrays, so Python control flow on array values is
    allowed; a point where f is undefined is reported by raising
    DynamicsEvaluationError or by returning non-finite values. Systems that
    rely on automatic differentiation for their Jacobians must stay
    differentiable by `jax.jacfwd`.

    If several integrators evaluate the same instance from different
    threads, the instance itself must tolerate concurrent calls.
    """

    @property
    def state_dimension(self) -> int:
        """Number of states n."""
        ...

    @property
    def control_dimension(self) -> int:
        """Number of controls m (may be zero)."""
        ...

    def dynamics(self, t: float, x: Array, u: Array) -> Array:
        """State derivative, shape (n,)."""
        ...

    def dynamics_state_jacobian(self, t: float, x: Array, u: Array) -> Array:
        """Partial derivative df/dx, shape (n, n)."""
        ...

    def dynamics_control_jacobian(self, t: float, x: Array, u: Array) -> Array:
        """Partial derivative df/du, shape (n, m)."""
        ...
