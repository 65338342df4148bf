"""Ready-made dynamical systems."""

from typing import Callable, Optional

from jax import Array
import jax.numpy as jnp

from .base import DynamicalSystem
from ..custom_types import DynamicsFunction


class FunctionSystem(DynamicalSystem):
    """
    Dynamical system defined by plain callables.

    Example:
        ```python
        # dx/dt = -k x, no control
        system = FunctionSystem(lambda t, x, u, k: -k * x, 1, args=(0.5,))
        ```

    Attributes:
        fun: Right-hand side with signature (t, x, u, *args) -> dx/dt.
        jac_x: Optional analytic df/dx with the same signature as `fun`.
        jac_u: Optional analytic df/du with the same signature as `fun`.
        args: Additional arguments passed to `fun`, `jac_x` and `jac_u`.

    Jacobians that are not supplied are computed by automatic
    differentiation.
    """

    def __init__(
        self,
        fun: DynamicsFunction,
        state_dimension: int,
        control_dimension: int = 0,
        jac_x: Optional[Callable] = None,
        jac_u: Optional[Callable] = None,
        args: tuple = (),
    ):
        super().__init__(state_dimension, control_dimension)
        if not callable(fun):
            raise TypeError("fun must be callable")
        self.fun = fun
        self.jac_x = jac_x
        self.jac_u = jac_u
        self.args = tuple(args)

    def dynamics(self, t: float, x: Array, u: Array) -> Array:
        return self.fun(t, x, u, *self.args)

    def dynamics_state_jacobian(self, t: float, x: Array, u: Array) -> Array:
        if self.jac_x is None:
            return super().dynamics_state_jacobian(t, x, u)
        return self.jac_x(t, x, u, *self.args)

    def dynamics_control_jacobian(self, t: float, x: Array, u: Array) -> Array:
        if self.jac_u is None:
            return super().dynamics_control_jacobian(t, x, u)
        return self.jac_u(t, x, u, *self.args)


class LinearSystem(DynamicalSystem):
    """
    Linear time-invariant system.

    $$ \\dot{x} = A x + B u $$

    Args:
        A: State matrix, shape (n, n).
        B: Input matrix, shape (n, m). Omit for an uncontrolled system.
    """

    def __init__(self, A: Array, B: Optional[Array] = None):
        A = jnp.atleast_2d(jnp.asarray(A))
        n = A.shape[0]
        if A.shape != (n, n):
            raise ValueError(f"A must be square, got shape {A.shape}")
        if B is None:
            B = jnp.zeros((n, 0), dtype=A.dtype)
        B = jnp.asarray(B)
        if B.ndim == 1:
            B = B.reshape(n, -1)
        if B.shape[0] != n:
            raise ValueError(
                f"B must have {n} rows to match A, got shape {B.shape}"
            )
        super().__init__(n, B.shape[1])
        self.A = A
        self.B = B

    def dynamics(self, t: float, x: Array, u: Array) -> Array:
        return self.A @ x + self.B @ u

    def dynamics_state_jacobian(self, t: float, x: Array, u: Array) -> Array:
        return self.A

    def dynamics_control_jacobian(self, t: float, x: Array, u: Array) -> Array:
        return self.B


class Pendulum(DynamicalSystem):
    """
    Damped pendulum driven by a torque at the pivot.

    State: $x = (\\theta, \\omega)$, angle from the downward vertical and
    angular velocity. Control: $u = (\\tau,)$.

    $$ \\dot{\\theta} = \\omega, \\qquad
    \\dot{\\omega} = -\\frac{g}{l} \\sin\\theta - \\frac{b}{m l^2} \\omega
    + \\frac{\\tau}{m l^2} $$

    Jacobians are analytic.
    """

    def __init__(
        self,
        length: float = 1.0,
        mass: float = 1.0,
        damping: float = 0.0,
        gravity: float = 9.81,
    ):
        if length <= 0.0 or mass <= 0.0:
            raise ValueError("length and mass must be positive")
        super().__init__(state_dimension=2, control_dimension=1)
        self.length = length
        self.mass = mass
        self.damping = damping
        self.gravity = gravity

    @property
    def inertia(self) -> float:
        return self.mass * self.length**2

    def dynamics(self, t: float, x: Array, u: Array) -> Array:
        theta, omega = x[0], x[1]
        domega = (
            -(self.gravity / self.length) * jnp.sin(theta)
            - (self.damping / self.inertia) * omega
            + u[0] / self.inertia
        )
        return jnp.stack([omega, domega])

    def dynamics_state_jacobian(self, t: float, x: Array, u: Array) -> Array:
        theta = x[0]
        return jnp.array([
            [0.0, 1.0],
            [-(self.gravity / self.length) * jnp.cos(theta),
             -self.damping / self.inertia],
        ])

    def dynamics_control_jacobian(self, t: float, x: Array, u: Array) -> Array:
        return jnp.array([[0.0], [1.0 / self.inertia]])
