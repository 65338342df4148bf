"""Explicit time-stepping schemes."""

from typing import NamedTuple

from jax import Array
import jax.numpy as jnp

from .base import FixedStepIntegrator
from ..dynamics import DynamicalSystemProtocol
from ..results import IntegrationStatus, IntegratorInfo, StepResult


class ButcherTableau(NamedTuple):
    """
    Coefficients (A, b, c) of a Runge-Kutta scheme with s stages.

    Attributes:
        a: Stage coupling, shape (s, s). Strictly lower triangular for
            explicit schemes.
        b: Weights, shape (s,).
        c: Stage time offsets as fractions of the step, shape (s,).
    """

    a: Array
    b: Array
    c: Array


class ExplicitRungeKutta(FixedStepIntegrator):
    """
    Generic explicit Runge-Kutta scheme.

    Stages:
        $$ k_i = f(t_0 + c_i h, x_0 + h \\sum_{j<i} A_{ij} k_j, u) $$

    Update:
        $$ x_1 = x_0 + h \\sum_i b_i k_i $$

    The control is held constant over the step.

    Args:
        dynamical_system: System to integrate.
        tableau: Butcher tableau with a strictly lower triangular A.
        step_size: Fixed step size.
        name: Scheme name reported by `info`.
    """

    def __init__(
        self,
        dynamical_system: DynamicalSystemProtocol,
        tableau: ButcherTableau,
        step_size: float = 0.01,
        name: str = "ExplicitRungeKutta",
    ):
        super().__init__(dynamical_system, step_size)
        a = jnp.asarray(tableau.a, dtype=jnp.result_type(float))
        b = jnp.asarray(tableau.b, dtype=jnp.result_type(float))
        c = jnp.asarray(tableau.c, dtype=jnp.result_type(float))
        s = b.shape[0]
        if a.shape != (s, s) or c.shape != (s,):
            raise ValueError(
                f"Inconsistent tableau shapes: A {a.shape}, b {b.shape}, c {c.shape}"
            )
        if jnp.any(jnp.triu(a) != 0.0):
            raise ValueError("A must be strictly lower triangular for an explicit scheme")
        self.tableau = ButcherTableau(a, b, c)
        self._name = name

    @property
    def info(self) -> IntegratorInfo:
        return IntegratorInfo(self._name, True, self.tableau.b.shape[0])

    def _step(
        self, t0: float, dT: float, x0: Array, u0: Array, u1: Array
    ) -> StepResult:
        a, b, c = self.tableau
        k = []
        for i in range(b.shape[0]):
            x_i = x0
            if i > 0:
                x_i = x0 + dT * (a[i, :i] @ jnp.stack(k))
            k.append(self._evaluate(t0 + c[i] * dT, x_i, u0))

        x1 = x0 + dT * (b @ jnp.stack(k))
        return StepResult(x1, IntegrationStatus.SUCCESS)


class ForwardEuler(ExplicitRungeKutta):
    """
    Forward Euler method.

    Discretisation:
        $$ \\frac{\\partial x}{\\partial t} \\rightarrow
        \\frac{(x_{n+1} - x_n)}{h} = f(t_n, x_n, u_n) $$
    """

    def __init__(
        self, dynamical_system: DynamicalSystemProtocol, step_size: float = 0.01
    ):
        tableau = ButcherTableau(a=[[0.0]], b=[1.0], c=[0.0])
        super().__init__(dynamical_system, tableau, step_size, name="ForwardEuler")


class RK4(ExplicitRungeKutta):
    """
    Fourth (4th) order Runge-Kutta method.

    Classical tableau:

        c = (0, 1/2, 1/2, 1)
        b = (1/6, 1/3, 1/3, 1/6)
        A = [[0,   0,   0, 0],
             [1/2, 0,   0, 0],
             [0,   1/2, 0, 0],
             [0,   0,   1, 0]]

    Four derivative evaluations per step. Local error O(h^5), global O(h^4).
    """

    def __init__(
        self, dynamical_system: DynamicalSystemProtocol, step_size: float = 0.01
    ):
        tableau = ButcherTableau(
            a=[[0.0, 0.0, 0.0, 0.0],
               [0.5, 0.0, 0.0, 0.0],
               [0.0, 0.5, 0.0, 0.0],
               [0.0, 0.0, 1.0, 0.0]],
            b=[1.0 / 6.0, 1.0 / 3.0, 1.0 / 3.0, 1.0 / 6.0],
            c=[0.0, 0.5, 0.5, 1.0],
        )
        super().__init__(dynamical_system, tableau, step_size, name="RK4")
