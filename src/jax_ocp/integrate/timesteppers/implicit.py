"""
Implicit time-stepping schemes.
"""

from typing import Callable, Optional, Sequence, Tuple

import jax
from jax import Array
import jax.numpy as jnp

from .base import FixedStepIntegrator
from ..dynamics import DynamicalSystemProtocol
from ..errors import IntegrationError, reports_failures
from ..results import (
    CollocationJacobianResult,
    CollocationResult,
    IntegrationStatus,
    IntegratorInfo,
    StepResult,
)
from ..rootfinders import NewtonRaphson, RootFinderProtocol


class ImplicitTrapezoidal(FixedStepIntegrator):
    """
    Implicit trapezoidal time-stepping scheme.

    Discretisation:
    $$ x_{n+1} = x_n + \\frac{h}{2} \\left( f(t_n, x_n, u_n)
    + f(t_{n+1}, x_{n+1}, u_{n+1}) \\right) $$

    Residual:
    $$ R(x_{n+1}) = x_{n+1} - x_n
    - \\frac{h}{2} \\left( f_n + f(t_{n+1}, x_{n+1}, u_{n+1}) \\right) $$

    Jacobian:
    $$ J = \\frac{\\partial R}{\\partial x_{n+1}}
    = I - \\frac{h}{2} \\frac{\\partial f(t_{n+1}, x_{n+1}, u_{n+1})}{\\partial x} $$

    A step solves R = 0 with the configured root finder, starting from the
    forward Euler predictor. The root finder runs with JIT disabled, so every
    Newton iterate passes the same shape and finiteness checks as the explicit
    schemes, and a system may raise DynamicsEvaluationError at any iterate.

    The same residual, written for two given grid nodes, is the collocation
    constraint of direct transcription; its Jacobians with respect to both
    nodes' states and controls are built from the dynamical system's own
    Jacobians.

    Attributes:
        root_finder: Root-finding algorithm for the implicit equation.
            Default: NewtonRaphson(tol=1e-10, maxiter=50).

    Implements: StepperProtocol, CollocationProtocol
    """

    def __init__(
        self,
        dynamical_system: DynamicalSystemProtocol,
        step_size: float = 0.01,
        root_finder: Optional[RootFinderProtocol] = None,
    ):
        super().__init__(dynamical_system, step_size)
        self.root_finder = root_finder if root_finder is not None else NewtonRaphson()
        self._identity = jnp.eye(self.state_dimension)

    @property
    def info(self) -> IntegratorInfo:
        return IntegratorInfo("ImplicitTrapezoidal", False, 2)

    @staticmethod
    def make_residual(
        fun: Callable,
        t_prev: float,
        x_prev: Array,
        f_prev: Array,
        h: float,
        u_next: Array,
    ) -> Callable[[Array], Array]:
        """
        Create residual function for the trapezoidal rule.

        Args:
            fun: Dynamics with signature (t, x, u) -> dx/dt.
            t_prev: Time at previous step.
            x_prev: State at previous step.
            f_prev: Dynamics evaluated at the previous step.
            h: Time step size.
            u_next: Control at the end of the step.

        Returns:
            A function with signature x -> R(x)
        """
        t_next = t_prev + h
        return lambda x_np1: (
            x_np1 - x_prev - 0.5 * h * (f_prev + fun(t_next, x_np1, u_next))
        )

    @staticmethod
    def make_jacobian(
        jac: Callable, identity: Array, t_prev: float, h: float, u_next: Array
    ) -> Callable[[Array], Array]:
        """
        Function factory for dense Jacobian matrix.

        Jacobian: $J = I - \\frac{h}{2} \\frac{\\partial f}{\\partial x}$

        Args:
            jac: Jacobian matrix function (t, x, u) -> ∂f/∂x
            identity: Identity matrix of the state dimension
            t_prev: Time at previous step.
            h: Time step size.
            u_next: Control at the end of the step.

        Returns:
            A function with signature x -> J_x.
        """
        t_next = t_prev + h
        return lambda x: identity - 0.5 * h * jac(t_next, x, u_next)

    def _step(
        self, t0: float, dT: float, x0: Array, u0: Array, u1: Array
    ) -> StepResult:
        f0 = self._evaluate(t0, x0, u0)

        residual_fn = self.make_residual(self._evaluate, t0, x0, f0, dT, u1)
        jac_fn = self.make_jacobian(
            self._evaluate_state_jacobian, self._identity, t0, dT, u1
        )

        # Initial guess (forward Euler step)
        x_guess = x0 + dT * f0

        # Iterates stay concrete so the checked evaluators can reject them
        with jax.disable_jit():
            newton = self.root_finder(residual_fn, x_guess, jac_fn)
        iterations = int(newton.iterations)

        if not bool(jnp.isfinite(newton.residual_norm)):
            return StepResult.failure(
                IntegrationStatus.DYNAMICS_FAILURE,
                f"non-finite residual after {iterations} Newton iterations",
                iterations,
            )
        if not bool(newton.converged):
            return StepResult.failure(
                IntegrationStatus.NOT_CONVERGED,
                f"Newton iteration stopped after {iterations} iterations with "
                f"residual norm {float(newton.residual_norm):.2e}",
                iterations,
            )
        return StepResult(newton.y, IntegrationStatus.SUCCESS, iterations=iterations)

    def _collocation_inputs(
        self,
        collocation_points: Sequence[Array],
        control_inputs: Sequence[Array],
    ) -> Tuple[Array, Array, Array, Array]:
        if len(collocation_points) != 2:
            raise IntegrationError(
                IntegrationStatus.WRONG_POINT_COUNT,
                f"expected 2 collocation points, got {len(collocation_points)}"
            )
        if len(control_inputs) != 2:
            raise IntegrationError(
                IntegrationStatus.WRONG_POINT_COUNT,
                f"expected 2 control inputs, got {len(control_inputs)}"
            )
        x_k = self._as_state(collocation_points[0], "collocation_points[0]")
        x_kp1 = self._as_state(collocation_points[1], "collocation_points[1]")
        u_k = self._as_control(control_inputs[0], "control_inputs[0]")
        u_kp1 = self._as_control(control_inputs[1], "control_inputs[1]")
        return x_k, x_kp1, u_k, u_kp1

    @reports_failures(CollocationResult)
    def evaluate_collocation_constraint(
        self,
        collocation_points: Sequence[Array],
        control_inputs: Sequence[Array],
        time: float,
    ) -> CollocationResult:
        """
        Trapezoidal collocation residual of one interval.

        $$ c = x_{k+1} - x_k - \\frac{h}{2} \\left( f(t, x_k, u_k)
        + f(t + h, x_{k+1}, u_{k+1}) \\right) $$

        with h the integrator's `maximum_step_size`. The residual is zero
        exactly when the pair is consistent with a trapezoidal step.

        Args:
            collocation_points: Exactly two states (x_k, x_{k+1}).
            control_inputs: Exactly two controls (u_k, u_{k+1}). Use empty
                arrays or None entries for a system without controls.
            time: Time t of the first point.

        Returns:
            CollocationResult with the residual, shape (n,).
        """
        x_k, x_kp1, u_k, u_kp1 = self._collocation_inputs(
            collocation_points, control_inputs
        )
        h = self.maximum_step_size
        f_k = self._evaluate(time, x_k, u_k)
        f_kp1 = self._evaluate(time + h, x_kp1, u_kp1)
        value = x_kp1 - x_k - 0.5 * h * (f_k + f_kp1)
        return CollocationResult(value, IntegrationStatus.SUCCESS)

    @reports_failures(CollocationJacobianResult)
    def evaluate_collocation_constraint_jacobian(
        self,
        collocation_points: Sequence[Array],
        control_inputs: Sequence[Array],
        time: float,
    ) -> CollocationJacobianResult:
        """
        Analytic Jacobians of the collocation residual.

        $$ \\frac{\\partial c}{\\partial x_k} = -I - \\frac{h}{2} A_k, \\qquad
        \\frac{\\partial c}{\\partial x_{k+1}} = I - \\frac{h}{2} A_{k+1} $$

        $$ \\frac{\\partial c}{\\partial u_k} = -\\frac{h}{2} B_k, \\qquad
        \\frac{\\partial c}{\\partial u_{k+1}} = -\\frac{h}{2} B_{k+1} $$

        where A and B are the system's state and control Jacobians at each
        point.

        Args:
            collocation_points: Exactly two states (x_k, x_{k+1}).
            control_inputs: Exactly two controls (u_k, u_{k+1}).
            time: Time t of the first point.

        Returns:
            CollocationJacobianResult with two (n, n) state blocks and two
            (n, m) control blocks.
        """
        x_k, x_kp1, u_k, u_kp1 = self._collocation_inputs(
            collocation_points, control_inputs
        )
        h = self.maximum_step_size
        t_kp1 = time + h

        a_k = self._evaluate_state_jacobian(time, x_k, u_k)
        a_kp1 = self._evaluate_state_jacobian(t_kp1, x_kp1, u_kp1)
        b_k = self._evaluate_control_jacobian(time, x_k, u_k)
        b_kp1 = self._evaluate_control_jacobian(t_kp1, x_kp1, u_kp1)

        state_jacobians = [
            -self._identity - 0.5 * h * a_k,
            self._identity - 0.5 * h * a_kp1,
        ]
        control_jacobians = [-0.5 * h * b_k, -0.5 * h * b_kp1]
        return CollocationJacobianResult(
            state_jacobians, control_jacobians, IntegrationStatus.SUCCESS
        )
