"""Abstract base class for fixed-step integration schemes."""

from abc import ABC, abstractmethod
import bisect
import logging
import math
from typing import Optional, Tuple

from jax import Array
import jax.numpy as jnp

from ..custom_types import ControlInput
from ..dynamics import DynamicalSystemProtocol
from ..errors import IntegrationError, reports_failures
from ..results import (
    IntegrationStatus,
    IntegratorInfo,
    SolutionElement,
    StepResult,
)

logger = logging.getLogger(__name__)


class FixedStepIntegrator(ABC):
    """
    Base class for fixed-step time-stepping schemes.

    Holds a shared reference to the dynamical system and the step size, and
    implements the input validation and bookkeeping common to all schemes.
    Subclasses implement `_step` and `info`.

    `one_step_integration` is a pure function of its arguments. Only
    `integrate` writes to the bookkeeping attributes (`current_time`,
    `current_state`, `step_count` and the stored solution), so a single
    instance must not be shared between threads while integrating.

    Args:
        dynamical_system: System to integrate. Not copied and never mutated.
        step_size: Fixed step used by `integrate` and by the collocation
            constraints. Must be finite and positive.
    """

    def __init__(
        self,
        dynamical_system: DynamicalSystemProtocol,
        step_size: float = 0.01,
    ):
        if not isinstance(dynamical_system, DynamicalSystemProtocol):
            raise TypeError(
                f"{type(dynamical_system).__name__} does not implement "
                "DynamicalSystemProtocol"
            )
        self._dynamical_system = dynamical_system
        self.maximum_step_size = step_size
        self.clear_solution()

    @property
    def dynamical_system(self) -> DynamicalSystemProtocol:
        return self._dynamical_system

    @property
    def state_dimension(self) -> int:
        return self._dynamical_system.state_dimension

    @property
    def control_dimension(self) -> int:
        return self._dynamical_system.control_dimension

    @property
    def maximum_step_size(self) -> float:
        return self._step_size

    @maximum_step_size.setter
    def maximum_step_size(self, step_size: float):
        if not _is_valid_step(step_size):
            raise ValueError(
                f"step_size must be finite and positive, got {step_size}"
            )
        self._step_size = float(step_size)

    @property
    @abstractmethod
    def info(self) -> IntegratorInfo:
        ...

    @abstractmethod
    def _step(
        self, t0: float, dT: float, x0: Array, u0: Array, u1: Array
    ) -> StepResult:
        """
        Advance validated inputs by one step.

        Args:
            t0: Current time.
            dT: Validated step size.
            x0: State at t0, shape (n,).
            u0: Control at t0, shape (m,).
            u1: Control at t0 + dT, shape (m,).

        Returns:
            StepResult holding the state at t0 + dT.
        """
        ...

    @reports_failures(StepResult)
    def one_step_integration(
        self,
        t0: float,
        dT: float,
        x0: Array,
        u: Optional[Array] = None,
        u_next: Optional[Array] = None,
    ) -> StepResult:
        """
        Advance the state by one step of size dT.

        Args:
            t0: Current time.
            dT: Time step size, finite and positive.
            x0: State at t0, shape (n,).
            u: Control at t0, shape (m,). May be omitted when m == 0.
            u_next: Control at t0 + dT. Defaults to `u` (piecewise-constant
                control). Explicit schemes ignore it.

        Returns:
            StepResult holding the state at t0 + dT, or a failure status.
            On failure no state is returned.
        """
        if not _is_valid_step(dT):
            raise IntegrationError(
                IntegrationStatus.INVALID_STEP_SIZE,
                f"dT must be finite and positive, got {dT}"
            )
        x0 = self._as_state(x0, "x0")
        u0 = self._as_control(u, "u")
        u1 = u0 if u_next is None else self._as_control(u_next, "u_next")
        return self._step(t0, dT, x0, u0, u1)

    @reports_failures(StepResult)
    def integrate(
        self,
        t_initial: float,
        t_final: float,
        x0: Array,
        control: ControlInput = None,
    ) -> StepResult:
        """
        Integrate from t_initial to t_final with the fixed step size.

        The last step is shortened so that t_final is hit exactly. The
        stored solution is replaced by the new trajectory; if a step fails,
        the solution up to the last successful step is kept.

        Args:
            t_initial: Initial time.
            t_final: Final time, not before t_initial.
            x0: Initial state, shape (n,).
            control: None, a constant control vector, or a callable
                u(t) -> control vector sampled at both ends of every step.

        Returns:
            StepResult holding the state at t_final, or the failure of the
            first failing step.
        """
        self.clear_solution()
        if not t_final >= t_initial:
            raise IntegrationError(
                IntegrationStatus.INVALID_STEP_SIZE,
                f"t_final ({t_final}) precedes t_initial ({t_initial})"
            )
        x = self._as_state(x0, "x0")
        t_initial = float(t_initial)
        t_final = float(t_final)
        h = self.maximum_step_size

        # Guard against a spurious extra step caused by rounding
        n_steps = max(int(math.ceil((t_final - t_initial) / h - 1e-9)), 0)
        self._record(t_initial, x)

        for k in range(n_steps):
            t = self.current_time
            t_next = t_final if k == n_steps - 1 else t_initial + (k + 1) * h
            step = self.one_step_integration(
                t, t_next - t, x,
                _sample_control(control, t),
                _sample_control(control, t_next),
            )
            if not step.success:
                logger.warning(
                    "Integration stopped at t=%g after %d steps",
                    t, self.step_count
                )
                return step
            x = step.state
            self._record(t_next, x)
            logger.debug("step %d: t=%g", self.step_count, t_next)

        return StepResult(x, IntegrationStatus.SUCCESS)

    @property
    def solution(self) -> Tuple[SolutionElement, ...]:
        """Trajectory stored by the last call to `integrate`."""
        return tuple(self._solution)

    def get_solution(self, time: float) -> Optional[Array]:
        """
        State at `time`, linearly interpolated from the stored solution.

        Returns:
            The interpolated state, or None if `time` lies outside the
            stored interval.
        """
        if not self._solution:
            return None
        time = float(time)
        times = [element.time for element in self._solution]
        if time < times[0] or time > times[-1]:
            return None
        i = bisect.bisect_left(times, time)
        if times[i] == time:
            return self._solution[i].state
        t_a, x_a = self._solution[i - 1]
        t_b, x_b = self._solution[i]
        weight = (time - t_a) / (t_b - t_a)
        return x_a + weight * (x_b - x_a)

    def clear_solution(self):
        self._solution = []
        self.current_time = None
        self.current_state = None
        self.step_count = 0

    def _record(self, time: float, state: Array):
        if self._solution:
            self.step_count += 1
        self._solution.append(SolutionElement(time, state))
        self.current_time = time
        self.current_state = state

    def _as_state(self, x, name: str) -> Array:
        x = _as_float_array(x)
        n = self.state_dimension
        if x.shape != (n,):
            raise IntegrationError(
                IntegrationStatus.DIMENSION_MISMATCH,
                f"{name} has shape {x.shape}, expected ({n},)"
            )
        return x

    def _as_control(self, u, name: str) -> Array:
        m = self.control_dimension
        if u is None:
            if m > 0:
                raise IntegrationError(
                    IntegrationStatus.DIMENSION_MISMATCH,
                    f"{name} is required for a system with {m} controls"
                )
            return jnp.zeros((0,))
        u = _as_float_array(u)
        if u.shape != (m,):
            raise IntegrationError(
                IntegrationStatus.DIMENSION_MISMATCH,
                f"{name} has shape {u.shape}, expected ({m},)"
            )
        return u

    def _evaluate(self, t, x: Array, u: Array) -> Array:
        """Evaluate f(t, x, u), rejecting malformed or non-finite output."""
        f = jnp.asarray(self._dynamical_system.dynamics(t, x, u))
        _check_output(f, (self.state_dimension,), "dynamics", t)
        return f

    def _evaluate_state_jacobian(self, t, x: Array, u: Array) -> Array:
        jac = jnp.asarray(self._dynamical_system.dynamics_state_jacobian(t, x, u))
        n = self.state_dimension
        _check_output(jac, (n, n), "dynamics_state_jacobian", t)
        return jac

    def _evaluate_control_jacobian(self, t, x: Array, u: Array) -> Array:
        jac = jnp.asarray(self._dynamical_system.dynamics_control_jacobian(t, x, u))
        shape = (self.state_dimension, self.control_dimension)
        if self.control_dimension == 0 and jac.size == 0:
            return jnp.zeros(shape, dtype=jac.dtype)
        _check_output(jac, shape, "dynamics_control_jacobian", t)
        return jac

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self._dynamical_system!r}, "
            f"step_size={self.maximum_step_size})"
        )


def _is_valid_step(h) -> bool:
    try:
        h = float(h)
    except (TypeError, ValueError):
        return False
    return math.isfinite(h) and h > 0.0


def _as_float_array(value) -> Array:
    value = jnp.asarray(value)
    if not jnp.issubdtype(value.dtype, jnp.inexact):
        value = value.astype(jnp.result_type(float))
    return value


def _sample_control(control: ControlInput, t: float) -> Optional[Array]:
    if control is None or not callable(control):
        return control
    return control(t)


def _check_output(value: Array, shape: tuple, what: str, t):
    if value.shape != shape:
        raise IntegrationError(
            IntegrationStatus.DYNAMICS_FAILURE,
            f"{what} returned shape {value.shape}, expected {shape}"
        )
    if not bool(jnp.all(jnp.isfinite(value))):
        raise IntegrationError(
            IntegrationStatus.DYNAMICS_FAILURE,
            f"{what} returned non-finite values at t={float(t):g}"
        )
