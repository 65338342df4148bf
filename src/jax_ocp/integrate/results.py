"""Tagged result types returned by integrators and root finders.

Every stepping or collocation call returns one of these instead of raising,
so a failure never leaves the integrator in an unusable state. On failure the
payload fields (``state``, ``value``, Jacobians) are ``None``.

All types are :class:`~typing.NamedTuple` instances.
"""

from enum import Enum
from typing import NamedTuple, Optional, Sequence

from jax import Array


class IntegrationStatus(Enum):
    """Outcome of an integrator call."""

    SUCCESS = "success"
    INVALID_STEP_SIZE = "invalid_step_size"
    DIMENSION_MISMATCH = "dimension_mismatch"
    WRONG_POINT_COUNT = "wrong_point_count"
    DYNAMICS_FAILURE = "dynamics_failure"
    NOT_CONVERGED = "not_converged"


class IntegratorInfo(NamedTuple):
    """Static description of a scheme.

    Attributes:
        name: Scheme name.
        is_explicit: True if a step needs no nonlinear solve.
        number_of_stages: Number of derivative samples combined per step.
    """

    name: str
    is_explicit: bool
    number_of_stages: int


class SolutionElement(NamedTuple):
    """One stored node of a simulated trajectory."""

    time: float
    state: Array


class NewtonResult(NamedTuple):
    """
    Result of a Newton-Raphson solve.

    Attributes:
        y: Final iterate.
        residual_norm: Euclidean norm of the residual at ``y``.
        iterations: Number of Newton updates performed.
        converged: Boolean scalar, True if the residual norm reached the
            stopping tolerance.
    """

    y: Array
    residual_norm: Array
    iterations: Array
    converged: Array


class StepResult(NamedTuple):
    """
    Result of a single step or of a multi-step integration.

    Attributes:
        state: Propagated state, or None on failure.
        status: Outcome of the call.
        message: Human-readable failure reason, empty on success.
        iterations: Newton iterations used by implicit schemes (0 otherwise).
    """

    state: Optional[Array]
    status: IntegrationStatus
    message: str = ""
    iterations: int = 0

    @property
    def success(self) -> bool:
        return self.status is IntegrationStatus.SUCCESS

    @classmethod
    def failure(cls, status: IntegrationStatus, message: str, iterations: int = 0):
        return cls(None, status, message, iterations)


class CollocationResult(NamedTuple):
    """Collocation residual (defect) and call outcome."""

    value: Optional[Array]
    status: IntegrationStatus
    message: str = ""

    @property
    def success(self) -> bool:
        return self.status is IntegrationStatus.SUCCESS

    @classmethod
    def failure(cls, status: IntegrationStatus, message: str):
        return cls(None, status, message)


class CollocationJacobianResult(NamedTuple):
    """
    Jacobians of a two-point collocation residual.

    Attributes:
        state_jacobians: One ``(n, n)`` block per collocation point.
        control_jacobians: One ``(n, m)`` block per control input.
        status: Outcome of the call.
        message: Human-readable failure reason, empty on success.
    """

    state_jacobians: Optional[Sequence[Array]]
    control_jacobians: Optional[Sequence[Array]]
    status: IntegrationStatus
    message: str = ""

    @property
    def success(self) -> bool:
        return self.status is IntegrationStatus.SUCCESS

    @classmethod
    def failure(cls, status: IntegrationStatus, message: str):
        return cls(None, None, status, message)


class DefectJacobianResult(NamedTuple):
    """
    Jacobians of the stacked defects of a whole collocation grid.

    Attributes:
        state_jacobian: Shape ((N-1)*n, N*n), block-banded.
        control_jacobian: Shape ((N-1)*n, N*m), block-banded.
        status: Outcome of the call.
        message: Human-readable failure reason, empty on success.
    """

    state_jacobian: Optional[Array]
    control_jacobian: Optional[Array]
    status: IntegrationStatus
    message: str = ""

    @property
    def success(self) -> bool:
        return self.status is IntegrationStatus.SUCCESS

    @classmethod
    def failure(cls, status: IntegrationStatus, message: str):
        return cls(None, None, status, message)


class SimulationResult(NamedTuple):
    """
    Output of :func:`jax_ocp.integrate.solve_ivp`.

    Attributes:
        t: Sample times, shape (n_points,).
        x: States at ``t``, shape (n_points, n). Samples past a failure are
            absent.
        status: Outcome of the underlying integration.
        message: Failure reason, empty on success.
    """

    t: Array
    x: Array
    status: IntegrationStatus
    message: str = ""

    @property
    def success(self) -> bool:
        return self.status is IntegrationStatus.SUCCESS
