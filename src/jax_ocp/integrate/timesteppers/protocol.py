"""Protocols for time-stepping schemes."""

from typing import Optional, Protocol, Sequence, runtime_checkable

from jax import Array

from ..results import (
    CollocationJacobianResult,
    CollocationResult,
    IntegratorInfo,
    StepResult,
)


@runtime_checkable
class StepperProtocol(Protocol):
    """
    Protocol for fixed-step time-stepping schemes.

    Defines the interface for advancing a dynamical system one time step.
    """

    @property
    def info(self) -> IntegratorInfo:
        ...

    def one_step_integration(
        self,
        t0: float,
        dT: float,
        x0: Array,
        u: Optional[Array] = None,
        u_next: Optional[Array] = None,
    ) -> StepResult:
        """
        Take a single time step.

        Args:
            t0: Current time.
            dT: Time step size.
            x0: Current state.
            u: Control at t0.
            u_next: Control at t0 + dT.

        Returns:
            StepResult holding the state at t0 + dT.
        """
        ...


@runtime_checkable
class CollocationProtocol(Protocol):
    """
    Protocol for schemes that expose two-point collocation constraints.

    Consumed by a direct-transcription layer that drives the residual to
    zero as an equality constraint of a nonlinear program.
    """

    @property
    def state_dimension(self) -> int:
        ...

    @property
    def control_dimension(self) -> int:
        ...

    @property
    def maximum_step_size(self) -> float:
        ...

    def evaluate_collocation_constraint(
        self,
        collocation_points: Sequence[Array],
        control_inputs: Sequence[Array],
        time: float,
    ) -> CollocationResult:
        ...

    def evaluate_collocation_constraint_jacobian(
        self,
        collocation_points: Sequence[Array],
        control_inputs: Sequence[Array],
        time: float,
    ) -> CollocationJacobianResult:
        ...
