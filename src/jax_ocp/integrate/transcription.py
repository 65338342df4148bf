"""
Defect constraints of a full collocation grid.

Direct transcription turns an optimal control problem into a nonlinear
program over the states X = (x_0, ..., x_{N-1}) and controls
U = (u_0, ..., u_{N-1}) at the nodes of a uniform time grid. Every interval
contributes one two-point collocation residual (the defect); the NLP solver
drives all of them to zero. These helpers stack the per-interval residuals
and assemble the block-banded Jacobians

    dC/dX : ((N-1) n, N n)        dC/dU : ((N-1) n, N m)

where row block k only depends on nodes k and k+1.
"""

from typing import Optional, Tuple

from jax import Array
import jax.numpy as jnp

from .errors import IntegrationError, reports_failures
from .results import (
    CollocationResult,
    DefectJacobianResult,
    IntegrationStatus,
)
from .timesteppers import CollocationProtocol


def _check_grid(
    integrator: CollocationProtocol,
    times: Array,
    states: Array,
    controls: Optional[Array],
) -> Tuple[Array, Array, Array]:
    if not isinstance(integrator, CollocationProtocol):
        raise TypeError(
            f"{type(integrator).__name__} does not provide collocation constraints"
        )
    n = integrator.state_dimension
    m = integrator.control_dimension

    times = jnp.asarray(times)
    times = times.astype(jnp.result_type(times, float))
    if times.ndim != 1 or times.shape[0] < 2:
        raise IntegrationError(
            IntegrationStatus.WRONG_POINT_COUNT,
            f"a grid needs at least 2 nodes, got times of shape {times.shape}"
        )
    n_nodes = times.shape[0]

    h = integrator.maximum_step_size
    rtol = float(jnp.sqrt(jnp.finfo(times.dtype).eps))
    if not jnp.allclose(jnp.diff(times), h, rtol=rtol, atol=0.0):
        raise IntegrationError(
            IntegrationStatus.INVALID_STEP_SIZE,
            f"grid spacing must be uniform and equal to the step size {h}"
        )

    states = jnp.asarray(states)
    if states.shape != (n_nodes, n):
        raise IntegrationError(
            IntegrationStatus.DIMENSION_MISMATCH,
            f"states has shape {states.shape}, expected {(n_nodes, n)}"
        )

    if controls is None:
        controls = jnp.zeros((n_nodes, 0))
    controls = jnp.asarray(controls)
    if controls.shape != (n_nodes, m):
        raise IntegrationError(
            IntegrationStatus.DIMENSION_MISMATCH,
            f"controls has shape {controls.shape}, expected {(n_nodes, m)}"
        )
    return times, states, controls


def _raise_on_failure(result, k: int):
    if not result.success:
        raise IntegrationError(result.status, f"interval {k}: {result.message}")


@reports_failures(CollocationResult)
def evaluate_defects(
    integrator: CollocationProtocol,
    times: Array,
    states: Array,
    controls: Optional[Array] = None,
) -> CollocationResult:
    """
    Collocation defects of every grid interval.

    Args:
        integrator: Scheme exposing collocation constraints
            (e.g., ImplicitTrapezoidal).
        times: Grid nodes, shape (N,), uniformly spaced by the integrator's
            `maximum_step_size`.
        states: States at the nodes, shape (N, n).
        controls: Controls at the nodes, shape (N, m). May be omitted when
            m == 0.

    Returns:
        CollocationResult whose value has shape (N-1, n); row k is the
        defect of interval [t_k, t_{k+1}].

    Raises:
        TypeError: If the integrator has no collocation constraints.
    """
    times, states, controls = _check_grid(integrator, times, states, controls)

    defects = []
    for k in range(times.shape[0] - 1):
        result = integrator.evaluate_collocation_constraint(
            [states[k], states[k + 1]], [controls[k], controls[k + 1]], times[k]
        )
        _raise_on_failure(result, k)
        defects.append(result.value)

    return CollocationResult(jnp.stack(defects), IntegrationStatus.SUCCESS)


@reports_failures(DefectJacobianResult)
def evaluate_defects_jacobian(
    integrator: CollocationProtocol,
    times: Array,
    states: Array,
    controls: Optional[Array] = None,
) -> DefectJacobianResult:
    """
    Jacobians of the stacked defects with respect to all states and controls.

    Arguments as for `evaluate_defects`. The defects are flattened row-major,
    i.e. entry k*n + i is component i of the defect of interval k, and
    states/controls are flattened node by node.

    Returns:
        DefectJacobianResult with matrices of shapes ((N-1) n, N n) and
        ((N-1) n, N m).
    """
    times, states, controls = _check_grid(integrator, times, states, controls)
    n_nodes, n = states.shape
    m = controls.shape[1]

    d_states = jnp.zeros(((n_nodes - 1) * n, n_nodes * n), dtype=states.dtype)
    d_controls = jnp.zeros(((n_nodes - 1) * n, n_nodes * m), dtype=states.dtype)

    for k in range(n_nodes - 1):
        result = integrator.evaluate_collocation_constraint_jacobian(
            [states[k], states[k + 1]], [controls[k], controls[k + 1]], times[k]
        )
        _raise_on_failure(result, k)
        rows = slice(k * n, (k + 1) * n)
        for j, (jac_x, jac_u) in enumerate(
            zip(result.state_jacobians, result.control_jacobians)
        ):
            node = k + j
            d_states = d_states.at[rows, node * n:(node + 1) * n].set(jac_x)
            d_controls = d_controls.at[rows, node * m:(node + 1) * m].set(jac_u)

    return DefectJacobianResult(d_states, d_controls, IntegrationStatus.SUCCESS)
