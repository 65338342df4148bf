"""Unit tests for grid-level defect assembly."""

import pytest
import jax.numpy as jnp

from jax_ocp.integrate import (
    RK4,
    ImplicitTrapezoidal,
    FunctionSystem,
    IntegrationStatus,
    NewtonRaphson,
    Pendulum,
    evaluate_defects,
    evaluate_defects_jacobian,
)


@pytest.fixture
def pendulum_grid():
    """
    Trapezoidal trajectory of a torque-driven pendulum on a 6-node grid.

    The states come from stepping the same scheme, so every defect vanishes.
    """
    h = 0.1
    method = ImplicitTrapezoidal(
        Pendulum(damping=0.2), step_size=h, root_finder=NewtonRaphson(tol=1e-12)
    )
    control = lambda t: jnp.array([jnp.sin(3.0 * t)])
    result = method.integrate(0.0, 0.5, jnp.array([1.0, 0.0]), control)
    assert result.success

    times = jnp.array([element.time for element in method.solution])
    states = jnp.stack([element.state for element in method.solution])
    controls = jnp.stack([control(t) for t in times])
    return method, times, states, controls


class TestDefects:

    def test_consistent_trajectory(self, pendulum_grid):
        method, times, states, controls = pendulum_grid
        result = evaluate_defects(method, times, states, controls)
        assert result.success
        assert result.value.shape == (5, 2)
        assert jnp.allclose(result.value, 0.0, atol=1e-9)

    def test_perturbed_node(self, pendulum_grid):
        method, times, states, controls = pendulum_grid
        states = states.at[2, 0].add(1e-3)
        result = evaluate_defects(method, times, states, controls)
        assert result.success
        norms = jnp.linalg.norm(result.value, axis=1)
        # Only the two intervals touching node 2 are affected
        assert jnp.all(norms[jnp.array([0, 3, 4])] < 1e-9)
        assert jnp.all(norms[jnp.array([1, 2])] > 1e-4)

    def test_uncontrolled_system(self):
        method = ImplicitTrapezoidal(
            FunctionSystem(lambda t, x, u: -x, state_dimension=1), step_size=0.1
        )
        times = jnp.array([0.0, 0.1, 0.2])
        r = 0.95 / 1.05
        states = jnp.array([[1.0], [r], [r**2]])
        result = evaluate_defects(method, times, states)
        assert result.success
        assert jnp.allclose(result.value, 0.0, atol=1e-12)

    def test_non_uniform_grid(self, pendulum_grid):
        method, times, states, controls = pendulum_grid
        times = times.at[3].add(0.01)
        result = evaluate_defects(method, times, states, controls)
        assert result.status is IntegrationStatus.INVALID_STEP_SIZE

    def test_grid_step_differs_from_integrator(self, pendulum_grid):
        method, times, states, controls = pendulum_grid
        result = evaluate_defects(method, 2.0 * times, states, controls)
        assert result.status is IntegrationStatus.INVALID_STEP_SIZE

    def test_shape_mismatch(self, pendulum_grid):
        method, times, states, controls = pendulum_grid
        result = evaluate_defects(method, times, states[:-1], controls)
        assert result.status is IntegrationStatus.DIMENSION_MISMATCH
        result = evaluate_defects(method, times, states, controls[:, :0])
        assert result.status is IntegrationStatus.DIMENSION_MISMATCH

    def test_single_node(self, pendulum_grid):
        method, times, states, controls = pendulum_grid
        result = evaluate_defects(method, times[:1], states[:1], controls[:1])
        assert result.status is IntegrationStatus.WRONG_POINT_COUNT

    def test_dynamics_failure_names_interval(self):
        method = ImplicitTrapezoidal(
            FunctionSystem(lambda t, x, u: jnp.sqrt(x), state_dimension=1),
            step_size=0.1,
        )
        times = jnp.array([0.0, 0.1, 0.2])
        states = jnp.array([[1.0], [0.5], [-1.0]])
        result = evaluate_defects(method, times, states)
        assert result.status is IntegrationStatus.DYNAMICS_FAILURE
        assert "interval 1" in result.message

    def test_requires_collocation_capability(self, pendulum_grid):
        _, times, states, controls = pendulum_grid
        with pytest.raises(TypeError):
            evaluate_defects(RK4(Pendulum(), step_size=0.1), times, states, controls)


class TestDefectsJacobian:

    def test_shapes_and_sparsity(self, pendulum_grid):
        method, times, states, controls = pendulum_grid
        result = evaluate_defects_jacobian(method, times, states, controls)
        assert result.success
        assert result.state_jacobian.shape == (10, 12)
        assert result.control_jacobian.shape == (10, 6)
        # Interval 0 does not depend on node 3
        assert jnp.all(result.state_jacobian[0:2, 6:8] == 0.0)
        assert jnp.all(result.control_jacobian[0:2, 3] == 0.0)

    def test_blocks_match_interval_jacobians(self, pendulum_grid):
        method, times, states, controls = pendulum_grid
        result = evaluate_defects_jacobian(method, times, states, controls)
        k = 2
        local = method.evaluate_collocation_constraint_jacobian(
            [states[k], states[k + 1]], [controls[k], controls[k + 1]], times[k]
        )
        rows = slice(2 * k, 2 * k + 2)
        assert jnp.allclose(result.state_jacobian[rows, 4:6], local.state_jacobians[0])
        assert jnp.allclose(result.state_jacobian[rows, 6:8], local.state_jacobians[1])
        assert jnp.allclose(result.control_jacobian[rows, 2], local.control_jacobians[0][:, 0])
        assert jnp.allclose(result.control_jacobian[rows, 3], local.control_jacobians[1][:, 0])

    def test_matches_finite_differences(self, pendulum_grid):
        method, times, states, controls = pendulum_grid
        times, states, controls = times[:3], states[:3], controls[:3]
        result = evaluate_defects_jacobian(method, times, states, controls)

        eps = 1e-6
        defects = lambda X, U: evaluate_defects(method, times, X, U).value.ravel()

        flat_x = states.ravel()
        columns = []
        for j in range(flat_x.shape[0]):
            e = jnp.zeros_like(flat_x).at[j].set(eps)
            plus = defects((flat_x + e).reshape(states.shape), controls)
            minus = defects((flat_x - e).reshape(states.shape), controls)
            columns.append((plus - minus) / (2.0 * eps))
        assert jnp.allclose(result.state_jacobian, jnp.stack(columns, axis=1), atol=1e-7)

        flat_u = controls.ravel()
        columns = []
        for j in range(flat_u.shape[0]):
            e = jnp.zeros_like(flat_u).at[j].set(eps)
            plus = defects(states, (flat_u + e).reshape(controls.shape))
            minus = defects(states, (flat_u - e).reshape(controls.shape))
            columns.append((plus - minus) / (2.0 * eps))
        assert jnp.allclose(result.control_jacobian, jnp.stack(columns, axis=1), atol=1e-7)

    def test_failure(self, pendulum_grid):
        method, times, states, controls = pendulum_grid
        result = evaluate_defects_jacobian(method, times, states[:, :1], controls)
        assert result.status is IntegrationStatus.DIMENSION_MISMATCH
        assert result.state_jacobian is None
