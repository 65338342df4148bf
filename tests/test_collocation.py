"""Unit tests for the trapezoidal collocation constraints."""

import pytest
import jax.numpy as jnp

from jax_ocp.integrate import (
    RK4,
    ImplicitTrapezoidal,
    CollocationProtocol,
    FunctionSystem,
    IntegrationStatus,
    LinearSystem,
    NewtonRaphson,
    Pendulum,
)


def finite_difference_jacobians(method, points, controls, time, eps=1e-6):
    """Central-difference Jacobians of the collocation residual."""

    def residual(x_k, x_kp1, u_k, u_kp1):
        result = method.evaluate_collocation_constraint(
            [x_k, x_kp1], [u_k, u_kp1], time
        )
        assert result.success
        return result.value

    args = [*points, *controls]
    jacobians = []
    for i, arg in enumerate(args):
        columns = []
        for j in range(arg.shape[0]):
            e = jnp.zeros_like(arg).at[j].set(eps)
            plus = list(args)
            minus = list(args)
            plus[i] = arg + e
            minus[i] = arg - e
            columns.append((residual(*plus) - residual(*minus)) / (2.0 * eps))
        jacobians.append(jnp.stack(columns, axis=1))
    return jacobians[:2], jacobians[2:]


@pytest.fixture
def pendulum_setup():
    pendulum = Pendulum(length=0.8, mass=1.5, damping=0.3)
    method = ImplicitTrapezoidal(pendulum, step_size=0.05)
    points = [jnp.array([0.7, -0.4]), jnp.array([0.68, -0.9])]
    controls = [jnp.array([0.2]), jnp.array([-0.6])]
    return method, points, controls


class TestCollocationConstraint:

    def test_scalar_decay_round_trip(self):
        system = FunctionSystem(lambda t, x, u: -x, state_dimension=1)
        method = ImplicitTrapezoidal(system, step_size=0.1)
        x0 = jnp.array([1.0])
        step = method.one_step_integration(0.0, 0.1, x0)
        assert step.success

        result = method.evaluate_collocation_constraint(
            [x0, step.state], [jnp.zeros(0), jnp.zeros(0)], 0.0
        )
        assert result.success
        assert result.value.shape == (1,)
        assert abs(float(result.value[0])) < 1e-9

    def test_pendulum_round_trip(self):
        pendulum = Pendulum(damping=0.5)
        method = ImplicitTrapezoidal(
            pendulum, step_size=0.02, root_finder=NewtonRaphson(tol=1e-12)
        )
        x0 = jnp.array([2.5, 0.3])
        u0, u1 = jnp.array([1.0]), jnp.array([-1.0])
        step = method.one_step_integration(1.0, 0.02, x0, u0, u1)
        assert step.success

        result = method.evaluate_collocation_constraint([x0, step.state], [u0, u1], 1.0)
        assert result.success
        assert jnp.allclose(result.value, 0.0, atol=1e-11)

    def test_inconsistent_pair(self, pendulum_setup):
        method, points, controls = pendulum_setup
        result = method.evaluate_collocation_constraint(points, controls, 0.0)
        assert result.success
        assert float(jnp.linalg.norm(result.value)) > 1e-3

    def test_linear_residual(self):
        A = jnp.array([[0.0, 1.0], [-3.0, -0.5]])
        B = jnp.array([[0.0], [2.0]])
        method = ImplicitTrapezoidal(LinearSystem(A, B), step_size=0.1)
        x_k, x_kp1 = jnp.array([1.0, 2.0]), jnp.array([1.1, 1.5])
        u_k, u_kp1 = jnp.array([0.5]), jnp.array([1.0])
        expected = x_kp1 - x_k - 0.05 * (A @ x_k + B @ u_k + A @ x_kp1 + B @ u_kp1)

        result = method.evaluate_collocation_constraint(
            [x_k, x_kp1], [u_k, u_kp1], 3.0
        )
        assert jnp.allclose(result.value, expected)

    @pytest.mark.parametrize("n_points,n_controls", [(1, 2), (3, 2), (2, 1), (2, 3)])
    def test_wrong_point_count(self, pendulum_setup, n_points, n_controls):
        method, points, controls = pendulum_setup
        points = (points * 2)[:n_points]
        controls = (controls * 2)[:n_controls]
        result = method.evaluate_collocation_constraint(points, controls, 0.0)
        assert result.status is IntegrationStatus.WRONG_POINT_COUNT
        assert result.value is None

        jac = method.evaluate_collocation_constraint_jacobian(points, controls, 0.0)
        assert jac.status is IntegrationStatus.WRONG_POINT_COUNT
        assert jac.state_jacobians is None and jac.control_jacobians is None

    def test_dimension_mismatch(self, pendulum_setup):
        method, points, controls = pendulum_setup
        points = [points[0], jnp.array([0.1, 0.2, 0.3])]
        result = method.evaluate_collocation_constraint(points, controls, 0.0)
        assert result.status is IntegrationStatus.DIMENSION_MISMATCH

    def test_dynamics_failure(self):
        system = FunctionSystem(lambda t, x, u: jnp.sqrt(x), state_dimension=1)
        method = ImplicitTrapezoidal(system)
        result = method.evaluate_collocation_constraint(
            [jnp.array([1.0]), jnp.array([-1.0])], [None, None], 0.0
        )
        assert result.status is IntegrationStatus.DYNAMICS_FAILURE

    def test_collocation_capability(self, pendulum_setup):
        method, _, _ = pendulum_setup
        assert isinstance(method, CollocationProtocol)
        assert not isinstance(RK4(Pendulum()), CollocationProtocol)


class TestCollocationJacobian:

    def test_matches_finite_differences(self, pendulum_setup):
        method, points, controls = pendulum_setup
        result = method.evaluate_collocation_constraint_jacobian(points, controls, 0.4)
        assert result.success

        fd_state, fd_control = finite_difference_jacobians(method, points, controls, 0.4)
        for analytic, approx in zip(result.state_jacobians, fd_state):
            assert analytic.shape == (2, 2)
            assert jnp.allclose(analytic, approx, atol=1e-7)
        for analytic, approx in zip(result.control_jacobians, fd_control):
            assert analytic.shape == (2, 1)
            assert jnp.allclose(analytic, approx, atol=1e-7)

    def test_autodiff_system_matches_analytic(self, pendulum_setup):
        method, points, controls = pendulum_setup
        pendulum = method.dynamical_system
        autodiff = ImplicitTrapezoidal(
            FunctionSystem(pendulum.dynamics, state_dimension=2, control_dimension=1),
            step_size=method.maximum_step_size,
        )
        expected = method.evaluate_collocation_constraint_jacobian(points, controls, 0.0)
        result = autodiff.evaluate_collocation_constraint_jacobian(points, controls, 0.0)
        assert result.success
        for a, b in zip(result.state_jacobians, expected.state_jacobians):
            assert jnp.allclose(a, b)
        for a, b in zip(result.control_jacobians, expected.control_jacobians):
            assert jnp.allclose(a, b)

    def test_linear_blocks(self):
        A = jnp.array([[0.0, 1.0], [-3.0, -0.5]])
        B = jnp.array([[0.0], [2.0]])
        h = 0.1
        method = ImplicitTrapezoidal(LinearSystem(A, B), step_size=h)
        result = method.evaluate_collocation_constraint_jacobian(
            [jnp.zeros(2), jnp.ones(2)], [jnp.zeros(1), jnp.ones(1)], 0.0
        )
        d_xk, d_xkp1 = result.state_jacobians
        d_uk, d_ukp1 = result.control_jacobians
        assert jnp.allclose(d_xk, -jnp.eye(2) - 0.5 * h * A)
        assert jnp.allclose(d_xkp1, jnp.eye(2) - 0.5 * h * A)
        assert jnp.allclose(d_uk, -0.5 * h * B)
        assert jnp.allclose(d_ukp1, -0.5 * h * B)

    def test_uncontrolled_system(self):
        system = FunctionSystem(lambda t, x, u: -x**3, state_dimension=3)
        method = ImplicitTrapezoidal(system, step_size=0.1)
        x = jnp.array([1.0, -0.5, 2.0])
        result = method.evaluate_collocation_constraint_jacobian(
            [x, x], [None, None], 0.0
        )
        assert result.success
        assert all(j.shape == (3, 0) for j in result.control_jacobians)
        assert jnp.allclose(
            result.state_jacobians[1], jnp.eye(3) + 0.05 * jnp.diag(3.0 * x**2)
        )
