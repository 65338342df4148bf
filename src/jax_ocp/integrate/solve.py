import logging
import time
from typing import Optional, Tuple

from jax import Array
import jax.numpy as jnp

from .custom_types import ControlInput
from .results import SimulationResult
from .timesteppers import FixedStepIntegrator

logger = logging.getLogger(__name__)


def solve_ivp(
    integrator: FixedStepIntegrator,
    t_span: Tuple[float, float],
    x0: Array,
    control: ControlInput = None,
    t_eval: Optional[Array] = None,
) -> SimulationResult:
    """
    Integrate dx/dt = f(t, x, u) over the time interval t_span.

    The step size is the integrator's `maximum_step_size`; the last step is
    shortened to land on t_span[1]. States at `t_eval` are linearly
    interpolated between the integration nodes.

    Args:
        integrator: Time-stepping method instance (e.g., RK4(system),
            ImplicitTrapezoidal(system)).
        t_span: (t_start, t_end) time interval
        x0: Initial state
        control: None, a constant control vector, or a callable u(t)
        t_eval: Times at which to store the computed solution.
            If None, returns every integration node.
            Must be sorted and lie within t_span.

    Returns:
        SimulationResult with times `t`, states `x` of shape
        (n_points, n) and the integration status. If integration fails, only
        the samples reached before the failure are returned.

    Example usage:
    ```python
    import jax.numpy as jnp
    from jax_ocp.integrate import solve_ivp, RK4, FunctionSystem

    # Define ODE: dx/dt = -k*x
    system = FunctionSystem(lambda t, x, u, k: -k * x, 1, args=(0.5,))

    result = solve_ivp(
        RK4(system, step_size=0.01), (0.0, 2.0), jnp.array([1.0]),
        t_eval=jnp.linspace(0.0, 2.0, 5),
    )
    ```
    """
    t_start, t_end = t_span

    if t_eval is not None:
        t_eval = jnp.asarray(t_eval)
        if jnp.any(t_eval < t_start) or jnp.any(t_eval > t_end):
            raise ValueError("All values in t_eval must be within t_span")
        if jnp.any(jnp.diff(t_eval) < 0):
            raise ValueError("t_eval must be sorted in increasing order")

    logger.info(
        "Solving with %s on [%g, %g], dt=%g",
        integrator.info.name, t_start, t_end, integrator.maximum_step_size
    )
    start_wallclock = time.time()

    result = integrator.integrate(t_start, t_end, x0, control)

    elapsed_wallclock = time.time() - start_wallclock
    logger.info(
        "Completed %d steps in %.3fs (%s)",
        integrator.step_count, elapsed_wallclock, result.status.value
    )

    if t_eval is None:
        t_save = [element.time for element in integrator.solution]
        x_save = [element.state for element in integrator.solution]
    else:
        t_save, x_save = [], []
        for t_i in t_eval:
            x_i = integrator.get_solution(float(t_i))
            if x_i is None:
                break
            t_save.append(float(t_i))
            x_save.append(x_i)

    if x_save:
        x_arr = jnp.stack(x_save, axis=0)
    else:
        x_arr = jnp.zeros((0, integrator.state_dimension))

    return SimulationResult(jnp.asarray(t_save), x_arr, result.status, result.message)
