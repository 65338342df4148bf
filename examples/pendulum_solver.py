import jax
import jax.numpy as jnp
from matplotlib import pyplot as plt

from jax_ocp.integrate import (
    RK4, ImplicitTrapezoidal, Pendulum, solve_ivp, evaluate_defects
)

jax.config.update("jax_enable_x64", True)


def main(t_end=5.0, dt=0.05, damping=0.1):
    """
    Simulate a damped, torque-driven pendulum with RK4 and the implicit
    trapezoidal rule, check that the trapezoidal trajectory satisfies its own
    collocation constraints, and plot both trajectories.

    Arguments:
        t_end - Simulation time (default 5.0)
        dt - Time step size (default 0.05)
        damping - Viscous damping at the pivot (default 0.1)
    """
    # Set up system
    pendulum = Pendulum(length=1.0, mass=1.0, damping=damping)
    x0 = jnp.array([jnp.pi / 2, 0.0])  # start horizontal, at rest
    control = lambda t: jnp.array([0.5 * jnp.sin(2.0 * t)])  # torque profile

    # Solve the equation with both schemes
    print("Solving...")
    explicit = solve_ivp(RK4(pendulum, step_size=dt), (0.0, t_end), x0, control)
    trapezoidal = ImplicitTrapezoidal(pendulum, step_size=dt)
    implicit = solve_ivp(trapezoidal, (0.0, t_end), x0, control)
    print("Solve finished.")

    # Collocation defects of the trapezoidal trajectory
    controls = jnp.stack([control(t) for t in implicit.t])
    defects = evaluate_defects(trapezoidal, implicit.t, implicit.x, controls)
    print(f"Largest trapezoidal defect: {float(jnp.max(jnp.abs(defects.value))):.3e}")

    # Compare the schemes at several time points
    for i in range(0, len(implicit.t), len(implicit.t) // 5):
        difference = jnp.linalg.norm(explicit.x[i] - implicit.x[i])
        print(f"t={float(implicit.t[i]):.3f}: |x_rk4 - x_trap| = {difference:.3e}")

    # Plot results
    fig, ax = plt.subplots()
    ax.plot(explicit.t, explicit.x[:, 0], '-', label="RK4")
    ax.plot(implicit.t, implicit.x[:, 0], '--', label="Implicit trapezoidal")
    ax.legend()
    ax.set_xlabel('t')
    ax.set_ylabel(r'$\theta$')
    plt.show()

if __name__ == "__main__":
    main()
