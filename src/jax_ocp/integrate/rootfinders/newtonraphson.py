"""Newton-Raphson method for root finding."""

import logging

from flax import nnx
import jax
from jax import Array
import jax.numpy as jnp

from ..linsolvers import LinearSolverProtocol, DirectDense
from ..custom_types import LinearMap, JacobianConstructor
from ..results import NewtonResult

logger = logging.getLogger(__name__)

DEFAULT_TOL = 1e-10
DEFAULT_MAXITER = 50

# Residual norms below this many epsilons of the iterate are rounding noise.
ROUNDOFF_FACTOR = 10.0


class NewtonRaphson(nnx.Module):
    """
    Newton-Raphson root-finding algorithm.

    Iterative update: $y \\leftarrow y - J^{-1}(y) R(y)$

    The iteration stops as soon as
    $\\|R(y)\\|_2 \\le \\max(tol, c \\, \\epsilon \\max(1, \\|y\\|_2))$
    or after `maxiter` updates, whichever comes first, where $\\epsilon$ is the
    machine epsilon of the iterate dtype and $c$ is `ROUNDOFF_FACTOR`. The
    floor keeps the default `tol` reachable in float32. It never raises on
    non-convergence; the returned `NewtonResult.converged` flag tells the
    caller what happened. A non-finite residual also ends the loop.

    Implements: RootFinderProtocol

    Attributes:
        tol: Convergence tolerance for residual norm
        maxiter: Maximum number of Newton-Raphson iterations
        linsolver: Linear solver for the Newton update (default: DirectDense)
    """

    def __init__(
        self,
        tol: float = DEFAULT_TOL,
        maxiter: int = DEFAULT_MAXITER,
        linsolver: LinearSolverProtocol = DirectDense()
    ):
        if not tol > 0.0:
            raise ValueError(f"tol must be positive, got {tol}")
        if maxiter < 1:
            raise ValueError(f"maxiter must be at least 1, got {maxiter}")
        self.tol = tol
        self.maxiter = maxiter
        self.linsolver = linsolver

    def stopping_tol(self, y: Array) -> Array:
        """Tolerance in effect at iterate y."""
        eps = jnp.finfo(jnp.result_type(y)).eps
        floor = ROUNDOFF_FACTOR * eps * jnp.maximum(1.0, jnp.linalg.norm(y))
        return jnp.maximum(self.tol, floor)

    def __call__(
        self,
        residual_fn: LinearMap,
        y_guess: Array,
        jac_fn: JacobianConstructor,
    ) -> NewtonResult:
        """
        Find the root of residual_fn(y) = 0 using Newton-Raphson method.

        Args:
            residual_fn: Residual function R(y)
            y_guess: Initial guess
            jac_fn: Function returning a dense Jacobian matrix with
                signature y -> J(y)

        Returns:
            NewtonResult with the final iterate
        """
        # State carried through Newton iterations
        y_k = y_guess
        r_k = residual_fn(y_k)
        state0 = (y_k, r_k, 0)

        def body_fun(state):
            y_k, r_k, k = state
            J = jac_fn(y_k)
            delta = self.linsolver(J, -r_k)
            y_kp1 = y_k + delta
            r_kp1 = residual_fn(y_kp1)
            return (y_kp1, r_kp1, k + 1)

        # Convergence condition (a NaN norm compares False and stops the loop)
        def cond_fun(state):
            y_k, r_k, k = state
            not_done = jnp.linalg.norm(r_k) > self.stopping_tol(y_k)
            return not_done & (k < self.maxiter)

        y_final, r_final, niters = jax.lax.while_loop(cond_fun, body_fun, state0)
        residual_norm = jnp.linalg.norm(r_final)
        tol = self.stopping_tol(y_final)
        converged = residual_norm <= tol

        def warn_callback(iters, maxiter, residual_norm, tol):
            if iters >= maxiter and residual_norm > tol:
                logger.warning(
                    "Newton-Raphson did not converge within %d iterations. "
                    "Final residual norm: %.2e.",
                    int(maxiter), float(residual_norm)
                )

        jax.debug.callback(
            warn_callback,
            niters, self.maxiter,
            residual_norm, tol
        )

        return NewtonResult(
            y=y_final,
            residual_norm=residual_norm,
            iterations=niters,
            converged=converged,
        )
