"""Direct linear solvers."""

from flax import nnx
from jax import Array
import jax.numpy as jnp
import jax.scipy.linalg as jax_linalg


class DirectDense(nnx.Module):
    """
    Direct solver for dense linear systems.

    Dispatches to `jax.numpy.linalg.solve`.
    Suited to the small, dense Newton matrices I - (h/2) df/dx of
    trajectory optimisation problems.
    """

    def __call__(self, A: Array, b: Array) -> Array:
        """
        Solve A*x = b.

        Args:
            A: Dense matrix
            b: Right-hand side vector

        Returns:
            Solution x

        Raises:
            TypeError: If A is a callable (linear operator) instead of a matrix
        """
        if callable(A):
            raise TypeError(
                "DirectDense requires a dense matrix, not a linear operator."
            )

        return jnp.linalg.solve(A, b)


class DirectLU(nnx.Module):
    """
    Direct solver based on an LU factorisation with partial pivoting.

    Dispatches to `jax.scipy.linalg.lu_factor` / `lu_solve`.
    """

    def __call__(self, A: Array, b: Array) -> Array:
        """
        Solve A*x = b.

        Args:
            A: Dense matrix
            b: Right-hand side vector

        Returns:
            Solution x
        """
        if callable(A):
            raise TypeError(
                "DirectLU requires a dense matrix, not a linear operator."
            )

        lu_and_piv = jax_linalg.lu_factor(A)
        return jax_linalg.lu_solve(lu_and_piv, b)
