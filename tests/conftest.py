"""Shared pytest configuration: the tolerances below assume double precision."""

import pytest
import jax

jax.config.update("jax_enable_x64", True)


@pytest.fixture
def single_precision():
    """Run one test with JAX's default 32-bit floats."""
    jax.config.update("jax_enable_x64", False)
    yield
    jax.config.update("jax_enable_x64", True)
