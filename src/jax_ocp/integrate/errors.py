"""Failure reporting shared by integrators and transcription helpers.

Contract violations and dynamics failures are raised internally as
exceptions and converted into tagged results at the public boundary, so
callers only ever see a result with a non-success status.
"""

import functools
import logging
from typing import Callable

from .dynamics import DynamicsEvaluationError
from .results import IntegrationStatus

logger = logging.getLogger(__name__)


class IntegrationError(Exception):
    """Internal failure carrying the status reported to the caller."""

    def __init__(self, status: IntegrationStatus, message: str):
        super().__init__(message)
        self.status = status


def reports_failures(result_type) -> Callable:
    """
    Turn failures raised inside the decorated callable into results.

    Args:
        result_type: Result class exposing a `failure(status, message)`
            constructor.

    Returns:
        Decorator.
    """
    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                return fn(*args, **kwargs)
            except IntegrationError as e:
                status, message = e.status, str(e)
            except DynamicsEvaluationError as e:
                status = IntegrationStatus.DYNAMICS_FAILURE
                message = f"dynamics evaluation failed: {e}"
            logger.warning("%s failed [%s]: %s", fn.__qualname__, status.value, message)
            return result_type.failure(status, message)
        return wrapper
    return decorator
