"""Fixed-step time-stepping schemes."""

from .protocol import StepperProtocol, CollocationProtocol
from .base import FixedStepIntegrator
from .explicit import ButcherTableau, ExplicitRungeKutta, ForwardEuler, RK4
from .implicit import ImplicitTrapezoidal

__all__ = [
    # Protocols and base class
    'StepperProtocol',
    'CollocationProtocol',
    'FixedStepIntegrator',

    # Explicit methods
    'ButcherTableau',
    'ExplicitRungeKutta',
    'ForwardEuler',
    'RK4',

    # Implicit methods
    'ImplicitTrapezoidal',
]
