"""
Fixed-step integration of controlled dynamical systems written in JAX,
with the collocation constraints used by direct transcription.
"""

# Dynamical systems
from .dynamics import (
    DynamicalSystemProtocol,
    DynamicalSystem,
    DynamicsEvaluationError,
    FunctionSystem,
    LinearSystem,
    Pendulum,
)

# Time-stepping schemes
from .timesteppers import (
    StepperProtocol,
    CollocationProtocol,
    FixedStepIntegrator,
    ButcherTableau,
    ExplicitRungeKutta,
    ForwardEuler,
    RK4,
    ImplicitTrapezoidal,
)

# Root-finding algorithms
from .rootfinders import RootFinderProtocol, NewtonRaphson

# Linear solvers
from .linsolvers import LinearSolverProtocol, DirectDense, DirectLU

# Results
from .results import (
    IntegrationStatus,
    IntegratorInfo,
    SolutionElement,
    NewtonResult,
    StepResult,
    CollocationResult,
    CollocationJacobianResult,
    DefectJacobianResult,
    SimulationResult,
)

# Drivers
from .solve import solve_ivp
from .transcription import evaluate_defects, evaluate_defects_jacobian

__all__ = [
    # Dynamical systems
    'DynamicalSystemProtocol',
    'DynamicalSystem',
    'DynamicsEvaluationError',
    'FunctionSystem',
    'LinearSystem',
    'Pendulum',

    # Time-stepping methods
    'StepperProtocol',
    'CollocationProtocol',
    'FixedStepIntegrator',
    'ButcherTableau',
    'ExplicitRungeKutta',
    'ForwardEuler',
    'RK4',
    'ImplicitTrapezoidal',

    # Root-finding algorithms
    'RootFinderProtocol',
    'NewtonRaphson',

    # Linear solvers
    'LinearSolverProtocol',
    'DirectDense',
    'DirectLU',

    # Results
    'IntegrationStatus',
    'IntegratorInfo',
    'SolutionElement',
    'NewtonResult',
    'StepResult',
    'CollocationResult',
    'CollocationJacobianResult',
    'DefectJacobianResult',
    'SimulationResult',

    # Drivers
    'solve_ivp',
    'evaluate_defects',
    'evaluate_defects_jacobian',
]
