"""Finite-volume Biot poroelasticity engine.

Stages: grid (`meshing`), material coefficients (`materials`), matrix and
right-hand side assembly (`assembly`), implicit time stepping (`solver`),
orchestrated per benchmark scenario by `pipeline`.
"""

from .datastructures import (
    BCType,
    Fields,
    GridParameters,
    GridType,
    InterpolationScheme,
    MaterialProperties,
    Metrics,
    ScenarioParameters,
    Side,
    Snapshot,
    SolverState,
    Variable,
)
from .errors import AssemblyError, ConfigurationError, FactorizationError, PoroelasticityError, SolveError
from .pipeline import RunResult, run_scenario
from .scenarios import SCENARIOS, get_scenario
from .solver import TimeSteppingSolver

__all__ = [
    "AssemblyError",
    "BCType",
    "ConfigurationError",
    "FactorizationError",
    "Fields",
    "GridParameters",
    "GridType",
    "InterpolationScheme",
    "MaterialProperties",
    "Metrics",
    "PoroelasticityError",
    "RunResult",
    "SCENARIOS",
    "ScenarioParameters",
    "Side",
    "Snapshot",
    "SolveError",
    "SolverState",
    "TimeSteppingSolver",
    "Variable",
    "get_scenario",
    "run_scenario",
]
