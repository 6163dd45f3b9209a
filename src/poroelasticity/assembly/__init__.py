"""Discretization of the Biot system: strategies, boundary rows and assemblers."""

from .boundary import BoundaryCondition, BoundaryConditions
from .collocated import CollocatedPISStrategy, CollocatedStrategy
from .dispatch import STRATEGIES, create_strategy, strategy_class
from .equation import DiscretizationConstants, Equation, Node
from .matrix import CoefficientAssembler
from .rhs import RHSAssembler
from .special_loads import RigidPlateLoad, SpecialLoad, StripLoad
from .staggered import StaggeredStrategy
from .strategy import AssemblyStrategy

__all__ = [
    "AssemblyStrategy",
    "BoundaryCondition",
    "BoundaryConditions",
    "CoefficientAssembler",
    "CollocatedPISStrategy",
    "CollocatedStrategy",
    "DiscretizationConstants",
    "Equation",
    "Node",
    "RHSAssembler",
    "RigidPlateLoad",
    "STRATEGIES",
    "SpecialLoad",
    "StaggeredStrategy",
    "StripLoad",
    "create_strategy",
    "strategy_class",
]
