"""Data structures for scenario configuration and results.

This module defines the configuration and result data structures
shared by the grid, material, assembly and solver layers.

Structure:
- Enums: grid topology, interpolation scheme, boundary vocabulary
- Parameters: Input configuration (logged to MLflow at start)
- Fields: Solution state of one time level
- Snapshot: Exported solution at a requested time step
- Metrics: Output results (logged to MLflow at end)
"""

from dataclasses import dataclass, asdict, field
from enum import Enum, IntEnum
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from .errors import ConfigurationError


# ========================================================
# Enums
# ========================================================


class _ParsableEnum(Enum):
    @classmethod
    def parse(cls, value):
        """Resolve a member from itself, its name or its value (case-insensitive)."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().upper()
            if key in cls.__members__:
                return cls.__members__[key]
            for member in cls:
                if isinstance(member.value, str) and member.value.upper() == key:
                    return member
        else:
            for member in cls:
                if member.value == value:
                    return member
        raise ConfigurationError(f"Unknown {cls.__name__}: {value!r}")


class GridType(_ParsableEnum):
    """Placement of displacement unknowns relative to pressure cells."""

    COLLOCATED = "collocated"
    STAGGERED = "staggered"


class InterpolationScheme(_ParsableEnum):
    """Face reconstruction used by the collocated topology."""

    NONE = "NA"
    CDS = "CDS"
    I2DPIS = "I2DPIS"


class BCType(_ParsableEnum):
    """Boundary condition kind, with the integer codes used in input tables."""

    DIRICHLET = 1
    NEUMANN = 0
    STRESS = -1


class Side(IntEnum):
    """Domain sides in the order boundary tables list them."""

    NORTH = 0
    WEST = 1
    SOUTH = 2
    EAST = 3

    @property
    def normal(self):
        return {
            Side.NORTH: (0.0, 1.0),
            Side.WEST: (-1.0, 0.0),
            Side.SOUTH: (0.0, -1.0),
            Side.EAST: (1.0, 0.0),
        }[self]

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        if isinstance(value, str) and value.strip().upper() in cls.__members__:
            return cls[value.strip().upper()]
        if isinstance(value, int) and 0 <= value < len(cls):
            return cls(value)
        raise ConfigurationError(f"Unknown Side: {value!r}")


class Variable(IntEnum):
    """Unknown kinds in global ordering [u | v | p | p_frac]."""

    U = 0
    V = 1
    P = 2
    P_FRAC = 3

    @property
    def is_pressure(self):
        return self in (Variable.P, Variable.P_FRAC)

    @property
    def pressure_index(self):
        """Position of the pressure field in per-field coefficient tuples."""
        return int(self) - int(Variable.P)

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        if isinstance(value, str) and value.strip().upper() in cls.__members__:
            return cls[value.strip().upper()]
        if isinstance(value, int) and 0 <= value < len(cls):
            return cls(value)
        raise ConfigurationError(f"Unknown Variable: {value!r}")


class SolverState(Enum):
    """Lifecycle of a time-stepping solver."""

    UNFACTORIZED = "unfactorized"
    FACTORIZED = "factorized"
    STEPPING = "stepping"
    DONE = "done"
    FAILED = "failed"


# ========================================================
# Parameters (Input Configuration)
# ========================================================


@dataclass(frozen=True)
class GridParameters:
    """Domain and resolution of a structured grid."""

    Lx: float = 1.0
    Ly: float = 6.0
    Nx: int = 3
    Ny: int = 18
    Lt: float = 1.0
    Nt: int = 2
    grid_type: GridType = GridType.STAGGERED
    double_porosity: bool = False
    corners: Optional[Tuple[Tuple[float, float], ...]] = None  # NE, NW, SW, SE

    def __post_init__(self):
        object.__setattr__(self, "grid_type", GridType.parse(self.grid_type))
        if self.Lx <= 0 or self.Ly <= 0:
            raise ConfigurationError(f"Domain lengths must be positive, got Lx={self.Lx}, Ly={self.Ly}")
        if self.Nx < 1 or self.Ny < 1:
            raise ConfigurationError(f"Need at least one cell per direction, got Nx={self.Nx}, Ny={self.Ny}")
        if self.Nt < 2:
            raise ConfigurationError(f"Nt counts time levels including the initial one, got Nt={self.Nt}")
        if self.Lt <= 0:
            raise ConfigurationError(f"Total time must be positive, got Lt={self.Lt}")
        if self.corners is None:
            corners = ((self.Lx, self.Ly), (0.0, self.Ly), (0.0, 0.0), (self.Lx, 0.0))
        else:
            corners = tuple(tuple(float(c) for c in corner) for corner in self.corners)
        object.__setattr__(self, "corners", corners)
        self._check_rectangle()

    def _check_rectangle(self):
        if len(self.corners) != 4 or any(len(c) != 2 for c in self.corners):
            raise ConfigurationError(f"Expected four (x, y) corners, got {self.corners}")
        (ne, nw, sw, se) = np.array(self.corners)
        aligned = ne[1] == nw[1] and sw[1] == se[1] and ne[0] == se[0] and nw[0] == sw[0]
        if not aligned:
            raise ConfigurationError(f"Corners NE, NW, SW, SE do not form an axis-aligned rectangle: {self.corners}")
        if not (np.isclose(ne[0] - nw[0], self.Lx) and np.isclose(ne[1] - se[1], self.Ly)):
            raise ConfigurationError(
                f"Corners span {ne[0] - nw[0]} x {ne[1] - se[1]}, expected Lx={self.Lx}, Ly={self.Ly}"
            )

    @property
    def origin(self):
        """South-west corner."""
        return self.corners[2]

    @property
    def dx(self):
        return self.Lx / self.Nx

    @property
    def dy(self):
        return self.Ly / self.Ny

    @property
    def dt(self):
        return self.Lt / (self.Nt - 1)

    @property
    def h(self):
        return min(self.dx, self.dy)

    def to_dataframe(self):
        row = asdict(self)
        row["grid_type"] = self.grid_type.value
        row["corners"] = str(self.corners)
        return pd.DataFrame([row])


@dataclass(frozen=True)
class MaterialProperties:
    """Raw rock and fluid properties of a porous medium (SI units)."""

    name: str
    shear_modulus: float
    bulk_modulus: float
    solid_bulk_modulus: float
    solid_density: float
    fluid_bulk_modulus: float
    porosity: float
    permeability: float
    fluid_viscosity: float
    fluid_density: float

    def __post_init__(self):
        positive = (
            "shear_modulus",
            "bulk_modulus",
            "solid_bulk_modulus",
            "solid_density",
            "fluid_bulk_modulus",
            "permeability",
            "fluid_viscosity",
            "fluid_density",
        )
        for attr in positive:
            value = getattr(self, attr)
            if not np.isfinite(value) or value <= 0:
                raise ConfigurationError(f"{self.name}: {attr} must be positive, got {value}")
        if not 0.0 < self.porosity < 1.0:
            raise ConfigurationError(f"{self.name}: porosity must lie in (0, 1), got {self.porosity}")

    def to_dataframe(self):
        return pd.DataFrame([asdict(self)])


@dataclass(frozen=True)
class ScenarioParameters:
    """Top-level run configuration resolved from the CLI or a config file."""

    scenario: str = "terzaghi"
    grid_type: GridType = GridType.STAGGERED
    interp_scheme: InterpolationScheme = InterpolationScheme.NONE
    medium: str = "bereaSandstone"
    mesh: int = 3
    Nt: int = 2
    time_step_fraction: float = 0.25
    total_time: Optional[float] = None
    load: float = -10e3
    gravity: float = 0.0
    shape_factor: Optional[float] = None

    def __post_init__(self):
        object.__setattr__(self, "grid_type", GridType.parse(self.grid_type))
        object.__setattr__(self, "interp_scheme", InterpolationScheme.parse(self.interp_scheme))
        if self.mesh < 1:
            raise ConfigurationError(f"mesh must be a positive integer, got {self.mesh}")
        if self.Nt < 2:
            raise ConfigurationError(f"Nt must be at least 2, got {self.Nt}")
        if self.total_time is None and self.time_step_fraction <= 0:
            raise ConfigurationError(f"time_step_fraction must be positive, got {self.time_step_fraction}")
        if self.total_time is not None and self.total_time <= 0:
            raise ConfigurationError(f"total_time must be positive, got {self.total_time}")
        if self.gravity < 0:
            raise ConfigurationError(f"gravity is a magnitude, got {self.gravity}")

    def to_dataframe(self):
        row = asdict(self)
        row["grid_type"] = self.grid_type.value
        row["interp_scheme"] = self.interp_scheme.value
        return pd.DataFrame([row])


# ========================================================
# Fields (Solution State)
# ========================================================


@dataclass
class Fields:
    """Per-kind unknown vectors of one time level, in grid index order."""

    u: np.ndarray
    v: np.ndarray
    p: np.ndarray
    p_frac: Optional[np.ndarray] = None

    def get(self, kind: Variable) -> np.ndarray:
        values = {
            Variable.U: self.u,
            Variable.V: self.v,
            Variable.P: self.p,
            Variable.P_FRAC: self.p_frac,
        }[kind]
        if values is None:
            raise KeyError(f"Fields carry no {kind.name} values")
        return values

    def kinds(self) -> List[Variable]:
        kinds = [Variable.U, Variable.V, Variable.P]
        if self.p_frac is not None:
            kinds.append(Variable.P_FRAC)
        return kinds

    def copy(self) -> "Fields":
        return Fields(
            u=self.u.copy(),
            v=self.v.copy(),
            p=self.p.copy(),
            p_frac=None if self.p_frac is None else self.p_frac.copy(),
        )


# ========================================================
# Snapshot (Exported Solution)
# ========================================================


@dataclass
class Snapshot:
    """Copy of the solution at one exported time step with node coordinates."""

    time_step: int
    time: float
    values: Dict[Variable, np.ndarray]
    coordinates: Dict[Variable, np.ndarray]

    def to_dataframe(self) -> pd.DataFrame:
        """Long format: one row per unknown with its kind and position."""
        frames = []
        for kind, values in self.values.items():
            xy = self.coordinates[kind]
            frames.append(
                pd.DataFrame(
                    {
                        "variable": kind.name.lower(),
                        "x": xy[:, 0],
                        "y": xy[:, 1],
                        "value": values,
                        "time_step": self.time_step,
                        "time": self.time,
                    }
                )
            )
        return pd.concat(frames, ignore_index=True)


# ========================================================
# Metrics (Output Results)
# ========================================================


@dataclass
class Metrics:
    """Run metrics - output results computed during/after solving."""

    n_unknowns: int = 0
    nnz: int = 0
    steps_taken: int = 0
    assembly_seconds: float = 0.0
    factorization_seconds: float = 0.0
    wall_time_seconds: float = 0.0
    final_max_abs_p: float = 0.0
    final_max_abs_v: float = 0.0
    step_seconds: List[float] = field(default_factory=list)

    def to_dataframe(self):
        row = asdict(self)
        row.pop("step_seconds")
        row["mean_step_seconds"] = float(np.mean(self.step_seconds)) if self.step_seconds else 0.0
        return pd.DataFrame([row])
