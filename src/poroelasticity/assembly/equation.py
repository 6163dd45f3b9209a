"""Per-row equation records shared by the matrix and RHS assemblers.

A strategy produces one `Equation` per unknown. The left-hand side goes
into the coefficient matrix; the history coefficients (applied to the
previous time level) and the constant source make up the right-hand side:

    A[row] . x_new = H[row] . x_old + source
"""

from dataclasses import dataclass, replace
from typing import Dict, NamedTuple, Optional, Tuple

from ..datastructures import Side, Variable
from ..errors import ConfigurationError


class Node(NamedTuple):
    """An active unknown: its kind, lattice position, global row and location."""

    kind: Variable
    J: int
    I: int
    row: int
    side: Optional[Side]
    x: float
    y: float


class Equation:
    __slots__ = ("lhs", "history", "source")

    def __init__(self):
        self.lhs: Dict[int, float] = {}
        self.history: Dict[int, float] = {}
        self.source = 0.0

    def add(self, col, coef):
        self.lhs[col] = self.lhs.get(col, 0.0) + coef

    def add_terms(self, terms, factor=1.0):
        for col, coef in terms.items():
            self.add(col, factor * coef)

    def add_history(self, col, coef):
        self.history[col] = self.history.get(col, 0.0) + coef

    def add_history_terms(self, terms, factor=1.0):
        for col, coef in terms.items():
            self.add_history(col, factor * coef)

    def add_source(self, value):
        self.source += value

    def clear(self):
        self.lhs.clear()
        self.history.clear()
        self.source = 0.0

    def __repr__(self):
        return f"Equation(lhs={self.lhs}, history={self.history}, source={self.source})"


def combine(*weighted):
    """Sum (factor, terms) pairs into one stencil dict."""
    out: Dict[int, float] = {}
    for factor, terms in weighted:
        for col, coef in terms.items():
            out[col] = out.get(col, 0.0) + factor * coef
    return out


@dataclass(frozen=True)
class DiscretizationConstants:
    """Material and time constants the strategies need, one entry per pressure field."""

    dt: float
    shear_modulus: float
    lame_lambda: float
    biot: Tuple[float, ...]
    mobility: Tuple[float, ...]
    storage: Tuple[Tuple[float, ...], ...]
    leakage: float = 0.0
    mixture_density: float = 0.0
    fluid_density: float = 0.0
    gravity: float = 0.0

    def __post_init__(self):
        n = len(self.biot)
        if n not in (1, 2) or len(self.mobility) != n or len(self.storage) != n:
            raise ConfigurationError(
                f"Inconsistent per-field constants: biot={self.biot}, mobility={self.mobility}, storage={self.storage}"
            )
        if self.dt <= 0:
            raise ConfigurationError(f"dt must be positive, got {self.dt}")

    @property
    def n_pressure_fields(self):
        return len(self.biot)

    @property
    def longitudinal_modulus(self):
        return self.lame_lambda + 2.0 * self.shear_modulus

    @classmethod
    def from_material(cls, material, dt, gravity=0.0, shape_factor=0.0):
        """Collect the constants of a `PoroelasticMaterial` for a given time step."""
        storage = material.storage_matrix
        return cls(
            dt=dt,
            shear_modulus=material.shear_modulus,
            lame_lambda=material.lame_lambda,
            biot=tuple(material.biot_coefficients),
            mobility=tuple(material.mobilities),
            storage=tuple(tuple(float(s) for s in row) for row in storage),
            leakage=material.leakage(shape_factor),
            mixture_density=material.mixture_density,
            fluid_density=material.fluid_density,
            gravity=gravity,
        )

    def with_dt(self, dt):
        """Same constants at another time step."""
        return replace(self, dt=dt)
