"""Boundary condition table keyed by (side, variable).

Tables are given the way scenario drivers write them: one row per side in
the order NORTH, WEST, SOUTH, EAST, one column per variable in the order
u, v, p (, p_frac). Type codes are 1 (Dirichlet), 0 (Neumann) and -1
(Stress for displacements, Darcy flux for pressures).

Values are read against the side's outward normal n:

- Neumann: d(phi)/dn. A hydrostatic pressure with dp/dy = -rho_f g is
  -rho_f g on the north side and +rho_f g on the south side.
- Stress: the traction component (sigma . n) along the variable's axis,
  tension positive.
- Darcy flux: the outward flux q . n, zero for a sealed side.
"""

from dataclasses import dataclass
from typing import Dict, Sequence, Tuple

from ..datastructures import BCType, Side, Variable
from ..errors import AssemblyError, ConfigurationError


@dataclass(frozen=True)
class BoundaryCondition:
    type: BCType
    value: float


class BoundaryConditions:
    """Immutable lookup of the boundary operator for every side and unknown kind."""

    def __init__(self, entries: Dict[Tuple[Side, Variable], BoundaryCondition]):
        self._entries = dict(entries)

    @classmethod
    def from_lists(cls, types: Sequence[Sequence[int]], values: Sequence[Sequence[float]]):
        """Build from per-side rows of type codes and values.

        Parameters
        ----------
        types : sequence of sequences
            ``types[side][variable]`` type codes, sides ordered N, W, S, E.
        values : sequence of sequences
            Values with the same layout as ``types``.
        """
        if len(types) != len(Side) or len(values) != len(Side):
            raise ConfigurationError(f"Boundary tables need {len(Side)} sides, got {len(types)} and {len(values)}")
        entries = {}
        for side in Side:
            row_types, row_values = types[side], values[side]
            if len(row_types) != len(row_values):
                raise ConfigurationError(f"{side.name}: {len(row_types)} types but {len(row_values)} values")
            if len(row_types) > len(Variable):
                raise ConfigurationError(f"{side.name}: too many columns ({len(row_types)})")
            for col, (code, value) in enumerate(zip(row_types, row_values)):
                entries[(side, Variable(col))] = BoundaryCondition(BCType.parse(code), float(value))
        return cls(entries)

    def get(self, side: Side, kind: Variable) -> BoundaryCondition:
        try:
            return self._entries[(side, kind)]
        except KeyError:
            raise AssemblyError(f"No boundary condition for {kind.name} on the {side.name} side") from None

    def type(self, side: Side, kind: Variable) -> BCType:
        return self.get(side, kind).type

    def value(self, side: Side, kind: Variable) -> float:
        return self.get(side, kind).value

    def require(self, kinds: Sequence[Variable]):
        """Fail fast if any (side, kind) pair needed by the grid is missing."""
        for side in Side:
            for kind in kinds:
                self.get(side, kind)

    def kinds(self):
        return sorted({kind for (_, kind) in self._entries})

    def __repr__(self):
        rows = []
        for side in Side:
            cells = [
                f"{kind.name}:{self._entries[(side, kind)].type.name[0]}={self._entries[(side, kind)].value:g}"
                for kind in Variable
                if (side, kind) in self._entries
            ]
            rows.append(f"{side.name}[{', '.join(cells)}]")
        return f"BoundaryConditions({'; '.join(rows)})"
