"""Special boundary loads applied on top of the boundary condition table.

A special load edits the per-row equations produced by a strategy. Both
assemblers apply the same loads, so the matrix and right-hand side stay
consistent.
"""

import logging
from dataclasses import dataclass

from ..datastructures import BCType, Side, Variable
from ..errors import ConfigurationError

log = logging.getLogger(__name__)


class SpecialLoad:
    """Hooks a special load may override.

    `modify` sees one row at a time in global order; `finalize` runs once
    every row exists, for loads that couple rows along a whole side.
    """

    side: Side

    @property
    def normal_kind(self):
        return Variable.V if self.side in (Side.NORTH, Side.SOUTH) else Variable.U

    def validate(self, strategy):
        if strategy.bcs.type(self.side, self.normal_kind) is not BCType.STRESS:
            raise ConfigurationError(
                f"{type(self).__name__} on {self.side.name} needs a stress condition on {self.normal_kind.name}"
            )

    def modify(self, node, eq, strategy):
        pass

    def finalize(self, equations, strategy):
        pass


@dataclass(frozen=True)
class StripLoad(SpecialLoad):
    """Traction confined to the span [0, width] of one side (strip footing).

    Parameters
    ----------
    side : Side
        Loaded side.
    width : float
        Strip width measured from the side's start (west or south end).
    traction : float
        Normal traction added on the strip (negative in compression).
    drained : bool
        Whether the strip is free-draining (zero pressure under the strip).
    """

    side: Side
    width: float
    traction: float
    drained: bool = True

    def __post_init__(self):
        object.__setattr__(self, "side", Side.parse(self.side))
        if self.width <= 0:
            raise ConfigurationError(f"Strip width must be positive, got {self.width}")

    def validate(self, strategy):
        grid = strategy.grid
        span = grid.Lx if self.side in (Side.NORTH, Side.SOUTH) else grid.Ly
        if self.width > span:
            raise ConfigurationError(f"Strip width {self.width} exceeds the {self.side.name} side ({span})")
        super().validate(strategy)

    def covers(self, node, grid):
        x0, y0 = grid.params.origin
        along = node.x - x0 if self.side in (Side.NORTH, Side.SOUTH) else node.y - y0
        return along <= self.width + 1e-12 * max(grid.Lx, grid.Ly)

    def modify(self, node, eq, strategy):
        if node.side is not self.side or not self.covers(node, strategy.grid):
            return
        if node.kind is self.normal_kind:
            eq.add_source(self.traction)
        elif self.drained and node.kind.is_pressure:
            eq.clear()
            eq.add(node.row, 1.0)


@dataclass(frozen=True)
class RigidPlateLoad(SpecialLoad):
    """Rigid frictionless plate pressed onto one side (Mandel's problem).

    Every normal displacement on the side follows the first one, so the
    plate settles uniformly. The first row is replaced by the balance of
    the integrated normal traction against the plate force.

    Parameters
    ----------
    side : Side
        Side carrying the plate.
    force : float
        Total normal force per unit depth on the plate (negative in compression).
    """

    side: Side
    force: float

    def __post_init__(self):
        object.__setattr__(self, "side", Side.parse(self.side))

    def plate_nodes(self, equations):
        return [(node, eq) for node, eq in equations if node.side is self.side and node.kind is self.normal_kind]

    def finalize(self, equations, strategy):
        plate = self.plate_nodes(equations)
        if not plate:
            raise ConfigurationError(f"No {self.normal_kind.name} unknowns on the {self.side.name} side")
        width = strategy.grid.dx if self.side in (Side.NORTH, Side.SOUTH) else strategy.grid.dy

        # sum_k width * t_k = force, t_k being each node's traction row
        lhs, history, source = {}, {}, self.force
        for _, eq in plate:
            for col, coef in eq.lhs.items():
                lhs[col] = lhs.get(col, 0.0) + width * coef
            for col, coef in eq.history.items():
                history[col] = history.get(col, 0.0) + width * coef
            source += width * eq.source

        lead, balance = plate[0]
        for node, eq in plate[1:]:
            eq.clear()
            eq.add(node.row, 1.0)
            eq.add(lead.row, -1.0)

        balance.clear()
        balance.add_terms(lhs)
        balance.add_history_terms(history)
        balance.add_source(source)
        log.debug(f"Rigid plate on {self.side.name}: {len(plate)} nodes tied to row {lead.row}")
