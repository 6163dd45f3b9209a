"""
Grid: structured 2D lattices for the poroelastic unknowns.

Every unknown kind (u, v, p and optionally p_frac) lives on its own
extended lattice of shape (nJ, nI). The lattice holds the cell-centred or
face-centred nodes plus one row/column of boundary nodes per side.
Corner nodes are never active.

Indexing Conventions:
- Lattice positions are (J, I): J runs south to north, I west to east.
- `index[J, I]` is the kind-local unknown number, -1 for inactive nodes.
- Numbering is row-major (south to north, west to east).
- Global unknown = offset[kind] + index[J, I], ordering [u | v | p | p_frac].

Status Codes:
- INACTIVE (-2) for corners and unused staggered boundary nodes
- INTERIOR (-1) for nodes that carry a balance equation
- Side value (0..3, NORTH/WEST/SOUTH/EAST) for boundary nodes

Collocated topology: all kinds share the pressure lattice, x = [0, cell
centres, Lx], y = [0, cell centres, Ly].

Staggered topology:
- p on the pressure lattice.
- u at vertical faces: x = i dx (i = 0..Nx), y = [0, cell centres, Ly].
  Columns 0 and Nx are boundary nodes normal to WEST/EAST, rows 0 and Ny+1
  hold tangential boundary nodes for the interior columns.
- v at horizontal faces, the transpose of u.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List

import numpy as np

from ..datastructures import Fields, GridParameters, GridType, Side, Variable
from ..errors import AssemblyError, ConfigurationError
from .numbering import gather_coordinates, number_active_nodes, scatter_to_lattice

log = logging.getLogger(__name__)

INACTIVE = -2
INTERIOR = -1


@dataclass
class Lattice:
    """Active-node numbering and geometry of one unknown kind."""

    kind: Variable
    index: np.ndarray
    x: np.ndarray
    y: np.ndarray
    status: np.ndarray
    count: int
    coordinates: np.ndarray

    @property
    def shape(self):
        return self.index.shape

    @property
    def positions(self):
        """(N, 2) lattice positions (J, I) in index order."""
        return np.argwhere(self.index >= 0)

    def is_active(self, J, I):
        nJ, nI = self.index.shape
        return 0 <= J < nJ and 0 <= I < nI and self.index[J, I] >= 0

    def side(self, J, I):
        """Side of a boundary node, None for interior nodes."""
        code = int(self.status[J, I])
        if code == INACTIVE:
            raise KeyError(f"{self.kind.name} node ({J}, {I}) is inactive")
        return None if code == INTERIOR else Side(code)

    def nodes(self):
        """Yield (J, I) of active nodes in index order."""
        nJ, nI = self.index.shape
        for J in range(nJ):
            for I in range(nI):
                if self.index[J, I] >= 0:
                    yield J, I

    def to_lattice(self, values):
        """Scatter a per-node vector onto the (nJ, nI) lattice."""
        return scatter_to_lattice(self.index, np.asarray(values, dtype=np.float64))


class Grid:
    """Structured grid with per-kind lattices and the global unknown layout."""

    def __init__(self, params: GridParameters, lattices: Dict[Variable, Lattice]):
        self.params = params
        self.grid_type = params.grid_type
        self.Nx, self.Ny = params.Nx, params.Ny
        self.Lx, self.Ly = params.Lx, params.Ly
        self.dx, self.dy = params.dx, params.dy
        self.dt = params.dt
        self.h = params.h
        self.lattices = lattices
        self.kinds: List[Variable] = [k for k in Variable if k in lattices]

        self.offsets = {}
        offset = 0
        for kind in self.kinds:
            self.offsets[kind] = offset
            offset += lattices[kind].count
        self.n_unknowns = offset

        self.horizontal_face_status, self.vertical_face_status = _face_status(self.Nx, self.Ny)

    @property
    def n_pressure_fields(self):
        return 2 if Variable.P_FRAC in self.lattices else 1

    @property
    def pressure_kinds(self):
        return [k for k in self.kinds if k.is_pressure]

    def count(self, kind: Variable) -> int:
        return self.lattices[kind].count

    def global_index(self, kind: Variable, J: int, I: int) -> int:
        local = self.lattices[kind].index[J, I]
        if local < 0:
            raise KeyError(f"{kind.name} node ({J}, {I}) is inactive")
        return self.offsets[kind] + int(local)

    def block(self, kind: Variable) -> slice:
        start = self.offsets[kind]
        return slice(start, start + self.lattices[kind].count)

    def zero_fields(self) -> Fields:
        """Zero-initialised field arrays for every unknown kind."""
        return Fields(
            u=np.zeros(self.count(Variable.U)),
            v=np.zeros(self.count(Variable.V)),
            p=np.zeros(self.count(Variable.P)),
            p_frac=np.zeros(self.count(Variable.P_FRAC)) if Variable.P_FRAC in self.lattices else None,
        )

    def to_vector(self, fields: Fields) -> np.ndarray:
        """Stack fields in global unknown order."""
        x = np.empty(self.n_unknowns)
        for kind in self.kinds:
            values = fields.get(kind)
            if values.shape != (self.count(kind),):
                raise AssemblyError(f"{kind.name} field has shape {values.shape}, expected ({self.count(kind)},)")
            x[self.block(kind)] = values
        return x

    def to_fields(self, x: np.ndarray) -> Fields:
        """Split a global vector into per-kind copies."""
        fields = self.zero_fields()
        for kind in self.kinds:
            fields.get(kind)[:] = x[self.block(kind)]
        return fields

    def __repr__(self):
        counts = ", ".join(f"{k.name}={self.count(k)}" for k in self.kinds)
        return f"Grid({self.grid_type.value}, Nx={self.Nx}, Ny={self.Ny}, {counts})"


# ========================================================
# Construction
# ========================================================


def _centres_with_walls(n, d, length):
    return np.concatenate(([0.0], (np.arange(n) + 0.5) * d, [length]))


def _face_status(Nx, Ny):
    horizontal = np.full((Ny + 1, Nx), INTERIOR, dtype=np.int8)
    horizontal[0, :] = Side.SOUTH
    horizontal[Ny, :] = Side.NORTH
    vertical = np.full((Ny, Nx + 1), INTERIOR, dtype=np.int8)
    vertical[:, 0] = Side.WEST
    vertical[:, Nx] = Side.EAST
    return horizontal, vertical


def _status_from_sides(nJ, nI, active):
    """Boundary side of every lattice node from its position."""
    status = np.full((nJ, nI), INTERIOR, dtype=np.int8)
    status[:, 0] = Side.WEST
    status[:, nI - 1] = Side.EAST
    status[0, :] = Side.SOUTH
    status[nJ - 1, :] = Side.NORTH
    status[~active] = INACTIVE
    return status


def _cell_lattice_mask(Nx, Ny):
    active = np.ones((Ny + 2, Nx + 2), dtype=np.bool_)
    active[0, 0] = active[0, -1] = active[-1, 0] = active[-1, -1] = False
    return active


def _make_lattice(kind, active, x, y, status=None):
    index = number_active_nodes(active)
    count = int(active.sum())
    if status is None:
        status = _status_from_sides(active.shape[0], active.shape[1], active)
    coordinates = gather_coordinates(index, x, y, count)
    return Lattice(kind=kind, index=index, x=x, y=y, status=status, count=count, coordinates=coordinates)


def _staggered_u_lattice(Nx, Ny, dx, dy, Lx, Ly, x0, y0):
    x = x0 + np.arange(Nx + 1) * dx
    y = y0 + _centres_with_walls(Ny, dy, Ly)
    active = np.zeros((Ny + 2, Nx + 1), dtype=np.bool_)
    active[1 : Ny + 1, :] = True
    active[0, 1:Nx] = True
    active[Ny + 1, 1:Nx] = True

    status = np.full(active.shape, INTERIOR, dtype=np.int8)
    status[0, :] = Side.SOUTH
    status[Ny + 1, :] = Side.NORTH
    # Normal boundary nodes take precedence along the vertical walls
    status[:, 0] = Side.WEST
    status[:, Nx] = Side.EAST
    status[~active] = INACTIVE
    return _make_lattice(Variable.U, active, x, y, status)


def _staggered_v_lattice(Nx, Ny, dx, dy, Lx, Ly, x0, y0):
    x = x0 + _centres_with_walls(Nx, dx, Lx)
    y = y0 + np.arange(Ny + 1) * dy
    active = np.zeros((Ny + 1, Nx + 2), dtype=np.bool_)
    active[:, 1 : Nx + 1] = True
    active[1:Ny, 0] = True
    active[1:Ny, Nx + 1] = True

    status = np.full(active.shape, INTERIOR, dtype=np.int8)
    status[:, 0] = Side.WEST
    status[:, Nx + 1] = Side.EAST
    status[0, :] = Side.SOUTH
    status[Ny, :] = Side.NORTH
    status[~active] = INACTIVE
    return _make_lattice(Variable.V, active, x, y, status)


def create_grid(params: GridParameters) -> Grid:
    """Build the lattices and global layout for a structured grid.

    Parameters
    ----------
    params : GridParameters
        Domain lengths, cell counts, time levels, topology and whether a
        second pressure field is carried.

    Returns
    -------
    Grid
        Grid with one lattice per unknown kind.
    """
    if not isinstance(params, GridParameters):
        raise ConfigurationError(f"Expected GridParameters, got {type(params).__name__}")

    Nx, Ny, dx, dy, Lx, Ly = params.Nx, params.Ny, params.dx, params.dy, params.Lx, params.Ly
    x0, y0 = params.origin

    xc = x0 + _centres_with_walls(Nx, dx, Lx)
    yc = y0 + _centres_with_walls(Ny, dy, Ly)
    cell_mask = _cell_lattice_mask(Nx, Ny)

    lattices = {Variable.P: _make_lattice(Variable.P, cell_mask, xc, yc)}
    if params.double_porosity:
        lattices[Variable.P_FRAC] = _make_lattice(Variable.P_FRAC, cell_mask, xc, yc)

    if params.grid_type is GridType.COLLOCATED:
        lattices[Variable.U] = _make_lattice(Variable.U, cell_mask, xc, yc)
        lattices[Variable.V] = _make_lattice(Variable.V, cell_mask, xc, yc)
    elif params.grid_type is GridType.STAGGERED:
        lattices[Variable.U] = _staggered_u_lattice(Nx, Ny, dx, dy, Lx, Ly, x0, y0)
        lattices[Variable.V] = _staggered_v_lattice(Nx, Ny, dx, dy, Lx, Ly, x0, y0)
    else:
        raise ConfigurationError(f"Unknown grid_type: {params.grid_type}")

    grid = Grid(params, lattices)
    log.info(f"Created {grid!r} with {grid.n_unknowns} unknowns, dt={grid.dt:.4e}")
    return grid
