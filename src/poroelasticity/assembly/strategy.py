"""
Shared interface of the (topology, scheme) assembly strategies.

A strategy walks every active unknown in global order and fills one
`Equation` per row:

- u rows: x-momentum balance  -sum_f (sigma . n)_x A_f = 0
- v rows: y-momentum balance  -sum_f (sigma . n)_y A_f = -rho g V
- p rows: mass balance multiplied by dt
      sum_j S_ij V p_j + alpha_i sum_f (u . n) A_f - dt sum_f K_i dp_i/dn A_f
      + dt L V (p_i - p_other) = history
- boundary rows: the boundary operator from the BC table

with total stress sigma = lambda tr(eps) I + 2 G eps - sum_k alpha_k p_k I,
tension positive and y pointing up. Subclasses supply the interior
stencils and the tangential derivatives used by traction rows.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterator, Tuple

from ..datastructures import BCType, GridType, InterpolationScheme, Side, Variable
from ..errors import AssemblyError, ConfigurationError
from ..meshing import Grid
from .boundary import BoundaryConditions
from .equation import DiscretizationConstants, Equation, Node, combine

log = logging.getLogger(__name__)

# (dJ, dI, axis, outward normal sign); axis 0 is x, 1 is y
FACES = (
    (0, 1, 0, 1.0),  # east
    (0, -1, 0, -1.0),  # west
    (1, 0, 1, 1.0),  # north
    (-1, 0, 1, -1.0),  # south
)

_AXIS = {Variable.U: 0, Variable.V: 1}
_OTHER = {Variable.U: Variable.V, Variable.V: Variable.U}


class AssemblyStrategy(ABC):
    """Discretization of the Biot system for one grid topology and face scheme."""

    grid_type: GridType = None
    scheme: InterpolationScheme = None

    def __init__(self, grid: Grid, bcs: BoundaryConditions, constants: DiscretizationConstants):
        if grid.grid_type is not self.grid_type:
            raise ConfigurationError(f"{type(self).__name__} cannot assemble a {grid.grid_type.value} grid")
        if constants.n_pressure_fields != grid.n_pressure_fields:
            raise ConfigurationError(
                f"Grid carries {grid.n_pressure_fields} pressure field(s), "
                f"constants describe {constants.n_pressure_fields}"
            )
        bcs.require(grid.kinds)
        self.grid = grid
        self.bcs = bcs
        self.constants = constants
        self.dx, self.dy = grid.dx, grid.dy
        self.volume = grid.dx * grid.dy

    # ========================================================
    # Traversal
    # ========================================================

    def nodes(self) -> Iterator[Node]:
        for kind in self.grid.kinds:
            lattice = self.grid.lattices[kind]
            offset = self.grid.offsets[kind]
            for J, I in lattice.nodes():
                yield Node(
                    kind=kind,
                    J=J,
                    I=I,
                    row=offset + int(lattice.index[J, I]),
                    side=lattice.side(J, I),
                    x=float(lattice.x[I]),
                    y=float(lattice.y[J]),
                )

    def equations(self) -> Iterator[Tuple[Node, Equation]]:
        """Yield (node, equation) for every unknown in global row order."""
        for node in self.nodes():
            eq = Equation()
            if node.side is None:
                if node.kind is Variable.U:
                    self.momentum_x(node, eq)
                elif node.kind is Variable.V:
                    self.momentum_y(node, eq)
                else:
                    self.mass(node, eq)
            else:
                self.boundary(node, eq)
            yield node, eq

    # ========================================================
    # Lattice helpers
    # ========================================================

    def col(self, kind: Variable, J: int, I: int) -> int:
        lattice = self.grid.lattices[kind]
        if not lattice.is_active(J, I):
            raise AssemblyError(f"Stencil reached inactive {kind.name} node ({J}, {I}) on {self.grid!r}")
        return self.grid.offsets[kind] + int(lattice.index[J, I])

    def coord(self, kind: Variable, J: int, I: int, axis: int) -> float:
        lattice = self.grid.lattices[kind]
        return float(lattice.x[I] if axis == 0 else lattice.y[J])

    def derivative(self, kind, a, b, axis) -> Dict[int, float]:
        """Two-point derivative (phi_b - phi_a) / (x_b - x_a) along an axis."""
        delta = self.coord(kind, *b, axis) - self.coord(kind, *a, axis)
        ca, cb = self.col(kind, *a), self.col(kind, *b)
        return {cb: 1.0 / delta, ca: -1.0 / delta}

    def pressure_terms(self, J, I, weight=1.0) -> Dict[int, float]:
        """sum_k alpha_k p_k at a pressure-lattice position."""
        return {
            self.col(kind, J, I): weight * self.constants.biot[kind.pressure_index]
            for kind in self.grid.pressure_kinds
        }

    # ========================================================
    # Interior balances (topology specific)
    # ========================================================

    @abstractmethod
    def momentum_x(self, node: Node, eq: Equation):
        pass

    @abstractmethod
    def momentum_y(self, node: Node, eq: Equation):
        pass

    @abstractmethod
    def displacement_flux(self, J: int, I: int) -> Dict[int, float]:
        """Stencil of sum_f (u . n) A_f over the faces of pressure cell (J, I)."""
        pass

    def mass(self, node: Node, eq: Equation):
        c = self.constants
        k = node.kind.pressure_index
        J, I = node.J, node.I

        storage = {}
        for other in self.grid.pressure_kinds:
            storage[self.col(other, J, I)] = c.storage[k][other.pressure_index] * self.volume
        coupling = self.displacement_flux(J, I)

        eq.add_terms(storage)
        eq.add_terms(coupling, c.biot[k])
        eq.add_history_terms(storage)
        eq.add_history_terms(coupling, c.biot[k])

        # Darcy flux, dt-scaled
        P = (J, I)
        for dJ, dI, axis, _ in FACES:
            nb = (J + dJ, I + dI)
            area = self.dy if axis == 0 else self.dx
            distance = abs(self.coord(node.kind, *nb, axis) - self.coord(node.kind, *P, axis))
            conductance = c.dt * c.mobility[k] * area / distance
            eq.add(node.row, conductance)
            eq.add(self.col(node.kind, *nb), -conductance)

        if c.n_pressure_fields == 2 and c.leakage != 0.0:
            other = Variable.P_FRAC if node.kind is Variable.P else Variable.P
            transfer = c.dt * c.leakage * self.volume
            eq.add(node.row, transfer)
            eq.add(self.col(other, J, I), -transfer)

    def body_force(self, node: Node, eq: Equation):
        c = self.constants
        if c.gravity != 0.0:
            eq.add_source(-c.mixture_density * c.gravity * self.volume)

    # ========================================================
    # Boundary operators
    # ========================================================

    def inner_neighbour(self, node: Node) -> Tuple[int, int]:
        nx, ny = node.side.normal
        return node.J - int(ny), node.I - int(nx)

    @abstractmethod
    def boundary_cross_derivative(self, node: Node) -> Dict[int, float]:
        """Derivative of the other displacement needed by a traction row.

        Normal rows need d(other)/d(other axis), tangential rows need
        d(other)/d(own axis).
        """
        pass

    @abstractmethod
    def boundary_pressure_position(self, node: Node) -> Tuple[int, int]:
        """Pressure-lattice position on the boundary next to a normal displacement node."""
        pass

    def boundary(self, node: Node, eq: Equation):
        bc = self.bcs.get(node.side, node.kind)
        if bc.type is BCType.DIRICHLET:
            eq.add(node.row, 1.0)
            eq.add_source(bc.value)
            return

        inner = self.inner_neighbour(node)
        normal_axis = 0 if node.side in (Side.WEST, Side.EAST) else 1
        distance = abs(self.coord(node.kind, *inner, normal_axis) - self.coord(node.kind, node.J, node.I, normal_axis))

        if bc.type is BCType.NEUMANN:
            eq.add(node.row, 1.0)
            eq.add(self.col(node.kind, *inner), -1.0)
            eq.add_source(distance * bc.value)
        elif node.kind.is_pressure:
            # Prescribed outward Darcy flux q.n = -K (dp/dn + rho_f g n_y)
            c = self.constants
            n_y = node.side.normal[1]
            mobility = c.mobility[node.kind.pressure_index]
            eq.add(node.row, 1.0)
            eq.add(self.col(node.kind, *inner), -1.0)
            eq.add_source(distance * (-bc.value / mobility - c.fluid_density * c.gravity * n_y))
        else:
            eq.add_terms(self.traction(node, inner, normal_axis))
            eq.add_source(bc.value)

    def traction(self, node: Node, inner, normal_axis) -> Dict[int, float]:
        """Stencil of t = (sigma . n) along the node's own axis."""
        c = self.constants
        n_sign = node.side.normal[normal_axis]
        own = self.derivative(node.kind, inner, (node.J, node.I), normal_axis)
        cross = self.boundary_cross_derivative(node)

        if _AXIS[node.kind] == normal_axis:
            pJ, pI = self.boundary_pressure_position(node)
            sigma = combine(
                (c.longitudinal_modulus, own),
                (c.lame_lambda, cross),
                (-1.0, self.pressure_terms(pJ, pI)),
            )
        else:
            sigma = combine((c.shear_modulus, own), (c.shear_modulus, cross))
        return {col: n_sign * coef for col, coef in sigma.items()}

    def __repr__(self):
        return f"{type(self).__name__}({self.grid!r})"
