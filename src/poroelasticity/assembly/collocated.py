"""Collocated topology: u, v and p all at cell centres plus boundary-face nodes.

Face values are reconstructed from the two adjacent cell values:

- CDS: arithmetic mean.
- I2DPIS: the mean corrected by the face-normal momentum balance,
      u_f = (u_P + u_N)/2 - (x_N - x_P) / (8 M) sum_k alpha_k (p_k,N - p_k,P)
  which adds a pressure-Laplacian term to the mass balance and removes the
  checkerboard mode of the central scheme.

Boundary faces use the boundary node directly. Tangential derivatives at a
face are the mean of the two cell-centre derivatives, or the inner cell's
derivative at a boundary face.
"""

from ..datastructures import GridType, InterpolationScheme, Variable
from .equation import combine
from .strategy import FACES, AssemblyStrategy

U, V = Variable.U, Variable.V


class CollocatedStrategy(AssemblyStrategy):
    """Collocated strategy with central (CDS) face interpolation."""

    grid_type = GridType.COLLOCATED
    scheme = InterpolationScheme.CDS

    def _is_cell(self, J, I):
        return 1 <= J <= self.grid.Ny and 1 <= I <= self.grid.Nx

    def cell_derivative(self, kind, J, I, axis):
        """Central derivative at a cell centre through its two neighbours."""
        if axis == 0:
            return self.derivative(kind, (J, I - 1), (J, I + 1), 0)
        return self.derivative(kind, (J - 1, I), (J + 1, I), 1)

    def face_derivative(self, kind, P, nb, axis):
        """Tangential derivative at the face between cell P and neighbour nb."""
        if self._is_cell(*nb):
            return combine((0.5, self.cell_derivative(kind, *P, axis)), (0.5, self.cell_derivative(kind, *nb, axis)))
        return self.cell_derivative(kind, *P, axis)

    def face_pressure(self, P, nb):
        if self._is_cell(*nb):
            return combine((0.5, self.pressure_terms(*P)), (0.5, self.pressure_terms(*nb)))
        return self.pressure_terms(*nb)

    def face_displacement(self, kind, P, nb, axis):
        """Face value of the normal displacement used by the mass balance."""
        if self._is_cell(*nb):
            return {self.col(kind, *P): 0.5, self.col(kind, *nb): 0.5}
        return {self.col(kind, *nb): 1.0}

    # ========================================================
    # Interior balances
    # ========================================================

    def _momentum(self, node, eq, kind):
        c = self.constants
        other = V if kind is U else U
        axis = 0 if kind is U else 1
        P = (node.J, node.I)
        forces = {}
        for dJ, dI, face_axis, sign in FACES:
            nb = (node.J + dJ, node.I + dI)
            area = self.dy if face_axis == 0 else self.dx
            own = self.derivative(kind, P, nb, face_axis)
            if face_axis == axis:
                # Normal stress on this face
                sigma = combine(
                    (c.longitudinal_modulus, own),
                    (c.lame_lambda, self.face_derivative(other, P, nb, 1 - axis)),
                    (-1.0, self.face_pressure(P, nb)),
                )
            else:
                sigma = combine(
                    (c.shear_modulus, own),
                    (c.shear_modulus, self.face_derivative(other, P, nb, axis)),
                )
            forces = combine((1.0, forces), (sign * area, sigma))
        eq.add_terms(forces, -1.0)

    def momentum_x(self, node, eq):
        self._momentum(node, eq, U)

    def momentum_y(self, node, eq):
        self._momentum(node, eq, V)
        self.body_force(node, eq)

    def displacement_flux(self, J, I):
        flux = {}
        P = (J, I)
        for dJ, dI, axis, sign in FACES:
            nb = (J + dJ, I + dI)
            kind = U if axis == 0 else V
            area = self.dy if axis == 0 else self.dx
            flux = combine((1.0, flux), (sign * area, self.face_displacement(kind, P, nb, axis)))
        return flux

    # ========================================================
    # Boundary hooks
    # ========================================================

    def boundary_cross_derivative(self, node):
        inner = self.inner_neighbour(node)
        other = V if node.kind is U else U
        own_axis = 0 if node.kind is U else 1
        normal_axis = 1 if node.side.normal[0] == 0.0 else 0
        if own_axis == normal_axis:
            return self.cell_derivative(other, *inner, 1 - own_axis)
        return self.cell_derivative(other, *inner, own_axis)

    def boundary_pressure_position(self, node):
        return node.J, node.I


class CollocatedPISStrategy(CollocatedStrategy):
    """Collocated strategy with physical-influence (I2DPIS) face interpolation."""

    scheme = InterpolationScheme.I2DPIS

    def face_displacement(self, kind, P, nb, axis):
        terms = super().face_displacement(kind, P, nb, axis)
        if not self._is_cell(*nb):
            return terms
        delta = self.coord(kind, *nb, axis) - self.coord(kind, *P, axis)
        factor = -delta / (8.0 * self.constants.longitudinal_modulus)
        return combine(
            (1.0, terms),
            (factor, self.pressure_terms(*nb)),
            (-factor, self.pressure_terms(*P)),
        )
