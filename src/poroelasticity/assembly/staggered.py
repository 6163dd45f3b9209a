"""Staggered topology: u on vertical faces, v on horizontal faces, p at cell centres.

All face quantities of the coupling terms are native unknowns, so no
interpolation scheme is involved. Normal stresses are evaluated at cell
centres, shear stresses at cell vertices.
"""

from ..datastructures import GridType, InterpolationScheme, Side, Variable
from .equation import combine
from .strategy import AssemblyStrategy

U, V = Variable.U, Variable.V


class StaggeredStrategy(AssemblyStrategy):
    grid_type = GridType.STAGGERED
    scheme = InterpolationScheme.NONE

    # ========================================================
    # Stress stencils
    # ========================================================

    def _cell_strains(self, J, I):
        """du/dx and dv/dy of pressure cell (J, I) from its own faces."""
        dudx = {self.col(U, J, I): 1.0 / self.dx, self.col(U, J, I - 1): -1.0 / self.dx}
        dvdy = {self.col(V, J, I): 1.0 / self.dy, self.col(V, J - 1, I): -1.0 / self.dy}
        return dudx, dvdy

    def _sigma_xx(self, J, I):
        c = self.constants
        dudx, dvdy = self._cell_strains(J, I)
        return combine((c.longitudinal_modulus, dudx), (c.lame_lambda, dvdy), (-1.0, self.pressure_terms(J, I)))

    def _sigma_yy(self, J, I):
        c = self.constants
        dudx, dvdy = self._cell_strains(J, I)
        return combine((c.lame_lambda, dudx), (c.longitudinal_modulus, dvdy), (-1.0, self.pressure_terms(J, I)))

    def _sigma_xy(self, jv, iu):
        """Shear stress at the vertex x = x_u[iu], y = y_v[jv]."""
        dudy = self.derivative(U, (jv, iu), (jv + 1, iu), 1)
        dvdx = self.derivative(V, (jv, iu), (jv, iu + 1), 0)
        return combine((self.constants.shear_modulus, dudy), (self.constants.shear_modulus, dvdx))

    # ========================================================
    # Interior balances
    # ========================================================

    def momentum_x(self, node, eq):
        J, I = node.J, node.I
        # CV between the centres of cells (J, I) and (J, I + 1)
        forces = combine(
            (self.dy, self._sigma_xx(J, I + 1)),
            (-self.dy, self._sigma_xx(J, I)),
            (self.dx, self._sigma_xy(J, I)),
            (-self.dx, self._sigma_xy(J - 1, I)),
        )
        eq.add_terms(forces, -1.0)

    def momentum_y(self, node, eq):
        J, I = node.J, node.I
        # CV between the centres of cells (J, I) and (J + 1, I)
        forces = combine(
            (self.dy, self._sigma_xy(J, I)),
            (-self.dy, self._sigma_xy(J, I - 1)),
            (self.dx, self._sigma_yy(J + 1, I)),
            (-self.dx, self._sigma_yy(J, I)),
        )
        eq.add_terms(forces, -1.0)
        self.body_force(node, eq)

    def displacement_flux(self, J, I):
        return {
            self.col(U, J, I): self.dy,
            self.col(U, J, I - 1): -self.dy,
            self.col(V, J, I): self.dx,
            self.col(V, J - 1, I): -self.dx,
        }

    # ========================================================
    # Boundary hooks
    # ========================================================

    def boundary_cross_derivative(self, node):
        J, I, side = node.J, node.I, node.side
        Nx, Ny = self.grid.Nx, self.grid.Ny
        if node.kind is U:
            if side in (Side.WEST, Side.EAST):
                Ic = 1 if side is Side.WEST else Nx
                return self.derivative(V, (J - 1, Ic), (J, Ic), 1)
            Jv = 0 if side is Side.SOUTH else Ny
            return self.derivative(V, (Jv, I), (Jv, I + 1), 0)
        if side in (Side.SOUTH, Side.NORTH):
            Ju = 1 if side is Side.SOUTH else Ny
            return self.derivative(U, (Ju, I - 1), (Ju, I), 0)
        Iu = 0 if side is Side.WEST else Nx
        return self.derivative(U, (J, Iu), (J + 1, Iu), 1)

    def boundary_pressure_position(self, node):
        if node.side is Side.WEST:
            return node.J, 0
        if node.side is Side.EAST:
            return node.J, self.grid.Nx + 1
        if node.side is Side.SOUTH:
            return 0, node.I
        return self.grid.Ny + 1, node.I
