"""Tests for grid construction and unknown numbering."""

import numpy as np
import pytest

from poroelasticity.datastructures import GridParameters, GridType, Side, Variable
from poroelasticity.errors import ConfigurationError
from poroelasticity.meshing import INACTIVE, INTERIOR, create_grid


SIZES = [(1, 1), (1, 6), (2, 3), (3, 4), (5, 5), (7, 2)]


def make_grid(Nx, Ny, grid_type, double_porosity=False):
    return create_grid(
        GridParameters(Lx=float(Nx), Ly=2.0 * Ny, Nx=Nx, Ny=Ny, Lt=1.0, Nt=2, grid_type=grid_type,
                       double_porosity=double_porosity)
    )


class TestDofCounts:
    """Active unknowns per kind for both topologies."""

    @pytest.mark.parametrize("Nx,Ny", SIZES)
    def test_collocated_counts(self, Nx, Ny):
        grid = make_grid(Nx, Ny, GridType.COLLOCATED)
        expected = Nx * Ny + 2 * Nx + 2 * Ny
        for kind in (Variable.U, Variable.V, Variable.P):
            assert grid.count(kind) == expected

    @pytest.mark.parametrize("Nx,Ny", SIZES)
    def test_staggered_counts(self, Nx, Ny):
        grid = make_grid(Nx, Ny, GridType.STAGGERED)
        assert grid.count(Variable.U) == (Nx + 1) * Ny + 2 * (Nx - 1)
        assert grid.count(Variable.V) == (Ny + 1) * Nx + 2 * (Ny - 1)
        assert grid.count(Variable.P) == Nx * Ny + 2 * Nx + 2 * Ny

    @pytest.mark.parametrize("Nx,Ny", SIZES)
    def test_staggered_never_exceeds_collocated(self, Nx, Ny):
        staggered = make_grid(Nx, Ny, GridType.STAGGERED)
        collocated = make_grid(Nx, Ny, GridType.COLLOCATED)
        for kind in (Variable.U, Variable.V, Variable.P):
            assert staggered.count(kind) <= collocated.count(kind)

    def test_double_porosity_adds_second_pressure(self):
        grid = make_grid(2, 3, GridType.STAGGERED, double_porosity=True)
        assert grid.count(Variable.P_FRAC) == grid.count(Variable.P)
        assert grid.n_pressure_fields == 2
        assert grid.n_unknowns == sum(grid.count(k) for k in Variable)

    def test_global_layout_is_contiguous(self):
        grid = make_grid(3, 4, GridType.COLLOCATED, double_porosity=True)
        assert grid.offsets[Variable.U] == 0
        assert grid.offsets[Variable.V] == grid.count(Variable.U)
        assert grid.offsets[Variable.P] == grid.offsets[Variable.V] + grid.count(Variable.V)
        assert grid.offsets[Variable.P_FRAC] == grid.offsets[Variable.P] + grid.count(Variable.P)


class TestIndexMaps:
    """Index maps are dense bijections onto the active nodes."""

    @pytest.mark.parametrize("grid_type", [GridType.COLLOCATED, GridType.STAGGERED])
    @pytest.mark.parametrize("Nx,Ny", SIZES)
    def test_indices_are_dense(self, grid_type, Nx, Ny):
        grid = make_grid(Nx, Ny, grid_type)
        for kind in grid.kinds:
            lattice = grid.lattices[kind]
            active = np.sort(lattice.index[lattice.index >= 0])
            assert np.array_equal(active, np.arange(lattice.count))

    @pytest.mark.parametrize("grid_type", [GridType.COLLOCATED, GridType.STAGGERED])
    def test_positions_invert_index(self, grid_type):
        grid = make_grid(3, 4, grid_type)
        for kind in grid.kinds:
            lattice = grid.lattices[kind]
            J, I = lattice.positions.T
            assert np.array_equal(lattice.index[J, I], np.arange(lattice.count))

    def test_numbering_is_row_major(self):
        grid = make_grid(2, 2, GridType.COLLOCATED)
        index = grid.lattices[Variable.P].index
        # South boundary row first, then west-to-east within each row
        assert index[0, 1] == 0
        assert index[0, 2] == 1
        assert index[1, 0] == 2
        assert index[3, 2] == grid.count(Variable.P) - 1

    @pytest.mark.parametrize("grid_type", [GridType.COLLOCATED, GridType.STAGGERED])
    def test_corners_are_inactive(self, grid_type):
        grid = make_grid(3, 3, grid_type)
        for kind in grid.kinds:
            lattice = grid.lattices[kind]
            nJ, nI = lattice.shape
            for J, I in ((0, 0), (0, nI - 1), (nJ - 1, 0), (nJ - 1, nI - 1)):
                assert lattice.index[J, I] == -1
                assert lattice.status[J, I] == INACTIVE

    def test_scatter_to_lattice(self):
        grid = make_grid(2, 3, GridType.STAGGERED)
        lattice = grid.lattices[Variable.V]
        values = np.arange(lattice.count, dtype=float)
        placed = lattice.to_lattice(values)
        assert placed.shape == lattice.shape
        assert np.isnan(placed[0, 0])
        J, I = lattice.positions.T
        assert np.array_equal(placed[J, I], values)

    def test_global_index_rejects_inactive(self):
        grid = make_grid(2, 2, GridType.STAGGERED)
        with pytest.raises(KeyError):
            grid.global_index(Variable.U, 0, 0)

    def test_vector_round_trip_preserves_kinds(self):
        grid = make_grid(2, 3, GridType.STAGGERED, double_porosity=True)
        fields = grid.zero_fields()
        fields.v[:] = 1.0
        fields.p_frac[:] = 2.0
        x = grid.to_vector(fields)
        assert np.all(x[grid.block(Variable.V)] == 1.0)
        assert np.all(x[grid.block(Variable.P_FRAC)] == 2.0)
        assert np.all(x[grid.block(Variable.U)] == 0.0)


class TestGeometry:
    """Node coordinates and face status."""

    def test_staggered_u_on_vertical_faces(self):
        grid = create_grid(GridParameters(Lx=2.0, Ly=1.0, Nx=4, Ny=2, Lt=1.0, Nt=2, grid_type="staggered"))
        u = grid.lattices[Variable.U]
        assert np.allclose(u.x, [0.0, 0.5, 1.0, 1.5, 2.0])
        assert np.allclose(u.y, [0.0, 0.25, 0.75, 1.0])

    def test_collocated_boundary_nodes_on_walls(self):
        grid = create_grid(GridParameters(Lx=2.0, Ly=1.0, Nx=4, Ny=2, Lt=1.0, Nt=2, grid_type="collocated"))
        p = grid.lattices[Variable.P]
        assert np.allclose(p.x, [0.0, 0.25, 0.75, 1.25, 1.75, 2.0])
        assert p.coordinates.shape == (grid.count(Variable.P), 2)

    def test_boundary_status(self):
        grid = make_grid(3, 3, GridType.STAGGERED)
        u = grid.lattices[Variable.U]
        assert u.side(1, 0) is Side.WEST
        assert u.side(1, 3) is Side.EAST
        assert u.side(0, 1) is Side.SOUTH
        assert u.side(4, 2) is Side.NORTH
        assert u.side(2, 1) is None
        assert u.status[2, 1] == INTERIOR

    def test_face_status_shapes(self):
        grid = make_grid(3, 4, GridType.COLLOCATED)
        assert grid.horizontal_face_status.shape == (5, 3)
        assert grid.vertical_face_status.shape == (4, 4)
        assert np.all(grid.horizontal_face_status[0] == Side.SOUTH)
        assert np.all(grid.vertical_face_status[:, -1] == Side.EAST)
        assert np.all(grid.horizontal_face_status[1:-1] == INTERIOR)

    def test_steps(self, small_grid_params):
        grid = create_grid(GridParameters(**small_grid_params))
        assert grid.dx == pytest.approx(0.5)
        assert grid.dy == pytest.approx(0.5)
        assert grid.dt == pytest.approx(0.5)

    def test_shifted_origin(self):
        corners = ((3.0, 7.0), (1.0, 7.0), (1.0, 1.0), (3.0, 1.0))
        grid = create_grid(GridParameters(Lx=2.0, Ly=6.0, Nx=2, Ny=3, Lt=1.0, Nt=2, corners=corners))
        assert grid.lattices[Variable.U].x[0] == pytest.approx(1.0)
        assert grid.lattices[Variable.V].y[-1] == pytest.approx(7.0)


class TestGridValidation:
    """Invalid grid input fails before anything is built."""

    @pytest.mark.parametrize(
        "overrides",
        [{"Nt": 1}, {"Nx": 0}, {"Ny": -2}, {"Lx": 0.0}, {"Ly": -1.0}, {"Lt": 0.0}],
    )
    def test_rejects_non_positive(self, small_grid_params, overrides):
        with pytest.raises(ConfigurationError):
            GridParameters(**{**small_grid_params, **overrides})

    def test_rejects_unknown_topology(self, small_grid_params):
        with pytest.raises(ConfigurationError):
            GridParameters(**small_grid_params, grid_type="hexagonal")

    def test_rejects_skewed_corners(self, small_grid_params):
        corners = ((1.5, 2.0), (0.0, 2.1), (0.0, 0.0), (1.5, 0.0))
        with pytest.raises(ConfigurationError):
            GridParameters(**small_grid_params, corners=corners)

    def test_rejects_corners_not_matching_extent(self, small_grid_params):
        corners = ((3.0, 2.0), (0.0, 2.0), (0.0, 0.0), (3.0, 0.0))
        with pytest.raises(ConfigurationError):
            GridParameters(**small_grid_params, corners=corners)
