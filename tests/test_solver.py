"""Tests for the time-stepping solver and the direct linear solver."""

import numpy as np
import pytest
from scipy.sparse import csr_matrix, identity

from poroelasticity.assembly import (
    BoundaryConditions,
    CoefficientAssembler,
    DiscretizationConstants,
    RHSAssembler,
    create_strategy,
)
from poroelasticity.datastructures import GridParameters, GridType, InterpolationScheme, SolverState
from poroelasticity.errors import FactorizationError, SolveError
from poroelasticity.linear_solvers import factorize, scipy_solver
from poroelasticity.materials import SinglePorosityMaterial
from poroelasticity.meshing import create_grid
from poroelasticity.scenarios import terzaghi_bc
from poroelasticity.solver import TimeSteppingSolver


@pytest.fixture
def setup(berea_properties, small_grid_params):
    """Grid, matrix and RHS of a loaded Terzaghi column on a small staggered grid."""
    grid = create_grid(GridParameters(**{**small_grid_params, "Nt": 5}, grid_type=GridType.STAGGERED))
    material = SinglePorosityMaterial(berea_properties)
    constants = DiscretizationConstants.from_material(material, grid.dt)
    bcs = BoundaryConditions.from_lists(*terzaghi_bc(-1e4, 0.0))
    strategy = create_strategy(grid, bcs, constants, InterpolationScheme.NONE)
    return grid, CoefficientAssembler(strategy).assemble(), RHSAssembler(strategy)


@pytest.fixture
def unloaded(berea_properties, small_grid_params):
    grid = create_grid(GridParameters(**small_grid_params, grid_type=GridType.COLLOCATED))
    material = SinglePorosityMaterial(berea_properties)
    constants = DiscretizationConstants.from_material(material, grid.dt)
    bcs = BoundaryConditions.from_lists(*terzaghi_bc(0.0, 0.0))
    strategy = create_strategy(grid, bcs, constants, InterpolationScheme.I2DPIS)
    return grid, CoefficientAssembler(strategy).assemble(), RHSAssembler(strategy)


class TestDirectSolver:
    """Sparse LU factorization and solve."""

    def test_identity(self):
        A = identity(4, format="csr")
        b = np.arange(4.0)
        x, lu = scipy_solver(A, b)
        assert np.allclose(x, b)
        x2, lu2 = scipy_solver(A, 2 * b, lu=lu)
        assert lu2 is lu
        assert np.allclose(x2, 2 * b)

    def test_singular_matrix(self):
        A = csr_matrix(np.array([[1.0, 0.0], [0.0, 0.0]]))
        with pytest.raises(FactorizationError):
            factorize(A)

    def test_non_square(self):
        with pytest.raises(FactorizationError):
            factorize(csr_matrix(np.ones((2, 3))))

    def test_rhs_length_mismatch(self):
        with pytest.raises(SolveError):
            scipy_solver(identity(3, format="csr"), np.zeros(4))


class TestStateMachine:
    """Solver lifecycle transitions."""

    def test_initial_state(self, setup):
        solver = TimeSteppingSolver(*setup)
        assert solver.state is SolverState.UNFACTORIZED
        assert solver.time_step == 0
        assert solver.n_steps == 4

    def test_step_before_factorize(self, setup):
        solver = TimeSteppingSolver(*setup)
        with pytest.raises(SolveError):
            solver.step()

    def test_run_reaches_done(self, setup):
        solver = TimeSteppingSolver(*setup)
        solver.run()
        assert solver.state is SolverState.DONE
        assert solver.metrics.steps_taken == 4
        assert len(solver.metrics.step_seconds) == 4
        assert solver.time == pytest.approx(solver.grid.params.Lt)

    def test_step_after_done(self, setup):
        solver = TimeSteppingSolver(*setup)
        solver.run()
        with pytest.raises(SolveError):
            solver.step()

    def test_factorize_twice(self, setup):
        solver = TimeSteppingSolver(*setup)
        solver.factorize()
        assert solver.state is SolverState.FACTORIZED
        with pytest.raises(SolveError):
            solver.factorize()

    def test_manual_steps(self, setup):
        solver = TimeSteppingSolver(*setup)
        solver.factorize()
        solver.step()
        assert solver.state is SolverState.STEPPING
        assert solver.time_step == 1

    def test_singular_matrix_fails(self, setup):
        grid, matrix, rhs = setup
        solver = TimeSteppingSolver(grid, csr_matrix(matrix.shape), rhs)
        with pytest.raises(FactorizationError):
            solver.factorize()
        assert solver.state is SolverState.FAILED
        with pytest.raises(SolveError):
            solver.step()


class TestStepping:
    """Field evolution and snapshots."""

    def test_snapshots_at_requested_steps(self, setup):
        grid = setup[0]
        solver = TimeSteppingSolver(*setup, export_steps=(1, 2, 4))
        solver.run()
        assert [s.time_step for s in solver.snapshots] == [1, 2, 4]
        assert solver.snapshots[-1].time == pytest.approx(4 * grid.dt)
        df = solver.snapshots[0].to_dataframe()
        assert list(df.columns) == ["variable", "x", "y", "value", "time_step", "time"]
        assert len(df) == grid.n_unknowns

    def test_snapshots_are_copies(self, setup):
        solver = TimeSteppingSolver(*setup, export_steps=(1,))
        solver.run()
        first = solver.snapshots[0].values
        assert not np.shares_memory(first[next(iter(first))], solver.fields.u)

    def test_load_compresses_column(self, setup):
        solver = TimeSteppingSolver(*setup)
        fields = solver.run()
        assert np.all(np.isfinite(fields.p))
        # Downward load settles the top and raises pore pressure inside
        assert fields.v.min() < 0
        assert fields.p.max() > 0
        assert solver.metrics.final_max_abs_v == pytest.approx(np.abs(fields.v).max())

    def test_zero_forcing_stays_at_rest(self, unloaded):
        solver = TimeSteppingSolver(*unloaded)
        fields = solver.run()
        for kind in fields.kinds():
            assert np.array_equal(fields.get(kind), np.zeros_like(fields.get(kind)))

    def test_initial_fields_are_not_mutated(self, setup):
        grid = setup[0]
        initial = grid.zero_fields()
        solver = TimeSteppingSolver(*setup, initial=initial)
        solver.run()
        assert np.all(initial.p == 0.0)
