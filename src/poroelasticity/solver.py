"""Implicit-Euler time stepping with a single LU factorization."""

import logging
import time
from typing import Iterable, List, Optional

import numpy as np
from scipy.sparse import csr_matrix

from .assembly import RHSAssembler
from .datastructures import Fields, Metrics, Snapshot, SolverState
from .errors import FactorizationError, PoroelasticityError, SolveError
from .linear_solvers import factorize, scipy_solver
from .meshing import Grid

log = logging.getLogger(__name__)


class TimeSteppingSolver:
    """Owns the field state and marches it through Nt - 1 implicit steps.

    Handles:
    - One-time LU factorization of the coefficient matrix
    - The step loop: build RHS -> solve -> write fields back
    - Snapshot capture for requested time steps
    - Metrics (solves, timings, final magnitudes)

    Parameters
    ----------
    grid : Grid
        Grid the matrix was assembled on.
    matrix : csr_matrix
        Coefficient matrix, unchanged for the whole run.
    rhs : RHSAssembler
        Right-hand side builder sharing the matrix's strategy.
    initial : Fields, optional
        Initial condition; zero fields if omitted.
    export_steps : iterable of int, optional
        Time steps (1..Nt-1) whose solution is kept as a `Snapshot`.
    """

    def __init__(
        self,
        grid: Grid,
        matrix: csr_matrix,
        rhs: RHSAssembler,
        initial: Optional[Fields] = None,
        export_steps: Iterable[int] = (),
    ):
        self.grid = grid
        self.matrix = matrix
        self.rhs = rhs
        self.fields = grid.zero_fields() if initial is None else initial.copy()
        self._x = grid.to_vector(self.fields)
        self.export_steps = sorted(set(int(s) for s in export_steps))
        self.snapshots: List[Snapshot] = []
        self.metrics = Metrics(n_unknowns=grid.n_unknowns, nnz=int(matrix.nnz))
        self.state = SolverState.UNFACTORIZED
        self.time_step = 0
        self._lu = None

    @property
    def n_steps(self):
        return self.grid.params.Nt - 1

    @property
    def time(self):
        return self.time_step * self.grid.dt

    def factorize(self):
        if self.state is not SolverState.UNFACTORIZED:
            raise SolveError(f"Cannot factorize in state {self.state.value}")
        start = time.perf_counter()
        try:
            self._lu = factorize(self.matrix)
        except FactorizationError:
            self.state = SolverState.FAILED
            raise
        self.metrics.factorization_seconds = time.perf_counter() - start
        self.state = SolverState.FACTORIZED
        log.info(f"Factorized {self.grid.n_unknowns} unknowns in {self.metrics.factorization_seconds:.3f}s")

    def step(self) -> Fields:
        """Advance one time level; returns the updated fields."""
        if self.state not in (SolverState.FACTORIZED, SolverState.STEPPING):
            raise SolveError(f"Cannot step in state {self.state.value}")
        self.state = SolverState.STEPPING
        start = time.perf_counter()
        try:
            b = self.rhs.assemble(self._x)
            x, _ = scipy_solver(self.matrix, b, lu=self._lu)
        except PoroelasticityError:
            self.state = SolverState.FAILED
            raise

        self._x = x
        self.fields = self.grid.to_fields(x)
        self.time_step += 1
        self.metrics.steps_taken = self.time_step
        self.metrics.step_seconds.append(time.perf_counter() - start)

        if self.time_step in self.export_steps:
            self.snapshots.append(self.snapshot())
        if self.time_step == self.n_steps:
            self.state = SolverState.DONE
        log.debug(f"Step {self.time_step}/{self.n_steps}: t={self.time:.4e}, max|p|={np.abs(self.fields.p).max():.4e}")
        return self.fields

    def run(self) -> Fields:
        """Factorize if needed and take all remaining steps."""
        start = time.perf_counter()
        if self.state is SolverState.UNFACTORIZED:
            self.factorize()
        while self.state is not SolverState.DONE:
            self.step()
        self.metrics.wall_time_seconds = time.perf_counter() - start
        self.metrics.final_max_abs_p = float(np.abs(self.fields.p).max())
        self.metrics.final_max_abs_v = float(np.abs(self.fields.v).max())
        log.info(f"Completed {self.time_step} steps in {self.metrics.wall_time_seconds:.3f}s")
        return self.fields

    def snapshot(self) -> Snapshot:
        return Snapshot(
            time_step=self.time_step,
            time=self.time,
            values={kind: self.fields.get(kind).copy() for kind in self.grid.kinds},
            coordinates={kind: self.grid.lattices[kind].coordinates for kind in self.grid.kinds},
        )
