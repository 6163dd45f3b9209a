"""Right-hand side assembly.

The right-hand side of every step is b = H x_old + f, where the history
operator H and the constant forcing f come from the same strategy and
special loads as the coefficient matrix.
"""

import logging

import numpy as np
from scipy.sparse import csr_matrix

from ..datastructures import Fields
from ..errors import AssemblyError
from .matrix import apply_special_loads

log = logging.getLogger(__name__)


class RHSAssembler:
    """Per-step right-hand side builder.

    Parameters
    ----------
    strategy : AssemblyStrategy
        Must be the strategy used for the coefficient matrix.
    special_loads : sequence, optional
        Must be the loads used for the coefficient matrix.
    """

    def __init__(self, strategy, special_loads=()):
        self.strategy = strategy
        self.special_loads = tuple(special_loads)
        self.history, self.forcing = self._build()

    def _build(self):
        n = self.strategy.grid.n_unknowns
        row, col, data = [], [], []
        forcing = np.zeros(n)
        for node, eq in apply_special_loads(self.strategy, self.special_loads):
            forcing[node.row] = eq.source
            for c in sorted(eq.history):
                row.append(node.row)
                col.append(c)
                data.append(eq.history[c])
        history = csr_matrix(
            (np.asarray(data, dtype=np.float64), (np.asarray(row, dtype=np.int64), np.asarray(col, dtype=np.int64))),
            shape=(n, n),
        )
        log.debug(f"History operator with {history.nnz} non-zeros, |f|_inf={np.abs(forcing).max():.4e}")
        return history, forcing

    def assemble(self, previous) -> np.ndarray:
        """Right-hand side for the step following `previous` (a global vector or `Fields`)."""
        if isinstance(previous, Fields):
            previous = self.strategy.grid.to_vector(previous)
        previous = np.asarray(previous, dtype=np.float64)
        if previous.shape != (self.strategy.grid.n_unknowns,):
            raise AssemblyError(
                f"Previous state has shape {previous.shape}, expected ({self.strategy.grid.n_unknowns},)"
            )
        return self.history @ previous + self.forcing
