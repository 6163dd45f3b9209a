"""Coefficient matrix assembly."""

import logging

import numpy as np
from scipy.sparse import csr_matrix

from ..errors import AssemblyError

log = logging.getLogger(__name__)


def apply_special_loads(strategy, special_loads):
    """Return the strategy's (node, equation) pairs after every special load has edited them."""
    for load in special_loads:
        load.validate(strategy)
    equations = list(strategy.equations())
    for node, eq in equations:
        for load in special_loads:
            load.modify(node, eq, strategy)
    for load in special_loads:
        load.finalize(equations, strategy)
    return equations


class CoefficientAssembler:
    """Builds the (time-independent) coefficient matrix of one scenario.

    Parameters
    ----------
    strategy : AssemblyStrategy
        Discretization for the grid topology and interpolation scheme.
    special_loads : sequence, optional
        Loads editing boundary rows (e.g. `StripLoad`).
    """

    def __init__(self, strategy, special_loads=()):
        self.strategy = strategy
        self.special_loads = tuple(special_loads)

    def triplets(self):
        """Return row, col, data arrays sorted by (row, col).

        Raises
        ------
        AssemblyError
            If a row is never produced, has no non-zero entry or a zero diagonal.
        """
        n = self.strategy.grid.n_unknowns
        seen = np.zeros(n, dtype=bool)
        row, col, data = [], [], []

        for node, eq in apply_special_loads(self.strategy, self.special_loads):
            if seen[node.row]:
                raise AssemblyError(f"Row {node.row} ({node.kind.name} at {node.J},{node.I}) assembled twice")
            seen[node.row] = True
            if eq.lhs.get(node.row, 0.0) == 0.0:
                raise AssemblyError(
                    f"Row {node.row} ({node.kind.name} at {node.J},{node.I}, side={node.side}) has a zero diagonal"
                )
            for c in sorted(eq.lhs):
                row.append(node.row)
                col.append(c)
                data.append(eq.lhs[c])

        if not seen.all():
            missing = np.flatnonzero(~seen)
            raise AssemblyError(f"{missing.size} rows never assembled, first {missing[:5].tolist()}")

        return (
            np.asarray(row, dtype=np.int64),
            np.asarray(col, dtype=np.int64),
            np.asarray(data, dtype=np.float64),
        )

    def assemble(self) -> csr_matrix:
        row, col, data = self.triplets()
        n = self.strategy.grid.n_unknowns
        A = csr_matrix((data, (row, col)), shape=(n, n))
        log.info(f"Assembled {n}x{n} matrix with {A.nnz} non-zeros using {type(self.strategy).__name__}")
        return A
