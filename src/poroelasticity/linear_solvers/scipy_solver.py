"""Scipy-based direct solver using a reusable sparse LU factorization."""

import logging

import numpy as np
from scipy.sparse import csr_matrix
from scipy.sparse.linalg import splu

from ..errors import FactorizationError, SolveError

log = logging.getLogger(__name__)


def factorize(A_csr: csr_matrix):
    """Sparse LU factorization of A.

    Parameters
    ----------
    A_csr : csr_matrix
        Square sparse matrix.

    Returns
    -------
    scipy.sparse.linalg.SuperLU
        Factorization object whose ``solve`` can be called repeatedly.

    Raises
    ------
    FactorizationError
        If the matrix is not square or SuperLU reports it singular.
    """
    n, m = A_csr.shape
    if n != m:
        raise FactorizationError(f"Cannot factorize a non-square {n}x{m} matrix")
    try:
        lu = splu(A_csr.tocsc())
    except RuntimeError as e:
        diag = np.abs(A_csr.diagonal())
        raise FactorizationError(
            f"LU factorization failed for {n}x{m} matrix with nnz={A_csr.nnz}, "
            f"min |diag|={diag.min() if diag.size else float('nan'):.3e}: {e}"
        ) from e
    log.debug(f"Factorized {n}x{m} matrix, nnz(L)={lu.L.nnz}, nnz(U)={lu.U.nnz}")
    return lu


def scipy_solver(A_csr: csr_matrix, b_np: np.ndarray, lu=None):
    """Solve A x = b with sparse LU, factorizing only when no factorization is given.

    Parameters
    ----------
    A_csr : csr_matrix
        Sparse matrix in CSR format.
    b_np : np.ndarray
        Right-hand side vector.
    lu : SuperLU, optional
        Existing factorization of ``A_csr`` to reuse.

    Returns
    -------
    x_np : np.ndarray
        Solution vector.
    lu : SuperLU
        Factorization used, for reuse by the next call.
    """
    if lu is None:
        lu = factorize(A_csr)
    b = np.asarray(b_np, dtype=np.float64)
    if b.shape != (A_csr.shape[0],):
        raise SolveError(f"RHS has shape {b.shape}, expected ({A_csr.shape[0]},)")
    x = lu.solve(b)
    if not np.all(np.isfinite(x)):
        raise SolveError("LU solve produced non-finite values")
    return x, lu
