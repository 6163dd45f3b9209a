"""Numba kernels for lattice numbering and scatter/gather."""

import numpy as np
from numba import njit


@njit(cache=True)
def number_active_nodes(active):
    """Number active lattice nodes row-major (south to north, west to east).

    Parameters
    ----------
    active : np.ndarray
        Boolean mask of shape (nJ, nI).

    Returns
    -------
    np.ndarray
        int64 array of the same shape, -1 where inactive.
    """
    nJ, nI = active.shape
    index = np.full((nJ, nI), -1, dtype=np.int64)
    count = 0
    for J in range(nJ):
        for I in range(nI):
            if active[J, I]:
                index[J, I] = count
                count += 1
    return index


@njit(cache=True)
def gather_coordinates(index, x, y, n_active):
    """Physical (x, y) of every active node, ordered by its index."""
    nJ, nI = index.shape
    xy = np.empty((n_active, 2), dtype=np.float64)
    for J in range(nJ):
        for I in range(nI):
            k = index[J, I]
            if k >= 0:
                xy[k, 0] = x[I]
                xy[k, 1] = y[J]
    return xy


@njit(cache=True)
def scatter_to_lattice(index, values):
    """Place a per-node vector on its lattice, NaN at inactive nodes."""
    nJ, nI = index.shape
    out = np.full((nJ, nI), np.nan)
    for J in range(nJ):
        for I in range(nI):
            k = index[J, I]
            if k >= 0:
                out[J, I] = values[k]
    return out
