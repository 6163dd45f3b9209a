"""Structured grids and unknown numbering."""

from .grid import INACTIVE, INTERIOR, Grid, Lattice, create_grid

__all__ = ["INACTIVE", "INTERIOR", "Grid", "Lattice", "create_grid"]
