"""Linear solvers for the assembled system."""

from .scipy_solver import factorize, scipy_solver

__all__ = ["factorize", "scipy_solver"]
