"""Pytest configuration and fixtures for poroelasticity tests."""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from poroelasticity.datastructures import MaterialProperties  # noqa: E402


@pytest.fixture
def berea_properties():
    """Berea sandstone saturated with water."""
    return MaterialProperties(
        name="bereaSandstone",
        shear_modulus=6.0e9,
        bulk_modulus=8.0e9,
        solid_bulk_modulus=36.0e9,
        solid_density=2650.0,
        fluid_bulk_modulus=2.25e9,
        porosity=0.19,
        permeability=1.9e-13,
        fluid_viscosity=1.0e-3,
        fluid_density=1000.0,
    )


@pytest.fixture
def column_grid_params():
    """Parameters for the 1 x 6 sealed column with one cell per metre."""
    return {"Lx": 1.0, "Ly": 6.0, "Nx": 1, "Ny": 6, "Lt": 10.0, "Nt": 2}


@pytest.fixture
def small_grid_params():
    """Parameters for a small 3 x 4 grid."""
    return {"Lx": 1.5, "Ly": 2.0, "Nx": 3, "Ny": 4, "Lt": 1.0, "Nt": 3}


@pytest.fixture
def input_dir():
    return Path(__file__).parent.parent / "input"
