"""Abstract base class for poroelastic material models.

A material model turns raw rock/fluid properties into the derived
coefficients the discretization consumes. Pressure-indexed coefficients
are tuples with one entry per pressure field, in global order (p, p_frac).
"""

from abc import ABC, abstractmethod
from typing import Dict, Tuple

import numpy as np
import pandas as pd

from ..datastructures import MaterialProperties
from ..errors import ConfigurationError


class PoroelasticMaterial(ABC):
    """Derived elastic, coupling and storage coefficients of a medium."""

    def __init__(self, properties: MaterialProperties):
        self.properties = properties

        self.shear_modulus = properties.shear_modulus
        self.bulk_modulus = properties.bulk_modulus
        self.fluid_compressibility = 1.0 / properties.fluid_bulk_modulus
        self.solid_compressibility = 1.0 / properties.solid_bulk_modulus
        self.bulk_compressibility = 1.0 / properties.bulk_modulus
        self.fluid_viscosity = properties.fluid_viscosity
        self.fluid_density = properties.fluid_density

        self.lame_lambda = self.bulk_modulus - 2.0 * self.shear_modulus / 3.0
        # K + 4G/3 == lambda + 2G
        self.longitudinal_modulus = self.bulk_modulus + 4.0 * self.shear_modulus / 3.0
        self.biot_coefficient = 1.0 - self.solid_compressibility / self.bulk_compressibility
        self.mixture_density = (
            properties.porosity * properties.fluid_density
            + (1.0 - properties.porosity) * properties.solid_density
        )

        if self.biot_coefficient <= properties.porosity:
            raise ConfigurationError(
                f"{properties.name}: Biot coefficient {self.biot_coefficient:.4f} must exceed "
                f"porosity {properties.porosity}; check bulk and solid bulk moduli"
            )

    # ========================================================
    # Per-pressure-field coefficients
    # ========================================================

    @property
    @abstractmethod
    def biot_coefficients(self) -> Tuple[float, ...]:
        """Biot coefficient of each pressure field."""
        pass

    @property
    @abstractmethod
    def mobilities(self) -> Tuple[float, ...]:
        """Permeability over viscosity of each pressure field."""
        pass

    @property
    @abstractmethod
    def storage_matrix(self) -> np.ndarray:
        """Symmetric positive-definite storage matrix, one row per pressure field."""
        pass

    @property
    @abstractmethod
    def consolidation_coefficient(self) -> float:
        pass

    @abstractmethod
    def undrained_response(self, traction: float) -> Tuple[float, Tuple[float, ...]]:
        """Vertical strain and pressures right after a sudden uniaxial load.

        Parameters
        ----------
        traction : float
            Applied normal traction (negative in compression).

        Returns
        -------
        strain : float
            Undrained vertical strain.
        pressures : tuple of float
            Undrained pressure of each field.
        """
        pass

    def plate_undrained_response(self, traction: float) -> Tuple[float, float, Tuple[float, ...]]:
        """Strains and pressures right after a rigid plate load with free lateral expansion.

        Plane strain with sigma_xx = 0, sigma_yy = traction and no fluid
        exchange (S p = -alpha tr(eps)), as at the start of Mandel's problem.

        Returns
        -------
        strain_xx, strain_yy : float
            Undrained horizontal and vertical strains.
        pressures : tuple of float
            Undrained pressure of each field.
        """
        a = np.asarray(self.biot_coefficients, dtype=float)
        Sinv_a = np.linalg.solve(np.atleast_2d(self.storage_matrix), a)
        stiffening = a @ Sinv_a
        M = self.longitudinal_modulus + stiffening
        lam = self.lame_lambda + stiffening
        det = M * M - lam * lam
        strain_xx = -lam * traction / det
        strain_yy = M * traction / det
        pressures = -Sinv_a * (strain_xx + strain_yy)
        return float(strain_xx), float(strain_yy), tuple(float(p) for p in pressures)

    @abstractmethod
    def coefficients(self) -> Dict[str, float]:
        """Flat mapping of the derived coefficients for export."""
        pass

    @property
    def n_pressure_fields(self):
        return len(self.biot_coefficients)

    def leakage(self, shape_factor=0.0) -> float:
        """Inter-porosity transfer coefficient; zero for a single pressure field."""
        return 0.0

    def characteristic_time(self, h: float) -> float:
        """Diffusion time h^2 / c over a length h."""
        return h * h / self.consolidation_coefficient

    def minimum_time_step(self, h: float) -> float:
        """Smallest time step free of spurious pressure oscillations, h^2 / (6c)."""
        return h * h / (6.0 * self.consolidation_coefficient)

    def to_dataframe(self):
        return pd.DataFrame([self.coefficients()])

    def __repr__(self):
        return (
            f"{type(self).__name__}({self.properties.name}, alpha={self.biot_coefficient:.4f}, "
            f"c={self.consolidation_coefficient:.4e})"
        )
