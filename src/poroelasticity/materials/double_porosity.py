"""Double-porosity Biot medium (matrix pores + fractures).

The total porosity phi is split into a matrix share phi_1 and a fracture
share phi_2, and each pore system carries its own pressure. With
psi_i = phi_i / phi the partial Biot coefficients are alpha_i = psi_i alpha
and the storage matrix is

    S_ij = delta_ij phi_i c_f + (alpha_i - phi_i)(alpha_j - phi_j) c_s / (alpha - phi)

which sums to the single-porosity storativity and is symmetric positive
definite whenever alpha > phi. Mass is exchanged between the systems at
rate L (p_1 - p_2) with L = shape_factor * kappa_1 / mu.
"""

import logging

import numpy as np

from ..datastructures import MaterialProperties
from ..errors import ConfigurationError
from .base import PoroelasticMaterial

log = logging.getLogger(__name__)


class DoublePorosityMaterial(PoroelasticMaterial):
    """Biot medium with a matrix pressure (p) and a fracture pressure (p_frac).

    Parameters
    ----------
    properties : MaterialProperties
        Properties of the medium with its total porosity and permeability.
    matrix_porosity_fraction : float
        Share of the total porosity held by the matrix pores.
    matrix_permeability_fraction : float
        Share of the total permeability carried by the matrix.
    """

    def __init__(
        self,
        properties: MaterialProperties,
        matrix_porosity_fraction=2.0 / 3.0,
        matrix_permeability_fraction=1.0 / 1000.0,
    ):
        super().__init__(properties)
        for name, value in (
            ("matrix_porosity_fraction", matrix_porosity_fraction),
            ("matrix_permeability_fraction", matrix_permeability_fraction),
        ):
            if not 0.0 < value < 1.0:
                raise ConfigurationError(f"{name} must lie in (0, 1), got {value}")

        phi = properties.porosity
        self.porosity = phi
        self.porosities = (phi * matrix_porosity_fraction, phi * (1.0 - matrix_porosity_fraction))
        self.permeabilities = (
            properties.permeability * matrix_permeability_fraction,
            properties.permeability * (1.0 - matrix_permeability_fraction),
        )
        alpha = self.biot_coefficient
        self._alphas = tuple(alpha * phi_i / phi for phi_i in self.porosities)

        c_f, c_s = self.fluid_compressibility, self.solid_compressibility
        excess = np.array([a - p for a, p in zip(self._alphas, self.porosities)])
        self._storage = np.diag([p * c_f for p in self.porosities]) + np.outer(excess, excess) * c_s / (alpha - phi)

        eig = np.linalg.eigvalsh(self._storage)
        if eig.min() <= 0:
            raise ConfigurationError(f"{properties.name}: storage matrix is not positive definite ({eig})")
        log.debug(f"Derived {self!r}")

    @property
    def biot_coefficients(self):
        return self._alphas

    @property
    def mobilities(self):
        return tuple(k / self.fluid_viscosity for k in self.permeabilities)

    @property
    def storage_matrix(self):
        return self._storage.copy()

    @property
    def consolidation_coefficient(self):
        """Consolidation coefficient of the matrix pore system."""
        return self.mobilities[0] / (self._storage[0, 0] + self._alphas[0] ** 2 / self.longitudinal_modulus)

    @property
    def fracture_consolidation_coefficient(self):
        return self.mobilities[1] / (self._storage[1, 1] + self._alphas[1] ** 2 / self.longitudinal_modulus)

    def characteristic_time(self, h):
        # Time steps are sized on the fast fracture system
        return h * h / self.fracture_consolidation_coefficient

    def minimum_time_step(self, h):
        return h * h / (6.0 * self.fracture_consolidation_coefficient)

    def leakage(self, shape_factor=0.0):
        if shape_factor < 0:
            raise ConfigurationError(f"shape_factor must be non-negative, got {shape_factor}")
        return shape_factor * self.mobilities[0]

    def undrained_response(self, traction):
        # M eps - a.p = sigma and a eps + S p = 0
        a = np.array(self._alphas)
        Sinv_a = np.linalg.solve(self._storage, a)
        strain = traction / (self.longitudinal_modulus + a @ Sinv_a)
        pressures = -Sinv_a * strain
        return strain, tuple(float(p) for p in pressures)

    def coefficients(self):
        S = self._storage
        return {
            "medium": self.properties.name,
            "shear_modulus": self.shear_modulus,
            "lame_lambda": self.lame_lambda,
            "longitudinal_modulus": self.longitudinal_modulus,
            "biot_coefficient": self.biot_coefficient,
            "biot_coefficient_matrix": self._alphas[0],
            "biot_coefficient_fracture": self._alphas[1],
            "storage_11": S[0, 0],
            "storage_12": S[0, 1],
            "storage_22": S[1, 1],
            "mobility_matrix": self.mobilities[0],
            "mobility_fracture": self.mobilities[1],
            "consolidation_coefficient": self.consolidation_coefficient,
            "fracture_consolidation_coefficient": self.fracture_consolidation_coefficient,
            "mixture_density": self.mixture_density,
        }
