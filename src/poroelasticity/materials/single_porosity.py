"""Single-porosity Biot medium."""

import logging

import numpy as np

from ..datastructures import MaterialProperties
from ..errors import ConfigurationError
from .base import PoroelasticMaterial

log = logging.getLogger(__name__)


class SinglePorosityMaterial(PoroelasticMaterial):
    """Biot medium with one pressure field.

    Storativity S = phi c_f + (alpha - phi) c_s, Biot modulus Q = 1/S and
    consolidation coefficient c = (kappa/mu) / (S + alpha^2 / M).
    """

    def __init__(self, properties: MaterialProperties):
        super().__init__(properties)
        phi = properties.porosity
        self.porosity = phi
        self.permeability = properties.permeability
        self.storativity = phi * self.fluid_compressibility + (
            self.biot_coefficient - phi
        ) * self.solid_compressibility
        if self.storativity <= 0:
            raise ConfigurationError(f"{properties.name}: non-positive storativity {self.storativity}")
        self.biot_modulus = 1.0 / self.storativity
        self.mobility = self.permeability / self.fluid_viscosity
        self.undrained_modulus = (
            self.longitudinal_modulus + self.biot_coefficient**2 / self.storativity
        )
        self.stiffness_contrast = self.biot_coefficient**2 / (self.undrained_modulus * self.storativity)
        log.debug(f"Derived {self!r}")

    @property
    def biot_coefficients(self):
        return (self.biot_coefficient,)

    @property
    def mobilities(self):
        return (self.mobility,)

    @property
    def storage_matrix(self):
        return np.array([[self.storativity]])

    @property
    def consolidation_coefficient(self):
        return self.mobility / (self.storativity + self.biot_coefficient**2 / self.longitudinal_modulus)

    def undrained_response(self, traction):
        alpha, S, M = self.biot_coefficient, self.storativity, self.longitudinal_modulus
        strain = traction / (M + alpha**2 / S)
        pressure = -alpha * traction / (alpha**2 + S * M)
        return strain, (pressure,)

    def coefficients(self):
        return {
            "medium": self.properties.name,
            "shear_modulus": self.shear_modulus,
            "lame_lambda": self.lame_lambda,
            "longitudinal_modulus": self.longitudinal_modulus,
            "biot_coefficient": self.biot_coefficient,
            "storativity": self.storativity,
            "biot_modulus": self.biot_modulus,
            "mobility": self.mobility,
            "undrained_modulus": self.undrained_modulus,
            "stiffness_contrast": self.stiffness_contrast,
            "consolidation_coefficient": self.consolidation_coefficient,
            "mixture_density": self.mixture_density,
        }
