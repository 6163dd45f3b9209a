"""Tests for derived poroelastic coefficients and property files."""

from dataclasses import replace

import numpy as np
import pytest

from poroelasticity.errors import ConfigurationError
from poroelasticity.materials import (
    DoublePorosityMaterial,
    SinglePorosityMaterial,
    load_properties,
    parse_properties,
)


class TestSinglePorosity:
    """Single-porosity Biot coefficients."""

    def test_biot_coefficient(self, berea_properties):
        material = SinglePorosityMaterial(berea_properties)
        assert material.biot_coefficient == pytest.approx(1.0 - 8.0 / 36.0)

    def test_coefficients_positive(self, berea_properties):
        material = SinglePorosityMaterial(berea_properties)
        assert material.storativity > 0
        assert material.biot_modulus == pytest.approx(1.0 / material.storativity)
        assert material.longitudinal_modulus == pytest.approx(8.0e9 + 4.0 * 6.0e9 / 3.0)
        assert material.longitudinal_modulus == pytest.approx(material.lame_lambda + 2 * material.shear_modulus)
        assert material.consolidation_coefficient > 0
        assert 0 < material.stiffness_contrast < 1

    def test_storativity_formula(self, berea_properties):
        material = SinglePorosityMaterial(berea_properties)
        phi, alpha = 0.19, material.biot_coefficient
        expected = phi / 2.25e9 + (alpha - phi) / 36.0e9
        assert material.storativity == pytest.approx(expected, rel=1e-12)

    def test_undrained_response_balances_column(self, berea_properties):
        """Undrained state satisfies M eps - alpha p = sigma and alpha eps + S p = 0."""
        material = SinglePorosityMaterial(berea_properties)
        sigma = -10e3
        strain, (p0,) = material.undrained_response(sigma)
        M, alpha, S = material.longitudinal_modulus, material.biot_coefficient, material.storativity
        assert M * strain - alpha * p0 == pytest.approx(sigma, rel=1e-12)
        assert alpha * strain + S * p0 == pytest.approx(0.0, abs=1e-18)
        # Compression raises pore pressure
        assert p0 > 0
        Q = material.biot_modulus
        assert p0 == pytest.approx(alpha * Q * abs(sigma) / (M + alpha**2 * Q), rel=1e-12)

    def test_plate_undrained_response_frees_lateral_stress(self, berea_properties):
        material = SinglePorosityMaterial(berea_properties)
        sigma = -10e3
        exx, eyy, (p0,) = material.plate_undrained_response(sigma)
        M, lam, alpha, S = (
            material.longitudinal_modulus,
            material.lame_lambda,
            material.biot_coefficient,
            material.storativity,
        )
        assert M * exx + lam * eyy - alpha * p0 == pytest.approx(0.0, abs=1e-8 * abs(sigma))
        assert lam * exx + M * eyy - alpha * p0 == pytest.approx(sigma, rel=1e-10)
        assert alpha * (exx + eyy) + S * p0 == pytest.approx(0.0, abs=1e-15)
        # Lateral bulging and a lower pressure than in a confined column
        assert exx > 0 > eyy
        assert 0 < p0 < material.undrained_response(sigma)[1][0]

    def test_time_scales(self, berea_properties):
        material = SinglePorosityMaterial(berea_properties)
        h = 0.25
        assert material.minimum_time_step(h) == pytest.approx(material.characteristic_time(h) / 6.0)

    def test_mixture_density(self, berea_properties):
        material = SinglePorosityMaterial(berea_properties)
        assert material.mixture_density == pytest.approx(0.19 * 1000.0 + 0.81 * 2650.0)

    def test_no_leakage(self, berea_properties):
        assert SinglePorosityMaterial(berea_properties).leakage(11.0) == 0.0

    def test_rejects_biot_below_porosity(self, berea_properties):
        # Bulk modulus close to the solid modulus drives alpha below phi
        with pytest.raises(ConfigurationError):
            SinglePorosityMaterial(replace(berea_properties, bulk_modulus=35.0e9))

    @pytest.mark.parametrize(
        "field,value",
        [("shear_modulus", 0.0), ("permeability", -1e-13), ("porosity", 1.0), ("fluid_viscosity", float("nan"))],
    )
    def test_rejects_invalid_inputs(self, berea_properties, field, value):
        with pytest.raises(ConfigurationError):
            replace(berea_properties, **{field: value})


class TestDoublePorosity:
    """Double-porosity storage matrix and leakage."""

    def test_storage_matrix_positive_definite(self, berea_properties):
        S = DoublePorosityMaterial(berea_properties).storage_matrix
        assert np.allclose(S, S.T)
        assert S[0, 0] > 0
        assert S[0, 0] * S[1, 1] - S[0, 1] ** 2 > 0

    def test_storage_sums_to_single_storativity(self, berea_properties):
        S = DoublePorosityMaterial(berea_properties).storage_matrix
        single = SinglePorosityMaterial(berea_properties).storativity
        assert S.sum() == pytest.approx(single, rel=1e-12)

    def test_partial_biot_coefficients(self, berea_properties):
        material = DoublePorosityMaterial(berea_properties)
        a1, a2 = material.biot_coefficients
        assert a1 + a2 == pytest.approx(material.biot_coefficient)
        assert a1 == pytest.approx(2.0 * a2)

    def test_property_split(self, berea_properties):
        material = DoublePorosityMaterial(berea_properties)
        assert material.porosities == pytest.approx((0.19 * 2 / 3, 0.19 / 3))
        assert material.permeabilities == pytest.approx((1.9e-16, 1.9e-13 * 0.999))

    def test_leakage(self, berea_properties):
        material = DoublePorosityMaterial(berea_properties)
        assert material.leakage(0.0) == 0.0
        assert material.leakage(11.0) == pytest.approx(11.0 * 1.9e-16 / 1.0e-3)
        with pytest.raises(ConfigurationError):
            material.leakage(-1.0)

    def test_undrained_response(self, berea_properties):
        material = DoublePorosityMaterial(berea_properties)
        sigma = -10e3
        strain, pressures = material.undrained_response(sigma)
        a = np.array(material.biot_coefficients)
        p = np.array(pressures)
        assert material.longitudinal_modulus * strain - a @ p == pytest.approx(sigma, rel=1e-10)
        assert np.allclose(a * strain + material.storage_matrix @ p, 0.0, atol=1e-16)

    def test_plate_undrained_response(self, berea_properties):
        material = DoublePorosityMaterial(berea_properties)
        sigma = -10e3
        exx, eyy, pressures = material.plate_undrained_response(sigma)
        a = np.array(material.biot_coefficients)
        p = np.array(pressures)
        M, lam = material.longitudinal_modulus, material.lame_lambda
        assert M * exx + lam * eyy - a @ p == pytest.approx(0.0, abs=1e-8 * abs(sigma))
        assert lam * exx + M * eyy - a @ p == pytest.approx(sigma, rel=1e-10)
        assert np.allclose(a * (exx + eyy) + material.storage_matrix @ p, 0.0, atol=1e-16)

    def test_fracture_diffuses_faster(self, berea_properties):
        material = DoublePorosityMaterial(berea_properties)
        assert material.fracture_consolidation_coefficient > material.consolidation_coefficient

    def test_rejects_bad_split(self, berea_properties):
        with pytest.raises(ConfigurationError):
            DoublePorosityMaterial(berea_properties, matrix_porosity_fraction=1.0)


class TestPropertyFiles:
    """Reading the whitespace-separated property format."""

    TEXT = "Some medium\n6e9 8e9\n36e9 2650 2.25e9\n0.19\n1.9e-13 1e-3 1000\n"

    def test_parse(self):
        props = parse_properties(self.TEXT, name="custom")
        assert props.name == "custom"
        assert props.solid_bulk_modulus == 36e9
        assert props.fluid_density == 1000.0

    def test_too_few_values(self):
        with pytest.raises(ConfigurationError):
            parse_properties("name\n1 2 3\n", name="short")

    def test_malformed_value(self):
        with pytest.raises(ConfigurationError):
            parse_properties(self.TEXT.replace("0.19", "abc"), name="bad")

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_properties("doesNotExist", tmp_path)

    def test_bundled_medium(self, input_dir):
        props = load_properties("bereaSandstone", input_dir)
        assert props.name == "bereaSandstone"
        assert props.porosity == pytest.approx(0.19)
