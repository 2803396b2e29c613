"""Tests for rock profiles and elastic property estimation.

Tests verify:
- Profile registry lookup and name matching
- Density scaling and triaxial overrides
- Confining pressure correction and clamping
- Reference scenario for granite
"""

import numpy as np
import pytest

from acoustic_velocity.materials import (
    DEFAULT_ROCK,
    GRANITE,
    P_VELOCITY_RANGE,
    POISSON_RANGE,
    PROFILES,
    QUARTZ,
    QUARTZITE,
    S_VELOCITY_RANGE,
    MaterialAcousticProfile,
    TriaxialResult,
    estimate_material_properties,
    find_profile,
    get_profile,
    list_profiles,
)

# =============================================================================
# Library Tests
# =============================================================================


class TestLibrary:
    """Tests for the profile registry."""

    def test_registry_size(self):
        """Fourteen rock types plus the default."""
        assert len(PROFILES) == 15
        assert list_profiles()[-1] == "default"

    def test_get_profile_case_insensitive(self):
        assert get_profile("GRANITE") is GRANITE

    def test_get_profile_unknown(self):
        with pytest.raises(KeyError, match="not found"):
            get_profile("unobtainium")

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("granite", GRANITE),
            ("Coarse GRANITE (weathered)", GRANITE),
            ("quartz", QUARTZ),
            ("Quartzite block", QUARTZITE),
            ("unobtainium", DEFAULT_ROCK),
            ("", DEFAULT_ROCK),
            (None, DEFAULT_ROCK),
        ],
    )
    def test_find_profile(self, name, expected):
        """Substring match, longest key wins, default otherwise."""
        assert find_profile(name) is expected

    def test_profiles_are_frozen(self):
        with pytest.raises(AttributeError):
            GRANITE.p_velocity = 1.0

    def test_invalid_profile(self):
        with pytest.raises(ValueError, match="reference_density"):
            MaterialAcousticProfile(
                name="bad",
                p_velocity=1.0,
                s_velocity=1.0,
                poissons_ratio=0.25,
                youngs_modulus=1e9,
                bulk_modulus=1e9,
                shear_modulus=1e9,
                attenuation=0.1,
                reference_density=0.0,
            )

    def test_summary(self):
        text = GRANITE.summary()
        assert "granite" in text
        assert "5500" in text


# =============================================================================
# Estimation Tests
# =============================================================================


class TestEstimation:
    """Tests for estimate_material_properties."""

    def test_granite_reference_scenario(self):
        """granite, 2700 kg/m³, 0 MPa → Vp≈5500, Vs≈3200, Vp/Vs≈1.72."""
        state = estimate_material_properties("granite", 2700.0, confining_pressure=0.0)

        assert state.profile_name == "granite"
        assert state.p_velocity == pytest.approx(5500.0, rel=0.05)
        assert state.s_velocity == pytest.approx(3200.0, rel=0.05)
        assert state.vp_vs_ratio == pytest.approx(1.72, rel=0.05)

    def test_reference_density_keeps_moduli(self):
        state = estimate_material_properties("granite", GRANITE.reference_density)
        assert state.youngs_modulus == pytest.approx(GRANITE.youngs_modulus)
        assert state.bulk_modulus == pytest.approx(GRANITE.bulk_modulus)
        assert state.shear_modulus == pytest.approx(GRANITE.shear_modulus)
        assert state.poissons_ratio == pytest.approx(GRANITE.poissons_ratio)

    def test_density_scaling_exponents(self):
        """Moduli scale with (ρ/ρ_ref)^p, Poisson's ratio barely moves."""
        ratio = 1.1
        state = estimate_material_properties("granite", 2700.0 * ratio)

        assert state.youngs_modulus == pytest.approx(70e9 * ratio**1.3)
        assert state.bulk_modulus == pytest.approx(45e9 * ratio**1.2)
        assert state.shear_modulus == pytest.approx(28e9 * ratio**1.4)
        assert state.poissons_ratio == pytest.approx(0.25 * ratio**0.1)

    def test_attenuation_scaling(self):
        state = estimate_material_properties("granite", 2700.0 * 4)
        assert state.attenuation == pytest.approx(GRANITE.attenuation / 2)

    def test_pressure_increases_velocity(self):
        base = estimate_material_properties("sandstone", 2350.0)
        loaded = estimate_material_properties("sandstone", 2350.0, confining_pressure=50.0)

        assert loaded.p_velocity == pytest.approx(base.p_velocity * 1.1)
        assert loaded.s_velocity == pytest.approx(base.s_velocity * 1.1)

    def test_velocities_clamped_high(self):
        state = estimate_material_properties("granite", 2700.0, confining_pressure=2000.0)
        assert state.p_velocity == P_VELOCITY_RANGE[1]
        assert state.s_velocity == S_VELOCITY_RANGE[1]

    def test_velocities_clamped_low(self):
        state = estimate_material_properties("default", 1.0)
        assert state.s_velocity == S_VELOCITY_RANGE[0]
        assert P_VELOCITY_RANGE[0] <= state.p_velocity <= P_VELOCITY_RANGE[1]

    @pytest.mark.parametrize("density", [-1.0, 0.0])
    def test_nonpositive_density_raises(self, density):
        with pytest.raises(ValueError, match="density"):
            estimate_material_properties("granite", density)

    def test_idempotent(self):
        """Identical inputs give bit-identical states."""
        a = estimate_material_properties("Basalt", 2950.0, confining_pressure=12.5)
        b = estimate_material_properties("Basalt", 2950.0, confining_pressure=12.5)
        assert a == b

    @pytest.mark.parametrize("name", list(PROFILES))
    def test_all_profiles_within_ranges(self, name):
        profile = PROFILES[name]
        state = estimate_material_properties(name, profile.reference_density)
        assert POISSON_RANGE[0] <= state.poissons_ratio <= POISSON_RANGE[1]
        assert P_VELOCITY_RANGE[0] <= state.p_velocity <= P_VELOCITY_RANGE[1]
        assert S_VELOCITY_RANGE[0] <= state.s_velocity <= S_VELOCITY_RANGE[1]
        assert np.isfinite(state.vp_vs_ratio)


# =============================================================================
# Triaxial Override Tests
# =============================================================================


class TestTriaxial:
    """Tests for prior triaxial results."""

    def test_derived_moduli(self):
        triaxial = TriaxialResult(youngs_modulus=50e9, poissons_ratio=0.25)
        assert triaxial.bulk_modulus == pytest.approx(50e9 / 1.5)
        assert triaxial.shear_modulus == pytest.approx(20e9)

    def test_triaxial_values_used(self):
        triaxial = TriaxialResult(youngs_modulus=50e9, poissons_ratio=0.25)
        state = estimate_material_properties("granite", 2700.0, triaxial=triaxial)

        assert state.youngs_modulus == 50e9
        assert state.poissons_ratio == 0.25
        assert state.shear_modulus == pytest.approx(20e9)
        assert state.s_velocity == pytest.approx(np.sqrt(20e9 / 2700.0))

    def test_triaxial_poisson_clamped(self):
        triaxial = TriaxialResult(youngs_modulus=50e9, poissons_ratio=0.49)
        state = estimate_material_properties("granite", 2700.0, triaxial=triaxial)
        assert state.poissons_ratio == POISSON_RANGE[1]

    @pytest.mark.parametrize("poisson", [0.5, -1.0, 0.7])
    def test_invalid_poisson(self, poisson):
        with pytest.raises(ValueError, match="poissons_ratio"):
            TriaxialResult(youngs_modulus=50e9, poissons_ratio=poisson)

    def test_invalid_modulus(self):
        with pytest.raises(ValueError, match="youngs_modulus"):
            TriaxialResult(youngs_modulus=0.0, poissons_ratio=0.25)
