"""Elastic material records for wave velocity simulation.

Two kinds of record live here:

- MaterialAcousticProfile: the reference elastic description of a rock
  type at its reference density. Profiles are immutable and shared.
- ElasticState: the per-sample elastic constants after density scaling,
  confining pressure correction and clamping. One is computed for every
  simulation and never changes afterwards.

Moduli are stored in pascals. Isotropic relations used throughout:

    K = E / (3(1 - 2ν))
    G = E / (2(1 + ν))
    Vp = sqrt((K + 4G/3) / ρ)
    Vs = sqrt(G / ρ)
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class MaterialAcousticProfile:
    """Reference elastic properties of a rock type.

    Args:
        name: Registry key (lowercase)
        p_velocity: Reference P-wave velocity in m/s
        s_velocity: Reference S-wave velocity in m/s
        poissons_ratio: Poisson's ratio ν (dimensionless)
        youngs_modulus: Young's modulus E in Pa
        bulk_modulus: Bulk modulus K in Pa
        shear_modulus: Shear modulus G in Pa
        attenuation: Attenuation in dB per wavelength
        reference_density: Density at which the moduli apply, kg/m³

    Example:
        >>> granite = MaterialAcousticProfile(
        ...     name="granite", p_velocity=5500, s_velocity=3200,
        ...     poissons_ratio=0.25, youngs_modulus=70e9,
        ...     bulk_modulus=45e9, shear_modulus=28e9,
        ...     attenuation=0.05, reference_density=2700,
        ... )
        >>> round(granite.vp_vs_ratio, 2)
        1.72
    """

    name: str
    p_velocity: float
    s_velocity: float
    poissons_ratio: float
    youngs_modulus: float
    bulk_modulus: float
    shear_modulus: float
    attenuation: float
    reference_density: float

    def __post_init__(self):
        if self.reference_density <= 0:
            raise ValueError(
                f"reference_density must be positive, got {self.reference_density}"
            )
        if min(self.youngs_modulus, self.bulk_modulus, self.shear_modulus) <= 0:
            raise ValueError(f"Moduli of '{self.name}' must be positive")

    @property
    def vp_vs_ratio(self) -> float:
        """Reference Vp/Vs ratio."""
        return self.p_velocity / self.s_velocity

    def summary(self) -> str:
        """Get a human-readable summary of the profile."""
        lines = [
            f"Profile: {self.name}",
            f"  Vp: {self.p_velocity:.0f} m/s, Vs: {self.s_velocity:.0f} m/s",
            f"  E: {self.youngs_modulus / 1e9:.1f} GPa, ν: {self.poissons_ratio:.2f}",
            f"  K: {self.bulk_modulus / 1e9:.1f} GPa, G: {self.shear_modulus / 1e9:.1f} GPa",
            f"  Attenuation: {self.attenuation:.2f} dB/λ",
            f"  Reference density: {self.reference_density:.0f} kg/m³",
        ]
        return "\n".join(lines)


@dataclass(frozen=True)
class TriaxialResult:
    """Elastic constants measured by a prior triaxial compression test.

    Args:
        youngs_modulus: Young's modulus E in Pa
        poissons_ratio: Poisson's ratio ν
    """

    youngs_modulus: float
    poissons_ratio: float

    def __post_init__(self):
        if self.youngs_modulus <= 0:
            raise ValueError(
                f"youngs_modulus must be positive, got {self.youngs_modulus}"
            )
        if not -1.0 < self.poissons_ratio < 0.5:
            raise ValueError(
                f"poissons_ratio must be in (-1, 0.5), got {self.poissons_ratio}"
            )

    @property
    def bulk_modulus(self) -> float:
        """K = E / (3(1 - 2ν))"""
        return self.youngs_modulus / (3 * (1 - 2 * self.poissons_ratio))

    @property
    def shear_modulus(self) -> float:
        """G = E / (2(1 + ν))"""
        return self.youngs_modulus / (2 * (1 + self.poissons_ratio))


@dataclass(frozen=True)
class ElasticState:
    """Elastic constants and theoretical velocities of one sample.

    Attributes:
        profile_name: Registry profile the state was derived from
        density: Sample density in kg/m³
        youngs_modulus: E in Pa
        poissons_ratio: ν, clamped to [0.05, 0.45]
        bulk_modulus: K in Pa
        shear_modulus: G in Pa
        p_velocity: Theoretical P-wave velocity, clamped to [1500, 8000] m/s
        s_velocity: Theoretical S-wave velocity, clamped to [600, 4500] m/s
        attenuation: Attenuation in dB per wavelength
    """

    profile_name: str
    density: float
    youngs_modulus: float
    poissons_ratio: float
    bulk_modulus: float
    shear_modulus: float
    p_velocity: float
    s_velocity: float
    attenuation: float

    @property
    def vp_vs_ratio(self) -> float:
        """Theoretical Vp/Vs ratio."""
        return self.p_velocity / self.s_velocity

    def velocity(self, wave_type: str) -> float:
        """Theoretical velocity for ``"P"`` or ``"S"``."""
        if wave_type.upper().startswith("P"):
            return self.p_velocity
        if wave_type.upper().startswith("S"):
            return self.s_velocity
        raise ValueError(f"Unknown wave type '{wave_type}'")


def isotropic_velocities(
    bulk_modulus: float, shear_modulus: float, density: float
) -> tuple[float, float]:
    """Compute (Vp, Vs) in m/s from K and G in Pa and ρ in kg/m³."""
    vp = float(np.sqrt((bulk_modulus + 4.0 * shear_modulus / 3.0) / density))
    vs = float(np.sqrt(shear_modulus / density))
    return vp, vs
