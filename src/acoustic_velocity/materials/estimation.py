"""Elastic property estimation from material name and density.

The estimator resolves a material name to a reference profile and derives
the sample's elastic constants. Without a prior triaxial measurement the
profile moduli are scaled with the density ratio:

    M = M_ref · (ρ / ρ_ref)^p,   p = 1.3 (E), 0.1 (ν), 1.2 (K), 1.4 (G)

Velocities follow from K and G, then get a confining pressure correction
of (1 + 0.002·P) with P in MPa. Results are clamped to plausible ranges.

Example:
    >>> state = estimate_material_properties("granite", 2700.0)
    >>> round(state.p_velocity), round(state.s_velocity)
    (5522, 3220)
"""

from __future__ import annotations

import numpy as np

from .base import ElasticState, TriaxialResult, isotropic_velocities
from .library import find_profile

YOUNGS_EXPONENT = 1.3
POISSON_EXPONENT = 0.1
BULK_EXPONENT = 1.2
SHEAR_EXPONENT = 1.4

PRESSURE_COEFFICIENT = 0.002  # per MPa

POISSON_RANGE = (0.05, 0.45)
P_VELOCITY_RANGE = (1500.0, 8000.0)  # m/s
S_VELOCITY_RANGE = (600.0, 4500.0)  # m/s


def estimate_material_properties(
    material_name: str | None,
    density: float,
    confining_pressure: float = 0.0,
    triaxial: TriaxialResult | None = None,
) -> ElasticState:
    """Estimate elastic constants and theoretical velocities of a sample.

    Args:
        material_name: Free-form material name, may be None
        density: Sample density in kg/m³ (must be positive)
        confining_pressure: Confining pressure in MPa
        triaxial: Optional prior triaxial result; its E and ν are used as-is

    Returns:
        ElasticState with clamped velocities and Poisson's ratio

    Raises:
        ValueError: If density is not positive
    """
    if not density > 0:
        raise ValueError(f"density must be positive, got {density}")

    profile = find_profile(material_name)
    ratio = density / profile.reference_density

    if triaxial is not None:
        youngs = triaxial.youngs_modulus
        poisson = triaxial.poissons_ratio
        bulk = triaxial.bulk_modulus
        shear = triaxial.shear_modulus
    else:
        youngs = profile.youngs_modulus * ratio**YOUNGS_EXPONENT
        poisson = profile.poissons_ratio * ratio**POISSON_EXPONENT
        bulk = profile.bulk_modulus * ratio**BULK_EXPONENT
        shear = profile.shear_modulus * ratio**SHEAR_EXPONENT

    vp, vs = isotropic_velocities(bulk, shear, density)
    pressure_factor = 1.0 + PRESSURE_COEFFICIENT * confining_pressure
    vp *= pressure_factor
    vs *= pressure_factor

    return ElasticState(
        profile_name=profile.name,
        density=float(density),
        youngs_modulus=float(youngs),
        poissons_ratio=float(np.clip(poisson, *POISSON_RANGE)),
        bulk_modulus=float(bulk),
        shear_modulus=float(shear),
        p_velocity=float(np.clip(vp, *P_VELOCITY_RANGE)),
        s_velocity=float(np.clip(vs, *S_VELOCITY_RANGE)),
        attenuation=float(profile.attenuation / np.sqrt(ratio)),
    )
