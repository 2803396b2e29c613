"""Reference rock profiles for acoustic velocity simulation.

Each profile gives the elastic constants of a rock type at a reference
density. A sample is matched to a profile by looking for the profile key
inside the sample's material name, so "Coarse Granite (weathered)" resolves
to GRANITE. Unmatched names use DEFAULT_ROCK.

    >>> from acoustic_velocity.materials import find_profile
    >>> find_profile("Fine sandstone").name
    'sandstone'

Values are typical laboratory figures for dry, intact specimens.
"""

from .base import MaterialAcousticProfile

# =============================================================================
# Carbonates
# =============================================================================

LIMESTONE = MaterialAcousticProfile(
    name="limestone",
    p_velocity=4500.0,
    s_velocity=2500.0,
    poissons_ratio=0.28,
    youngs_modulus=50e9,
    bulk_modulus=40e9,
    shear_modulus=20e9,
    attenuation=0.08,
    reference_density=2700.0,
)
"""Massive limestone."""

CALCITE = MaterialAcousticProfile(
    name="calcite",
    p_velocity=4700.0,
    s_velocity=2500.0,
    poissons_ratio=0.31,
    youngs_modulus=52e9,
    bulk_modulus=45e9,
    shear_modulus=19e9,
    attenuation=0.07,
    reference_density=2710.0,
)
"""Calcite-dominated aggregate."""

DOLOMITE = MaterialAcousticProfile(
    name="dolomite",
    p_velocity=4800.0,
    s_velocity=2600.0,
    poissons_ratio=0.29,
    youngs_modulus=53e9,
    bulk_modulus=42e9,
    shear_modulus=21e9,
    attenuation=0.09,
    reference_density=2850.0,
)
"""Dolostone."""

MARBLE = MaterialAcousticProfile(
    name="marble",
    p_velocity=5000.0,
    s_velocity=2800.0,
    poissons_ratio=0.27,
    youngs_modulus=55e9,
    bulk_modulus=38e9,
    shear_modulus=22e9,
    attenuation=0.07,
    reference_density=2700.0,
)
"""Metamorphosed carbonate."""

# =============================================================================
# Clastics
# =============================================================================

SANDSTONE = MaterialAcousticProfile(
    name="sandstone",
    p_velocity=3500.0,
    s_velocity=2000.0,
    poissons_ratio=0.25,
    youngs_modulus=20e9,
    bulk_modulus=12e9,
    shear_modulus=8e9,
    attenuation=0.15,
    reference_density=2350.0,
)
"""Medium-porosity quartz sandstone."""

SHALE = MaterialAcousticProfile(
    name="shale",
    p_velocity=2800.0,
    s_velocity=1400.0,
    poissons_ratio=0.32,
    youngs_modulus=10e9,
    bulk_modulus=8e9,
    shear_modulus=4e9,
    attenuation=0.25,
    reference_density=2400.0,
)
"""Compacted shale (isotropic approximation)."""

CLAY = MaterialAcousticProfile(
    name="clay",
    p_velocity=2200.0,
    s_velocity=1000.0,
    poissons_ratio=0.35,
    youngs_modulus=5e9,
    bulk_modulus=6e9,
    shear_modulus=2e9,
    attenuation=0.30,
    reference_density=2200.0,
)
"""Consolidated clay."""

SILTSTONE = MaterialAcousticProfile(
    name="siltstone",
    p_velocity=3200.0,
    s_velocity=1600.0,
    poissons_ratio=0.30,
    youngs_modulus=15e9,
    bulk_modulus=10e9,
    shear_modulus=6e9,
    attenuation=0.20,
    reference_density=2400.0,
)
"""Siltstone."""

CONGLOMERATE = MaterialAcousticProfile(
    name="conglomerate",
    p_velocity=4000.0,
    s_velocity=2100.0,
    poissons_ratio=0.27,
    youngs_modulus=25e9,
    bulk_modulus=18e9,
    shear_modulus=10e9,
    attenuation=0.18,
    reference_density=2500.0,
)
"""Cemented conglomerate."""

# =============================================================================
# Crystalline
# =============================================================================

QUARTZ = MaterialAcousticProfile(
    name="quartz",
    p_velocity=6050.0,
    s_velocity=4090.0,
    poissons_ratio=0.08,
    youngs_modulus=95e9,
    bulk_modulus=37e9,
    shear_modulus=44e9,
    attenuation=0.02,
    reference_density=2650.0,
)
"""Polycrystalline quartz."""

QUARTZITE = MaterialAcousticProfile(
    name="quartzite",
    p_velocity=6000.0,
    s_velocity=3800.0,
    poissons_ratio=0.12,
    youngs_modulus=90e9,
    bulk_modulus=35e9,
    shear_modulus=40e9,
    attenuation=0.04,
    reference_density=2650.0,
)
"""Metamorphic quartzite."""

GRANITE = MaterialAcousticProfile(
    name="granite",
    p_velocity=5500.0,
    s_velocity=3200.0,
    poissons_ratio=0.25,
    youngs_modulus=70e9,
    bulk_modulus=45e9,
    shear_modulus=28e9,
    attenuation=0.05,
    reference_density=2700.0,
)
"""Fresh granite."""

BASALT = MaterialAcousticProfile(
    name="basalt",
    p_velocity=5800.0,
    s_velocity=3200.0,
    poissons_ratio=0.28,
    youngs_modulus=80e9,
    bulk_modulus=55e9,
    shear_modulus=30e9,
    attenuation=0.06,
    reference_density=3000.0,
)
"""Dense basalt."""

GNEISS = MaterialAcousticProfile(
    name="gneiss",
    p_velocity=5200.0,
    s_velocity=3000.0,
    poissons_ratio=0.26,
    youngs_modulus=60e9,
    bulk_modulus=40e9,
    shear_modulus=25e9,
    attenuation=0.08,
    reference_density=2750.0,
)
"""Banded gneiss (isotropic approximation)."""

# =============================================================================
# Fallback
# =============================================================================

DEFAULT_ROCK = MaterialAcousticProfile(
    name="default",
    p_velocity=4000.0,
    s_velocity=2200.0,
    poissons_ratio=0.25,
    youngs_modulus=30e9,
    bulk_modulus=25e9,
    shear_modulus=12e9,
    attenuation=0.15,
    reference_density=2500.0,
)
"""Generic rock used when no profile matches."""

# =============================================================================
# Profile Registry
# =============================================================================

PROFILES = {
    "limestone": LIMESTONE,
    "calcite": CALCITE,
    "sandstone": SANDSTONE,
    "quartz": QUARTZ,
    "shale": SHALE,
    "clay": CLAY,
    "granite": GRANITE,
    "basalt": BASALT,
    "gneiss": GNEISS,
    "marble": MARBLE,
    "quartzite": QUARTZITE,
    "dolomite": DOLOMITE,
    "siltstone": SILTSTONE,
    "conglomerate": CONGLOMERATE,
    "default": DEFAULT_ROCK,
}


def get_profile(name: str) -> MaterialAcousticProfile:
    """Look up a profile by its exact registry key.

    Args:
        name: Profile key (case-insensitive)

    Returns:
        MaterialAcousticProfile instance

    Raises:
        KeyError: If no profile has that key
    """
    key = name.lower()
    if key not in PROFILES:
        raise KeyError(
            f"Profile '{name}' not found. Use list_profiles() to see available profiles."
        )
    return PROFILES[key]


def find_profile(material_name: str | None) -> MaterialAcousticProfile:
    """Resolve a free-form material name to a profile.

    The name is matched case-insensitively against every registry key as a
    substring. When several keys match, the longest one wins, so
    "quartzite" resolves to QUARTZITE rather than QUARTZ.

    Args:
        material_name: Material name from the sample, may be None

    Returns:
        Matching profile, or DEFAULT_ROCK when nothing matches
    """
    if not material_name:
        return DEFAULT_ROCK

    lowered = material_name.lower()
    matches = [key for key in PROFILES if key != "default" and key in lowered]
    if not matches:
        return DEFAULT_ROCK
    return PROFILES[max(matches, key=len)]


def list_profiles() -> list[str]:
    """List available profile keys in registry order."""
    return list(PROFILES.keys())
