"""Rock elastic properties for wave velocity simulation.

Material Types:
    - MaterialAcousticProfile: Reference constants of a rock type
    - TriaxialResult: Prior measured E and ν
    - ElasticState: Per-sample constants after density/pressure scaling

Example:
    >>> from acoustic_velocity.materials import estimate_material_properties
    >>> state = estimate_material_properties("Granite core", 2700.0)
    >>> state.profile_name
    'granite'
"""

from .base import (
    ElasticState,
    MaterialAcousticProfile,
    TriaxialResult,
    isotropic_velocities,
)
from .estimation import (
    P_VELOCITY_RANGE,
    POISSON_RANGE,
    S_VELOCITY_RANGE,
    estimate_material_properties,
)
from .library import (
    BASALT,
    CALCITE,
    CLAY,
    CONGLOMERATE,
    DEFAULT_ROCK,
    DOLOMITE,
    GNEISS,
    GRANITE,
    LIMESTONE,
    MARBLE,
    PROFILES,
    QUARTZ,
    QUARTZITE,
    SANDSTONE,
    SHALE,
    SILTSTONE,
    find_profile,
    get_profile,
    list_profiles,
)

__all__ = [
    # Base classes
    "ElasticState",
    "MaterialAcousticProfile",
    "TriaxialResult",
    "isotropic_velocities",
    # Estimation
    "P_VELOCITY_RANGE",
    "POISSON_RANGE",
    "S_VELOCITY_RANGE",
    "estimate_material_properties",
    # Library
    "BASALT",
    "CALCITE",
    "CLAY",
    "CONGLOMERATE",
    "DEFAULT_ROCK",
    "DOLOMITE",
    "GNEISS",
    "GRANITE",
    "LIMESTONE",
    "MARBLE",
    "PROFILES",
    "QUARTZ",
    "QUARTZITE",
    "SANDSTONE",
    "SHALE",
    "SILTSTONE",
    "find_profile",
    "get_profile",
    "list_profiles",
]
