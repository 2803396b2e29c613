"""Post-processing of receiver traces."""

# First-arrival detection and measured velocities
from acoustic_velocity.analysis.arrivals import (
    ArrivalAnalysis,
    amplitude_threshold,
    analyze_arrivals,
    baseline_statistics,
    energy_ratio,
)

__all__ = [
    "ArrivalAnalysis",
    "amplitude_threshold",
    "analyze_arrivals",
    "baseline_statistics",
    "energy_ratio",
]
