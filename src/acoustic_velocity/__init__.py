"""
Acoustic Velocity - elastic wave velocity simulation for rock samples.

Main exports:
- AcousticVelocitySimulation: Estimate, plan, solve and analyze one sample
- SimulationConfig: Run parameters
- PriorMeasurements: Measured velocities carried between runs
- SimulationResult: Outcome of a run
- WaveType: P or S
- estimate_material_properties: Elastic state from material name and density
- plan_grid, build_velocity_model, ricker_wavelet: Individual stages
- analyze_arrivals: First-arrival detection on a receiver trace
"""

from acoustic_velocity.analysis import ArrivalAnalysis, analyze_arrivals
from acoustic_velocity.core.backends import has_gpu_support, select_stepper
from acoustic_velocity.core.errors import SimulationCancelled
from acoustic_velocity.core.grid import SimulationGrid, plan_grid
from acoustic_velocity.core.simulation import (
    AcousticVelocitySimulation,
    PriorMeasurements,
    SimulationConfig,
    SimulationResult,
    SimulationStatus,
)
from acoustic_velocity.core.solver import WaveType
from acoustic_velocity.core.velocity_model import build_velocity_model
from acoustic_velocity.core.waveforms import ricker_wavelet
from acoustic_velocity.materials import (
    ElasticState,
    TriaxialResult,
    estimate_material_properties,
)

# Submodules for more specific imports
from . import analysis, core, materials

__version__ = "0.1.0"

__all__ = [
    # Simulation
    "AcousticVelocitySimulation",
    "PriorMeasurements",
    "SimulationConfig",
    "SimulationResult",
    "SimulationStatus",
    "SimulationCancelled",
    "WaveType",
    # Stages
    "SimulationGrid",
    "plan_grid",
    "build_velocity_model",
    "ricker_wavelet",
    "has_gpu_support",
    "select_stepper",
    # Materials
    "ElasticState",
    "TriaxialResult",
    "estimate_material_properties",
    # Analysis
    "ArrivalAnalysis",
    "analyze_arrivals",
    # Submodules
    "materials",
    "core",
    "analysis",
]
