"""Core simulation components: grid planning, models, wavelets, solvers.

The orchestration class lives in ``acoustic_velocity.core.simulation`` and
is re-exported from the top-level package.
"""

from acoustic_velocity.core.backends import (
    FieldRing,
    NumpyFieldStepper,
    ParallelFieldStepper,
    TorchFieldStepper,
    get_gpu_info,
    has_gpu_support,
    select_stepper,
)
from acoustic_velocity.core.direction import parse_direction
from acoustic_velocity.core.errors import SimulationCancelled
from acoustic_velocity.core.grid import SimulationGrid, plan_grid
from acoustic_velocity.core.mesh import bounding_box, box_triangles
from acoustic_velocity.core.solver import (
    PropagationSettings,
    PWaveSolver1D,
    SolverOutput,
    SWaveSolver1D,
    WaveSnapshot,
    WaveSolver,
    WaveSolver3D,
    WaveType,
)
from acoustic_velocity.core.velocity_model import VelocityModel, build_velocity_model
from acoustic_velocity.core.waveforms import amplitude_scale, ricker_wavelet, source_wavelet

__all__ = [
    "FieldRing",
    "NumpyFieldStepper",
    "ParallelFieldStepper",
    "TorchFieldStepper",
    "get_gpu_info",
    "has_gpu_support",
    "select_stepper",
    "parse_direction",
    "SimulationCancelled",
    "SimulationGrid",
    "plan_grid",
    "bounding_box",
    "box_triangles",
    "PropagationSettings",
    "PWaveSolver1D",
    "SolverOutput",
    "SWaveSolver1D",
    "WaveSnapshot",
    "WaveSolver",
    "WaveSolver3D",
    "WaveType",
    "VelocityModel",
    "build_velocity_model",
    "amplitude_scale",
    "ricker_wavelet",
    "source_wavelet",
]
