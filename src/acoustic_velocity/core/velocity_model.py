"""Velocity and density volumes for the wave solvers.

The whole grid is filled with the sample material; there is no background
medium. Velocities get a small multiplicative jitter from a fixed-seed
generator so the field is not perfectly uniform, and the straight path
from source to receiver is reset to the exact material values so the
wave always has a clean route to the receiver.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from .grid import SimulationGrid

DEFAULT_SEED = 12345
DEFAULT_JITTER = 0.05


@dataclass
class VelocityModel:
    """Per-voxel wave velocity and density.

    Attributes:
        velocity: Wave velocity in m/s, float32, grid shape
        density: Density in kg/m³, float32, grid shape
        path: Voxel indices from source to receiver, shape (k, 3)
        base_velocity: Material velocity the model was built from
        base_density: Material density the model was built from
    """

    velocity: NDArray[np.float32]
    density: NDArray[np.float32]
    path: NDArray[np.int64]
    base_velocity: float
    base_density: float

    @property
    def shape(self) -> tuple[int, int, int]:
        return self.velocity.shape

    def path_velocities(self) -> NDArray[np.float32]:
        """Velocity values along the source-receiver path."""
        i, j, k = self.path.T
        return self.velocity[i, j, k]

    def sample_line(self, grid: SimulationGrid, num_points: int) -> NDArray[np.float32]:
        """Sample velocities at evenly spaced points from source to receiver.

        Used by the 1D solvers to map their line onto the volume.

        Args:
            grid: Grid the model was built for
            num_points: Number of samples along the line

        Returns:
            Velocity samples of length num_points
        """
        src = np.asarray(grid.source, dtype=np.float64)
        rec = np.asarray(grid.receiver, dtype=np.float64)
        t = np.linspace(0.0, 1.0, num_points)[:, np.newaxis]
        points = np.rint(src + t * (rec - src)).astype(np.int64)
        upper = np.asarray(self.shape) - 1
        points = np.clip(points, 0, upper)
        return self.velocity[points[:, 0], points[:, 1], points[:, 2]]


def build_velocity_model(
    grid: SimulationGrid,
    velocity: float,
    density: float,
    seed: int = DEFAULT_SEED,
    jitter: float = DEFAULT_JITTER,
) -> VelocityModel:
    """Fill the grid with jittered material velocity and uniform density.

    Args:
        grid: Simulation grid
        velocity: Material wave velocity in m/s
        density: Material density in kg/m³
        seed: Seed for the jitter generator
        jitter: Relative jitter amplitude; factors are uniform in
            [1 - jitter, 1 + jitter]

    Returns:
        VelocityModel with the source-receiver path set to exact values

    Raises:
        ValueError: If velocity or density is negative, or jitter not in [0, 1)
    """
    if velocity < 0 or density < 0:
        raise ValueError("velocity and density must be non-negative")
    if not 0 <= jitter < 1:
        raise ValueError(f"jitter must be in [0, 1), got {jitter}")

    rng = np.random.default_rng(seed)
    factors = 1.0 + jitter * (2.0 * rng.random(grid.shape) - 1.0)
    velocity_field = (velocity * factors).astype(np.float32)
    density_field = np.full(grid.shape, density, dtype=np.float32)

    path = grid.path_voxels()
    i, j, k = path.T
    velocity_field[i, j, k] = velocity
    density_field[i, j, k] = density

    return VelocityModel(
        velocity=velocity_field,
        density=density_field,
        path=path,
        base_velocity=float(velocity),
        base_density=float(density),
    )
