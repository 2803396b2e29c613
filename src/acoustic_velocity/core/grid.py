"""
Simulation grid planning.

The planner turns a sample's bounding box into a uniform voxel grid that
resolves the shortest wavelength with a fixed number of points while
staying inside hard size limits:

- each dimension even and within [MIN_DIMENSION, MAX_DIMENSION]
- total voxel count at most MAX_CELLS
- spacing never below MIN_SPACING

Source and receiver sit on the test axis at 30% and 60% of its length with
the other two coordinates centered, at least BOUNDARY_MARGIN voxels from
every face.

Example:
    >>> from acoustic_velocity.core.grid import plan_grid
    >>> from acoustic_velocity.core.mesh import box_triangles
    >>> grid = plan_grid(
    ...     box_triangles((20, 20, 40)),
    ...     voxel_size=1e-3,
    ...     p_velocity=5500.0,
    ...     s_velocity=3200.0,
    ...     frequency_khz=500.0,
    ...     direction=(0.0, 0.0, 1.0),
    ... )
    >>> grid.shape
    (54, 54, 64)
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike

from .direction import dominant_axis
from .mesh import bounding_box

logger = logging.getLogger(__name__)

POINTS_PER_WAVELENGTH = 16
MIN_DIMENSION = 16
MAX_DIMENSION = 64
MAX_CELLS = 262_144
MIN_SPACING = 1e-4  # m
BOUNDARY_MARGIN = 3
PADDING = 1.05
DEFAULT_VOXEL_SIZE = 1e-3  # m

SOURCE_FRACTION = 0.3
RECEIVER_FRACTION = 0.6


@dataclass(frozen=True)
class SimulationGrid:
    """Uniform voxel grid with source and receiver placement.

    Args:
        shape: Grid dimensions (nx, ny, nz) in voxels
        spacing: Voxel edge length in meters
        source: Source voxel index (i, j, k)
        receiver: Receiver voxel index (i, j, k)
        axis: Test axis index (0=x, 1=y, 2=z)

    Attributes:
        num_cells: Total number of voxels
        sample_length: Physical grid length along the test axis in meters
        source_receiver_distance: Straight-line distance in meters
    """

    shape: tuple[int, int, int]
    spacing: float
    source: tuple[int, int, int]
    receiver: tuple[int, int, int]
    axis: int = 2

    def __post_init__(self):
        if len(self.shape) != 3 or any(n < 2 * BOUNDARY_MARGIN + 2 for n in self.shape):
            raise ValueError(f"Grid shape too small: {self.shape}")
        if self.spacing <= 0:
            raise ValueError(f"spacing must be positive, got {self.spacing}")
        for name, index in (("source", self.source), ("receiver", self.receiver)):
            if any(not 0 <= i < n for i, n in zip(index, self.shape)):
                raise ValueError(f"{name} {index} outside grid {self.shape}")

    @property
    def num_cells(self) -> int:
        """Total number of voxels."""
        return int(np.prod(self.shape))

    @property
    def sample_length(self) -> float:
        """Physical length of the grid along the test axis in meters."""
        return self.shape[self.axis] * self.spacing

    @property
    def source_receiver_distance(self) -> float:
        """Distance between source and receiver voxel centers in meters."""
        delta = np.subtract(self.receiver, self.source)
        return float(np.linalg.norm(delta) * self.spacing)

    def physical_extent(self) -> tuple[float, float, float]:
        """Physical domain size (Lx, Ly, Lz) in meters."""
        return tuple(n * self.spacing for n in self.shape)

    def path_voxels(self) -> np.ndarray:
        """Voxel indices on the straight line from source to receiver.

        Returns:
            Integer array of shape (k, 3), source first and receiver last
        """
        src = np.asarray(self.source, dtype=np.float64)
        rec = np.asarray(self.receiver, dtype=np.float64)
        count = int(np.ceil(np.abs(rec - src).max())) + 1
        t = np.linspace(0.0, 1.0, max(count, 2))[:, np.newaxis]
        points = np.rint(src + t * (rec - src)).astype(np.int64)
        # Consecutive duplicates appear when count was padded to 2
        keep = np.ones(len(points), dtype=bool)
        keep[1:] = np.any(points[1:] != points[:-1], axis=1)
        return points[keep]


def target_spacing(
    p_velocity: float,
    s_velocity: float,
    frequency_khz: float,
    time_step_factor: float = 1.0,
) -> float:
    """Voxel spacing resolving the shortest wavelength.

    Args:
        p_velocity: P-wave velocity in m/s
        s_velocity: S-wave velocity in m/s
        frequency_khz: Source frequency in kHz
        time_step_factor: Multiplier on the resolved spacing

    Returns:
        Spacing in meters, at least MIN_SPACING
    """
    if frequency_khz <= 0:
        raise ValueError(f"frequency_khz must be positive, got {frequency_khz}")
    wavelength = min(p_velocity, s_velocity) / (frequency_khz * 1000.0)
    return max(wavelength / POINTS_PER_WAVELENGTH * time_step_factor, MIN_SPACING)


def _fit_dimensions(desired: Sequence[int]) -> tuple[int, int, int]:
    """Clamp, scale to the voxel ceiling and make dimensions even."""
    dims = [int(np.clip(d, MIN_DIMENSION, MAX_DIMENSION)) for d in desired]

    count = math.prod(dims)
    if count > MAX_CELLS:
        scale = (MAX_CELLS / count) ** (1.0 / 3.0)
        dims = [max(MIN_DIMENSION, int(math.floor(d * scale))) for d in dims]

    dims = [d + d % 2 for d in dims]
    while math.prod(dims) > MAX_CELLS:
        largest = int(np.argmax(dims))
        if dims[largest] <= MIN_DIMENSION:
            break
        dims[largest] -= 2
    return tuple(dims)


def _place_on_axis(shape: Sequence[int], axis: int, fraction: float) -> tuple[int, int, int]:
    index = [n // 2 for n in shape]
    index[axis] = int(shape[axis] * fraction)
    return tuple(
        int(np.clip(i, BOUNDARY_MARGIN, n - BOUNDARY_MARGIN - 1))
        for i, n in zip(index, shape)
    )


def plan_grid(
    triangles: ArrayLike | None,
    voxel_size: float | None,
    p_velocity: float,
    s_velocity: float,
    frequency_khz: float,
    direction: Sequence[float] = (0.0, 0.0, 1.0),
    time_step_factor: float = 1.0,
) -> SimulationGrid:
    """Derive grid dimensions, spacing and source/receiver placement.

    Args:
        triangles: Sample mesh, shape (n, 3, 3), in voxel units
        voxel_size: Physical size of one mesh unit in meters
            (DEFAULT_VOXEL_SIZE when None or not positive)
        p_velocity: Theoretical P-wave velocity in m/s
        s_velocity: Theoretical S-wave velocity in m/s
        frequency_khz: Source frequency in kHz
        direction: Unit test direction; its dominant component picks the axis
        time_step_factor: Multiplier on the resolved spacing

    Returns:
        SimulationGrid
    """
    if voxel_size is None or not voxel_size > 0:
        voxel_size = DEFAULT_VOXEL_SIZE

    lo, hi = bounding_box(triangles)
    extent = (hi - lo) * PADDING * voxel_size

    spacing = target_spacing(p_velocity, s_velocity, frequency_khz, time_step_factor)
    desired = [int(math.ceil(e / spacing)) for e in extent]
    shape = _fit_dimensions(desired)

    axis = dominant_axis(direction)
    grid = SimulationGrid(
        shape=shape,
        spacing=spacing,
        source=_place_on_axis(shape, axis, SOURCE_FRACTION),
        receiver=_place_on_axis(shape, axis, RECEIVER_FRACTION),
        axis=axis,
    )
    logger.info(
        "Planned grid %s, spacing %.3g m, source %s, receiver %s",
        grid.shape,
        grid.spacing,
        grid.source,
        grid.receiver,
    )
    return grid
