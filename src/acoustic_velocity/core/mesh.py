"""Triangle mesh helpers.

The simulation only needs the axis-aligned bounding box of the sample
mesh. Triangles are given as an array-like of shape (n, 3, 3): n
triangles, three vertices each, three coordinates per vertex, in voxel
units.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray

UNIT_BOX = (np.zeros(3), np.ones(3))


def as_triangles(triangles: ArrayLike | None) -> NDArray[np.float64]:
    """Convert input to a float array of shape (n, 3, 3).

    Raises:
        ValueError: If the input cannot be read as triangles
    """
    if triangles is None:
        return np.zeros((0, 3, 3))
    array = np.asarray(triangles, dtype=np.float64)
    if array.size == 0:
        return np.zeros((0, 3, 3))
    if array.ndim != 3 or array.shape[1:] != (3, 3):
        raise ValueError(f"triangles must have shape (n, 3, 3), got {array.shape}")
    return array


def bounding_box(
    triangles: ArrayLike | None,
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Axis-aligned bounding box of a triangle mesh.

    Empty meshes, meshes with non-finite vertices and boxes that are flat
    on any axis give the unit cube.

    Returns:
        (min_corner, max_corner) arrays of length 3
    """
    tri = as_triangles(triangles)
    if len(tri) == 0:
        return UNIT_BOX[0].copy(), UNIT_BOX[1].copy()

    vertices = tri.reshape(-1, 3)
    lo = vertices.min(axis=0)
    hi = vertices.max(axis=0)
    if not (np.all(np.isfinite(lo)) and np.all(np.isfinite(hi))) or np.any(lo >= hi):
        return UNIT_BOX[0].copy(), UNIT_BOX[1].copy()
    return lo, hi


def box_triangles(size: tuple[float, float, float]) -> NDArray[np.float64]:
    """Triangulate the surface of an axis-aligned box anchored at the origin.

    Args:
        size: Box edge lengths (sx, sy, sz)

    Returns:
        Array of shape (12, 3, 3)

    Example:
        >>> box_triangles((10, 10, 20)).shape
        (12, 3, 3)
    """
    sx, sy, sz = size
    corners = np.array(
        [
            [0, 0, 0], [sx, 0, 0], [sx, sy, 0], [0, sy, 0],
            [0, 0, sz], [sx, 0, sz], [sx, sy, sz], [0, sy, sz],
        ],
        dtype=np.float64,
    )
    faces = [
        (0, 1, 2), (0, 2, 3),  # bottom
        (4, 6, 5), (4, 7, 6),  # top
        (0, 5, 1), (0, 4, 5),  # front
        (3, 2, 6), (3, 6, 7),  # back
        (0, 3, 7), (0, 7, 4),  # left
        (1, 5, 6), (1, 6, 2),  # right
    ]
    return corners[np.array(faces)]
