"""Test direction parsing.

A test direction is the axis along which the wave is sent through the
sample. Users give it in many forms: ``"x"``, ``"Y-axis"``, ``"0,0,1"``,
``"(1, 0, 0)"`` or a 3-sequence. Everything is normalized to a unit
vector; anything unusable falls back to +Z.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_DIRECTION = (0.0, 0.0, 1.0)

_AXIS_NAMES = {
    "x": (1.0, 0.0, 0.0),
    "y": (0.0, 1.0, 0.0),
    "z": (0.0, 0.0, 1.0),
}


def parse_direction(value: str | Sequence[float] | None) -> tuple[float, float, float]:
    """Normalize a test direction to a unit vector.

    Args:
        value: Axis name, comma separated components, a 3-sequence, or None

    Returns:
        Unit vector (x, y, z)

    Example:
        >>> parse_direction("y-axis")
        (0.0, 1.0, 0.0)
        >>> parse_direction("3, 0, 4")
        (0.6, 0.0, 0.8)
    """
    if value is None:
        return DEFAULT_DIRECTION

    if isinstance(value, str):
        text = value.strip().lower()
        if text.endswith("-axis"):
            text = text[: -len("-axis")]
        if text in _AXIS_NAMES:
            return _AXIS_NAMES[text]
        parts = [p for p in re.split(r"[,;\s]+", text.strip("()[] ")) if p]
        try:
            components = [float(p) for p in parts]
        except ValueError:
            logger.warning("Unrecognized test direction %r, using +Z", value)
            return DEFAULT_DIRECTION
    else:
        components = [float(c) for c in value]

    if len(components) != 3:
        logger.warning("Test direction %r does not have 3 components, using +Z", value)
        return DEFAULT_DIRECTION

    vector = np.asarray(components, dtype=np.float64)
    norm = np.linalg.norm(vector)
    if not np.isfinite(norm) or norm == 0:
        logger.warning("Test direction %r has no length, using +Z", value)
        return DEFAULT_DIRECTION

    unit = vector / norm
    return (float(unit[0]), float(unit[1]), float(unit[2]))


def dominant_axis(direction: Sequence[float]) -> int:
    """Index (0, 1, 2) of the component with the largest magnitude."""
    return int(np.argmax(np.abs(np.asarray(direction, dtype=np.float64))))


def perpendicular(direction: Sequence[float]) -> tuple[float, float, float]:
    """A unit vector perpendicular to ``direction`` (S-wave polarization)."""
    d = np.asarray(direction, dtype=np.float64)
    helper = np.array([0.0, 0.0, 1.0]) if abs(d[2]) < 0.9 else np.array([1.0, 0.0, 0.0])
    p = np.cross(d, helper)
    p /= np.linalg.norm(p)
    return (float(p[0]), float(p[1]), float(p[2]))
