"""Source wavelets for elastic wave simulation.

The source is a Ricker wavelet (Mexican hat), the second derivative of a
Gaussian:

    w(t) = (1 - 2π²f²t²) · exp(-π²f²t²)

It is centered in its sample window and normalized to unit peak. Small
grids and short samples produce very small displacements, so the unit
pulse is rescaled by an adaptive factor before the user amplitude and
source energy are applied.

Example:
    >>> from acoustic_velocity.core.waveforms import ricker_wavelet
    >>> w = ricker_wavelet(dt=1e-7, frequency_khz=500.0, sample_count=101)
    >>> float(abs(w).max())
    1.0
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

REFERENCE_SPACING = 1e-3  # m
REFERENCE_LENGTH = 0.05  # m
MAX_AMPLITUDE_SCALE = 1e6


def ricker_wavelet(
    dt: float, frequency_khz: float, sample_count: int
) -> NDArray[np.float64]:
    """Generate a unit-peak Ricker wavelet.

    Args:
        dt: Sample interval in seconds
        frequency_khz: Peak frequency in kHz
        sample_count: Number of samples; the peak sits at sample_count // 2

    Returns:
        Wavelet samples with max(|w|) == 1 (all zeros for an empty window)

    Raises:
        ValueError: If dt or frequency is not positive, or sample_count < 1
    """
    if dt <= 0:
        raise ValueError(f"dt must be positive, got {dt}")
    if frequency_khz <= 0:
        raise ValueError(f"frequency_khz must be positive, got {frequency_khz}")
    if sample_count < 1:
        raise ValueError(f"sample_count must be at least 1, got {sample_count}")

    f = frequency_khz * 1000.0
    t = (np.arange(sample_count) - sample_count // 2) * dt
    arg = (np.pi * f * t) ** 2
    wavelet = (1.0 - 2.0 * arg) * np.exp(-arg)

    peak = np.abs(wavelet).max()
    if peak > 0:
        wavelet /= peak
    return wavelet


def amplitude_scale(spacing: float, sample_length: float) -> float:
    """Adaptive amplitude factor for small grids and short samples.

    The factor is 1 at or above the reference spacing and length and grows
    inversely with each below them, capped at MAX_AMPLITUDE_SCALE.

    Args:
        spacing: Grid spacing in meters
        sample_length: Sample length along the test axis in meters

    Returns:
        Scale factor >= 1
    """
    if spacing <= 0 or sample_length <= 0:
        raise ValueError("spacing and sample_length must be positive")
    spacing_factor = max(1.0, REFERENCE_SPACING / spacing)
    length_factor = max(1.0, REFERENCE_LENGTH / sample_length)
    return min(spacing_factor * length_factor, MAX_AMPLITUDE_SCALE)


def source_wavelet(
    dt: float,
    frequency_khz: float,
    sample_count: int,
    amplitude: float = 1.0,
    energy: float = 1.0,
    spacing: float = REFERENCE_SPACING,
    sample_length: float = REFERENCE_LENGTH,
) -> NDArray[np.float64]:
    """Ricker source pulse ready for injection.

    Args:
        dt: Sample interval in seconds
        frequency_khz: Peak frequency in kHz
        sample_count: Number of samples
        amplitude: Caller amplitude
        energy: Source energy in joules; the pulse scales with sqrt(energy)
        spacing: Grid spacing in meters
        sample_length: Sample length in meters

    Returns:
        Scaled wavelet samples
    """
    scale = amplitude_scale(spacing, sample_length) * amplitude * np.sqrt(energy)
    return ricker_wavelet(dt, frequency_khz, sample_count) * scale
