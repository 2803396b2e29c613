"""First-arrival detection on receiver traces.

The P-wave arrival is the first sample, after the quiet baseline, where
either of two detectors fires and the signal stays up:

- energy detector: trailing 5-sample mean energy divided by the baseline
  variance exceeds 20% of its maximum over the trace
- amplitude detector: |x| exceeds max(3σ, 1e-10)·5, raised to 10% of the
  peak-to-peak amplitude when that is larger

Sustained-signal rule: the next SUSTAIN_SAMPLES samples must stay at or
above 80% of the amplitude threshold, so isolated spikes are ignored.

The S-wave arrival is searched 10 samples after the P-wave arrival (or from
a quarter of the trace) with 60% of the amplitude threshold. When nothing
is found the theoretical velocity is used and a warning is logged; a
missed arrival never raises.

Example:
    >>> trace = np.zeros(1000)
    >>> trace[400:420] = 1.0
    >>> result = analyze_arrivals(
    ...     trace, distance=0.05, dt=1e-7, density=2700.0,
    ...     wave_velocity=5500.0, theoretical_p=5500.0, theoretical_s=3200.0,
    ... )
    >>> result.p_arrival_index
    400
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy import signal

from ..core.solver import WaveType

logger = logging.getLogger(__name__)

ENERGY_WINDOW = 5
ENERGY_RATIO_FRACTION = 0.2
MIN_BASELINE_SAMPLES = 20
BASELINE_FRACTION = 0.1
NOISE_SIGMAS = 3.0
NOISE_FLOOR = 1e-10
THRESHOLD_MULTIPLIER = 5.0
PEAK_TO_PEAK_FRACTION = 0.1
SUSTAIN_SAMPLES = 2
SUSTAIN_FRACTION = 0.8
S_SEARCH_OFFSET = 10
S_THRESHOLD_FRACTION = 0.6


@dataclass(frozen=True)
class ArrivalAnalysis:
    """Arrival times and derived quantities from one receiver trace.

    Attributes:
        p_arrival_index: Sample index of the detected P arrival, or None
        s_arrival_index: Sample index of the detected S arrival, or None
        p_arrival_time: P arrival time in seconds (theoretical on fallback)
        s_arrival_time: S arrival time in seconds (theoretical on fallback)
        measured_p_velocity: distance / p_arrival_time in m/s
        measured_s_velocity: distance / s_arrival_time in m/s
        amplitude_threshold: P-wave amplitude threshold used
        max_displacement: Largest |trace| value
        intensity: Per-sample acoustic intensity trace²·ρ·v
        received_energy: Σ intensity · dt
    """

    p_arrival_index: int | None
    s_arrival_index: int | None
    p_arrival_time: float
    s_arrival_time: float
    measured_p_velocity: float
    measured_s_velocity: float
    amplitude_threshold: float
    max_displacement: float
    intensity: NDArray[np.float64]
    received_energy: float

    @property
    def p_detected(self) -> bool:
        return self.p_arrival_index is not None

    @property
    def s_detected(self) -> bool:
        return self.s_arrival_index is not None

    @property
    def vp_vs_ratio(self) -> float:
        """Ratio of the measured (or fallback) velocities."""
        return self.measured_p_velocity / self.measured_s_velocity


def baseline_statistics(trace: NDArray[np.float64]) -> tuple[int, float, float]:
    """Baseline sample count, mean and standard deviation.

    The baseline is the first 10% of the trace, at least
    MIN_BASELINE_SAMPLES samples (or the whole trace if shorter).
    """
    n = len(trace)
    count = min(n, max(MIN_BASELINE_SAMPLES, int(n * BASELINE_FRACTION)))
    if count == 0:
        return 0, 0.0, 0.0
    baseline = trace[:count]
    return count, float(baseline.mean()), float(baseline.std())


def amplitude_threshold(trace: NDArray[np.float64], baseline_std: float) -> float:
    """P-wave amplitude threshold of a trace."""
    threshold = max(NOISE_SIGMAS * baseline_std, NOISE_FLOOR) * THRESHOLD_MULTIPLIER
    if len(trace):
        peak_to_peak = float(trace.max() - trace.min())
        threshold = max(threshold, PEAK_TO_PEAK_FRACTION * peak_to_peak)
    return threshold


def energy_ratio(trace: NDArray[np.float64], baseline_variance: float) -> NDArray[np.float64]:
    """Trailing-window mean energy relative to the baseline variance.

    Returns zeros when the baseline has no variance.
    """
    if baseline_variance <= 0:
        return np.zeros_like(trace)
    window = np.full(ENERGY_WINDOW, 1.0 / ENERGY_WINDOW)
    energy = signal.lfilter(window, [1.0], trace**2)
    return energy / baseline_variance


def _first_sustained(
    candidates: NDArray[np.bool_],
    amplitude: NDArray[np.float64],
    threshold: float,
    start: int,
) -> int | None:
    n = len(amplitude)
    stop = n - SUSTAIN_SAMPLES
    if start >= stop:
        return None
    sustained = np.ones(stop - start, dtype=bool)
    for offset in range(1, SUSTAIN_SAMPLES + 1):
        sustained &= amplitude[start + offset:stop + offset] >= SUSTAIN_FRACTION * threshold
    hits = np.flatnonzero(candidates[start:stop] & sustained)
    if len(hits) == 0:
        return None
    return start + int(hits[0])


def analyze_arrivals(
    trace: ArrayLike,
    distance: float,
    dt: float,
    *,
    density: float,
    wave_velocity: float,
    theoretical_p: float,
    theoretical_s: float,
    primary: WaveType = WaveType.P,
) -> ArrivalAnalysis:
    """Detect first arrivals and derive measured velocities.

    Args:
        trace: Receiver displacement, one sample per timestep
        distance: Source-receiver distance in meters
        dt: Timestep in seconds
        density: Sample density in kg/m³ (for intensity)
        wave_velocity: Velocity of the simulated wave in m/s (for intensity)
        theoretical_p: Fallback P-wave velocity in m/s
        theoretical_s: Fallback S-wave velocity in m/s
        primary: Wave type of the first arrival. For an S-wave run the first
            arrival is the S wave and no P arrival is searched.

    Returns:
        ArrivalAnalysis

    Raises:
        ValueError: If distance or dt is not positive
    """
    if distance <= 0:
        raise ValueError(f"distance must be positive, got {distance}")
    if dt <= 0:
        raise ValueError(f"dt must be positive, got {dt}")

    x = np.asarray(trace, dtype=np.float64).ravel()
    amplitude = np.abs(x)

    baseline_count, _, baseline_std = baseline_statistics(x)
    threshold = amplitude_threshold(x, baseline_std)
    ratio = energy_ratio(x, baseline_std**2)
    ratio_threshold = ENERGY_RATIO_FRACTION * float(ratio.max()) if len(ratio) else 0.0
    energy_hits = ratio > ratio_threshold if ratio_threshold > 0 else np.zeros(len(x), bool)

    start = max(ENERGY_WINDOW + 5, baseline_count)
    first = _first_sustained(energy_hits | (amplitude > threshold), amplitude, threshold, start)

    if primary is WaveType.S:
        p_index = None
        s_index = first
    else:
        p_index = first
        s_start = p_index + S_SEARCH_OFFSET if p_index is not None else len(x) // 4
        s_threshold = S_THRESHOLD_FRACTION * threshold
        s_index = _first_sustained(amplitude > s_threshold, amplitude, s_threshold, s_start)

    if p_index is not None:
        p_time = p_index * dt
        p_velocity = distance / p_time
    else:
        p_velocity = theoretical_p
        p_time = distance / theoretical_p
        if primary is WaveType.P:
            logger.warning(
                "No P-wave arrival detected; using theoretical velocity %.0f m/s",
                theoretical_p,
            )

    s_time = s_index * dt if s_index is not None else 0.0
    if s_index is not None and (primary is WaveType.S or s_time > p_time):
        s_velocity = distance / s_time
    else:
        s_index = None
        s_velocity = theoretical_s
        s_time = distance / theoretical_s
        logger.warning(
            "No S-wave arrival detected; using theoretical velocity %.0f m/s",
            theoretical_s,
        )

    intensity = x**2 * density * wave_velocity
    return ArrivalAnalysis(
        p_arrival_index=p_index,
        s_arrival_index=s_index,
        p_arrival_time=p_time,
        s_arrival_time=s_time,
        measured_p_velocity=p_velocity,
        measured_s_velocity=s_velocity,
        amplitude_threshold=threshold,
        max_displacement=float(amplitude.max()) if len(x) else 0.0,
        intensity=intensity,
        received_energy=float(intensity.sum() * dt),
    )
