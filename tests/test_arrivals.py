"""Tests for first-arrival detection."""

import logging

import numpy as np
import pytest

from acoustic_velocity.analysis import (
    amplitude_threshold,
    analyze_arrivals,
    baseline_statistics,
    energy_ratio,
)
from acoustic_velocity.core.solver import WaveType

DT = 1e-7
DISTANCE = 0.05
LOGGER = "acoustic_velocity.analysis.arrivals"


def analyze(trace, **kwargs):
    params = {
        "density": 2700.0,
        "wave_velocity": 5500.0,
        "theoretical_p": 5500.0,
        "theoretical_s": 3200.0,
    }
    params.update(kwargs)
    return analyze_arrivals(trace, DISTANCE, DT, **params)


def pulse_trace(n=1000, start=400, width=20, amplitude=1.0):
    trace = np.zeros(n)
    trace[start:start + width] = amplitude
    return trace


# =============================================================================
# Detector Building Blocks
# =============================================================================


class TestBaseline:
    """Tests for baseline statistics and thresholds."""

    def test_baseline_fraction(self):
        count, mean, std = baseline_statistics(np.arange(1000.0))
        assert count == 100
        assert mean == pytest.approx(49.5)

    def test_baseline_minimum(self):
        count, _, _ = baseline_statistics(np.zeros(50))
        assert count == 20

    def test_baseline_short_trace(self):
        count, _, _ = baseline_statistics(np.zeros(5))
        assert count == 5

    def test_threshold_from_noise(self):
        trace = np.zeros(100)
        assert amplitude_threshold(trace, 0.01) == pytest.approx(0.15)

    def test_threshold_floor(self):
        assert amplitude_threshold(np.zeros(100), 0.0) == pytest.approx(5e-10)

    def test_threshold_peak_to_peak(self):
        trace = np.zeros(100)
        trace[50] = 2.0
        trace[60] = -2.0
        assert amplitude_threshold(trace, 0.0) == pytest.approx(0.4)

    def test_energy_ratio(self):
        trace = np.zeros(20)
        trace[10] = 1.0
        ratio = energy_ratio(trace, 0.5)
        # trailing 5-sample mean of x² divided by the variance
        np.testing.assert_allclose(ratio[10:15], 0.4)
        assert ratio[9] == 0.0
        assert ratio[15] == 0.0

    def test_energy_ratio_disabled(self):
        assert not energy_ratio(np.ones(10), 0.0).any()


# =============================================================================
# Arrival Detection
# =============================================================================


class TestAnalyzeArrivals:
    """Tests for analyze_arrivals."""

    def test_pulse_round_trip(self):
        """A pulse at a known sample gives its time and distance/time."""
        result = analyze(pulse_trace(start=400))
        assert result.p_detected
        assert result.p_arrival_index == 400
        assert result.p_arrival_time == pytest.approx(400 * DT, abs=DT)
        assert result.measured_p_velocity == pytest.approx(DISTANCE / (400 * DT), rel=0.01)

    def test_noisy_baseline(self):
        rng = np.random.default_rng(0)
        trace = rng.normal(0.0, 1e-3, 2000)
        trace[500:540] += 1.0
        result = analyze(trace)
        assert result.p_arrival_index == 500

    def test_single_spike_ignored(self):
        """An isolated spike fails the sustained-signal rule."""
        rng = np.random.default_rng(1)
        trace = rng.normal(0.0, 1e-3, 2000)
        trace[300] = 1.0
        trace[500:540] += 1.0
        result = analyze(trace)
        assert result.p_arrival_index == 500

    def test_search_skips_baseline(self):
        """Samples inside the baseline window are never arrivals."""
        trace = pulse_trace(n=1000, start=0, width=1000)
        result = analyze(trace)
        assert result.p_arrival_index == 100

    def test_s_after_p(self):
        trace = np.zeros(1000)
        trace[300:306] = 1.0
        trace[600:640] = 0.5
        result = analyze(trace)

        assert result.p_arrival_index == 300
        assert result.s_arrival_index == 600
        assert result.s_detected
        assert result.measured_s_velocity == pytest.approx(DISTANCE / (600 * DT))
        assert result.vp_vs_ratio == pytest.approx(2.0)

    def test_flat_trace_falls_back(self, caplog):
        """No arrival: theoretical velocities, warnings, no exception."""
        with caplog.at_level(logging.WARNING, logger=LOGGER):
            result = analyze(np.zeros(1000))

        assert not result.p_detected
        assert not result.s_detected
        assert result.measured_p_velocity == 5500.0
        assert result.measured_s_velocity == 3200.0
        assert result.p_arrival_time == pytest.approx(DISTANCE / 5500.0)
        assert result.s_arrival_time == pytest.approx(DISTANCE / 3200.0)
        messages = [r.getMessage() for r in caplog.records]
        assert any("No P-wave arrival" in m for m in messages)
        assert any("No S-wave arrival" in m for m in messages)

    def test_primary_s(self, caplog):
        """For S-wave runs the first arrival is the S wave."""
        with caplog.at_level(logging.WARNING, logger=LOGGER):
            result = analyze(pulse_trace(start=400), wave_velocity=3200.0, primary=WaveType.S)

        assert result.s_arrival_index == 400
        assert result.p_arrival_index is None
        assert result.measured_s_velocity == pytest.approx(DISTANCE / (400 * DT))
        assert result.measured_p_velocity == 5500.0
        assert not any("No P-wave" in r.getMessage() for r in caplog.records)

    def test_intensity_and_energy(self):
        trace = np.full(100, 2.0)
        result = analyze(trace, density=2000.0, wave_velocity=3000.0)
        np.testing.assert_allclose(result.intensity, 4.0 * 2000.0 * 3000.0)
        assert result.received_energy == pytest.approx(100 * 4.0 * 2000.0 * 3000.0 * DT)
        assert result.max_displacement == 2.0

    def test_empty_trace(self):
        result = analyze(np.zeros(0))
        assert not result.p_detected
        assert result.max_displacement == 0.0
        assert result.received_energy == 0.0

    @pytest.mark.parametrize("distance,dt", [(0.0, DT), (DISTANCE, 0.0)])
    def test_invalid(self, distance, dt):
        with pytest.raises(ValueError):
            analyze_arrivals(
                np.zeros(10),
                distance,
                dt,
                density=2700.0,
                wave_velocity=5500.0,
                theoretical_p=5500.0,
                theoretical_s=3200.0,
            )
