"""Tests for source wavelet synthesis."""

import numpy as np
import pytest

from acoustic_velocity.core.waveforms import (
    MAX_AMPLITUDE_SCALE,
    amplitude_scale,
    ricker_wavelet,
    source_wavelet,
)

# =============================================================================
# Ricker Wavelet Tests
# =============================================================================


class TestRickerWavelet:
    """Tests for the unit-peak Ricker wavelet."""

    @pytest.mark.parametrize(
        "dt,frequency,count",
        [
            (1e-7, 500.0, 100),
            (3.6e-7, 50.0, 274),
            (1e-8, 1000.0, 501),
            (1e-6, 10.0, 3),
        ],
    )
    def test_unit_peak(self, dt, frequency, count):
        w = ricker_wavelet(dt, frequency, count)
        assert len(w) == count
        assert np.abs(w).max() == pytest.approx(1.0, abs=1e-5)

    @pytest.mark.parametrize("count", [10, 11, 274])
    def test_centered(self, count):
        w = ricker_wavelet(1e-7, 500.0, count)
        assert int(np.argmax(w)) == count // 2
        assert w[count // 2] == pytest.approx(1.0)

    def test_symmetric(self):
        w = ricker_wavelet(1e-7, 500.0, 101)
        np.testing.assert_allclose(w, w[::-1], atol=1e-12)

    def test_zero_mean_when_long(self):
        """A fully sampled Ricker wavelet integrates to ~0."""
        w = ricker_wavelet(1e-8, 500.0, 2001)
        assert abs(w.sum()) < 1e-3 * np.abs(w).sum()

    @pytest.mark.parametrize(
        "kwargs,match",
        [
            ({"dt": 0.0, "frequency_khz": 500.0, "sample_count": 10}, "dt"),
            ({"dt": 1e-7, "frequency_khz": -1.0, "sample_count": 10}, "frequency"),
            ({"dt": 1e-7, "frequency_khz": 500.0, "sample_count": 0}, "sample_count"),
        ],
    )
    def test_invalid(self, kwargs, match):
        with pytest.raises(ValueError, match=match):
            ricker_wavelet(**kwargs)


# =============================================================================
# Amplitude Scaling Tests
# =============================================================================


class TestAmplitudeScale:
    """Tests for the adaptive amplitude factor."""

    def test_reference_is_one(self):
        assert amplitude_scale(1e-3, 0.05) == 1.0
        assert amplitude_scale(5e-3, 0.5) == 1.0

    def test_grows_as_spacing_shrinks(self):
        assert amplitude_scale(1e-4, 0.05) > amplitude_scale(5e-4, 0.05) > 1.0

    def test_grows_as_length_shrinks(self):
        assert amplitude_scale(1e-3, 0.005) > amplitude_scale(1e-3, 0.02) > 1.0

    def test_product(self):
        assert amplitude_scale(1e-4, 0.005) == pytest.approx(100.0)

    def test_capped(self):
        assert amplitude_scale(1e-12, 1e-12) == MAX_AMPLITUDE_SCALE

    def test_invalid(self):
        with pytest.raises(ValueError):
            amplitude_scale(0.0, 0.05)


class TestSourceWavelet:
    """Tests for the injected source pulse."""

    def test_scaling(self):
        w = source_wavelet(
            1e-7, 500.0, 100, amplitude=2.0, energy=4.0, spacing=5e-4, sample_length=0.05
        )
        # amplitude_scale = 2, amplitude = 2, sqrt(energy) = 2
        assert np.abs(w).max() == pytest.approx(8.0, rel=1e-5)

    def test_defaults_are_unit(self):
        w = source_wavelet(1e-7, 500.0, 100)
        np.testing.assert_allclose(w, ricker_wavelet(1e-7, 500.0, 100))
