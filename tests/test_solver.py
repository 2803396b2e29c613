"""Tests for the finite-difference wave solvers.

Runs use the 16³ grid from conftest so each finishes in well under a
second on CPU.
"""

import asyncio
import math
import threading

import numpy as np
import pytest

from acoustic_velocity.core.backends import NumpyFieldStepper
from acoustic_velocity.core.direction import perpendicular
from acoustic_velocity.core.errors import SimulationCancelled
from acoustic_velocity.core.solver import (
    PWaveSolver1D,
    SWaveSolver1D,
    WaveSolver3D,
    WaveType,
    sponge_profile,
    total_time_steps,
)
from acoustic_velocity.core.velocity_model import build_velocity_model


@pytest.fixture
def p_model(small_grid, granite):
    return build_velocity_model(small_grid, granite.p_velocity, 2700.0)


@pytest.fixture
def s_model(small_grid, granite):
    return build_velocity_model(small_grid, granite.s_velocity, 2700.0)


def _run(solver, progress=None, cancel_event=None):
    return asyncio.run(solver.run(progress=progress, cancel_event=cancel_event))


# =============================================================================
# Helpers
# =============================================================================


class TestWaveType:
    """Tests for WaveType parsing."""

    @pytest.mark.parametrize("text", ["P", "p", "P-Wave", " p-wave "])
    def test_parse_p(self, text):
        assert WaveType.parse(text) is WaveType.P

    @pytest.mark.parametrize("text", ["S", "s-wave", "Shear"])
    def test_parse_s(self, text):
        assert WaveType.parse(text) is WaveType.S

    def test_parse_invalid(self):
        with pytest.raises(ValueError, match="Unknown wave type"):
            WaveType.parse("Love")

    def test_label(self):
        assert WaveType.S.label == "S-wave"


class TestTotalTimeSteps:
    """Tests for the step-count rule."""

    def test_request_wins(self):
        assert total_time_steps(100, 0.05, 5000.0, 1e-6) == 100

    def test_traversals_win(self):
        # 3 × 0.05 m / 5000 m/s / 1 µs = 30
        assert total_time_steps(10, 0.05, 5000.0, 1e-6) == 30

    def test_extended(self):
        assert total_time_steps(10, 0.05, 5000.0, 1e-6, extended=True) == 50


class TestSpongeProfile:
    """Tests for the 1D edge damping profile."""

    def test_shape(self):
        profile = sponge_profile(100, 10, 0.9)
        assert profile.dtype == np.float32
        assert profile[0] == pytest.approx(0.1)
        assert profile[9] == pytest.approx(0.91)
        np.testing.assert_array_equal(profile[10:90], 1.0)
        np.testing.assert_allclose(profile, profile[::-1])

    def test_zero_width(self):
        np.testing.assert_array_equal(sponge_profile(20, 0, 0.9), 1.0)


# =============================================================================
# 1D Solvers
# =============================================================================


class TestPWaveSolver1D:
    """Tests for the 1D compressional solver."""

    def test_run(self, small_grid, p_model, granite, settings):
        stepper = NumpyFieldStepper()
        output = _run(PWaveSolver1D(small_grid, p_model, granite, settings, stepper))

        assert output.wave_type is WaveType.P
        assert output.steps >= settings.time_steps
        assert len(output.receiver_trace) == output.steps
        assert len(output.times) == output.steps
        assert np.all(np.isfinite(output.receiver_trace))
        assert np.abs(output.receiver_trace).max() > 0
        # 200-point line, source at 50 and receiver at 150
        assert output.distance == pytest.approx(100 * small_grid.spacing)
        assert output.backend == "cpu"
        assert output.runtime > 0

    def test_timestep_respects_cfl(self, small_grid, p_model, granite, settings):
        output = _run(
            PWaveSolver1D(small_grid, p_model, granite, settings, NumpyFieldStepper())
        )
        assert 1.1 * granite.p_velocity * output.dt / small_grid.spacing < 1.0

    def test_quiet_before_arrival(self, small_grid, p_model, granite, settings):
        """Nothing reaches the receiver before the wave can travel there."""
        output = _run(
            PWaveSolver1D(small_grid, p_model, granite, settings, NumpyFieldStepper())
        )
        # Explicit scheme: information moves at most one cell per step
        assert not output.receiver_trace[:99].any()

    def test_snapshots(self, small_grid, p_model, granite, settings):
        output = _run(
            PWaveSolver1D(small_grid, p_model, granite, settings, NumpyFieldStepper())
        )
        assert len(output.snapshots) == math.ceil(output.steps / 5)
        snap = output.snapshots[1]
        assert snap.step == 5
        assert snap.time == pytest.approx(5 * output.dt)
        assert snap.polarization == pytest.approx((0.0, 0.0, 1.0))
        with pytest.raises(ValueError):
            snap.field[0] = 1.0

    def test_progress_cadence(self, small_grid, p_model, granite, settings):
        calls = []
        output = _run(
            PWaveSolver1D(small_grid, p_model, granite, settings, NumpyFieldStepper()),
            progress=lambda pct, msg: calls.append((pct, msg)),
        )
        expected = output.steps // 50 + (1 if output.steps % 50 else 0)
        assert len(calls) == expected
        assert calls[0][0] == pytest.approx(100.0 * 50 / output.steps)
        assert calls[-1][0] == pytest.approx(100.0)
        assert "P-wave" in calls[0][1]

    def test_buffers_released(self, small_grid, p_model, granite, settings):
        stepper = NumpyFieldStepper()
        _run(PWaveSolver1D(small_grid, p_model, granite, settings, stepper))
        assert stepper.num_buffers == 0


class TestSWaveSolver1D:
    """Tests for the 1D shear solver."""

    def test_run(self, small_grid, s_model, granite, settings):
        output = _run(
            SWaveSolver1D(small_grid, s_model, granite, settings, NumpyFieldStepper())
        )
        assert output.wave_type is WaveType.S
        assert len(output.receiver_trace) == output.steps
        assert np.all(np.isfinite(output.receiver_trace))
        # 500-point line, source at 125 and receiver at 375
        assert output.distance == pytest.approx(250 * small_grid.spacing)
        assert len(output.snapshots) == math.ceil(output.steps / 10)

    def test_polarization_perpendicular(self, small_grid, s_model, granite, settings):
        output = _run(
            SWaveSolver1D(small_grid, s_model, granite, settings, NumpyFieldStepper())
        )
        pol = output.snapshots[0].polarization
        assert pol == pytest.approx(perpendicular((0.0, 0.0, 1.0)))
        assert np.dot(pol, (0.0, 0.0, 1.0)) == pytest.approx(0.0)


# =============================================================================
# Cancellation
# =============================================================================


class TestCancellation:
    """Tests for cooperative cancellation."""

    def test_cancel_before_start(self, small_grid, p_model, granite, settings):
        stepper = NumpyFieldStepper()
        event = threading.Event()
        event.set()
        solver = PWaveSolver1D(small_grid, p_model, granite, settings, stepper)

        with pytest.raises(SimulationCancelled) as exc_info:
            _run(solver, cancel_event=event)
        assert exc_info.value.step == 0
        assert stepper.num_buffers == 0

    def test_cancel_from_progress(self, small_grid, p_model, granite, settings):
        """Cancellation is noticed on the step after it is requested."""
        stepper = NumpyFieldStepper()
        event = threading.Event()
        solver = PWaveSolver1D(small_grid, p_model, granite, settings, stepper)

        with pytest.raises(SimulationCancelled, match="Operation cancelled") as exc_info:
            _run(solver, progress=lambda pct, msg: event.set(), cancel_event=event)
        assert exc_info.value.step == 50
        assert stepper.num_buffers == 0

    def test_cancel_from_thread(self, small_grid, s_model, granite, settings):
        stepper = NumpyFieldStepper()
        event = threading.Event()
        solver = SWaveSolver1D(small_grid, s_model, granite, settings, stepper)

        def cancel_soon(pct, msg):
            threading.Thread(target=event.set).start()

        with pytest.raises(SimulationCancelled):
            _run(solver, progress=cancel_soon, cancel_event=event)
        assert stepper.num_buffers == 0


# =============================================================================
# 3D Solver
# =============================================================================


class TestWaveSolver3D:
    """Tests for the full-volume solver."""

    def test_p_run(self, small_grid, p_model, granite, settings):
        stepper = NumpyFieldStepper()
        calls = []
        output = _run(
            WaveSolver3D(small_grid, p_model, granite, settings, stepper),
            progress=lambda pct, msg: calls.append(pct),
        )

        assert output.wave_type is WaveType.P
        assert len(output.receiver_trace) == output.steps
        assert np.all(np.isfinite(output.receiver_trace))
        assert output.distance == pytest.approx(small_grid.source_receiver_distance)
        assert len(output.snapshots) == math.ceil(output.steps / 10)
        assert len(calls) == output.steps // 20 + (1 if output.steps % 20 else 0)
        assert stepper.num_buffers == 0

    def test_snapshot_volume(self, small_grid, p_model, granite, settings):
        output = _run(
            WaveSolver3D(small_grid, p_model, granite, settings, NumpyFieldStepper())
        )
        snap = output.snapshots[-1]
        assert snap.field.shape == small_grid.shape
        vectors = snap.displacement_vectors()
        assert vectors.shape == small_grid.shape + (3,)
        np.testing.assert_allclose(vectors[..., 2], snap.field)
        assert not vectors[..., 0].any()

    def test_timestep_respects_cfl(self, small_grid, p_model, granite, settings):
        output = _run(
            WaveSolver3D(small_grid, p_model, granite, settings, NumpyFieldStepper())
        )
        c_max = float(p_model.velocity.max()) * math.sqrt(1.05)
        assert c_max * output.dt * math.sqrt(3.0) / small_grid.spacing < 1.0

    def test_s_run(self, small_grid, s_model, granite, settings):
        output = _run(
            WaveSolver3D(
                small_grid, s_model, granite, settings, NumpyFieldStepper(), WaveType.S
            )
        )
        assert output.wave_type is WaveType.S
        assert np.all(np.isfinite(output.receiver_trace))
        assert np.dot(output.snapshots[0].polarization, (0.0, 0.0, 1.0)) == pytest.approx(0.0)

    def test_time_step_factor(self, small_grid, p_model, granite, settings):
        base = _run(
            WaveSolver3D(small_grid, p_model, granite, settings, NumpyFieldStepper())
        )
        settings.time_step_factor = 0.5
        half = _run(
            WaveSolver3D(small_grid, p_model, granite, settings, NumpyFieldStepper())
        )
        assert half.dt == pytest.approx(base.dt / 2)
