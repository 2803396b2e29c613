"""Tests for the jittered velocity model."""

import numpy as np
import pytest

from acoustic_velocity.core.grid import SimulationGrid
from acoustic_velocity.core.velocity_model import DEFAULT_JITTER, build_velocity_model


@pytest.fixture
def grid():
    return SimulationGrid((16, 20, 24), 1e-3, (8, 10, 7), (8, 10, 14))


class TestBuildVelocityModel:
    """Tests for build_velocity_model."""

    def test_shapes_and_dtype(self, grid):
        model = build_velocity_model(grid, 5500.0, 2700.0)
        assert model.shape == grid.shape
        assert model.velocity.dtype == np.float32
        assert model.density.dtype == np.float32

    def test_jitter_bounds(self, grid):
        """Every voxel lies within ±5% of the material velocity."""
        model = build_velocity_model(grid, 5500.0, 2700.0)
        lo = np.float32(5500.0 * (1 - DEFAULT_JITTER))
        hi = np.float32(5500.0 * (1 + DEFAULT_JITTER))
        assert model.velocity.min() >= lo * (1 - 1e-6)
        assert model.velocity.max() <= hi * (1 + 1e-6)
        assert model.velocity.std() > 0

    def test_path_exact(self, grid):
        model = build_velocity_model(grid, 5500.0, 2700.0)
        assert len(model.path) == 8
        np.testing.assert_array_equal(model.path_velocities(), np.float32(5500.0))

    def test_density_uniform(self, grid):
        model = build_velocity_model(grid, 5500.0, 2700.0)
        np.testing.assert_array_equal(model.density, np.float32(2700.0))

    def test_reproducible(self, grid):
        a = build_velocity_model(grid, 3200.0, 2700.0, seed=7)
        b = build_velocity_model(grid, 3200.0, 2700.0, seed=7)
        np.testing.assert_array_equal(a.velocity, b.velocity)

    def test_seed_changes_field(self, grid):
        a = build_velocity_model(grid, 3200.0, 2700.0, seed=1)
        b = build_velocity_model(grid, 3200.0, 2700.0, seed=2)
        assert not np.array_equal(a.velocity, b.velocity)

    def test_no_jitter(self, grid):
        model = build_velocity_model(grid, 3200.0, 2700.0, jitter=0.0)
        np.testing.assert_array_equal(model.velocity, np.float32(3200.0))

    def test_sample_line_follows_path(self, grid):
        model = build_velocity_model(grid, 5500.0, 2700.0)
        line = model.sample_line(grid, 200)
        assert line.shape == (200,)
        np.testing.assert_array_equal(line, np.float32(5500.0))

    @pytest.mark.parametrize("jitter", [-0.1, 1.0])
    def test_invalid_jitter(self, grid, jitter):
        with pytest.raises(ValueError, match="jitter"):
            build_velocity_model(grid, 5500.0, 2700.0, jitter=jitter)

    def test_negative_velocity(self, grid):
        with pytest.raises(ValueError):
            build_velocity_model(grid, -1.0, 2700.0)
