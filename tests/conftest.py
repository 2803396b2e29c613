"""Pytest configuration for the acoustic-velocity test suite.

Handles initialization that must happen before any test imports and
provides small, fast simulation fixtures.
"""

import os

import pytest

# =============================================================================
# OpenMP Library Conflict Resolution
# =============================================================================
# PyTorch and numpy's BLAS can both link against OpenMP. When both are
# imported in the same Python process, multiple OpenMP runtimes are
# initialized, causing:
#
#   OMP: Error #15: Initializing libomp.dylib, but found libomp.dylib already
#   initialized.
#
# Setting KMP_DUPLICATE_LIB_OK=TRUE allows multiple runtimes to coexist.
# This MUST be set before importing torch.
# =============================================================================
os.environ.setdefault("KMP_DUPLICATE_LIB_OK", "TRUE")


def pytest_configure(config):
    """Called after command line options have been parsed and all plugins
    and initial conftest files been loaded.
    """
    os.environ["KMP_DUPLICATE_LIB_OK"] = "TRUE"


# =============================================================================
# Shared fixtures
# =============================================================================
# 50 kHz in granite gives a 4 mm grid spacing, so a 20 × 20 × 40 mm core
# lands on the minimum 16³ grid and every solver run finishes quickly.

SMALL_FREQUENCY_KHZ = 50.0


@pytest.fixture
def core_triangles():
    from acoustic_velocity.core.mesh import box_triangles

    return box_triangles((20, 20, 40))


@pytest.fixture
def granite():
    from acoustic_velocity.materials import estimate_material_properties

    return estimate_material_properties("granite", 2700.0)


@pytest.fixture
def small_grid(core_triangles, granite):
    from acoustic_velocity.core.grid import plan_grid

    return plan_grid(
        core_triangles,
        voxel_size=1e-3,
        p_velocity=granite.p_velocity,
        s_velocity=granite.s_velocity,
        frequency_khz=SMALL_FREQUENCY_KHZ,
        direction=(0.0, 0.0, 1.0),
    )


@pytest.fixture
def settings():
    from acoustic_velocity.core.solver import PropagationSettings

    return PropagationSettings(frequency_khz=SMALL_FREQUENCY_KHZ, time_steps=20)


@pytest.fixture
def small_config():
    from acoustic_velocity.core.simulation import SimulationConfig

    def make(**overrides):
        params = {"frequency_khz": SMALL_FREQUENCY_KHZ, "time_steps": 20}
        params.update(overrides)
        return SimulationConfig(**params)

    return make
