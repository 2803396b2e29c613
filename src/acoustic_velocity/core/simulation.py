"""
Acoustic velocity simulation of a rock sample.

AcousticVelocitySimulation ties the pieces together:

1. construction: estimate the sample's elastic state from material name
   and density (or a prior triaxial result)
2. initialize(): validate, plan the grid, build the velocity model
3. run_async(): run the selected solver, detect arrivals, build the result

Measured velocities are carried between runs in a caller-owned
PriorMeasurements object. A P-wave run reports Vp/Vs against the last
measured S-wave velocity (and vice versa) when one exists, and updates the
object only when it finishes successfully.

Example:
    >>> from acoustic_velocity import (
    ...     AcousticVelocitySimulation, PriorMeasurements, SimulationConfig,
    ... )
    >>> from acoustic_velocity.core.mesh import box_triangles
    >>> prior = PriorMeasurements()
    >>> sim = AcousticVelocitySimulation(
    ...     "granite", 2700.0, box_triangles((20, 20, 40)),
    ...     SimulationConfig(wave_type="P", frequency_khz=50.0),
    ...     prior=prior,
    ... )
    >>> sim.initialize()
    True
    >>> result = sim.run()
    >>> result.success, prior.p_velocity > 0
    (True, True)
"""

from __future__ import annotations

import asyncio
import logging
import threading
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Literal

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..analysis.arrivals import ArrivalAnalysis, analyze_arrivals
from ..materials import ElasticState, TriaxialResult, estimate_material_properties
from .backends import BackendName, ParallelFieldStepper, select_stepper
from .direction import parse_direction
from .errors import SimulationCancelled
from .grid import DEFAULT_VOXEL_SIZE, SimulationGrid, plan_grid
from .mesh import as_triangles
from .solver import (
    ProgressCallback,
    PropagationSettings,
    PWaveSolver1D,
    SolverOutput,
    SWaveSolver1D,
    WaveSnapshot,
    WaveSolver,
    WaveSolver3D,
    WaveType,
)
from .velocity_model import DEFAULT_SEED, VelocityModel, build_velocity_model

logger = logging.getLogger(__name__)

MIN_TIME_STEPS = 10

CANCELLED_SUMMARY = "Simulation was cancelled"
CANCELLED_ERROR = "Operation cancelled"


class SimulationStatus(Enum):
    """Lifecycle of a simulation instance."""

    NOT_INITIALIZED = "not_initialized"
    INITIALIZING = "initializing"
    READY = "ready"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class PriorMeasurements:
    """Velocities measured by earlier runs, owned by the caller.

    A value of 0 means "not measured yet". Pass the same object to
    successive simulations to let a later run of one wave type use the
    measured velocity of the other. Runs that share one object are not
    synchronized against each other.

    Attributes:
        p_velocity: Last measured P-wave velocity in m/s
        p_arrival_time: Last measured P-wave arrival time in seconds
        s_velocity: Last measured S-wave velocity in m/s
        s_arrival_time: Last measured S-wave arrival time in seconds
    """

    p_velocity: float = 0.0
    p_arrival_time: float = 0.0
    s_velocity: float = 0.0
    s_arrival_time: float = 0.0

    @property
    def has_p(self) -> bool:
        return self.p_velocity > 0

    @property
    def has_s(self) -> bool:
        return self.s_velocity > 0

    def record(self, wave_type: WaveType, velocity: float, arrival_time: float) -> None:
        """Overwrite the stored values of one wave type."""
        if wave_type is WaveType.P:
            self.p_velocity = velocity
            self.p_arrival_time = arrival_time
        else:
            self.s_velocity = velocity
            self.s_arrival_time = arrival_time


@dataclass
class SimulationConfig:
    """Parameters of one simulation.

    Args:
        wave_type: "P" or "S" (also accepts "P-Wave", "s-wave", ...)
        mode: "1d" line solver or "3d" volume solver
        confining_pressure: Confining pressure in MPa
        frequency_khz: Source peak frequency in kHz
        amplitude: Source amplitude multiplier
        energy: Source energy in joules
        time_steps: Requested number of timesteps (minimum 10)
        direction: Test direction, any form parse_direction() accepts
        extended_time: Allow five sample traversals instead of three
        time_step_factor: Multiplier on grid spacing and timestep
        seed: Seed for the velocity model jitter
    """

    wave_type: WaveType | str = WaveType.P
    mode: Literal["1d", "3d"] = "1d"
    confining_pressure: float = 0.0
    frequency_khz: float = 500.0
    amplitude: float = 1.0
    energy: float = 1.0
    time_steps: int = 1000
    direction: str | Sequence[float] | None = "z"
    extended_time: bool = False
    time_step_factor: float = 1.0
    seed: int = DEFAULT_SEED

    def __post_init__(self):
        self.wave_type = WaveType.parse(self.wave_type)
        self.mode = str(self.mode).lower()
        self.direction = parse_direction(self.direction)

    def problems(self) -> list[str]:
        """List every invalid parameter; empty when the config is valid."""
        issues = []
        if self.mode not in ("1d", "3d"):
            issues.append(f"mode must be '1d' or '3d', got '{self.mode}'")
        if not self.frequency_khz > 0:
            issues.append(f"frequency must be positive, got {self.frequency_khz}")
        if not self.amplitude > 0:
            issues.append(f"amplitude must be positive, got {self.amplitude}")
        if not self.energy > 0:
            issues.append(f"energy must be positive, got {self.energy}")
        if self.time_steps < MIN_TIME_STEPS:
            issues.append(f"time steps must be at least {MIN_TIME_STEPS}, got {self.time_steps}")
        if not self.time_step_factor > 0:
            issues.append(f"time step factor must be positive, got {self.time_step_factor}")
        return issues

    def propagation_settings(self) -> PropagationSettings:
        return PropagationSettings(
            frequency_khz=self.frequency_khz,
            amplitude=self.amplitude,
            energy=self.energy,
            time_steps=self.time_steps,
            extended_time=self.extended_time,
            time_step_factor=self.time_step_factor,
            direction=self.direction,
        )


@dataclass(frozen=True)
class SimulationResult:
    """Outcome of one run, successful or not.

    Failed and cancelled results carry the summary and error message; the
    measurement fields keep their defaults.
    """

    simulation_id: str
    success: bool
    summary: str
    wave_type: WaveType
    error_message: str | None = None
    status: SimulationStatus = SimulationStatus.COMPLETED
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    measured_p_velocity: float = 0.0
    measured_s_velocity: float = 0.0
    theoretical_p_velocity: float = 0.0
    theoretical_s_velocity: float = 0.0
    p_arrival_time: float = 0.0
    s_arrival_time: float = 0.0
    p_detected: bool = False
    s_detected: bool = False
    vp_vs_ratio: float = 0.0
    max_displacement: float = 0.0

    youngs_modulus: float = 0.0
    poissons_ratio: float = 0.0
    bulk_modulus: float = 0.0
    shear_modulus: float = 0.0
    attenuation: float = 0.0

    confining_pressure: float = 0.0
    frequency_khz: float = 0.0
    amplitude: float = 0.0
    energy: float = 0.0
    received_energy: float = 0.0
    energy_loss_percent: float = 0.0
    direction: tuple[float, float, float] = (0.0, 0.0, 1.0)
    sample_length: float = 0.0
    distance: float = 0.0
    dt: float = 0.0

    receiver_trace: NDArray[np.float64] = field(default_factory=lambda: np.zeros(0))
    snapshots: tuple[WaveSnapshot, ...] = ()
    backend: str = ""
    runtime: float = 0.0
    prior: PriorMeasurements | None = None

    @property
    def times(self) -> NDArray[np.float64]:
        """Sample times of the receiver trace in seconds."""
        return np.arange(len(self.receiver_trace)) * self.dt

    def summary_table(self) -> dict[str, float | str]:
        """Scalar fields for display."""
        return {
            "Wave type": self.wave_type.label,
            "Measured Vp (m/s)": self.measured_p_velocity,
            "Measured Vs (m/s)": self.measured_s_velocity,
            "Theoretical Vp (m/s)": self.theoretical_p_velocity,
            "Theoretical Vs (m/s)": self.theoretical_s_velocity,
            "Vp/Vs": self.vp_vs_ratio,
            "P arrival (s)": self.p_arrival_time,
            "S arrival (s)": self.s_arrival_time,
            "Max displacement": self.max_displacement,
            "Young's modulus (GPa)": self.youngs_modulus / 1e9,
            "Poisson's ratio": self.poissons_ratio,
            "Bulk modulus (GPa)": self.bulk_modulus / 1e9,
            "Shear modulus (GPa)": self.shear_modulus / 1e9,
            "Energy loss (%)": self.energy_loss_percent,
        }


CompletionCallback = Callable[
    [bool, str, SimulationResult, BaseException | None], None
]


class AcousticVelocitySimulation:
    """P-wave or S-wave velocity simulation of one sample.

    Args:
        material_name: Free-form material name, matched against the
            profile registry (None uses the default rock)
        density: Sample density in kg/m³
        triangles: Sample mesh, shape (n, 3, 3), in voxel units
        config: Simulation parameters (defaults to SimulationConfig())
        voxel_size: Physical size of one mesh unit in meters
        prior: Measurements from earlier runs; updated on success
        triaxial: Prior triaxial test result supplying E and ν
        backend: Field stepper backend, "auto", "gpu" or "cpu"

    Raises:
        ValueError: If density is not positive
    """

    def __init__(
        self,
        material_name: str | None,
        density: float,
        triangles: ArrayLike | None,
        config: SimulationConfig | None = None,
        *,
        voxel_size: float | None = DEFAULT_VOXEL_SIZE,
        prior: PriorMeasurements | None = None,
        triaxial: TriaxialResult | None = None,
        backend: BackendName = "auto",
    ):
        self.simulation_id = uuid.uuid4().hex
        self.material_name = material_name
        self.density = density
        self.triangles = as_triangles(triangles)
        self.config = config if config is not None else SimulationConfig()
        self.voxel_size = voxel_size
        self.prior = prior if prior is not None else PriorMeasurements()
        self.elastic: ElasticState = estimate_material_properties(
            material_name,
            density,
            confining_pressure=self.config.confining_pressure,
            triaxial=triaxial,
        )
        self.stepper: ParallelFieldStepper = select_stepper(backend)

        self.status = SimulationStatus.NOT_INITIALIZED
        self.grid: SimulationGrid | None = None
        self.model: VelocityModel | None = None
        self._cancel_event = threading.Event()

        # Seed the other wave type from earlier measurements
        self.measured_p_velocity = 0.0
        self.measured_s_velocity = 0.0
        self.p_arrival_time = 0.0
        self.s_arrival_time = 0.0
        if self.wave_type is WaveType.P and self.prior.has_s:
            self.measured_s_velocity = self.prior.s_velocity
            self.s_arrival_time = self.prior.s_arrival_time
        elif self.wave_type is WaveType.S and self.prior.has_p:
            self.measured_p_velocity = self.prior.p_velocity
            self.p_arrival_time = self.prior.p_arrival_time

        logger.info(
            "Estimated %s (%s, %.0f kg/m³): Vp=%.0f m/s, Vs=%.0f m/s",
            self.elastic.profile_name,
            material_name,
            density,
            self.elastic.p_velocity,
            self.elastic.s_velocity,
        )

    @property
    def wave_type(self) -> WaveType:
        return self.config.wave_type

    def _set_status(self, status: SimulationStatus) -> None:
        logger.debug("Simulation %s: %s -> %s", self.simulation_id[:8], self.status.name, status.name)
        self.status = status

    # -------------------------------------------------------------------------
    # Setup
    # -------------------------------------------------------------------------

    def validate_parameters(self) -> bool:
        """Check inputs; logs each problem and returns False if any."""
        issues = []
        if not self.density > 0:
            issues.append(f"density must be positive, got {self.density}")
        if len(self.triangles) == 0:
            issues.append("sample mesh has no triangles")
        issues.extend(self.config.problems())

        for issue in issues:
            logger.error("Invalid simulation parameter: %s", issue)
        return not issues

    def initialize(self) -> bool:
        """Plan the grid and build the velocity model.

        Returns:
            True when the simulation is ready to run
        """
        self._set_status(SimulationStatus.INITIALIZING)
        if not self.validate_parameters():
            self._set_status(SimulationStatus.FAILED)
            return False

        cfg = self.config
        try:
            self.grid = plan_grid(
                self.triangles,
                self.voxel_size,
                self.elastic.p_velocity,
                self.elastic.s_velocity,
                cfg.frequency_khz,
                direction=cfg.direction,
                time_step_factor=cfg.time_step_factor,
            )
            self.model = build_velocity_model(
                self.grid,
                self.elastic.velocity(self.wave_type.value),
                self.density,
                seed=cfg.seed,
            )
        except Exception:
            logger.exception("Failed to initialize simulation %s", self.simulation_id[:8])
            self._set_status(SimulationStatus.FAILED)
            return False

        self._cancel_event.clear()
        self._set_status(SimulationStatus.READY)
        return True

    # -------------------------------------------------------------------------
    # Running
    # -------------------------------------------------------------------------

    def cancel(self) -> None:
        """Request cancellation; safe to call from any thread."""
        self._cancel_event.set()

    def _make_solver(self) -> WaveSolver:
        settings = self.config.propagation_settings()
        args = (self.grid, self.model, self.elastic, settings, self.stepper)
        if self.config.mode == "3d":
            return WaveSolver3D(*args, wave_type=self.wave_type)
        if self.wave_type is WaveType.P:
            return PWaveSolver1D(*args)
        return SWaveSolver1D(*args)

    async def run_async(
        self,
        progress: ProgressCallback | None = None,
        on_complete: CompletionCallback | None = None,
    ) -> SimulationResult:
        """Run the simulation.

        Args:
            progress: Called with (percent, message) during time stepping
            on_complete: Called exactly once with (success, message, result, error)

        Returns:
            SimulationResult. Never raises for configuration problems,
            cancellation or computation faults; those give unsuccessful
            results. Cancelling the asyncio task re-raises CancelledError
            after on_complete.
        """
        error: BaseException | None = None
        if self.status is not SimulationStatus.READY:
            result = self._failure(
                "Simulation not ready",
                f"Simulation must be initialized first (status: {self.status.name})",
            )
        else:
            self._set_status(SimulationStatus.RUNNING)
            try:
                output = await self._make_solver().run(progress, self._cancel_event)
                result = self._build_result(output)
                self.prior.record(
                    self.wave_type,
                    self._measured(result),
                    result.p_arrival_time if self.wave_type is WaveType.P else result.s_arrival_time,
                )
                result = replace(result, prior=replace(self.prior))
                self._set_status(SimulationStatus.COMPLETED)
            except (SimulationCancelled, asyncio.CancelledError) as e:
                error = e
                logger.info("Simulation %s cancelled", self.simulation_id[:8])
                result = self._failure(
                    CANCELLED_SUMMARY, CANCELLED_ERROR, SimulationStatus.CANCELLED
                )
                self._set_status(SimulationStatus.CANCELLED)
                if isinstance(e, asyncio.CancelledError):
                    if on_complete is not None:
                        on_complete(result.success, result.summary, result, error)
                    raise
            except Exception as e:
                error = e
                logger.exception("Simulation %s failed", self.simulation_id[:8])
                result = self._failure("Simulation failed", str(e))
                self._set_status(SimulationStatus.FAILED)

        if on_complete is not None:
            on_complete(result.success, result.summary, result, error)
        return result

    def run(
        self,
        progress: ProgressCallback | None = None,
        on_complete: CompletionCallback | None = None,
    ) -> SimulationResult:
        """Blocking wrapper around run_async()."""
        return asyncio.run(self.run_async(progress, on_complete))

    # -------------------------------------------------------------------------
    # Results
    # -------------------------------------------------------------------------

    def _measured(self, result: SimulationResult) -> float:
        if self.wave_type is WaveType.P:
            return result.measured_p_velocity
        return result.measured_s_velocity

    def _failure(
        self,
        summary: str,
        error_message: str,
        status: SimulationStatus = SimulationStatus.FAILED,
    ) -> SimulationResult:
        return SimulationResult(
            simulation_id=self.simulation_id,
            success=False,
            summary=summary,
            wave_type=self.wave_type,
            error_message=error_message,
            status=status,
            theoretical_p_velocity=self.elastic.p_velocity,
            theoretical_s_velocity=self.elastic.s_velocity,
            prior=replace(self.prior),
        )

    @staticmethod
    def _unsimulated(
        prior_velocity: float, prior_time: float, theoretical: float, distance: float
    ) -> tuple[float, float, bool]:
        """Velocity, arrival time and detected flag for the wave type not simulated.

        A prior measurement counts as detected. Without one, the theoretical
        velocity and its travel time over ``distance`` are reported.
        """
        if prior_velocity > 0:
            time = prior_time if prior_time > 0 else distance / prior_velocity
            return prior_velocity, time, True
        return theoretical, distance / theoretical, False

    def _build_result(self, output: SolverOutput) -> SimulationResult:
        elastic = self.elastic
        cfg = self.config
        analysis: ArrivalAnalysis = analyze_arrivals(
            output.receiver_trace,
            output.distance,
            output.dt,
            density=self.density,
            wave_velocity=elastic.velocity(self.wave_type.value),
            theoretical_p=elastic.p_velocity,
            theoretical_s=elastic.s_velocity,
            primary=self.wave_type,
        )

        # The wave type not simulated comes from earlier measurements or theory
        if self.wave_type is WaveType.P:
            vp, p_time, p_detected = (
                analysis.measured_p_velocity,
                analysis.p_arrival_time,
                analysis.p_detected,
            )
            vs, s_time, s_detected = self._unsimulated(
                self.measured_s_velocity, self.s_arrival_time, elastic.s_velocity, output.distance
            )
            self.measured_p_velocity = vp
            self.p_arrival_time = p_time
        else:
            vs, s_time, s_detected = (
                analysis.measured_s_velocity,
                analysis.s_arrival_time,
                analysis.s_detected,
            )
            vp, p_time, p_detected = self._unsimulated(
                self.measured_p_velocity, self.p_arrival_time, elastic.p_velocity, output.distance
            )
            self.measured_s_velocity = vs
            self.s_arrival_time = s_time

        input_energy = cfg.energy
        loss = max(0.0, input_energy - analysis.received_energy) / input_energy * 100.0

        logger.info(
            "%s run: Vp=%.0f m/s, Vs=%.0f m/s, Vp/Vs=%.3f",
            self.wave_type.label,
            vp,
            vs,
            vp / vs,
        )

        return SimulationResult(
            simulation_id=self.simulation_id,
            success=True,
            summary=f"{self.wave_type.label} simulation completed",
            wave_type=self.wave_type,
            measured_p_velocity=vp,
            measured_s_velocity=vs,
            theoretical_p_velocity=elastic.p_velocity,
            theoretical_s_velocity=elastic.s_velocity,
            p_arrival_time=p_time,
            s_arrival_time=s_time,
            p_detected=p_detected,
            s_detected=s_detected,
            vp_vs_ratio=vp / vs,
            max_displacement=analysis.max_displacement,
            youngs_modulus=elastic.youngs_modulus,
            poissons_ratio=elastic.poissons_ratio,
            bulk_modulus=elastic.bulk_modulus,
            shear_modulus=elastic.shear_modulus,
            attenuation=elastic.attenuation,
            confining_pressure=cfg.confining_pressure,
            frequency_khz=cfg.frequency_khz,
            amplitude=cfg.amplitude,
            energy=input_energy,
            received_energy=analysis.received_energy,
            energy_loss_percent=loss,
            direction=cfg.direction,
            sample_length=self.grid.sample_length,
            distance=output.distance,
            dt=output.dt,
            receiver_trace=output.receiver_trace,
            snapshots=tuple(output.snapshots),
            backend=output.backend,
            runtime=output.runtime,
        )
