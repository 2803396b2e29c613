#!/usr/bin/env python3
"""
Field Stepper Backend Benchmark

Measures the throughput of the 3D leapfrog kernel on every available
field stepper (numpy, torch on CPU threads, CUDA or MPS) across the grid
sizes the planner can produce.

Usage:
    python3 benchmarks/benchmark_backends.py            # Full benchmark
    python3 benchmarks/benchmark_backends.py --quick    # 16³ and 32³ only
    python3 benchmarks/benchmark_backends.py --json     # Output results as JSON
"""

import argparse
import json
import time
from dataclasses import asdict, dataclass

import numpy as np

from acoustic_velocity.core.backends import (
    FieldRing,
    NumpyFieldStepper,
    ParallelFieldStepper,
    TorchFieldStepper,
    get_gpu_info,
)


@dataclass
class StepperResult:
    """Timing of one stepper on one grid."""
    backend: str
    grid_size: tuple[int, int, int]
    n_steps: int
    time_ms: float
    cells_per_sec: float
    memory_mb: float


def available_steppers() -> list[ParallelFieldStepper]:
    """Numpy always, torch on CPU and on the accelerator when present."""
    steppers: list[ParallelFieldStepper] = [NumpyFieldStepper()]
    for device in ("cpu", "auto"):
        try:
            steppers.append(TorchFieldStepper(device))
        except (ImportError, RuntimeError) as e:
            print(f"  skipping torch {device}: {e}")
    return steppers


def run_stepper_benchmark(
    stepper: ParallelFieldStepper,
    shape: tuple[int, int, int],
    n_steps: int = 100,
    warmup_steps: int = 10,
) -> StepperResult:
    """Time the leapfrog kernel on one stepper.

    Args:
        stepper: Field stepper under test
        shape: Grid dimensions
        n_steps: Number of timed steps
        warmup_steps: Untimed steps before measuring

    Returns:
        StepperResult with timing and throughput data
    """
    dx = 1e-3
    velocity = 5500.0
    dt = dx / (1.2 * velocity * np.sqrt(3.0))
    source = tuple(n // 2 for n in shape)

    ring = FieldRing(stepper, shape)
    c2 = stepper.upload(np.full(shape, velocity**2, dtype=np.float32))

    for _ in range(warmup_steps):
        stepper.add_at(ring.current, source, 1.0)
        stepper.leapfrog_step(ring, c2, 0.05, dt, dx)
    stepper.synchronize()

    start = time.perf_counter()
    for _ in range(n_steps):
        stepper.leapfrog_step(ring, c2, 0.05, dt, dx)
    stepper.synchronize()
    elapsed = time.perf_counter() - start

    memory_mb = stepper.allocated_bytes / 1024**2
    stepper.release()

    return StepperResult(
        backend=f"{stepper.name} ({stepper.device})",
        grid_size=shape,
        n_steps=n_steps,
        time_ms=elapsed * 1000,
        cells_per_sec=np.prod(shape) * n_steps / elapsed,
        memory_mb=memory_mb,
    )


def print_result(result: StepperResult) -> None:
    n = result.grid_size[0]
    print(
        f"  {result.backend:<18} {n:>3}³  {result.time_ms:>9.1f} ms  "
        f"{result.cells_per_sec / 1e6:>8.1f} Mcells/s  {result.memory_mb:>6.2f} MB"
    )


def main():
    parser = argparse.ArgumentParser(
        description="Benchmark the field stepper backends"
    )
    parser.add_argument("--quick", action="store_true", help="Run quick benchmarks (smaller grids)")
    parser.add_argument("--steps", type=int, default=100, help="Timed steps per run")
    parser.add_argument("--json", action="store_true", help="Output results as JSON")
    args = parser.parse_args()

    sizes = [16, 32] if args.quick else [16, 32, 48, 64]

    if not args.json:
        print("=" * 70)
        print("Field stepper benchmark")
        print(f"GPU: {get_gpu_info()}")
        print("=" * 70)

    results = []
    for stepper in available_steppers():
        for n in sizes:
            result = run_stepper_benchmark(stepper, (n, n, n), n_steps=args.steps)
            results.append(result)
            if not args.json:
                print_result(result)

    if args.json:
        print(json.dumps([asdict(r) for r in results], indent=2, default=float))


if __name__ == "__main__":
    main()
