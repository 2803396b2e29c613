"""Progress display for velocity simulations.

Provides rich terminal UI for simulation progress tracking including:
- Progress bar fed by the simulation's progress callback
- Elapsed time and ETA
- Memory usage
- Parameter and result tables
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

import psutil
from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)
from rich.table import Table

if TYPE_CHECKING:
    from acoustic_velocity.core.simulation import AcousticVelocitySimulation, SimulationResult


def format_time(seconds: float) -> str:
    """Format time duration for display.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string like "1m 23s" or "2h 15m"
    """
    if seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        minutes = int(seconds // 60)
        secs = int(seconds % 60)
        return f"{minutes}m {secs:02d}s"
    else:
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        return f"{hours}h {minutes:02d}m"


def format_bytes(num_bytes: float) -> str:
    """Format byte count for display.

    Args:
        num_bytes: Number of bytes

    Returns:
        Formatted string like "1.5 GB" or "256 MB"
    """
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if abs(num_bytes) < 1024.0:
            return f"{num_bytes:.1f} {unit}"
        num_bytes /= 1024.0
    return f"{num_bytes:.1f} PB"


class SimulationProgress:
    """Progress bar driven by the simulation progress callback.

    The simulation reports (percent, message) in batches; this class maps
    that onto a rich progress bar and tracks peak process memory.

    Example:
        >>> with SimulationProgress(console) as progress:
        ...     result = sim.run(progress=progress.update)
    """

    def __init__(self, console: Console, update_interval: float = 0.1):
        """Initialize progress display.

        Args:
            console: Rich console instance
            update_interval: Minimum time between memory samples (seconds)
        """
        self.console = console
        self.update_interval = update_interval

        self.start_time = time.time()
        self.last_update = 0.0
        self.peak_memory = 0
        self.last_message = ""

        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            TextColumn("•"),
            TimeRemainingColumn(),
            console=console,
        )
        self.task = self.progress.add_task("Computing", total=100.0)
        self.progress.start()

    def update(self, percent: float, message: str) -> None:
        """Progress callback: advance the bar to ``percent``.

        Args:
            percent: Completion in [0, 100]
            message: Status text from the solver
        """
        self.last_message = message
        self.progress.update(self.task, completed=percent)

        current_time = time.time()
        if current_time - self.last_update < self.update_interval:
            return

        rss = psutil.Process().memory_info().rss
        self.peak_memory = max(self.peak_memory, rss)
        self.progress.update(
            self.task,
            description=f"Computing [dim]({format_bytes(rss)})[/dim]",
        )
        self.last_update = current_time

    def finish(self) -> None:
        """Stop the progress bar."""
        self.progress.stop()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.finish()


def print_simulation_info(console: Console, sim: AcousticVelocitySimulation) -> None:
    """Print simulation parameters before running.

    Args:
        console: Rich console instance
        sim: Initialized simulation
    """
    grid = sim.grid
    elastic = sim.elastic
    cfg = sim.config

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Parameter", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Material", f"{elastic.profile_name} ({sim.density:.0f} kg/m³)")
    table.add_row(
        "Theoretical",
        f"Vp {elastic.p_velocity:.0f} m/s, Vs {elastic.s_velocity:.0f} m/s",
    )
    table.add_row("Wave", f"{cfg.wave_type.label}, {cfg.mode.upper()} solver")
    table.add_row("Frequency", f"{cfg.frequency_khz:g} kHz")

    shape_str = " × ".join(str(n) for n in grid.shape)
    table.add_row("Grid", f"{shape_str} ({grid.num_cells / 1e3:.1f}k cells)")
    table.add_row("Spacing", f"{grid.spacing * 1e3:.3f} mm")
    table.add_row("Source / receiver", f"{grid.source} → {grid.receiver}")
    table.add_row("Backend", f"{sim.stepper.name} ({sim.stepper.device})")

    console.print(table)
    console.print()


def print_results(console: Console, result: SimulationResult) -> None:
    """Print the scalar results of a successful run."""
    table = Table(title="Results", show_header=True, header_style="bold")
    table.add_column("Quantity", style="cyan")
    table.add_column("Value", justify="right")

    for name, value in result.summary_table().items():
        if isinstance(value, float):
            text = f"{value:.4g}"
        else:
            text = str(value)
        table.add_row(name, text)

    console.print(table)
    if not result.p_detected and result.wave_type.value == "P":
        console.print("[yellow]No P-wave arrival detected; theoretical value used[/yellow]")
    if not result.s_detected and result.wave_type.value == "S":
        console.print("[yellow]No S-wave arrival detected; theoretical value used[/yellow]")
