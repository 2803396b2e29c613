"""Command-line tool for running a velocity simulation.

The acoustic-velocity CLI simulates a box-shaped sample of a named rock
and prints the measured velocities and elastic constants.
"""

import logging
import time

import click
from rich.console import Console
from rich.logging import RichHandler

from acoustic_velocity import __version__
from acoustic_velocity.core.mesh import box_triangles
from acoustic_velocity.core.simulation import (
    AcousticVelocitySimulation,
    PriorMeasurements,
    SimulationConfig,
)
from acoustic_velocity.materials import list_profiles

from .progress import SimulationProgress, format_time, print_results, print_simulation_info

console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@click.command()
@click.option(
    "--material",
    "-m",
    default="granite",
    show_default=True,
    help=f"Material name, matched against: {', '.join(list_profiles())}",
)
@click.option("--density", "-d", type=float, default=2700.0, show_default=True, help="kg/m³")
@click.option(
    "--size",
    nargs=3,
    type=float,
    default=(20.0, 20.0, 40.0),
    show_default=True,
    help="Sample box size in voxels (x y z)",
)
@click.option("--voxel-size", type=float, default=1e-3, show_default=True, help="Meters per voxel")
@click.option(
    "--wave",
    "wave_type",
    type=click.Choice(["P", "S"], case_sensitive=False),
    default="P",
    show_default=True,
)
@click.option("--mode", type=click.Choice(["1d", "3d"]), default="1d", show_default=True)
@click.option("--frequency", type=float, default=500.0, show_default=True, help="kHz")
@click.option("--amplitude", type=float, default=1.0, show_default=True)
@click.option("--energy", type=float, default=1.0, show_default=True, help="Source energy (J)")
@click.option("--time-steps", type=int, default=1000, show_default=True)
@click.option("--direction", default="z", show_default=True, help="x, y, z or 'i,j,k'")
@click.option("--pressure", type=float, default=0.0, show_default=True, help="Confining MPa")
@click.option("--extended", is_flag=True, help="Allow five sample traversals")
@click.option(
    "--backend",
    type=click.Choice(["auto", "gpu", "cpu"]),
    default="auto",
    help="Field stepper backend (default: auto-detect)",
)
@click.option("--both", is_flag=True, help="Run P then S, reusing the P measurement")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output with debug info")
@click.version_option(version=__version__, prog_name="acoustic-velocity")
def main(
    material: str,
    density: float,
    size: tuple[float, float, float],
    voxel_size: float,
    wave_type: str,
    mode: str,
    frequency: float,
    amplitude: float,
    energy: float,
    time_steps: int,
    direction: str,
    pressure: float,
    extended: bool,
    backend: str,
    both: bool,
    verbose: bool,
):
    """Simulate elastic wave propagation through a rock sample.

    Example:

    \b
        acoustic-velocity --material sandstone --density 2350 --wave S
        acoustic-velocity --mode 3d --frequency 50 --both
    """
    _configure_logging(verbose)
    console.print(f"\n[bold]Acoustic velocity simulation:[/bold] {material}", style="blue")
    console.print("─" * 60)

    prior = PriorMeasurements()
    waves = ["P", "S"] if both else [wave_type.upper()]
    triangles = box_triangles(size)

    for wave in waves:
        config = SimulationConfig(
            wave_type=wave,
            mode=mode,
            confining_pressure=pressure,
            frequency_khz=frequency,
            amplitude=amplitude,
            energy=energy,
            time_steps=time_steps,
            direction=direction,
            extended_time=extended,
        )
        try:
            sim = AcousticVelocitySimulation(
                material,
                density,
                triangles,
                config,
                voxel_size=voxel_size,
                prior=prior,
                backend=backend,
            )
        except ValueError as e:
            console.print(f"\n[bold red]Error:[/bold red] {e}")
            raise SystemExit(1)

        if not sim.initialize():
            console.print("\n[bold red]Error:[/bold red] invalid simulation parameters")
            raise SystemExit(1)

        print_simulation_info(console, sim)

        start_time = time.time()
        progress = SimulationProgress(console)
        try:
            result = sim.run(progress=progress.update)
        except KeyboardInterrupt:
            sim.cancel()
            console.print("\n[yellow]Interrupted by user[/yellow]")
            raise SystemExit(130)
        finally:
            progress.finish()

        if not result.success:
            console.print(f"\n[bold red]{result.summary}:[/bold red] {result.error_message}")
            raise SystemExit(1)

        console.print("─" * 60)
        console.print(f"✓ [bold green]{result.summary}[/bold green]")
        console.print(f"  Runtime: {format_time(time.time() - start_time)}")
        print_results(console, result)

    if verbose:
        console.print(
            f"\n[dim]Stored: Vp={prior.p_velocity:.0f} m/s, Vs={prior.s_velocity:.0f} m/s[/dim]"
        )


if __name__ == "__main__":
    main()
