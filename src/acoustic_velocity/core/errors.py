"""Exceptions raised by the simulation core."""


class SimulationCancelled(Exception):
    """Raised inside a solver when the run's cancellation flag is set.

    The simulation converts it into a cancelled result; it never escapes
    ``AcousticVelocitySimulation.run_async``.
    """

    def __init__(self, step: int | None = None):
        self.step = step
        message = "Operation cancelled"
        if step is not None:
            message += f" at step {step}"
        super().__init__(message)
