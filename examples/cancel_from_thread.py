"""
Example: Cancelling a 3D Run
============================
Runs the 3D solver in an asyncio task and cancels it from a timer thread.
The cancelled result is unsuccessful and the stored measurements keep
their previous values.
"""

import asyncio
import threading

from acoustic_velocity import (
    AcousticVelocitySimulation,
    PriorMeasurements,
    SimulationConfig,
)
from acoustic_velocity.core.mesh import box_triangles

prior = PriorMeasurements(p_velocity=5400.0, p_arrival_time=4.2e-6)

sim = AcousticVelocitySimulation(
    "sandstone",
    2350.0,
    box_triangles((30, 30, 30)),
    SimulationConfig(wave_type="P", mode="3d", frequency_khz=200.0, time_steps=20000),
    prior=prior,
)
sim.initialize()


def on_complete(success, message, result, error):
    print(f"Completed: success={success}, message={message!r}, error={error!r}")


async def main():
    timer = threading.Timer(0.5, sim.cancel)
    timer.start()
    try:
        return await sim.run_async(on_complete=on_complete)
    finally:
        timer.cancel()


result = asyncio.run(main())
print(f"Status: {sim.status.name}")
print(f"Stored Vp unchanged: {prior.p_velocity:.0f} m/s")
