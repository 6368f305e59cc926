"""
Device simulation: one periodic publisher per device id, plus periodic
auto-discovery of sensors that should be simulated.
"""
from simulation.generators import make_generator
from simulation.scheduler import SimulationScheduler, SimulationTask

__all__ = ["SimulationScheduler", "SimulationTask", "make_generator"]
