"""Simulation package.

Exposes the run context at `src.simulation` so callers can write
`from src.simulation import Simulation, SimulationConfig`.
"""
from .simulation import Simulation, SimulationConfig, sweep

__all__ = ["Simulation", "SimulationConfig", "sweep"]
