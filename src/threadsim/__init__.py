"""threadsim — a discrete-time simulator of OS concurrency.

Threads run instruction programs on simulated CPU cores under a
pluggable scheduling policy, coordinating through counting semaphores
and monitors.  Everything advances one ``SimulationEngine.tick()`` at a
time, so every run is deterministic.
"""

from threadsim.config import ConfigError, SimulationConfig
from threadsim.engine import SimulationEngine, Statistics

__all__ = ["ConfigError", "SimulationConfig", "SimulationEngine", "Statistics"]
