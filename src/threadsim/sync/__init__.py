"""Synchronization subsystem — semaphores, monitors, and their registry.

Re-exports public symbols so callers can write::

    from threadsim.sync import Monitor, Semaphore
"""

from threadsim.sync.primitives import (
    Monitor,
    MonitorExit,
    MonitorWait,
    Semaphore,
    SyncRegistry,
)

__all__ = [
    "Monitor",
    "MonitorExit",
    "MonitorWait",
    "Semaphore",
    "SyncRegistry",
]
