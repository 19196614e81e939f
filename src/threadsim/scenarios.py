"""Classic synchronization problems, ready to load into an engine.

Each builder resets and initializes the engine it is handed, registers
the primitives, and adds the threads.  Nothing here reaches into engine
internals — scenarios are ordinary engine clients.

- **Producer–Consumer**: a bounded buffer guarded by ``empty``/``full``
  counting semaphores and a ``buffer`` mutex semaphore.
- **Dining Philosophers**: five philosophers, five single-unit fork
  semaphores, everyone picks up the left fork first.  Give them enough
  cores to all grab their left fork at once and they deadlock.
- **Readers–Writers**: writers and readers sharing a ``database``
  monitor, with a ``readCount`` semaphore around the readers' entry.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from threadsim.logging import EventLevel
from threadsim.process.instructions import Instruction, InstructionType, compute
from threadsim.process.mapping import ThreadingModel
from threadsim.process.scheduler import SchedulingAlgorithm

if TYPE_CHECKING:
    from collections.abc import Callable

    from threadsim.engine import SimulationEngine

PHILOSOPHER_COUNT = 5


def _wait(resource: str) -> Instruction:
    return Instruction(InstructionType.WAIT, resource)


def _signal(resource: str) -> Instruction:
    return Instruction(InstructionType.SIGNAL, resource)


def _enter(monitor: str) -> Instruction:
    return Instruction(InstructionType.ENTER_MONITOR, monitor)


def _exit(monitor: str) -> Instruction:
    return Instruction(InstructionType.EXIT_MONITOR, monitor)


def producer_consumer(engine: SimulationEngine) -> None:
    """Load the bounded-buffer problem: one producer, one consumer."""
    engine.reset()
    engine.initialize(2, SchedulingAlgorithm.ROUND_ROBIN, 3, ThreadingModel.ONE_TO_ONE)
    engine.add_semaphore("buffer", 1)
    engine.add_semaphore("empty", 5)
    engine.add_semaphore("full", 0)

    produce = [_wait("empty"), _wait("buffer"), *compute(2), _signal("buffer"), _signal("full")]
    consume = [_wait("full"), _wait("buffer"), *compute(2), _signal("buffer"), _signal("empty")]
    engine.add_thread("Producer", 7, produce * 2)
    engine.add_thread("Consumer", 6, consume * 2)
    engine.log("Producer-Consumer scenario loaded", EventLevel.SUCCESS)


def dining_philosophers(engine: SimulationEngine, *, cores: int = 3) -> None:
    """Load the dining philosophers with left-then-right fork order.

    Args:
        engine: The engine to load into.
        cores: Number of cores.  With one core per philosopher every
            philosopher takes a left fork in the same tick and the
            table deadlocks.

    """
    engine.reset()
    engine.initialize(cores, SchedulingAlgorithm.PRIORITY, 3, ThreadingModel.ONE_TO_ONE)
    for i in range(PHILOSOPHER_COUNT):
        engine.add_semaphore(f"fork{i}", 1)

    for i in range(PHILOSOPHER_COUNT):
        left = f"fork{i}"
        right = f"fork{(i + 1) % PHILOSOPHER_COUNT}"
        program = [
            *compute(1),
            _wait(left),
            _wait(right),
            *compute(3),
            _signal(right),
            _signal(left),
            *compute(2),
        ]
        engine.add_thread(f"Philosopher{i}", 5 + i, program)
    engine.log("Dining Philosophers scenario loaded", EventLevel.SUCCESS)


def readers_writers(engine: SimulationEngine) -> None:
    """Load two writers and two readers sharing a ``database`` monitor."""
    engine.reset()
    engine.initialize(2, SchedulingAlgorithm.PRIORITY, 3, ThreadingModel.ONE_TO_ONE)
    engine.add_monitor("database")
    engine.add_semaphore("readCount", 1)

    reader = [
        _wait("readCount"),
        _enter("database"),
        _signal("readCount"),
        *compute(2),
        _wait("readCount"),
        _exit("database"),
        _signal("readCount"),
    ]
    engine.add_thread(
        "Writer1", 8, [_enter("database"), *compute(3), _exit("database"), *compute(1)]
    )
    engine.add_thread("Reader1", 6, reader)
    engine.add_thread("Reader2", 6, reader)
    engine.add_thread("Writer2", 9, [_enter("database"), *compute(2), _exit("database")])
    engine.log("Readers-Writers scenario loaded", EventLevel.SUCCESS)


SCENARIOS: dict[str, Callable[[SimulationEngine], None]] = {
    "producer-consumer": producer_consumer,
    "dining-philosophers": dining_philosophers,
    "readers-writers": readers_writers,
}


def load_scenario(engine: SimulationEngine, name: str) -> None:
    """Load the scenario registered under *name*.

    Raises:
        KeyError: If no scenario has that name.

    """
    if name not in SCENARIOS:
        msg = f"Unknown scenario: {name!r}"
        raise KeyError(msg)
    SCENARIOS[name](engine)
