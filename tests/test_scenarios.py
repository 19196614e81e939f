"""Tests for the canned synchronization scenarios.

Each scenario is checked end to end: it loads the expected primitives
and threads, and running it shows the behaviour the problem is known
for.  The structural invariants are re-checked after every tick.
"""

import re

import pytest

from threadsim.engine import SimulationEngine
from threadsim.process.threads import ThreadState
from threadsim.scenarios import (
    PHILOSOPHER_COUNT,
    SCENARIOS,
    dining_philosophers,
    load_scenario,
    producer_consumer,
    readers_writers,
)

TICK_LIMIT = 200
PRODUCER_CONSUMER_TICKS = 20
DEADLOCK_TICK = 4

_BUFFER_EVENT = re.compile(r"^Thread (\w+) (acquired|signaled) semaphore buffer$")


def _check_invariants(engine: SimulationEngine) -> None:
    """Assert the per-tick structural invariants."""
    for thread in engine.threads:
        assert thread.remaining_time + thread.cursor == thread.burst_time
    for sem in engine.semaphores.values():
        assert len(sem.waiters) == max(0, -sem.value)
    for monitor in engine.monitors.values():
        entry = {t.tid for t in monitor.entry_queue}
        condition = {t.tid for t in monitor.condition_queue}
        assert not entry & condition
    running = [c.current_thread.tid for c in engine.cores if c.current_thread is not None]
    assert len(running) == len(set(running))


def _run_checked(engine: SimulationEngine, limit: int = TICK_LIMIT) -> None:
    """Tick until finished or stalled, checking invariants every tick."""
    for _ in range(limit):
        if engine.finished or engine.deadlocked:
            return
        engine.tick()
        _check_invariants(engine)


class TestProducerConsumer:
    """Verify the bounded-buffer scenario."""

    def test_loads(self) -> None:
        """Three semaphores and two threads are registered."""
        engine = SimulationEngine()
        producer_consumer(engine)
        assert {name: s.value for name, s in engine.semaphores.items()} == {
            "buffer": 1,
            "empty": 5,
            "full": 0,
        }
        assert [t.name for t in engine.threads] == ["Producer", "Consumer"]
        assert engine.config.cores == 2

    def test_completes(self) -> None:
        """Both threads finish, well within the tick limit."""
        engine = SimulationEngine()
        producer_consumer(engine)
        _run_checked(engine)
        assert engine.all_terminated
        assert engine.clock == PRODUCER_CONSUMER_TICKS
        assert engine.semaphores["full"].value == 0
        assert engine.semaphores["buffer"].value == 1

    def test_buffer_acquired_before_signaled(self) -> None:
        """Each thread alternates acquire/signal on the buffer mutex."""
        engine = SimulationEngine()
        producer_consumer(engine)
        engine.run(TICK_LIMIT)
        last: dict[str, str] = {}
        for event in engine.events:
            match = _BUFFER_EVENT.match(event.message)
            if match is None:
                continue
            name, action = match.groups()
            if action == "signaled":
                assert last.get(name) == "acquired"
            last[name] = action
        assert last == {"Producer": "signaled", "Consumer": "signaled"}


class TestDiningPhilosophers:
    """Verify the dining philosophers scenario."""

    def test_loads(self) -> None:
        """Five forks and five philosophers with rising priority."""
        engine = SimulationEngine()
        dining_philosophers(engine)
        assert sorted(engine.semaphores) == [f"fork{i}" for i in range(PHILOSOPHER_COUNT)]
        assert [t.priority for t in engine.threads] == [5, 6, 7, 8, 9]

    def test_three_cores_complete(self) -> None:
        """With fewer cores than philosophers everyone eventually eats."""
        engine = SimulationEngine()
        dining_philosophers(engine)
        _run_checked(engine)
        assert engine.all_terminated
        assert not engine.deadlocked

    def test_one_core_each_deadlocks(self) -> None:
        """With a core per philosopher they all hold a left fork and stall."""
        engine = SimulationEngine()
        dining_philosophers(engine, cores=PHILOSOPHER_COUNT)
        _run_checked(engine)
        assert engine.deadlocked
        assert engine.clock == DEADLOCK_TICK
        assert all(t.state is ThreadState.BLOCKED for t in engine.threads)
        assert all(s.value == -1 for s in engine.semaphores.values())
        assert len(engine.event_log.filter(contains="Deadlock detected")) == 1


class TestReadersWriters:
    """Verify the readers-writers scenario."""

    def test_loads(self) -> None:
        """One monitor, one semaphore, four threads."""
        engine = SimulationEngine()
        readers_writers(engine)
        assert list(engine.monitors) == ["database"]
        assert list(engine.semaphores) == ["readCount"]
        assert [t.name for t in engine.threads] == ["Writer1", "Reader1", "Reader2", "Writer2"]

    def test_writer_goes_first(self) -> None:
        """The highest-priority writer takes the monitor first."""
        engine = SimulationEngine()
        readers_writers(engine)
        engine.tick()
        engine.tick()
        owner = engine.monitors["database"].owner
        assert owner is not None
        assert owner.name == "Writer2"

    def test_invariants_hold(self) -> None:
        """The run keeps every structural invariant until it ends."""
        engine = SimulationEngine()
        readers_writers(engine)
        _run_checked(engine)
        assert engine.finished or engine.deadlocked


class TestRegistry:
    """Verify scenario lookup by name."""

    def test_names(self) -> None:
        """The three scenarios are registered under their wire names."""
        assert set(SCENARIOS) == {"producer-consumer", "dining-philosophers", "readers-writers"}

    def test_load_by_name(self) -> None:
        """load_scenario dispatches on the name."""
        engine = SimulationEngine()
        load_scenario(engine, "readers-writers")
        assert "database" in engine.monitors

    def test_unknown_name(self) -> None:
        """An unknown scenario name raises KeyError."""
        with pytest.raises(KeyError, match="sleeping-barber"):
            load_scenario(SimulationEngine(), "sleeping-barber")

    def test_reload_replaces_previous(self) -> None:
        """Loading a scenario discards whatever was there."""
        engine = SimulationEngine()
        producer_consumer(engine)
        engine.run(5)
        readers_writers(engine)
        assert engine.clock == 0
        assert "buffer" not in engine.semaphores
