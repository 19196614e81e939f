"""Simulated user threads.

A thread is a program (an immutable list of instructions) plus an
execution cursor and the bookkeeping the scheduler needs: priority,
timing statistics, and the quantum counter used for time slicing.

Thread lifecycle::

    NEW → READY ⇄ RUNNING → TERMINATED
            ↑       ↓
            BLOCKED ←

The engine is the only caller of the transition methods.  Each one
checks the source state so an engine bug surfaces as a
``ThreadStateError`` instead of a silently corrupted simulation.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from threadsim.process.instructions import Instruction


class ThreadStateError(RuntimeError):
    """Raise when a thread is asked to make an illegal state transition."""


class ThreadState(StrEnum):
    """Lifecycle states of a simulated thread."""

    NEW = "new"
    READY = "ready"
    RUNNING = "running"
    BLOCKED = "blocked"
    TERMINATED = "terminated"


_TRANSITIONS: dict[ThreadState, frozenset[ThreadState]] = {
    ThreadState.NEW: frozenset({ThreadState.READY}),
    ThreadState.READY: frozenset({ThreadState.RUNNING}),
    ThreadState.RUNNING: frozenset(
        {ThreadState.READY, ThreadState.BLOCKED, ThreadState.TERMINATED}
    ),
    ThreadState.BLOCKED: frozenset({ThreadState.READY}),
    ThreadState.TERMINATED: frozenset(),
}

_WAITING_STATES = frozenset({ThreadState.READY, ThreadState.BLOCKED})


class Thread:
    """A simulated thread with a fixed program.

    Invariant: ``remaining_time + cursor == burst_time``.  Only
    ``execute`` moves the cursor, and it moves it forward by one.
    """

    def __init__(
        self,
        *,
        tid: int,
        name: str,
        priority: int = 5,
        instructions: Iterable[Instruction] = (),
    ) -> None:
        """Create a thread in the NEW state.

        Args:
            tid: Unique thread id, handed out by the engine.
            name: Human-readable label.
            priority: Scheduling priority (higher = more favoured).
            instructions: The program to run.

        """
        self._tid = tid
        self._name = name
        self._priority = priority
        self._instructions: tuple[Instruction, ...] = tuple(instructions)
        self._state = ThreadState.NEW
        self._cursor = 0
        self._remaining_time = len(self._instructions)
        self._time_in_state = 0
        self.quantum = 0
        self.arrival_time = 0
        self.wait_time = 0
        self.completion_time = 0
        self.turnaround_time = 0
        self.kernel_thread_id: int | None = None

    @property
    def tid(self) -> int:
        """Return the thread id."""
        return self._tid

    @property
    def name(self) -> str:
        """Return the thread name."""
        return self._name

    @property
    def priority(self) -> int:
        """Return the scheduling priority."""
        return self._priority

    @property
    def state(self) -> ThreadState:
        """Return the current lifecycle state."""
        return self._state

    @property
    def instructions(self) -> tuple[Instruction, ...]:
        """Return the program."""
        return self._instructions

    @property
    def cursor(self) -> int:
        """Return the index of the next instruction to execute."""
        return self._cursor

    @property
    def burst_time(self) -> int:
        """Return the total number of instructions."""
        return len(self._instructions)

    @property
    def remaining_time(self) -> int:
        """Return the number of instructions still to execute."""
        return self._remaining_time

    @property
    def time_in_state(self) -> int:
        """Return ticks spent in the current state."""
        return self._time_in_state

    @property
    def is_complete(self) -> bool:
        """Return True once every instruction has been executed."""
        return self._cursor >= len(self._instructions)

    @property
    def progress(self) -> int:
        """Return completion as a whole percentage."""
        if not self._instructions:
            return 0
        return round(self._cursor * 100 / len(self._instructions))

    def execute(self) -> Instruction | None:
        """Consume the next instruction.

        Returns:
            The instruction at the cursor, or None if the program has
            already finished (in which case nothing changes).

        """
        if self.is_complete:
            return None
        instruction = self._instructions[self._cursor]
        self._cursor += 1
        self._remaining_time -= 1
        self.quantum += 1
        return instruction

    def tick(self) -> None:
        """Advance the per-state timer and, while waiting, the wait time."""
        self._time_in_state += 1
        if self._state in _WAITING_STATES:
            self.wait_time += 1

    def reset_quantum(self) -> None:
        """Start a fresh time slice."""
        self.quantum = 0

    def set_state(self, target: ThreadState) -> None:
        """Move to *target* and reset the per-state timer.

        Raises:
            ThreadStateError: If the transition is not allowed.

        """
        if target not in _TRANSITIONS[self._state]:
            msg = f"Cannot move thread {self._tid} from {self._state} to {target}"
            raise ThreadStateError(msg)
        self._state = target
        self._time_in_state = 0

    def admit(self) -> None:
        """Transition NEW → READY."""
        self.set_state(ThreadState.READY)

    def dispatch(self) -> None:
        """Transition READY → RUNNING."""
        self.set_state(ThreadState.RUNNING)

    def preempt(self) -> None:
        """Transition RUNNING → READY."""
        self.set_state(ThreadState.READY)

    def block(self) -> None:
        """Transition RUNNING → BLOCKED."""
        if self._state is not ThreadState.RUNNING:
            msg = f"Cannot block thread {self._tid}: state is {self._state}, expected running"
            raise ThreadStateError(msg)
        self.set_state(ThreadState.BLOCKED)

    def wake(self) -> None:
        """Transition BLOCKED → READY."""
        if self._state is not ThreadState.BLOCKED:
            msg = f"Cannot wake thread {self._tid}: state is {self._state}, expected blocked"
            raise ThreadStateError(msg)
        self.set_state(ThreadState.READY)

    def terminate(self) -> None:
        """Transition RUNNING → TERMINATED."""
        self.set_state(ThreadState.TERMINATED)

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-ready summary of the thread."""
        return {
            "id": self._tid,
            "name": self._name,
            "priority": self._priority,
            "state": str(self._state),
            "cursor": self._cursor,
            "burstTime": self.burst_time,
            "remainingTime": self._remaining_time,
            "arrivalTime": self.arrival_time,
            "waitTime": self.wait_time,
            "turnaroundTime": self.turnaround_time,
            "completionTime": self.completion_time,
            "quantum": self.quantum,
            "kernelThreadId": self.kernel_thread_id,
            "progress": self.progress,
        }

    def __repr__(self) -> str:
        """Return a debug-friendly representation."""
        return (
            f"Thread(tid={self._tid}, name={self._name!r}, state={self._state}, "
            f"{self._cursor}/{self.burst_time})"
        )
