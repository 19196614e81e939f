"""Scheduling policies — which READY thread gets the next free core.

The engine owns the ready queue and the cores; a policy only makes two
decisions:

- **select**: remove and return the next thread from the ready queue.
- **should_preempt**: whether a running thread has used up its slice.

Three policies ship:

- **FCFSPolicy** (First Come, First Served): pure FIFO, never preempts.
- **PriorityPolicy**: highest priority first, FIFO among equals, never
  preempts (so a long high-priority thread keeps its core).
- **RoundRobinPolicy**: FIFO selection, but a thread is preempted once
  its quantum counter reaches the configured quantum.

Design: Strategy pattern
    The engine is the *context*; SchedulingPolicy is the *strategy*.
    A policy holds no per-tick state, so swapping policies between
    runs never leaves stale bookkeeping behind.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections import deque

    from threadsim.process.threads import Thread

DEFAULT_QUANTUM = 3


class SchedulingAlgorithm(StrEnum):
    """The closed set of supported scheduling algorithms."""

    FCFS = "fcfs"
    PRIORITY = "priority"
    ROUND_ROBIN = "round-robin"


class SchedulingPolicy(Protocol):
    """Interface that every scheduling algorithm must satisfy."""

    @property
    def algorithm(self) -> SchedulingAlgorithm:
        """Return which algorithm this policy implements."""
        ...  # pragma: no cover

    def select(self, ready_queue: deque[Thread]) -> Thread | None:
        """Remove and return the next thread to run, or None if empty."""
        ...  # pragma: no cover

    def should_preempt(self, thread: Thread) -> bool:
        """Return True if *thread* must give up its core now."""
        ...  # pragma: no cover


class FCFSPolicy:
    """First Come, First Served — threads run in arrival order."""

    @property
    def algorithm(self) -> SchedulingAlgorithm:
        """Return ``fcfs``."""
        return SchedulingAlgorithm.FCFS

    def select(self, ready_queue: deque[Thread]) -> Thread | None:
        """Pop the front of the queue (oldest arrival)."""
        if not ready_queue:
            return None
        return ready_queue.popleft()

    def should_preempt(self, thread: Thread) -> bool:  # noqa: ARG002
        """Never preempt: a thread runs until it blocks or finishes."""
        return False


class PriorityPolicy:
    """Priority scheduling — the highest priority thread runs first.

    Tiebreaker: equal-priority threads use FIFO, since we scan
    left-to-right and only a strictly greater priority replaces the
    current best.
    """

    @property
    def algorithm(self) -> SchedulingAlgorithm:
        """Return ``priority``."""
        return SchedulingAlgorithm.PRIORITY

    def select(self, ready_queue: deque[Thread]) -> Thread | None:
        """Remove and return the first highest-priority thread, or None."""
        if not ready_queue:
            return None
        best_idx = 0
        for i in range(1, len(ready_queue)):
            if ready_queue[i].priority > ready_queue[best_idx].priority:
                best_idx = i
        thread = ready_queue[best_idx]
        del ready_queue[best_idx]
        return thread

    def should_preempt(self, thread: Thread) -> bool:  # noqa: ARG002
        """Never preempt: priority scheduling here is non-preemptive."""
        return False


class RoundRobinPolicy:
    """Round Robin — FIFO selection with a fixed time quantum."""

    def __init__(self, *, quantum: int = DEFAULT_QUANTUM) -> None:
        """Create a Round Robin policy.

        Args:
            quantum: Number of executed instructions before preemption.

        """
        self._quantum = quantum

    @property
    def algorithm(self) -> SchedulingAlgorithm:
        """Return ``round-robin``."""
        return SchedulingAlgorithm.ROUND_ROBIN

    @property
    def quantum(self) -> int:
        """Return the time quantum."""
        return self._quantum

    def select(self, ready_queue: deque[Thread]) -> Thread | None:
        """Pop the front of the queue — same as FCFS for selection."""
        if not ready_queue:
            return None
        return ready_queue.popleft()

    def should_preempt(self, thread: Thread) -> bool:
        """Preempt once the thread's slice reaches the quantum."""
        return thread.quantum >= self._quantum


def make_policy(
    algorithm: SchedulingAlgorithm | str,
    *,
    quantum: int = DEFAULT_QUANTUM,
) -> SchedulingPolicy:
    """Build the policy for *algorithm*.

    Raises:
        ValueError: If *algorithm* is not a known algorithm name.

    """
    match SchedulingAlgorithm(algorithm):
        case SchedulingAlgorithm.FCFS:
            return FCFSPolicy()
        case SchedulingAlgorithm.PRIORITY:
            return PriorityPolicy()
        case SchedulingAlgorithm.ROUND_ROBIN:
            return RoundRobinPolicy(quantum=quantum)
