"""Synchronization primitives — counting semaphores and monitors.

Simulated threads coordinate through two classical primitives:

    **Semaphore** (counting semaphore): an integer plus a FIFO wait
    queue.  ``wait`` (P) decrements; if the value goes negative the
    caller joins the queue and must block.  ``signal`` (V) increments
    and releases the longest waiter, if any.  Because a waiter is only
    queued after decrementing, the queue length always equals
    ``max(0, -value)``.

    **Monitor**: a mutual-exclusion lock with two FIFO queues.  The
    *entry queue* holds threads waiting to get in; the *condition
    queue* holds threads that were inside and called ``wait``.  The
    monitor is Mesa-style with one twist: when the owner exits, a
    condition waiter is preferred over an entry waiter.

Neither primitive touches thread state.  They only report what the
caller (the engine) must do: block the caller, or move a released
thread to READY.
"""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, NamedTuple

if TYPE_CHECKING:
    from threadsim.process.threads import Thread


class Semaphore:
    """Counting semaphore with a FIFO wait queue."""

    def __init__(self, *, name: str, value: int = 1) -> None:
        """Create a semaphore with the given initial value."""
        self._name = name
        self._value = value
        self._wait_queue: deque[Thread] = deque()

    @property
    def name(self) -> str:
        """Return the semaphore name."""
        return self._name

    @property
    def value(self) -> int:
        """Return the current value (negative = number of waiters)."""
        return self._value

    @property
    def waiters(self) -> list[Thread]:
        """Return the threads waiting, in FIFO order."""
        return list(self._wait_queue)

    def wait(self, thread: Thread) -> bool:
        """Decrement the semaphore (P).

        Args:
            thread: The calling thread.

        Returns:
            True if the caller may proceed, False if it was queued and
            must block.

        """
        self._value -= 1
        if self._value < 0:
            self._wait_queue.append(thread)
            return False
        return True

    def signal(self) -> Thread | None:
        """Increment the semaphore (V) and release the longest waiter.

        Returns:
            The released thread (which now holds the unit), or None.

        """
        self._value += 1
        if self._wait_queue:
            return self._wait_queue.popleft()
        return None

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-ready summary."""
        return {
            "name": self._name,
            "value": self._value,
            "waiting": [t.name for t in self._wait_queue],
        }

    def __repr__(self) -> str:
        """Return a developer-friendly representation."""
        return f"Semaphore('{self._name}', value={self._value}, waiting={len(self._wait_queue)})"


class MonitorExit(NamedTuple):
    """Result of ``Monitor.exit``.

    Attributes:
        next_thread: The thread that now owns the monitor, or None.
        was_waiting: True if it came from the condition queue.

    """

    next_thread: Thread | None
    was_waiting: bool


class MonitorWait(NamedTuple):
    """Result of ``Monitor.wait``.

    Attributes:
        next_thread: An entry waiter granted ownership by the release.
        blocked: True if the caller joined the condition queue.

    """

    next_thread: Thread | None
    blocked: bool


class Monitor:
    """Mutual-exclusion lock with an entry queue and a condition queue.

    Ownership only changes hands inside ``enter``, ``exit`` and
    ``wait``.  ``signal`` just pulls a thread off the condition queue
    so the engine can make it READY.
    """

    def __init__(self, *, name: str) -> None:
        """Create a free monitor."""
        self._name = name
        self._owner: Thread | None = None
        self._entry_queue: deque[Thread] = deque()
        self._condition_queue: deque[Thread] = deque()

    @property
    def name(self) -> str:
        """Return the monitor name."""
        return self._name

    @property
    def owner(self) -> Thread | None:
        """Return the owning thread, or None if free."""
        return self._owner

    @property
    def is_locked(self) -> bool:
        """Return whether a thread owns the monitor."""
        return self._owner is not None

    @property
    def entry_queue(self) -> list[Thread]:
        """Return threads waiting to enter, in FIFO order."""
        return list(self._entry_queue)

    @property
    def condition_queue(self) -> list[Thread]:
        """Return threads waiting on the condition, in FIFO order."""
        return list(self._condition_queue)

    def enter(self, thread: Thread) -> bool:
        """Acquire the monitor.

        Returns:
            True if *thread* now owns it, False if it joined the entry
            queue and must block.

        """
        if self._owner is None:
            self._owner = thread
            return True
        self._entry_queue.append(thread)
        return False

    def exit(self) -> MonitorExit:
        """Release the monitor and hand it to the next waiter.

        Condition waiters take precedence over entry waiters.
        """
        self._owner = None
        if self._condition_queue:
            self._owner = self._condition_queue.popleft()
            return MonitorExit(self._owner, was_waiting=True)
        if self._entry_queue:
            self._owner = self._entry_queue.popleft()
            return MonitorExit(self._owner, was_waiting=False)
        return MonitorExit(None, was_waiting=False)

    def wait(self, thread: Thread) -> MonitorWait:
        """Release the monitor and wait on its condition.

        Only the owner may wait; anyone else gets a no-op result.
        Releasing is unconditional, so the head of the entry queue (if
        any) becomes the owner straight away.
        """
        if self._owner is not thread:
            return MonitorWait(None, blocked=False)
        self._condition_queue.append(thread)
        self._owner = None
        if self._entry_queue:
            self._owner = self._entry_queue.popleft()
        return MonitorWait(self._owner, blocked=True)

    def signal(self) -> Thread | None:
        """Pull the longest condition waiter off the queue (no ownership change)."""
        if self._condition_queue:
            return self._condition_queue.popleft()
        return None

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-ready summary."""
        return {
            "name": self._name,
            "owner": None if self._owner is None else self._owner.name,
            "entry": [t.name for t in self._entry_queue],
            "condition": [t.name for t in self._condition_queue],
        }

    def __repr__(self) -> str:
        """Return a developer-friendly representation."""
        state = "free" if self._owner is None else f"owned by {self._owner.name}"
        return f"Monitor('{self._name}', {state})"


class SyncRegistry:
    """Name-keyed registry of the engine's semaphores and monitors.

    Names are unique per kind.  Lookups by name return None for an
    unknown name rather than raising: the engine treats a reference to
    a missing primitive as a no-op.
    """

    def __init__(self) -> None:
        """Create an empty registry."""
        self._semaphores: dict[str, Semaphore] = {}
        self._monitors: dict[str, Monitor] = {}

    def create_semaphore(self, name: str, *, value: int = 1) -> Semaphore:
        """Create and register a semaphore.

        Raises:
            ValueError: If a semaphore with the same name already exists.

        """
        if name in self._semaphores:
            msg = f"Semaphore '{name}' already exists"
            raise ValueError(msg)
        sem = Semaphore(name=name, value=value)
        self._semaphores[name] = sem
        return sem

    def create_monitor(self, name: str) -> Monitor:
        """Create and register a monitor.

        Raises:
            ValueError: If a monitor with the same name already exists.

        """
        if name in self._monitors:
            msg = f"Monitor '{name}' already exists"
            raise ValueError(msg)
        monitor = Monitor(name=name)
        self._monitors[name] = monitor
        return monitor

    def find_semaphore(self, name: str | None) -> Semaphore | None:
        """Return the semaphore called *name*, or None."""
        if name is None:
            return None
        return self._semaphores.get(name)

    def find_monitor(self, name: str | None) -> Monitor | None:
        """Return the monitor called *name*, or None."""
        if name is None:
            return None
        return self._monitors.get(name)

    @property
    def semaphores(self) -> dict[str, Semaphore]:
        """Return a snapshot of the semaphore registry."""
        return dict(self._semaphores)

    @property
    def monitors(self) -> dict[str, Monitor]:
        """Return a snapshot of the monitor registry."""
        return dict(self._monitors)

    def clear(self) -> None:
        """Forget every primitive."""
        self._semaphores.clear()
        self._monitors.clear()
