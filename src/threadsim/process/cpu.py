"""CPU cores — execution slots that hold at most one running thread."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from threadsim.process.threads import Thread


class CPUCore:
    """A single core.  Idle exactly when no thread is bound to it."""

    def __init__(self, core_id: int) -> None:
        """Create an idle core with the given id."""
        self._core_id = core_id
        self._current: Thread | None = None
        self._busy_ticks = 0

    @property
    def core_id(self) -> int:
        """Return the core id (cores are serviced in ascending id order)."""
        return self._core_id

    @property
    def current_thread(self) -> Thread | None:
        """Return the resident thread, or None."""
        return self._current

    @property
    def is_idle(self) -> bool:
        """Return True if no thread is bound to this core."""
        return self._current is None

    @property
    def busy_ticks(self) -> int:
        """Return the number of ticks this core spent busy."""
        return self._busy_ticks

    def assign(self, thread: Thread) -> None:
        """Bind *thread* to this core and mark it RUNNING.

        Raises:
            RuntimeError: If the core is already busy.

        """
        if self._current is not None:
            msg = f"Core {self._core_id} is already running thread {self._current.tid}"
            raise RuntimeError(msg)
        thread.dispatch()
        self._current = thread

    def release(self) -> Thread | None:
        """Detach and return the resident thread (None if idle)."""
        thread = self._current
        self._current = None
        return thread

    def tick(self) -> None:
        """Count one busy tick if a thread is resident."""
        if self._current is not None:
            self._busy_ticks += 1

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-ready summary of the core."""
        thread = self._current
        return {
            "id": self._core_id,
            "idle": thread is None,
            "busyTicks": self._busy_ticks,
            "thread": None if thread is None else thread.name,
        }

    def __repr__(self) -> str:
        """Return a debug-friendly representation."""
        running = "idle" if self._current is None else f"running {self._current.name}"
        return f"CPUCore({self._core_id}, {running})"
