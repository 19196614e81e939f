"""Simulation event log.

Every interesting thing the engine does — a thread created, a core
dispatched, a semaphore blocking its caller — is recorded as a
structured event.  The log is the engine's equivalent of ``dmesg``:
an append-only history that presentation layers read (usually just
the most recent suffix) to show what happened and when.

- **EventLevel** — severity levels ordered for filtering.
- **Event** — a single immutable record (tick, message, level).
- **EventLog** — the append-only buffer with filtering and a tail view.
"""

from dataclasses import dataclass
from enum import IntEnum

DEFAULT_TAIL = 100


class EventLevel(IntEnum):
    """Severity levels for simulation events.

    ``SUCCESS`` sits between INFO and WARNING: it marks a thread making
    progress (acquiring a resource, terminating) rather than routine
    bookkeeping.  ``DEBUG`` is reserved for opt-in diagnostics.
    """

    DEBUG = 0
    INFO = 1
    SUCCESS = 2
    WARNING = 3


@dataclass(frozen=True)
class Event:
    """A single entry in the event log.

    Attributes:
        tick: The engine clock value when the event was recorded.
        message: A human-readable description of what happened.
        level: The severity of this event.

    """

    tick: int
    message: str
    level: EventLevel = EventLevel.INFO

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-ready mapping with the level as a lowercase name."""
        return {"tick": self.tick, "message": self.message, "level": self.level.name.lower()}

    def __str__(self) -> str:
        """Format as ``[tick] LEVEL: message``."""
        return f"[{self.tick}] {self.level.name}: {self.message}"


class EventLog:
    """Append-only buffer of simulation events."""

    def __init__(self) -> None:
        """Create an empty log."""
        self._entries: list[Event] = []

    def __len__(self) -> int:
        """Return the number of recorded events."""
        return len(self._entries)

    @property
    def entries(self) -> list[Event]:
        """Return all events in the order they were recorded."""
        return list(self._entries)

    def log(self, tick: int, message: str, level: EventLevel = EventLevel.INFO) -> Event:
        """Append a new event and return it.

        Args:
            tick: Clock value to stamp on the event.
            message: Human-readable event description.
            level: Severity of the event.

        """
        event = Event(tick=tick, message=message, level=level)
        self._entries.append(event)
        return event

    def filter(
        self,
        *,
        min_level: EventLevel | None = None,
        contains: str | None = None,
    ) -> list[Event]:
        """Return events matching the given criteria.

        Args:
            min_level: If set, only return events at or above this level.
            contains: If set, only return events whose message contains it.

        """
        result = self._entries
        if min_level is not None:
            result = [e for e in result if e.level >= min_level]
        if contains is not None:
            result = [e for e in result if contains in e.message]
        return result if result is not self._entries else list(result)

    def tail(self, count: int = DEFAULT_TAIL) -> list[Event]:
        """Return the most recent *count* events (oldest first)."""
        if count <= 0:
            return []
        return self._entries[-count:]

    def clear(self) -> None:
        """Remove all events."""
        self._entries.clear()
