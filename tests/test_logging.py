"""Tests for the simulation event log."""

import pytest

from threadsim.logging import DEFAULT_TAIL, Event, EventLevel, EventLog

TICK = 7


class TestEventLevel:
    """Verify level ordering."""

    def test_ordering(self) -> None:
        """DEBUG < INFO < SUCCESS < WARNING."""
        assert EventLevel.DEBUG < EventLevel.INFO < EventLevel.SUCCESS < EventLevel.WARNING


class TestEvent:
    """Verify the event record."""

    def test_default_level(self) -> None:
        """Events default to INFO."""
        assert Event(tick=0, message="x").level is EventLevel.INFO

    def test_is_immutable(self) -> None:
        """Events are frozen."""
        event = Event(tick=0, message="x")
        with pytest.raises(AttributeError):
            event.message = "y"  # type: ignore[misc]

    def test_to_dict(self) -> None:
        """The wire form carries the level as a lowercase name."""
        event = Event(tick=TICK, message="Thread A preempted", level=EventLevel.WARNING)
        assert event.to_dict() == {
            "tick": TICK,
            "message": "Thread A preempted",
            "level": "warning",
        }

    def test_str(self) -> None:
        """Str shows tick, level and message."""
        assert str(Event(tick=TICK, message="hi", level=EventLevel.SUCCESS)) == "[7] SUCCESS: hi"


class TestEventLog:
    """Verify appending, filtering and the tail view."""

    def test_starts_empty(self) -> None:
        """A new log has no entries."""
        log = EventLog()
        assert len(log) == 0
        assert log.entries == []

    def test_log_stamps_tick(self) -> None:
        """log() records the given tick and returns the event."""
        log = EventLog()
        event = log.log(TICK, "Thread A created", EventLevel.SUCCESS)
        assert event.tick == TICK
        assert log.entries == [event]

    def test_entries_is_a_copy(self) -> None:
        """Mutating the returned list does not touch the log."""
        log = EventLog()
        log.log(0, "a")
        log.entries.clear()
        assert len(log) == 1

    def test_filter_by_level(self) -> None:
        """min_level keeps events at or above the level."""
        log = EventLog()
        log.log(0, "debug", EventLevel.DEBUG)
        log.log(0, "info")
        log.log(0, "warn", EventLevel.WARNING)
        messages = [e.message for e in log.filter(min_level=EventLevel.INFO)]
        assert messages == ["info", "warn"]

    def test_filter_by_text(self) -> None:
        """contains keeps events whose message includes the text."""
        log = EventLog()
        log.log(1, "Thread A blocked")
        log.log(2, "Thread B blocked")
        log.log(3, "Thread A terminated")
        assert [e.tick for e in log.filter(contains="Thread A")] == [1, 3]

    def test_filter_without_criteria(self) -> None:
        """No criteria returns every event."""
        log = EventLog()
        log.log(0, "a")
        log.log(1, "b")
        assert len(log.filter()) == len(log)

    def test_tail(self) -> None:
        """tail returns the newest events, oldest first."""
        log = EventLog()
        for tick in range(5):
            log.log(tick, f"event {tick}")
        assert [e.tick for e in log.tail(2)] == [3, 4]

    def test_tail_larger_than_log(self) -> None:
        """Asking for more than exists returns everything."""
        log = EventLog()
        log.log(0, "a")
        assert len(log.tail(DEFAULT_TAIL)) == 1

    def test_tail_zero(self) -> None:
        """tail(0) is empty."""
        log = EventLog()
        log.log(0, "a")
        assert log.tail(0) == []

    def test_clear(self) -> None:
        """clear removes every event."""
        log = EventLog()
        log.log(0, "a")
        log.clear()
        assert len(log) == 0
