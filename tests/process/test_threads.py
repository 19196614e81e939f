"""Tests for simulated threads.

A thread is a fixed program plus an execution cursor.  The engine
moves it through the lifecycle (NEW → READY → RUNNING → ...) and calls
``execute`` once per tick while it holds a core.  These tests pin down
the cursor/remaining-time invariant, the timer rules, and the legal
state transitions.
"""

import pytest

from threadsim.process.instructions import Instruction, InstructionType, compute
from threadsim.process.threads import Thread, ThreadState, ThreadStateError

PROGRAM_LENGTH = 3
DEFAULT_PRIORITY = 5
HIGH_PRIORITY = 9


def _thread(length: int = PROGRAM_LENGTH, priority: int = DEFAULT_PRIORITY) -> Thread:
    """Create a thread running *length* compute instructions."""
    return Thread(tid=1, name="T1", priority=priority, instructions=compute(length))


def _running_thread(length: int = PROGRAM_LENGTH) -> Thread:
    """Create a thread and advance it to RUNNING."""
    thread = _thread(length)
    thread.admit()
    thread.dispatch()
    return thread


class TestThreadCreation:
    """Verify the initial state of a thread."""

    def test_starts_new(self) -> None:
        """A fresh thread is NEW with the cursor at zero."""
        thread = _thread()
        assert thread.state is ThreadState.NEW
        assert thread.cursor == 0

    def test_burst_equals_program_length(self) -> None:
        """Burst and remaining time both equal the instruction count."""
        thread = _thread()
        assert thread.burst_time == PROGRAM_LENGTH
        assert thread.remaining_time == PROGRAM_LENGTH

    def test_stores_identity(self) -> None:
        """Tid, name and priority are kept as given."""
        thread = _thread(priority=HIGH_PRIORITY)
        assert thread.tid == 1
        assert thread.name == "T1"
        assert thread.priority == HIGH_PRIORITY

    def test_program_is_immutable(self) -> None:
        """The program is stored as a tuple."""
        thread = _thread()
        assert isinstance(thread.instructions, tuple)

    def test_repr(self) -> None:
        """Repr shows the name, state, and progress."""
        text = repr(_thread())
        assert "T1" in text
        assert "new" in text
        assert "0/3" in text


class TestExecute:
    """Verify instruction execution and the cursor invariant."""

    def test_returns_instructions_in_order(self) -> None:
        """Execute walks the program front to back."""
        program = [
            Instruction(InstructionType.WAIT, "s"),
            Instruction(InstructionType.COMPUTE),
            Instruction(InstructionType.SIGNAL, "s"),
        ]
        thread = Thread(tid=1, name="T1", instructions=program)
        assert [thread.execute() for _ in program] == program

    def test_advances_cursor_and_quantum(self) -> None:
        """Each execute moves the cursor and bumps the quantum counter."""
        thread = _running_thread()
        thread.execute()
        thread.execute()
        expected = 2
        assert thread.cursor == expected
        assert thread.quantum == expected

    def test_invariant_holds_throughout(self) -> None:
        """remaining_time + cursor == burst_time after every step."""
        thread = _running_thread()
        for _ in range(PROGRAM_LENGTH + 2):
            thread.execute()
            assert thread.remaining_time + thread.cursor == thread.burst_time

    def test_exhausted_program_returns_none(self) -> None:
        """Executing past the end reports completion and changes nothing."""
        thread = _running_thread(length=1)
        thread.execute()
        assert thread.is_complete
        assert thread.execute() is None
        assert thread.cursor == 1
        assert thread.remaining_time == 0
        assert thread.quantum == 1

    def test_empty_program_is_complete(self) -> None:
        """A thread with no instructions is complete from the start."""
        thread = _thread(length=0)
        assert thread.is_complete
        assert thread.progress == 0

    def test_reset_quantum(self) -> None:
        """reset_quantum starts a fresh slice without moving the cursor."""
        thread = _running_thread()
        thread.execute()
        thread.reset_quantum()
        assert thread.quantum == 0
        assert thread.cursor == 1

    def test_progress_percentage(self) -> None:
        """Progress is the executed share of the program, as a percentage."""
        thread = Thread(tid=1, name="T1", instructions=compute(4))
        thread.execute()
        expected = 25
        assert thread.progress == expected


class TestTimers:
    """Verify the per-state timer and wait-time accounting."""

    def test_new_thread_does_not_wait(self) -> None:
        """Ticks in NEW advance the state timer but not the wait time."""
        thread = _thread()
        thread.tick()
        assert thread.time_in_state == 1
        assert thread.wait_time == 0

    def test_ready_thread_waits(self) -> None:
        """A READY thread accumulates wait time."""
        thread = _thread()
        thread.admit()
        thread.tick()
        thread.tick()
        expected = 2
        assert thread.wait_time == expected

    def test_running_thread_does_not_wait(self) -> None:
        """A RUNNING thread accumulates no wait time."""
        thread = _running_thread()
        thread.tick()
        assert thread.wait_time == 0

    def test_blocked_thread_waits(self) -> None:
        """A BLOCKED thread accumulates wait time."""
        thread = _running_thread()
        thread.block()
        thread.tick()
        assert thread.wait_time == 1

    def test_terminated_thread_does_not_wait(self) -> None:
        """A TERMINATED thread accumulates no wait time."""
        thread = _running_thread()
        thread.terminate()
        thread.tick()
        assert thread.wait_time == 0

    def test_state_change_resets_timer(self) -> None:
        """Every transition resets the per-state timer."""
        thread = _thread()
        thread.tick()
        thread.admit()
        assert thread.time_in_state == 0


class TestTransitions:
    """Verify legal and illegal lifecycle transitions."""

    def test_full_lifecycle(self) -> None:
        """NEW → READY → RUNNING → BLOCKED → READY → RUNNING → TERMINATED."""
        thread = _thread()
        thread.admit()
        thread.dispatch()
        thread.block()
        thread.wake()
        thread.dispatch()
        thread.preempt()
        thread.dispatch()
        thread.terminate()
        assert thread.state is ThreadState.TERMINATED

    def test_set_state_directly(self) -> None:
        """set_state accepts any legal target."""
        thread = _thread()
        thread.set_state(ThreadState.READY)
        assert thread.state is ThreadState.READY

    def test_cannot_dispatch_new_thread(self) -> None:
        """A NEW thread must be admitted before it can run."""
        with pytest.raises(ThreadStateError, match="Cannot move"):
            _thread().dispatch()

    def test_cannot_block_ready_thread(self) -> None:
        """Only a running thread can block."""
        thread = _thread()
        thread.admit()
        with pytest.raises(ThreadStateError, match="expected running"):
            thread.block()

    def test_cannot_wake_running_thread(self) -> None:
        """Only a blocked thread can be woken."""
        with pytest.raises(ThreadStateError, match="expected blocked"):
            _running_thread().wake()

    def test_terminated_is_final(self) -> None:
        """Nothing leaves TERMINATED."""
        thread = _running_thread()
        thread.terminate()
        for target in ThreadState:
            with pytest.raises(ThreadStateError):
                thread.set_state(target)

    def test_error_is_runtime_error(self) -> None:
        """ThreadStateError is a RuntimeError."""
        assert issubclass(ThreadStateError, RuntimeError)

    def test_to_dict(self) -> None:
        """The summary carries the state as its string value."""
        data = _running_thread().to_dict()
        assert data["state"] == "running"
        assert data["burstTime"] == PROGRAM_LENGTH
