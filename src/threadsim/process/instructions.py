"""Instructions — the program a simulated thread executes.

A thread's program is an ordered list of instructions.  Each one takes
exactly one tick on a core.  Most instructions touch a synchronization
primitive, named by ``resource``:

    compute          burn a tick, no side effect
    wait / signal    semaphore P / V
    enter-monitor    acquire a monitor (or join its entry queue)
    exit-monitor     release a monitor
    monitor-wait     wait on the monitor's condition queue
    monitor-signal   wake one condition waiter

Programs are exchanged as JSON: an array of ``{"type", "resource"}``
records, with ``resource`` omitted for ``compute``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path


class InstructionError(ValueError):
    """Raise when an instruction record is malformed."""


class InstructionType(StrEnum):
    """The kinds of instruction a thread can execute."""

    COMPUTE = "compute"
    WAIT = "wait"
    SIGNAL = "signal"
    ENTER_MONITOR = "enter-monitor"
    EXIT_MONITOR = "exit-monitor"
    MONITOR_WAIT = "monitor-wait"
    MONITOR_SIGNAL = "monitor-signal"


@dataclass(frozen=True)
class Instruction:
    """One step of a thread's program.

    Attributes:
        type: What the instruction does.
        resource: Name of the semaphore or monitor it operates on
            (required for everything except ``compute``).

    """

    type: InstructionType
    resource: str | None = None

    def __post_init__(self) -> None:
        """Coerce the type and check that a resource is present when needed."""
        try:
            kind = InstructionType(self.type)
        except ValueError:
            msg = f"Unknown instruction type: {self.type!r}"
            raise InstructionError(msg) from None
        object.__setattr__(self, "type", kind)
        if self.resource is not None and not isinstance(self.resource, str):
            msg = f"Instruction resource must be a string: {self.resource!r}"
            raise InstructionError(msg)
        if kind is not InstructionType.COMPUTE and not self.resource:
            msg = f"Instruction '{kind}' requires a resource"
            raise InstructionError(msg)

    def to_dict(self) -> dict[str, str]:
        """Return the wire record for this instruction."""
        if self.resource is None:
            return {"type": str(self.type)}
        return {"type": str(self.type), "resource": self.resource}

    @classmethod
    def from_dict(cls, record: dict[str, Any]) -> Instruction:
        """Build an instruction from a wire record.

        Raises:
            InstructionError: If the record has no type or is otherwise invalid.

        """
        if not isinstance(record, dict) or "type" not in record:
            msg = f"Instruction record must be an object with a 'type': {record!r}"
            raise InstructionError(msg)
        return cls(type=record["type"], resource=record.get("resource"))

    def __str__(self) -> str:
        """Format as ``type`` or ``type resource``."""
        if self.resource is None:
            return str(self.type)
        return f"{self.type} {self.resource}"


def compute(count: int = 1) -> list[Instruction]:
    """Return *count* compute instructions."""
    return [Instruction(InstructionType.COMPUTE) for _ in range(count)]


def parse_program(records: Iterable[dict[str, Any]]) -> list[Instruction]:
    """Turn a sequence of wire records into instructions."""
    return [Instruction.from_dict(r) for r in records]


def load_program(path: Path) -> list[Instruction]:
    """Read a JSON program file.

    Raises:
        FileNotFoundError: If the path does not exist.
        InstructionError: If the file is not a JSON array of records.

    """
    text = path.read_text()
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        msg = f"Program file {path} is not valid JSON: {e}"
        raise InstructionError(msg) from e
    if not isinstance(data, list):
        msg = f"Program file {path} must contain a JSON array"
        raise InstructionError(msg)
    return parse_program(data)


def dump_program(instructions: Iterable[Instruction], path: Path) -> None:
    """Write a program to *path* as a JSON array of records."""
    path.write_text(json.dumps([i.to_dict() for i in instructions], indent=2))
