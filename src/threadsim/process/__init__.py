"""Process subsystem — threads, instructions, cores, scheduling, thread mapping.

Re-exports public symbols so callers can write::

    from threadsim.process import Thread, RoundRobinPolicy, ThreadingModel
"""

from threadsim.process.cpu import CPUCore
from threadsim.process.instructions import (
    Instruction,
    InstructionError,
    InstructionType,
    compute,
    dump_program,
    load_program,
    parse_program,
)
from threadsim.process.mapping import KernelThreadMapper, ThreadingModel
from threadsim.process.scheduler import (
    FCFSPolicy,
    PriorityPolicy,
    RoundRobinPolicy,
    SchedulingAlgorithm,
    SchedulingPolicy,
    make_policy,
)
from threadsim.process.threads import Thread, ThreadState, ThreadStateError

__all__ = [
    "CPUCore",
    "FCFSPolicy",
    "Instruction",
    "InstructionError",
    "InstructionType",
    "KernelThreadMapper",
    "PriorityPolicy",
    "RoundRobinPolicy",
    "SchedulingAlgorithm",
    "SchedulingPolicy",
    "Thread",
    "ThreadState",
    "ThreadStateError",
    "ThreadingModel",
    "compute",
    "dump_program",
    "load_program",
    "make_policy",
    "parse_program",
]
