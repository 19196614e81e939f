"""The simulation engine — one discrete step of a multi-core OS per tick.

The engine owns every piece of mutable simulation state: the thread
arena, the ready queue, the blocked and terminated collections, the
cores, the semaphore/monitor registry, the clock, and the event log.
Nothing else mutates them; callers drive the simulation only through
``initialize``, ``reset``, ``add_thread``, ``add_semaphore``,
``add_monitor`` and ``tick``, and read it through snapshot properties.

One tick, in order:

    0. Admit threads created since the last tick (NEW → READY).
    1. Advance the clock.
    2. Tick every thread (state timers and wait time).
    3. For each core, lowest id first: execute one instruction of the
       resident thread and apply its effect.  A thread that blocked has
       already lost its core; a finished thread terminates; a thread
       whose slice is used up is preempted to the back of the ready
       queue.
    4. Ask the threading model which idle cores may take work.
    5. Fill those cores, lowest id first, from the scheduling policy.
    6. Detect a stall: every live thread BLOCKED means nothing can
       ever wake them.

Cores are "parallel" only as bookkeeping — they are serviced strictly
one after another, which keeps every run bit-for-bit reproducible.
"""

from __future__ import annotations

from collections import Counter, deque
from dataclasses import dataclass
from itertools import count
from typing import TYPE_CHECKING, Any

from threadsim.config import DEFAULT_CORES, ConfigError, SimulationConfig
from threadsim.logging import Event, EventLevel, EventLog
from threadsim.process.cpu import CPUCore
from threadsim.process.instructions import Instruction, InstructionType
from threadsim.process.mapping import KernelThreadMapper, ThreadingModel
from threadsim.process.scheduler import (
    DEFAULT_QUANTUM,
    SchedulingAlgorithm,
    SchedulingPolicy,
    make_policy,
)
from threadsim.process.threads import Thread, ThreadState
from threadsim.sync.primitives import Monitor, Semaphore, SyncRegistry

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

DEFAULT_MAX_TICKS = 1000
DEFAULT_PRIORITY = 5


@dataclass(frozen=True)
class Statistics:
    """Aggregate figures computed from the current engine state.

    Attributes:
        clock_ticks: Ticks elapsed since initialization.
        active_threads: Threads not yet terminated.
        completed_threads: Threads terminated.
        cpu_utilization: Busy core-ticks as a percentage of all core-ticks.
        avg_wait_time: Mean wait time of terminated threads.
        avg_turnaround: Mean turnaround time of terminated threads.

    """

    clock_ticks: int
    active_threads: int
    completed_threads: int
    cpu_utilization: float
    avg_wait_time: float
    avg_turnaround: float

    def to_dict(self) -> dict[str, float | int]:
        """Return the figures keyed the way presentation layers expect."""
        return {
            "clockTicks": self.clock_ticks,
            "activeThreads": self.active_threads,
            "completedThreads": self.completed_threads,
            "cpuUtilization": self.cpu_utilization,
            "avgWaitTime": self.avg_wait_time,
            "avgTurnaround": self.avg_turnaround,
        }


class SimulationEngine:
    """Discrete-time simulator of threads, cores, and synchronization."""

    def __init__(self, config: SimulationConfig | None = None) -> None:
        """Create an engine initialized with *config* (or the defaults)."""
        self._log = EventLog()
        self._registry = SyncRegistry()
        self.initialize(config=config or SimulationConfig())

    # -- Lifecycle -------------------------------------------------------------

    def _clear(self) -> None:
        """Drop every thread, queue, primitive, core, counter and event."""
        self._clock = 0
        self._ids: Iterator[int] = count(start=1)
        self._threads: dict[int, Thread] = {}
        self._pending: list[Thread] = []
        self._ready: deque[Thread] = deque()
        self._blocked: list[Thread] = []
        self._terminated: list[Thread] = []
        self._cores: list[CPUCore] = []
        self._registry.clear()
        self._mapper = KernelThreadMapper(
            self._config.threading_model, core_count=self._config.cores
        )
        self._unresolved: Counter[str] = Counter()
        self._deadlocked = False
        self._log.clear()

    def reset(self) -> None:
        """Return to an empty engine with no cores and a fresh id allocator."""
        self._clear()

    def initialize(
        self,
        cores: int = DEFAULT_CORES,
        algorithm: SchedulingAlgorithm | str = SchedulingAlgorithm.ROUND_ROBIN,
        quantum: int = DEFAULT_QUANTUM,
        threading_model: ThreadingModel | str = ThreadingModel.ONE_TO_ONE,
        *,
        config: SimulationConfig | None = None,
    ) -> None:
        """Reset, then configure cores, scheduling and the threading model.

        Either pass the four settings directly or a ready-made *config*.
        The configuration is validated before any state is discarded.

        Raises:
            ConfigError: If the configuration is invalid.

        """
        if config is None:
            config = SimulationConfig(
                cores=cores,
                algorithm=algorithm,  # type: ignore[arg-type]
                quantum=quantum,
                threading_model=threading_model,  # type: ignore[arg-type]
            )
        self._config = config
        self._policy = make_policy(config.algorithm, quantum=config.quantum)
        self._clear()
        self._cores = [CPUCore(i) for i in range(config.cores)]
        self.log(
            f"Initialized with {config.cores} cores, {config.algorithm} scheduling, "
            f"{config.threading_model} model"
        )

    # -- Registration ----------------------------------------------------------

    def add_thread(
        self,
        name: str | None = None,
        priority: int = DEFAULT_PRIORITY,
        instructions: Iterable[Instruction | dict[str, Any]] = (),
    ) -> Thread:
        """Admit a new thread at the current clock tick.

        The thread starts NEW and becomes READY at the start of the next
        tick.  Instructions may be given as ``Instruction`` objects or as
        wire records.

        Raises:
            InstructionError: If an instruction record is malformed.

        """
        program = [
            i if isinstance(i, Instruction) else Instruction.from_dict(i) for i in instructions
        ]
        tid = next(self._ids)
        thread = Thread(tid=tid, name=name or f"T{tid}", priority=priority, instructions=program)
        thread.arrival_time = self._clock
        self._threads[tid] = thread
        self._mapper.map(thread)
        self._pending.append(thread)
        self.log(
            f"Thread {thread.name} created (Priority: {priority}, Burst: {thread.burst_time})",
            EventLevel.SUCCESS,
        )
        return thread

    def add_semaphore(self, name: str, initial_value: int = 1) -> Semaphore:
        """Register a semaphore.

        Raises:
            ConfigError: If a semaphore with this name already exists.

        """
        try:
            sem = self._registry.create_semaphore(name, value=initial_value)
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc
        self.log(f"Semaphore {name} created (Initial value: {initial_value})")
        return sem

    def add_monitor(self, name: str) -> Monitor:
        """Register a monitor.

        Raises:
            ConfigError: If a monitor with this name already exists.

        """
        try:
            monitor = self._registry.create_monitor(name)
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc
        self.log(f"Monitor {name} created")
        return monitor

    def log(self, message: str, level: EventLevel = EventLevel.INFO) -> Event:
        """Record an event stamped with the current clock."""
        return self._log.log(self._clock, message, level)

    # -- The tick loop ---------------------------------------------------------

    def tick(self) -> int:
        """Advance the simulation by one step and return the new clock."""
        self._admit_pending()
        self._clock += 1

        for thread in self._threads.values():
            thread.tick()

        for core in self._cores:
            core.tick()
            thread = core.current_thread
            if thread is not None:
                self._step(core, thread)

        for core in self._mapper.eligible_cores(self._cores):
            if not self._ready:
                break
            self._dispatch(core)

        self._detect_deadlock()
        return self._clock

    def run(self, max_ticks: int = DEFAULT_MAX_TICKS) -> int:
        """Tick until every thread finishes, the engine stalls, or *max_ticks*.

        Returns:
            The number of ticks performed.

        """
        ticks = 0
        while ticks < max_ticks and not self.finished and not self._deadlocked:
            self.tick()
            ticks += 1
        if ticks and self.finished:
            self.log("All threads completed", EventLevel.SUCCESS)
        return ticks

    def _admit_pending(self) -> None:
        """Move threads created before this tick into the ready queue."""
        pending, self._pending = self._pending, []
        for thread in pending:
            thread.admit()
            self._ready.append(thread)
            self.log(f"Thread {thread.name} moved to READY queue")

    def _step(self, core: CPUCore, thread: Thread) -> None:
        """Run one instruction of *thread* on *core* and settle its fate."""
        instruction = thread.execute()
        if instruction is not None:
            self._execute_instruction(core, thread, instruction)

        if thread.state is ThreadState.BLOCKED:
            return
        if thread.is_complete:
            core.release()
            self._terminate(thread)
        elif self._policy.should_preempt(thread):
            core.release()
            thread.reset_quantum()
            thread.preempt()
            self._ready.append(thread)
            self.log(f"Thread {thread.name} preempted")

    def _dispatch(self, core: CPUCore) -> None:
        thread = self._policy.select(self._ready)
        if thread is None:
            return
        thread.reset_quantum()
        core.assign(thread)
        self.log(f"Thread {thread.name} assigned to Core {core.core_id}")

    def _block(self, core: CPUCore, thread: Thread, reason: str) -> None:
        core.release()
        thread.block()
        self._blocked.append(thread)
        self.log(f"Thread {thread.name} blocked ({reason})", EventLevel.WARNING)

    def _wake(self, thread: Thread) -> None:
        if thread in self._blocked:
            self._blocked.remove(thread)
        thread.wake()
        self._ready.append(thread)
        self.log(f"Thread {thread.name} moved to READY queue")

    def _terminate(self, thread: Thread) -> None:
        thread.terminate()
        thread.completion_time = self._clock
        thread.turnaround_time = thread.completion_time - thread.arrival_time
        self._terminated.append(thread)
        self.log(
            f"Thread {thread.name} terminated (Turnaround: {thread.turnaround_time})",
            EventLevel.SUCCESS,
        )

    def _detect_deadlock(self) -> None:
        """Flag (and log once) a state where every live thread is BLOCKED."""
        live = [t for t in self._threads.values() if t.state is not ThreadState.TERMINATED]
        stalled = bool(live) and all(t.state is ThreadState.BLOCKED for t in live)
        if stalled and not self._deadlocked:
            names = ", ".join(t.name for t in live)
            self.log(f"Deadlock detected: all live threads blocked ({names})", EventLevel.WARNING)
        self._deadlocked = stalled

    # -- Instruction semantics -------------------------------------------------

    def _execute_instruction(self, core: CPUCore, thread: Thread, instruction: Instruction) -> None:
        """Apply the side effect of *instruction*, executed by *thread*."""
        match instruction.type:
            case InstructionType.COMPUTE:
                return
            case InstructionType.WAIT | InstructionType.SIGNAL:
                sem = self._registry.find_semaphore(instruction.resource)
                if sem is None:
                    self._unresolved_reference(thread, instruction)
                elif instruction.type is InstructionType.WAIT:
                    self._semaphore_wait(core, thread, sem)
                else:
                    self._semaphore_signal(thread, sem)
            case _:
                monitor = self._registry.find_monitor(instruction.resource)
                if monitor is None:
                    self._unresolved_reference(thread, instruction)
                else:
                    self._monitor_op(core, thread, monitor, instruction.type)

    def _semaphore_wait(self, core: CPUCore, thread: Thread, sem: Semaphore) -> None:
        if sem.wait(thread):
            self.log(f"Thread {thread.name} acquired semaphore {sem.name}", EventLevel.SUCCESS)
        else:
            self._block(core, thread, f"Waiting on semaphore {sem.name}")

    def _semaphore_signal(self, thread: Thread, sem: Semaphore) -> None:
        released = sem.signal()
        if released is not None:
            self._wake(released)
            self.log(f"Thread {released.name} unblocked by {thread.name}", EventLevel.SUCCESS)
            # The released waiter already paid for the unit when it queued.
            self.log(f"Thread {released.name} acquired semaphore {sem.name}", EventLevel.SUCCESS)
        self.log(f"Thread {thread.name} signaled semaphore {sem.name}")

    def _monitor_op(
        self,
        core: CPUCore,
        thread: Thread,
        monitor: Monitor,
        kind: InstructionType,
    ) -> None:
        match kind:
            case InstructionType.ENTER_MONITOR:
                if monitor.enter(thread):
                    self.log(
                        f"Thread {thread.name} entered monitor {monitor.name}", EventLevel.SUCCESS
                    )
                else:
                    self._block(core, thread, f"Waiting to enter monitor {monitor.name}")
            case InstructionType.EXIT_MONITOR:
                result = monitor.exit()
                if result.next_thread is not None:
                    self._wake(result.next_thread)
                    self.log(
                        f"Thread {result.next_thread.name} entered monitor {monitor.name}",
                        EventLevel.SUCCESS,
                    )
                self.log(f"Thread {thread.name} exited monitor {monitor.name}")
            case InstructionType.MONITOR_WAIT:
                waited = monitor.wait(thread)
                if waited.blocked:
                    self._block(core, thread, f"Waiting on condition in monitor {monitor.name}")
                if waited.next_thread is not None:
                    self._wake(waited.next_thread)
                    self.log(
                        f"Thread {waited.next_thread.name} entered monitor {monitor.name}",
                        EventLevel.SUCCESS,
                    )
            case InstructionType.MONITOR_SIGNAL:
                woken = monitor.signal()
                if woken is not None:
                    self._wake(woken)
                    self.log(
                        f"Thread {woken.name} signaled in monitor {monitor.name}",
                        EventLevel.SUCCESS,
                    )

    def _unresolved_reference(self, thread: Thread, instruction: Instruction) -> None:
        """Count a reference to a primitive that does not exist (no-op otherwise)."""
        name = instruction.resource or ""
        self._unresolved[name] += 1
        if self._config.trace_unresolved:
            self.log(
                f"Thread {thread.name} executed '{instruction}' on unknown resource {name}",
                EventLevel.DEBUG,
            )

    # -- Observation -----------------------------------------------------------

    @property
    def config(self) -> SimulationConfig:
        """Return the active configuration."""
        return self._config

    @property
    def clock(self) -> int:
        """Return the number of ticks since initialization."""
        return self._clock

    @property
    def policy(self) -> SchedulingPolicy:
        """Return the active scheduling policy."""
        return self._policy

    @property
    def threading_model(self) -> ThreadingModel:
        """Return the active threading model."""
        return self._mapper.model

    @property
    def user_thread_count(self) -> int:
        """Return how many user threads have been admitted."""
        return self._mapper.user_thread_count

    @property
    def kernel_thread_count(self) -> int:
        """Return how many kernel threads back the user threads."""
        return self._mapper.kernel_thread_count

    @property
    def threads(self) -> list[Thread]:
        """Return every thread in admission order."""
        return list(self._threads.values())

    def thread(self, tid: int) -> Thread:
        """Return the thread with id *tid*.

        Raises:
            KeyError: If no such thread exists.

        """
        if tid not in self._threads:
            msg = f"Thread {tid} not found"
            raise KeyError(msg)
        return self._threads[tid]

    @property
    def ready_queue(self) -> list[Thread]:
        """Return the ready queue in its current order."""
        return list(self._ready)

    @property
    def blocked(self) -> list[Thread]:
        """Return the blocked threads."""
        return list(self._blocked)

    @property
    def terminated(self) -> list[Thread]:
        """Return terminated threads in completion order."""
        return list(self._terminated)

    @property
    def cores(self) -> list[CPUCore]:
        """Return the cores in id order."""
        return list(self._cores)

    @property
    def semaphores(self) -> dict[str, Semaphore]:
        """Return the semaphore registry."""
        return self._registry.semaphores

    @property
    def monitors(self) -> dict[str, Monitor]:
        """Return the monitor registry."""
        return self._registry.monitors

    @property
    def events(self) -> list[Event]:
        """Return the full event history."""
        return self._log.entries

    @property
    def event_log(self) -> EventLog:
        """Return the event log (for filtering and tail views)."""
        return self._log

    @property
    def unresolved_references(self) -> dict[str, int]:
        """Return how often each unknown resource name was referenced."""
        return dict(self._unresolved)

    @property
    def finished(self) -> bool:
        """Return True if no thread is still live (vacuously true when empty)."""
        return all(t.state is ThreadState.TERMINATED for t in self._threads.values())

    @property
    def all_terminated(self) -> bool:
        """Return True if at least one thread exists and all have terminated."""
        return bool(self._threads) and self.finished

    @property
    def deadlocked(self) -> bool:
        """Return True if every live thread is BLOCKED."""
        return self._deadlocked

    def statistics(self) -> Statistics:
        """Compute utilization and timing averages from the current state."""
        completed = len(self._terminated)
        busy = sum(core.busy_ticks for core in self._cores)
        total = self._clock * len(self._cores)
        utilization = round(busy / total * 100, 1) if total else 0.0
        avg_wait = 0.0
        avg_turnaround = 0.0
        if completed:
            avg_wait = round(sum(t.wait_time for t in self._terminated) / completed, 1)
            avg_turnaround = round(sum(t.turnaround_time for t in self._terminated) / completed, 1)
        return Statistics(
            clock_ticks=self._clock,
            active_threads=len(self._threads) - completed,
            completed_threads=completed,
            cpu_utilization=utilization,
            avg_wait_time=avg_wait,
            avg_turnaround=avg_turnaround,
        )

    def snapshot(self) -> dict[str, Any]:
        """Return a JSON-ready view of the whole engine."""
        return {
            "clock": self._clock,
            "config": self._config.to_dict(),
            "threads": [t.to_dict() for t in self._threads.values()],
            "readyQueue": [t.name for t in self._ready],
            "blocked": [t.name for t in self._blocked],
            "terminated": [t.name for t in self._terminated],
            "cores": [c.to_dict() for c in self._cores],
            "semaphores": [s.to_dict() for s in self._registry.semaphores.values()],
            "monitors": [m.to_dict() for m in self._registry.monitors.values()],
            "userThreads": self._mapper.user_thread_count,
            "kernelThreads": self._mapper.kernel_thread_count,
            "deadlocked": self._deadlocked,
            "statistics": self.statistics().to_dict(),
        }
