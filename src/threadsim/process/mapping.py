"""Threading models — how user threads map onto kernel threads.

A user-level threading library decides how many kernel-visible
execution contexts back its threads:

- **one-to-one**: every user thread gets its own kernel thread, so the
  kernel can run as many of them in parallel as there are cores.
- **many-to-one**: every user thread shares a single kernel thread.
  The kernel sees one schedulable entity, so however many cores the
  machine has, at most one of these threads runs at a time.
- **many-to-many**: user threads are multiplexed over a pool of kernel
  threads, one per core.

The mapping is applied once, when a thread is admitted.  The
many-to-one constraint also shapes dispatch: ``eligible_cores`` tells
the engine which idle cores may take a thread this tick.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from threadsim.process.cpu import CPUCore
    from threadsim.process.threads import Thread


class ThreadingModel(StrEnum):
    """Supported user-to-kernel thread mappings."""

    ONE_TO_ONE = "one-to-one"
    MANY_TO_ONE = "many-to-one"
    MANY_TO_MANY = "many-to-many"


class KernelThreadMapper:
    """Assign kernel thread ids to user threads under a threading model."""

    def __init__(self, model: ThreadingModel, *, core_count: int) -> None:
        """Create a mapper with no threads mapped yet."""
        self._model = ThreadingModel(model)
        self._core_count = core_count
        self._user_threads = 0
        self._kernel_threads = 0

    @property
    def model(self) -> ThreadingModel:
        """Return the threading model."""
        return self._model

    @property
    def user_thread_count(self) -> int:
        """Return how many user threads have been mapped."""
        return self._user_threads

    @property
    def kernel_thread_count(self) -> int:
        """Return how many kernel threads are in use."""
        return self._kernel_threads

    def map(self, thread: Thread) -> int:
        """Assign and return a kernel thread id for *thread*."""
        self._user_threads += 1
        match self._model:
            case ThreadingModel.ONE_TO_ONE:
                self._kernel_threads += 1
                kernel_id = self._kernel_threads
            case ThreadingModel.MANY_TO_ONE:
                self._kernel_threads = 1
                kernel_id = 1
            case ThreadingModel.MANY_TO_MANY:
                kernel_id = (self._user_threads % self._core_count) + 1
                self._kernel_threads = max(self._kernel_threads, kernel_id)
        thread.kernel_thread_id = kernel_id
        return kernel_id

    def eligible_cores(self, cores: Sequence[CPUCore]) -> list[CPUCore]:
        """Return the idle cores that may receive a thread, in id order.

        Under many-to-one there is a single kernel context: nothing is
        eligible while any core is busy, and otherwise only the first
        idle core is.
        """
        idle = [core for core in cores if core.is_idle]
        if self._model is not ThreadingModel.MANY_TO_ONE:
            return idle
        if len(idle) < len(cores):
            return []
        return idle[:1]
