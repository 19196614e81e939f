"""Simulation configuration.

All knobs the engine is initialized with live in one frozen record,
validated before any engine state is touched.  The tick loop can then
assume a well-formed configuration and never has to fail mid-run.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from threadsim.process.mapping import ThreadingModel
from threadsim.process.scheduler import DEFAULT_QUANTUM, SchedulingAlgorithm

DEFAULT_CORES = 2

# JSON-style key → field name
_KEY_ALIASES = {
    "cores": "cores",
    "coreCount": "cores",
    "algorithm": "algorithm",
    "quantum": "quantum",
    "timeQuantum": "quantum",
    "threading_model": "threading_model",
    "threadingModel": "threading_model",
    "trace_unresolved": "trace_unresolved",
    "traceUnresolved": "trace_unresolved",
}


class ConfigError(ValueError):
    """Raise when a simulation configuration is invalid."""


@dataclass(frozen=True)
class SimulationConfig:
    """Engine configuration.

    Attributes:
        cores: Number of simulated CPU cores.
        algorithm: Scheduling algorithm.
        quantum: Round-robin time quantum (ignored by other algorithms,
            but still required to be positive).
        threading_model: User-to-kernel thread mapping.
        trace_unresolved: Log a DEBUG event whenever an instruction
            names a semaphore or monitor that does not exist.

    """

    cores: int = DEFAULT_CORES
    algorithm: SchedulingAlgorithm = SchedulingAlgorithm.ROUND_ROBIN
    quantum: int = DEFAULT_QUANTUM
    threading_model: ThreadingModel = ThreadingModel.ONE_TO_ONE
    trace_unresolved: bool = False

    def __post_init__(self) -> None:
        """Coerce enum fields given as strings, then validate."""
        try:
            object.__setattr__(self, "algorithm", SchedulingAlgorithm(self.algorithm))
        except ValueError:
            msg = f"Unknown scheduling algorithm: {self.algorithm!r}"
            raise ConfigError(msg) from None
        try:
            object.__setattr__(self, "threading_model", ThreadingModel(self.threading_model))
        except ValueError:
            msg = f"Unknown threading model: {self.threading_model!r}"
            raise ConfigError(msg) from None
        self.validate()

    def validate(self) -> None:
        """Check numeric fields.

        Raises:
            ConfigError: If cores or quantum is not a positive integer.

        """
        if not isinstance(self.cores, int) or isinstance(self.cores, bool) or self.cores < 1:
            msg = f"cores must be a positive integer, got {self.cores!r}"
            raise ConfigError(msg)
        if not isinstance(self.quantum, int) or isinstance(self.quantum, bool) or self.quantum < 1:
            msg = f"quantum must be a positive integer, got {self.quantum!r}"
            raise ConfigError(msg)

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> SimulationConfig:
        """Build a config from a JSON-style mapping.

        Missing keys take their defaults.

        Raises:
            ConfigError: On unknown keys or invalid values.

        """
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            field = _KEY_ALIASES.get(key)
            if field is None:
                msg = f"Unknown configuration key: {key!r}"
                raise ConfigError(msg)
            kwargs[field] = value
        return cls(**kwargs)

    def to_dict(self) -> dict[str, object]:
        """Return the JSON-style mapping for this config."""
        return {
            "cores": self.cores,
            "algorithm": str(self.algorithm),
            "quantum": self.quantum,
            "threadingModel": str(self.threading_model),
            "traceUnresolved": self.trace_unresolved,
        }
