"""Value objects shared by the collection cycle and the emitter."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, Optional, Union


@dataclass(frozen=True)
class UsageEvent:
    identifier: str
    capacity: int
    used: int

    def to_record(self) -> Dict[str, Union[str, int]]:
        return {
            "path": self.identifier,
            "capacity": self.capacity,
            "used": self.used,
        }


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded delivery retries with exponential backoff."""

    max_attempts: int
    backoff_multiplier: float
    spillover_path: Optional[Path] = None
    base_delay: float = 1.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")
        if self.backoff_multiplier <= 0:
            raise ValueError("backoff_multiplier must be greater than zero.")
        if self.base_delay < 0:
            raise ValueError("base_delay cannot be negative.")

    def delays(self) -> Iterator[float]:
        """Yield the pause before each retry, ``max_attempts - 1`` values in total."""
        delay = self.base_delay
        for _ in range(self.max_attempts - 1):
            yield delay
            delay *= self.backoff_multiplier


__all__ = ["RetryPolicy", "UsageEvent"]
