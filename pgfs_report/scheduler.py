"""Fixed-delay driver for the collect-and-emit cycle."""

from __future__ import annotations

import logging
import time
from datetime import timedelta
from enum import Enum
from typing import Any, Callable, Dict, Optional, Union

from .telemetry import CycleEvent, report_cycle

logger = logging.getLogger("pgfs_report.scheduler")


class RunMode(str, Enum):
    SINGLE_SHOT = "single_shot"
    REPEATING = "repeating"


class Scheduler:
    """Runs ``cycle`` once, or forever with ``repeat_delay`` between cycles.

    The delay is counted from the end of one cycle to the start of the next,
    so a period is the cycle duration plus the delay. In repeating mode a
    failing cycle is reported and the loop carries on.
    """

    def __init__(
        self,
        cycle: Callable[[], Any],
        repeat_delay: Optional[Union[float, timedelta]] = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if isinstance(repeat_delay, timedelta):
            repeat_delay = repeat_delay.total_seconds()
        if repeat_delay is not None and repeat_delay < 0:
            raise ValueError("repeat_delay cannot be negative.")
        self._cycle = cycle
        self.repeat_delay = repeat_delay
        self.mode = RunMode.SINGLE_SHOT if repeat_delay is None else RunMode.REPEATING
        self._sleep = sleep
        self._clock = clock
        self.cycles_run = 0

    def run(self) -> CycleEvent:
        """Return the outcome in single-shot mode; never returns when repeating."""
        delay = self.repeat_delay
        if delay is None:
            return self.run_cycle()

        logger.info("Repeating every %.3fs after each cycle.", delay)
        while True:
            self.run_cycle()
            self._sleep(delay)

    def run_cycle(self) -> CycleEvent:
        self.cycles_run += 1
        started = self._clock()
        try:
            result = self._cycle()
        except Exception as exc:  # noqa: BLE001
            return report_cycle(self.cycles_run, exc, duration_seconds=self._clock() - started)
        fields: Dict[str, Any] = {"duration_seconds": self._clock() - started}
        if result is not None:
            fields["outcome"] = getattr(result, "value", result)
        return report_cycle(self.cycles_run, **fields)


__all__ = ["RunMode", "Scheduler"]
