"""Cycle outcome reporting."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .errors import format_error_chain

logger = logging.getLogger("pgfs_report.telemetry")

CYCLE_COMPLETED = "cycle_completed"
CYCLE_FAILED = "cycle_failed"


@dataclass(frozen=True)
class CycleEvent:
    name: str
    payload: Dict[str, Any]


def report_cycle(cycle: int, error: Optional[BaseException] = None, **fields: Any) -> CycleEvent:
    """Log the outcome of one cycle and return it as an event."""
    if error is None:
        logger.info("Session completed!")
        return CycleEvent(name=CYCLE_COMPLETED, payload={"cycle": cycle, **fields})

    chain = format_error_chain(error)
    logger.error("%s", chain)
    return CycleEvent(name=CYCLE_FAILED, payload={"cycle": cycle, "error": chain, **fields})


__all__ = [
    "CYCLE_COMPLETED",
    "CYCLE_FAILED",
    "CycleEvent",
    "report_cycle",
]
