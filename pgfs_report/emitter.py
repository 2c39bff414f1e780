"""Delivery of usage events to a Fluentd HTTP input.

Every post is attempted up to ``RetryPolicy.max_attempts`` times, sleeping
between attempts with exponential backoff. When all attempts fail the record
is appended to the spillover file if one is configured, otherwise it is lost
and the failure is raised to the caller.
"""

from __future__ import annotations

import json
import logging
import time
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional

import httpx

from .errors import ErrorKind, ReportError
from .models import RetryPolicy, UsageEvent

logger = logging.getLogger("pgfs_report.emitter")

INIT_CHECK_MESSAGE = "pgfs-report-log-initialization"


class DeliveryOutcome(str, Enum):
    DELIVERED = "delivered"
    SPILLED = "spilled"


class EventEmitter:
    def __init__(
        self,
        address: str,
        tag: str,
        policy: RetryPolicy,
        *,
        client: Optional[httpx.Client] = None,
        timeout: float = 5.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        base = address if "://" in address else f"http://{address}"
        self.endpoint = f"{base.rstrip('/')}/{tag.strip('/')}"
        self.tag = tag
        self.policy = policy
        self._client = client or httpx.Client(timeout=timeout)
        self._owns_client = client is None
        self._sleep = sleep

    def check(self) -> None:
        """Post one record at startup so an unreachable sink fails fast."""
        error = self._deliver({"message": INIT_CHECK_MESSAGE})
        if error is not None:
            raise ReportError(ErrorKind.FLUENT_INIT_CHECK, path=self.endpoint) from error
        logger.info("Forwarding endpoint %s is reachable.", self.endpoint)

    def post(self, event: UsageEvent) -> DeliveryOutcome:
        record = event.to_record()
        error = self._deliver(record)
        if error is None:
            return DeliveryOutcome.DELIVERED

        spillover_path = self.policy.spillover_path
        if spillover_path is None:
            raise ReportError(ErrorKind.FLUENT_POST_TAGGED_RECORD, path=self.endpoint) from error

        self._spill(record)
        logger.warning(
            "Delivery to %s failed after %d attempts (%s); event stored in %s",
            self.endpoint,
            self.policy.max_attempts,
            error,
            spillover_path,
        )
        return DeliveryOutcome.SPILLED

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def _deliver(self, record: Mapping[str, Any]) -> Optional[Exception]:
        """Return ``None`` once a delivery succeeds, else the last attempt's error."""
        delays = self.policy.delays()
        attempt = 0
        while True:
            attempt += 1
            try:
                response = self._client.post(self.endpoint, json=dict(record))
                response.raise_for_status()
                return None
            except httpx.HTTPError as exc:
                logger.warning(
                    "Delivery attempt %d/%d to %s failed: %s",
                    attempt,
                    self.policy.max_attempts,
                    self.endpoint,
                    exc,
                )
                delay = next(delays, None)
                if delay is None:
                    return exc
            self._sleep(delay)

    def _spill(self, record: Mapping[str, Any]) -> None:
        path = self.policy.spillover_path
        line: Dict[str, Any] = {"tag": self.tag, "time": int(time.time()), "record": dict(record)}
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(line) + "\n")
        except OSError as exc:
            raise ReportError(ErrorKind.FILE_IO, path=path) from exc


__all__ = ["DeliveryOutcome", "EventEmitter", "INIT_CHECK_MESSAGE"]
