"""One collect-and-emit cycle."""

from __future__ import annotations

import logging
from typing import Callable, Iterable

from sqlalchemy.engine import Connection

from .config import Settings
from .db.session import TlsMode, connect
from .db.sizes import DatabaseSizeRecord, aggregate, collect
from .emitter import DeliveryOutcome, EventEmitter
from .models import UsageEvent
from .redaction import mask

logger = logging.getLogger("pgfs_report.report")


def build_usage_event(
    connection_url: str,
    capacity: int,
    records: Iterable[DatabaseSizeRecord],
) -> UsageEvent:
    return UsageEvent(identifier=mask(connection_url), capacity=capacity, used=aggregate(records))


class ReportCycle:
    """Callable run by the scheduler: connect, collect, fold, emit."""

    def __init__(
        self,
        settings: Settings,
        emitter: EventEmitter,
        *,
        connector: Callable[[str, TlsMode], Connection] = connect,
        collector: Callable[[Connection], Iterable[DatabaseSizeRecord]] = collect,
    ) -> None:
        self._settings = settings
        self._emitter = emitter
        self._connector = connector
        self._collector = collector
        self._tls_mode = settings.pg.tls_mode()

    def __call__(self) -> DeliveryOutcome:
        url = self._settings.pg.connection_url
        connection = self._connector(url, self._tls_mode)
        try:
            records = list(self._collector(connection))
        finally:
            connection.close()

        event = build_usage_event(url, self._settings.system.estimated_cap, records)
        logger.debug("Posting usage event %s", event)
        return self._emitter.post(event)


__all__ = ["ReportCycle", "build_usage_event"]
