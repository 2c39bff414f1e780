"""Per-database storage usage collected from the cluster catalog."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List

from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from ..errors import ErrorKind, ReportError

logger = logging.getLogger("pgfs_report.db")

DB_SIZES_QUERY = (
    "SELECT pg_database.datname AS name, "
    "pg_database_size(pg_database.datname) AS size FROM pg_database;"
)


@dataclass(frozen=True)
class DatabaseSizeRecord:
    name: str
    size_bytes: int


def collect(connection: Connection) -> List[DatabaseSizeRecord]:
    """Run the size query and map every catalog row into a record."""
    try:
        rows = connection.execute(text(DB_SIZES_QUERY)).mappings().all()
    except SQLAlchemyError as exc:
        raise ReportError(ErrorKind.PG_GET_DB_SIZES, query=DB_SIZES_QUERY) from exc

    records = [DatabaseSizeRecord(name=str(row["name"]), size_bytes=int(row["size"])) for row in rows]
    logger.debug("Collected database sizes: %s", records)
    return records


def aggregate(records: Iterable[DatabaseSizeRecord]) -> int:
    return sum(record.size_bytes for record in records)


__all__ = [
    "DB_SIZES_QUERY",
    "DatabaseSizeRecord",
    "aggregate",
    "collect",
]
