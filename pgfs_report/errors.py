"""Typed failures raised across the reporting agent."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import List, Optional, Union


class ErrorKind(Enum):
    DEFAULT_LOGGER_INIT = "Default logger initialization error"
    FILE_IO = "File I/O error"
    FLUENT_INIT_CHECK = "Initial fluent post check error"
    FLUENT_POST_TAGGED_RECORD = "Fluent post from tagged record error"
    LOCK_FILE_OPEN = "Lock file open error"
    LOCK_FILE_EXCLUSIVE_LOCK = "Lock file exclusive lock error"
    PG_CONNECTION = "Cannot connect to Postgres server"
    PG_GET_DB_SIZES = "Cannot execute Postgres query to get database sizes"
    PG_UNSECURE_URL = "Cannot unsecure connection URL"
    SPECIALIZED_LOGGER_INIT = "Specialized logger initialization error"
    TOML_CONFIG_PARSE = "TOML config parse error"

    @property
    def description(self) -> str:
        return self.value


class ReportError(Exception):
    """Failure tagged with its kind plus the path or query it happened on.

    The underlying cause is kept on ``__cause__`` by raising with
    ``raise ReportError(...) from exc``.
    """

    def __init__(
        self,
        kind: ErrorKind,
        *,
        path: Optional[Union[str, Path]] = None,
        query: Optional[str] = None,
    ) -> None:
        self.kind = kind
        self.path = str(path) if path is not None else None
        self.query = query
        super().__init__(self._render())

    def _render(self) -> str:
        parts = [self.kind.description]
        if self.path is not None:
            parts.append(f"path: {self.path!r}")
        if self.query is not None:
            parts.append(f"query: {self.query}")
        return " | ".join(parts)


def format_error_chain(exc: BaseException) -> str:
    """Render an exception and every nested cause, outermost first."""
    lines: List[str] = []
    seen = set()
    current: Optional[BaseException] = exc
    depth = 0
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        prefix = "error" if depth == 0 else "caused by"
        lines.append(f"{'  ' * depth}{prefix}: {_describe(current)}")
        current = current.__cause__ or current.__context__
        depth += 1
    return "\n".join(lines)


def _describe(exc: BaseException) -> str:
    if isinstance(exc, ReportError):
        return str(exc)
    message = str(exc)
    if not message:
        return type(exc).__name__
    return f"{type(exc).__name__}: {message}"


__all__ = [
    "ErrorKind",
    "ReportError",
    "format_error_chain",
]
