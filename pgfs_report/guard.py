"""Single-instance guard backed by an exclusive advisory lock on a file."""

from __future__ import annotations

import fcntl
import logging
import os
from pathlib import Path
from typing import IO, Optional, Union

from .errors import ErrorKind, ReportError

logger = logging.getLogger("pgfs_report.guard")


class LockHandle:
    """Open, locked guard file. The lock lives exactly as long as the handle."""

    def __init__(self, path: Path, handle: IO[str]) -> None:
        self.path = path
        self._handle: Optional[IO[str]] = handle

    @property
    def held(self) -> bool:
        return self._handle is not None

    def release(self) -> None:
        # closing the descriptor drops the flock; the OS does the same on exit
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def __enter__(self) -> "LockHandle":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()


def acquire(path: Union[str, "os.PathLike[str]"]) -> LockHandle:
    """Lock ``path`` without waiting; fail at once if another process holds it."""
    lock_path = Path(path)
    try:
        handle = open(lock_path, "a", encoding="utf-8")
    except OSError as exc:
        raise ReportError(ErrorKind.LOCK_FILE_OPEN, path=lock_path) from exc

    try:
        fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
    except OSError as exc:
        handle.close()
        raise ReportError(ErrorKind.LOCK_FILE_EXCLUSIVE_LOCK, path=lock_path) from exc

    logger.debug("Acquired exclusive lock on %s", lock_path)
    return LockHandle(lock_path, handle)


__all__ = ["LockHandle", "acquire"]
