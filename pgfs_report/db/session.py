"""Connection helpers for the PostgreSQL cluster being measured."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Union

from sqlalchemy import create_engine
from sqlalchemy.engine import Connection
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.pool import NullPool

from ..errors import ErrorKind, ReportError
from ..redaction import mask

logger = logging.getLogger("pgfs_report.db")


@dataclass(frozen=True)
class TlsParams:
    """Certificate material handed to libpq when TLS is in use."""

    root_cert: Optional[str] = None
    cert: Optional[str] = None
    key: Optional[str] = None

    def connect_args(self) -> Dict[str, str]:
        args: Dict[str, str] = {}
        if self.root_cert:
            args["sslrootcert"] = self.root_cert
        if self.cert:
            args["sslcert"] = self.cert
        if self.key:
            args["sslkey"] = self.key
        return args


@dataclass(frozen=True)
class TlsNone:
    label = "none"


@dataclass(frozen=True)
class TlsPrefer:
    params: TlsParams
    label = "prefer"


@dataclass(frozen=True)
class TlsRequire:
    params: TlsParams
    label = "require"


TlsMode = Union[TlsNone, TlsPrefer, TlsRequire]


def tls_connect_args(tls_mode: TlsMode) -> Dict[str, str]:
    """Translate a TLS mode into DBAPI ``connect_args``."""
    if isinstance(tls_mode, TlsNone):
        return {}
    if isinstance(tls_mode, TlsPrefer):
        return {"sslmode": "prefer", **tls_mode.params.connect_args()}
    if isinstance(tls_mode, TlsRequire):
        return {"sslmode": "require", **tls_mode.params.connect_args()}
    raise TypeError(f"Unsupported TLS mode: {type(tls_mode).__name__}")


def connect(url: str, tls_mode: TlsMode) -> Connection:
    """Open a single live connection; the caller is responsible for closing it."""
    safe_url = mask(url)
    logger.debug("Connecting to %s (tls=%s)", safe_url, tls_mode.label)
    try:
        # one connection per cycle, nothing to pool between cycles
        engine = create_engine(
            url,
            future=True,
            poolclass=NullPool,
            connect_args=tls_connect_args(tls_mode),
        )
        return engine.connect()
    except ArgumentError as exc:
        # the parser echoes the raw URL back in its message
        cause = ValueError(mask(str(exc)))
        raise ReportError(ErrorKind.PG_CONNECTION, path=safe_url) from cause
    except (SQLAlchemyError, ValueError) as exc:
        raise ReportError(ErrorKind.PG_CONNECTION, path=safe_url) from exc


__all__ = [
    "TlsMode",
    "TlsNone",
    "TlsParams",
    "TlsPrefer",
    "TlsRequire",
    "connect",
    "tls_connect_args",
]
