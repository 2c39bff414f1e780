"""Database access for the storage report."""

from .session import TlsMode, TlsNone, TlsParams, TlsPrefer, TlsRequire, connect
from .sizes import DB_SIZES_QUERY, DatabaseSizeRecord, aggregate, collect

__all__ = [
    "DB_SIZES_QUERY",
    "DatabaseSizeRecord",
    "TlsMode",
    "TlsNone",
    "TlsParams",
    "TlsPrefer",
    "TlsRequire",
    "aggregate",
    "collect",
    "connect",
]
