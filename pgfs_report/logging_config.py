import json
import logging
import os
import tomllib
from logging.config import dictConfig, fileConfig
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .errors import ErrorKind, ReportError

DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def default_logging_config(level: Optional[str] = None) -> Dict[str, Any]:
    level = (level or os.getenv("PGFS_REPORT_LOG_LEVEL", "INFO")).upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": DEFAULT_LOG_FORMAT,
            },
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
            },
        },
        "root": {
            "handlers": ["default"],
            "level": level,
        },
    }


def configure_logging(log_conf_path: Optional[Union[str, Path]] = None) -> None:
    """Configure logging from ``log_conf_path``, or a console default without one.

    ``.json`` and ``.toml`` files hold a ``dictConfig`` mapping; anything else
    is read as an INI file by ``fileConfig``.
    """
    if log_conf_path is None:
        try:
            dictConfig(default_logging_config())
        except (ValueError, TypeError, AttributeError, ImportError) as exc:
            raise ReportError(ErrorKind.DEFAULT_LOGGER_INIT) from exc
        if os.getenv("PGFS_REPORT_DEBUG_HTTP", "0") == "1":
            logging.getLogger("httpx").setLevel(logging.DEBUG)
        return

    path = Path(log_conf_path)
    try:
        suffix = path.suffix.lower()
        if suffix == ".json":
            dictConfig(json.loads(path.read_text(encoding="utf-8")))
        elif suffix == ".toml":
            dictConfig(tomllib.loads(path.read_text(encoding="utf-8")))
        else:
            if not path.is_file():
                raise FileNotFoundError(path)
            fileConfig(path, disable_existing_loggers=False)
    except Exception as exc:  # noqa: BLE001
        raise ReportError(ErrorKind.SPECIALIZED_LOGGER_INIT, path=path) from exc

    logging.getLogger("pgfs_report").debug("Logging configured from %s", path)


__all__ = ["DEFAULT_LOG_FORMAT", "configure_logging", "default_logging_config"]
