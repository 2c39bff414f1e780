import math
import re
import tomllib
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings

from .db.session import TlsMode, TlsNone, TlsParams, TlsPrefer, TlsRequire
from .errors import ErrorKind, ReportError
from .models import RetryPolicy
from .redaction import mask

DEFAULT_CONFIG_PATH = "config/pgfs-report.toml"

_DURATION_UNITS = {
    "ms": 0.001,
    "s": 1.0,
    "sec": 1.0,
    "m": 60.0,
    "min": 60.0,
    "h": 3600.0,
    "hr": 3600.0,
    "d": 86400.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)\s*(ms|sec|min|hr|s|m|h|d)(?![a-z])")


def parse_duration(value: str) -> timedelta:
    """Parse ``"30s"``, ``"5m"``, ``"1h 30m"`` or a bare number of seconds."""
    text = value.strip().lower()
    if not text:
        raise ValueError("Duration cannot be empty.")
    try:
        seconds = float(text)
    except ValueError:
        seconds = _sum_duration_parts(text, value)

    if not math.isfinite(seconds):
        raise ValueError(f"Duration must be finite: {value!r}")
    try:
        return timedelta(seconds=seconds)
    except OverflowError as exc:
        raise ValueError(f"Duration out of range: {value!r}") from exc


def _sum_duration_parts(text: str, value: str) -> float:
    total = 0.0
    position = 0
    for match in _DURATION_PART.finditer(text):
        if text[position:match.start()].strip():
            raise ValueError(f"Invalid duration: {value!r}")
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()
    if position == 0 or text[position:].strip():
        raise ValueError(f"Invalid duration: {value!r}")
    return total


class GeneralSettings(BaseModel):
    lock_file: Path = Path("/tmp/pgfs-report.lock")
    repeat_delay: Optional[timedelta] = None
    log_conf_path: Optional[Path] = None

    @field_validator("repeat_delay", mode="before")
    @classmethod
    def _parse_repeat_delay(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_duration(value)
        return value

    @field_validator("repeat_delay")
    @classmethod
    def _non_negative(cls, value: Optional[timedelta]) -> Optional[timedelta]:
        if value is not None and value < timedelta(0):
            raise ValueError("repeat_delay cannot be negative.")
        return value


class SystemSettings(BaseModel):
    estimated_cap: int = Field(..., ge=0)


class FluentdSettings(BaseModel):
    address: str = "127.0.0.1:9880"
    tag: str
    try_count: int = Field(3, ge=1)
    multiplier: float = Field(2.0, gt=0)
    base_delay: float = Field(1.0, ge=0)
    timeout: float = Field(5.0, gt=0)
    store_file_path: Optional[Path] = None


class TlsSettings(BaseModel):
    mode: Literal["none", "prefer", "require"] = "none"
    root_cert: Optional[str] = None
    cert: Optional[str] = None
    key: Optional[str] = None


class PgSettings(BaseModel):
    connection_url: str
    tls: TlsSettings = TlsSettings()

    def tls_mode(self) -> TlsMode:
        params = TlsParams(root_cert=self.tls.root_cert, cert=self.tls.cert, key=self.tls.key)
        if self.tls.mode == "prefer":
            return TlsPrefer(params)
        if self.tls.mode == "require":
            return TlsRequire(params)
        return TlsNone()


class Settings(BaseSettings):
    general: GeneralSettings = GeneralSettings()
    system: SystemSettings
    fluentd: FluentdSettings
    pg: PgSettings

    class Config:
        env_prefix = "PGFS_REPORT_"
        env_nested_delimiter = "__"
        case_sensitive = False

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):  # type: ignore[no-untyped-def]
        # environment overrides values read from the TOML file
        return env_settings, init_settings

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.fluentd.try_count,
            backoff_multiplier=self.fluentd.multiplier,
            spillover_path=self.fluentd.store_file_path,
            base_delay=self.fluentd.base_delay,
        )

    def repeat_delay_seconds(self) -> Optional[float]:
        delay = self.general.repeat_delay
        return delay.total_seconds() if delay is not None else None

    def redacted(self) -> Dict[str, Any]:
        """Settings as a plain mapping safe to log."""
        data = self.model_dump(mode="json")
        data["pg"]["connection_url"] = mask(self.pg.connection_url)
        return data


def load_settings(path: Union[str, Path] = DEFAULT_CONFIG_PATH) -> Settings:
    conf_path = Path(path)
    try:
        raw = conf_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ReportError(ErrorKind.FILE_IO, path=conf_path) from exc

    try:
        data = tomllib.loads(raw)
        return Settings(**data)
    except (tomllib.TOMLDecodeError, ValidationError) as exc:
        # validation messages echo input values, connection URLs included
        cause = ValueError(mask(str(exc)))
        raise ReportError(ErrorKind.TOML_CONFIG_PARSE, path=conf_path) from cause


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "FluentdSettings",
    "GeneralSettings",
    "PgSettings",
    "Settings",
    "SystemSettings",
    "TlsSettings",
    "load_settings",
    "parse_duration",
]
