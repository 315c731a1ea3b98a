"""Core data types and validation for the trigger configuration."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, time as dtime
from enum import Enum
from typing import Any, Mapping, Tuple

DEFAULT_KEY = "caps lock"
DEFAULT_LOG_LEVEL = "info"
DEFAULT_LOG_NAME = "keysimulator.log"
CLOCK_FORMAT = "%H:%M"


class CapsTriggerError(RuntimeError):
    """Base class for every error raised by the trigger daemon."""


class ConfigErrorKind(str, Enum):
    READ = "read"
    PARSE = "parse"


class ConfigError(CapsTriggerError):
    """Raised when the configuration file cannot be read or understood."""

    def __init__(self, kind: ConfigErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind


def parse_clock(value: str) -> dtime:
    """Parse a wall-clock ``HH:MM`` string into a :class:`datetime.time`."""

    return datetime.strptime(str(value).strip(), CLOCK_FORMAT).time()


@dataclass(frozen=True, slots=True)
class TimeRange:
    start: str
    end: str

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "TimeRange":
        start = _clock_text(data.get("start"))
        end = _clock_text(data.get("end"))
        for label, value in (("start", start), ("end", end)):
            if value is None:
                raise ValueError(f"'{label}' is required")
            try:
                parse_clock(value)
            except ValueError as exc:
                raise ValueError(f"'{label}' must be HH:MM, got {value!r}") from exc
        return TimeRange(start=str(start).strip(), end=str(end).strip())

    def to_dict(self) -> dict[str, str]:
        return {"start": self.start, "end": self.end}


@dataclass(frozen=True, slots=True)
class LogConfig:
    level: str = DEFAULT_LOG_LEVEL
    name: str = DEFAULT_LOG_NAME

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "LogConfig":
        level = str(data.get("level") or "").strip() or DEFAULT_LOG_LEVEL
        name = str(data.get("name") or "").strip() or DEFAULT_LOG_NAME
        return LogConfig(level=level, name=name)


@dataclass(frozen=True, slots=True)
class Configuration:
    """Validated configuration. Never mutated once loaded."""

    ticker: int
    time_ranges: Tuple[TimeRange, ...] = ()
    log: LogConfig = field(default_factory=LogConfig)
    daemon: bool = False
    key: str = DEFAULT_KEY

    def __post_init__(self) -> None:
        if isinstance(self.ticker, bool) or not isinstance(self.ticker, int) or self.ticker <= 0:
            raise ValueError(f"ticker must be a positive number of seconds, got {self.ticker!r}")

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "Configuration":
        ticker = data.get("ticker")
        if isinstance(ticker, bool) or not isinstance(ticker, int):
            raise ValueError(f"'ticker' must be an integer, got {ticker!r}")

        raw_ranges = data.get("time_ranges") or []
        if not isinstance(raw_ranges, list):
            raise ValueError("'time_ranges' must be a list")
        ranges = []
        for idx, item in enumerate(raw_ranges):
            if not isinstance(item, Mapping):
                raise ValueError(f"time_ranges[{idx}] must be a mapping")
            try:
                ranges.append(TimeRange.from_dict(item))
            except ValueError as exc:
                raise ValueError(f"time_ranges[{idx}]: {exc}") from exc

        raw_log = data.get("log") or {}
        if not isinstance(raw_log, Mapping):
            raise ValueError("'log' must be a mapping")

        key = str(data.get("key") or "").strip() or DEFAULT_KEY

        return Configuration(
            ticker=ticker,
            time_ranges=tuple(ranges),
            log=LogConfig.from_dict(raw_log),
            daemon=_coerce_bool(data.get("daemon", False)),
            key=key,
        )


def _clock_text(value: Any) -> Any:
    # YAML 1.1 reads unquoted 13:30 as the base-60 integer 810
    if isinstance(value, int) and not isinstance(value, bool) and 0 <= value < 24 * 60:
        return "%02d:%02d" % divmod(value, 60)
    return value


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)
