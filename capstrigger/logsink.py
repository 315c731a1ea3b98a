"""JSON line logging to an append-only file."""
from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

from .types import CapsTriggerError, LogConfig

PACKAGE_LOGGER = "capstrigger"

LEVELS: Dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "dpanic": logging.CRITICAL,
    "panic": logging.CRITICAL,
    "fatal": logging.CRITICAL,
    "critical": logging.CRITICAL,
}

LEVEL_NAMES = {
    logging.DEBUG: "debug",
    logging.INFO: "info",
    logging.WARNING: "warn",
    logging.ERROR: "error",
    logging.CRITICAL: "fatal",
}


class LoggingInitError(CapsTriggerError):
    """Raised when the log destination cannot be set up."""


def parse_level(name: str) -> int:
    """Map a severity name to a logging level, falling back to INFO."""

    return LEVELS.get(str(name or "").strip().lower(), logging.INFO)


class JsonFormatter(logging.Formatter):
    """One JSON object per record with an ISO-8601 timestamp."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "level": LEVEL_NAMES.get(record.levelno, record.levelname.lower()),
            "ts": datetime.fromtimestamp(record.created).astimezone().isoformat(timespec="milliseconds"),
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["error"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


class AppendFileHandler(logging.Handler):
    """Opens the destination for every record; no handle is kept between writes."""

    def __init__(self, filename: Path | str) -> None:
        super().__init__()
        self.filename = Path(filename)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = self.format(record)
            with self.filename.open("a", encoding="utf-8") as stream:
                stream.write(line + "\n")
        except Exception:  # noqa: BLE001
            self.handleError(record)


def configure_logging(config: LogConfig, *, logger_name: str = PACKAGE_LOGGER) -> AppendFileHandler:
    """Install a JSON file handler for ``config`` on the package logger.

    Any handler installed by a previous call is replaced. On failure the
    previous handler stays in place and :class:`LoggingInitError` is raised.
    """

    handler = AppendFileHandler(config.name)
    try:
        with handler.filename.open("a", encoding="utf-8"):
            pass
    except OSError as exc:
        raise LoggingInitError(f"Unable to open log destination '{config.name}': {exc}") from exc
    handler.setFormatter(JsonFormatter())

    target = logging.getLogger(logger_name)
    for existing in list(target.handlers):
        if isinstance(existing, AppendFileHandler):
            target.removeHandler(existing)
            existing.close()
    target.addHandler(handler)
    target.setLevel(parse_level(config.level))
    return handler
