"""Loading the configuration file and holding the active configuration."""
from __future__ import annotations

import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Mapping

import yaml

from .types import ConfigError, ConfigErrorKind, Configuration


def load_config(path: Path) -> Configuration:
    """Read and validate the YAML configuration at ``path``."""

    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(ConfigErrorKind.READ, f"Unable to read '{path}': {exc}") from exc
    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(ConfigErrorKind.PARSE, f"Invalid YAML in '{path.name}': {exc}") from exc
    if not isinstance(raw, Mapping):
        raise ConfigError(ConfigErrorKind.PARSE, f"Config root in '{path.name}' must be a mapping")
    try:
        return Configuration.from_dict(raw)
    except ValueError as exc:
        raise ConfigError(ConfigErrorKind.PARSE, f"Invalid config in '{path.name}': {exc}") from exc


class ReadWriteLock:
    """Many readers or one writer. Waiting writers block new readers."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class ConfigStore:
    """Process-wide holder of the active :class:`Configuration`."""

    def __init__(self, config: Configuration) -> None:
        self._lock = ReadWriteLock()
        self._config = config

    @staticmethod
    def load(path: Path) -> Configuration:
        return load_config(path)

    def replace(self, config: Configuration) -> None:
        with self._lock.write():
            self._config = config

    def snapshot(self) -> Configuration:
        with self._lock.read():
            return self._config
