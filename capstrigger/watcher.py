"""Hot reload of the configuration file.

The containing directory is polled rather than the file itself, so editors
that save by writing a temporary file and renaming it over the original are
still picked up (the rename shows up as a create or a write of the tracked
name).
"""
from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from .logsink import LoggingInitError, configure_logging
from .storage import ConfigStore, load_config
from .types import CapsTriggerError, ConfigError, LogConfig

logger = logging.getLogger(__name__)

DEFAULT_POLL_SECONDS = 0.5

Signature = Tuple[int, int, int]
ReloadCallback = Callable[[], None]
ReconfigureFunc = Callable[[LogConfig], object]


class WatchError(CapsTriggerError):
    """Raised when the watched directory cannot be scanned."""


class WatchOp(str, Enum):
    CREATE = "create"
    WRITE = "write"
    REMOVE = "remove"


@dataclass(frozen=True, slots=True)
class WatchEvent:
    name: str
    op: WatchOp


class DirectoryPoller:
    """Turns successive directory listings into create/write/remove events."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)
        self._entries: Optional[Dict[str, Signature]] = None

    def scan(self) -> List[WatchEvent]:
        current = self._list()
        previous = self._entries
        self._entries = current
        if previous is None:
            return []
        events = []
        for name, signature in current.items():
            if name not in previous:
                events.append(WatchEvent(name, WatchOp.CREATE))
            elif previous[name] != signature:
                events.append(WatchEvent(name, WatchOp.WRITE))
        for name in previous:
            if name not in current:
                events.append(WatchEvent(name, WatchOp.REMOVE))
        return events

    def _list(self) -> Dict[str, Signature]:
        entries: Dict[str, Signature] = {}
        try:
            with os.scandir(self.directory) as it:
                for entry in it:
                    try:
                        stat = entry.stat()
                    except FileNotFoundError:
                        continue
                    entries[entry.name] = (stat.st_ino, stat.st_mtime_ns, stat.st_size)
        except OSError as exc:
            raise WatchError(f"Unable to scan '{self.directory}': {exc}") from exc
        return entries


class ConfigWatcher:
    """Reloads the configuration into ``store`` whenever the file changes."""

    def __init__(
        self,
        config_path: Path,
        store: ConfigStore,
        *,
        on_reload: Optional[ReloadCallback] = None,
        reconfigure: Optional[ReconfigureFunc] = None,
        poll_seconds: float = DEFAULT_POLL_SECONDS,
    ) -> None:
        self.config_path = Path(config_path)
        self._store = store
        self._on_reload = on_reload
        self._reconfigure = reconfigure or configure_logging
        self._poll_seconds = max(0.05, poll_seconds)
        self._poller = DirectoryPoller(self.config_path.parent)
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._prime()
        self._thread = threading.Thread(target=self._loop, name="ConfigWatcher", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 2.0) -> None:
        self._stop.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        self._thread = None

    def poll(self) -> bool:
        """Scan once and reload if the tracked file changed. Returns True on reload."""

        try:
            events = self._poller.scan()
        except WatchError as exc:
            logger.error("Config watch error: %s", exc)
            return False
        if not any(self._matches(event) for event in events):
            return False
        logger.info("Config file change detected, reloading")
        return self.reload()

    def reload(self) -> bool:
        try:
            config = load_config(self.config_path)
        except ConfigError as exc:
            logger.error("Config reload failed, keeping previous config: %s", exc)
            return False
        self._store.replace(config)
        try:
            self._reconfigure(config.log)
        except LoggingInitError as exc:
            logger.error("Unable to reinitialise logging: %s", exc)
        if self._on_reload:
            try:
                self._on_reload()
            except Exception:  # noqa: BLE001
                logger.exception("Reload callback failed")
        return True

    def _matches(self, event: WatchEvent) -> bool:
        return event.name == self.config_path.name and event.op in (WatchOp.WRITE, WatchOp.CREATE)

    def _prime(self) -> None:
        try:
            self._poller.scan()
        except WatchError as exc:
            logger.error("Config watch error: %s", exc)

    def _loop(self) -> None:
        while not self._stop.wait(self._poll_seconds):
            self.poll()
