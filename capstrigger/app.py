"""Headless Caps Lock double-press scheduler.

Inline README:
- Usage: `python app.py [--config config.yaml] [--foreground]`. On Linux the
  `keyboard` library needs root to emit key events.
- Configuration: `config.yaml` sets the tick interval (`ticker`, seconds),
  the active `time_ranges` (`HH:MM` pairs, same day only), logging
  (`log.level`, `log.name`), the injected `key` and whether to `daemon`ize.
  Edits are picked up while running; an invalid edit is logged and the
  previous configuration stays active.
- Stop with Ctrl+C or SIGTERM.
"""
from __future__ import annotations

import argparse
import logging
import signal
from pathlib import Path
from typing import Optional

from . import __version__
from .daemon import daemonize
from .logsink import LoggingInitError, configure_logging
from .scheduler import Scheduler
from .storage import ConfigStore, load_config
from .trigger import InjectionError, Trigger
from .types import ConfigError
from .watcher import ConfigWatcher

logger = logging.getLogger(__name__)

CONFIG_FILE = Path("config.yaml")


class CapsTriggerApp:
    """Wires the store, watcher, trigger and scheduler together."""

    def __init__(
        self,
        store: ConfigStore,
        config_path: Path,
        *,
        keyboard_module=None,
        poll_seconds: Optional[float] = None,
    ) -> None:
        self.store = store
        self.config_path = config_path
        self.trigger = Trigger(store.snapshot().key, keyboard_module=keyboard_module)
        self.scheduler = Scheduler(store, self.trigger)
        watcher_kwargs = {} if poll_seconds is None else {"poll_seconds": poll_seconds}
        self.watcher = ConfigWatcher(
            config_path,
            store,
            on_reload=lambda: logger.info("Configuration reloaded"),
            **watcher_kwargs,
        )

    def install_signal_handlers(self) -> None:
        for signum in (signal.SIGINT, signal.SIGTERM):
            signal.signal(signum, self._handle_signal)

    def run(self) -> None:
        self.watcher.start()
        try:
            self.scheduler.run()
        finally:
            self.shutdown()

    def shutdown(self) -> None:
        self.scheduler.stop()
        self.watcher.stop()

    def _handle_signal(self, signum, frame) -> None:  # noqa: ANN001
        logger.info("Received signal %s, shutting down", signal.Signals(signum).name)
        self.scheduler.stop()


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Double-press a key on a schedule")
    parser.add_argument("--config", type=Path, default=CONFIG_FILE, help="Path to the YAML config")
    parser.add_argument(
        "--foreground",
        action="store_true",
        help="Stay in the foreground even if the config asks for daemon mode",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    args = parser.parse_args(argv)

    config_path = args.config.resolve()
    try:
        config = load_config(config_path)
    except ConfigError as exc:
        raise SystemExit(f"[ERROR] {exc}") from exc

    if config.daemon and not args.foreground:
        daemonize()

    try:
        configure_logging(config.log)
    except LoggingInitError as exc:
        raise SystemExit(f"[ERROR] {exc}") from exc

    logger.info("CapsTrigger starting with config %s", config_path)
    app = CapsTriggerApp(ConfigStore(config), config_path)
    try:
        app.trigger.validate()
    except InjectionError as exc:
        logger.critical("Keyboard initialisation failed: %s", exc)
        raise SystemExit(f"[ERROR] {exc}") from exc

    app.install_signal_handlers()
    app.run()
    logger.info("CapsTrigger exited")


if __name__ == "__main__":
    main()
