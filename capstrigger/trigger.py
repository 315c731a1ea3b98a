"""Double key-press gesture using the keyboard library."""
from __future__ import annotations

import logging
import time
from typing import Callable, Optional

import keyboard

from .types import DEFAULT_KEY, CapsTriggerError

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], None]

# (action, delay after the action in seconds)
DOUBLE_PRESS = (
    ("press", 0.010),
    ("release", 0.010),
    ("press", 0.100),
    ("release", 0.0),
)


class InjectionError(CapsTriggerError):
    """Raised when the synthetic key event could not be emitted."""


class Trigger:
    """Emits a double press of a single key: two taps, the second held longer."""

    def __init__(
        self,
        key: str = DEFAULT_KEY,
        *,
        keyboard_module=None,
        sleep: Optional[SleepFunc] = None,
    ) -> None:
        self.key = key
        self._keyboard = keyboard_module or keyboard
        self._sleep = sleep or time.sleep

    def validate(self) -> None:
        try:
            self._keyboard.key_to_scan_codes(self.key)
        except (ValueError, RuntimeError, OSError, ImportError) as exc:
            raise InjectionError(f"Unknown or unusable key '{self.key}': {exc}") from exc

    def fire(self, key: Optional[str] = None) -> None:
        """Run the press/release sequence, stopping at the first failing phase."""

        key = key or self.key
        for action, delay in DOUBLE_PRESS:
            try:
                getattr(self._keyboard, action)(key)
            except Exception as exc:  # noqa: BLE001
                raise InjectionError(f"Unable to {action} '{key}': {exc}") from exc
            if delay > 0:
                self._sleep(delay)
        logger.debug("Double press of '%s' emitted", key)
