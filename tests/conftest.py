from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, List, Optional, Tuple

import pytest


@pytest.fixture(autouse=True)
def add_project_root_to_path(monkeypatch):
    import sys
    from pathlib import Path
    project_root = Path(__file__).parent.parent
    monkeypatch.syspath_prepend(str(project_root))


@pytest.fixture(autouse=True)
def reset_package_logger():
    yield
    from capstrigger.logsink import PACKAGE_LOGGER, AppendFileHandler

    target = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(target.handlers):
        if isinstance(handler, AppendFileHandler):
            target.removeHandler(handler)
            handler.close()
    target.setLevel(logging.NOTSET)


class FakeKeyboard:
    """Records key events; optionally fails on the n-th call of an action."""

    def __init__(self, events: Optional[List[Tuple[str, Any]]] = None) -> None:
        self.events: List[Tuple[str, Any]] = events if events is not None else []
        self.fail_on: Optional[Tuple[str, int]] = None
        self._counts: dict[str, int] = {}
        self._valid_keys = {"caps lock", "num lock", "scroll lock", "shift", "f13"}

    def key_to_scan_codes(self, key: str) -> List[int]:
        if key.lower() in self._valid_keys:
            return [58]
        raise ValueError(f"Key {key!r} is not mapped to any known key.")

    def press(self, key: str) -> None:
        self._record("press", key)

    def release(self, key: str) -> None:
        self._record("release", key)

    def _record(self, action: str, key: str) -> None:
        count = self._counts.get(action, 0) + 1
        self._counts[action] = count
        if self.fail_on == (action, count):
            raise OSError(f"{action} failed")
        self.events.append((action, key))

    @property
    def presses(self) -> List[str]:
        return [key for action, key in self.events if action == "press"]


class FakeClock:
    """Wall clock for window evaluation, settable by tests."""

    def __init__(self, current: datetime) -> None:
        self.current = current

    def now(self) -> datetime:
        return self.current

    def set(self, hour: int, minute: int = 0) -> None:
        self.current = self.current.replace(hour=hour, minute=minute, second=0, microsecond=0)


class CountingMonotonic:
    """Monotonic source that jumps ten seconds forward per call."""

    def __init__(self) -> None:
        self.value = 0.0

    def __call__(self) -> float:
        current = self.value
        self.value += 10.0
        return current


@pytest.fixture
def fake_keyboard() -> FakeKeyboard:
    return FakeKeyboard()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock(datetime(2024, 5, 6, 12, 0, 0))


@pytest.fixture
def no_sleep():
    return lambda seconds: None


@pytest.fixture
def counting_monotonic() -> CountingMonotonic:
    return CountingMonotonic()
