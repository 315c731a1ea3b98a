"""Recurring tick loop that fires the trigger inside active windows."""
from __future__ import annotations

import logging
import threading
import time
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from .storage import ConfigStore
from .trigger import InjectionError, Trigger
from .windows import is_active

logger = logging.getLogger(__name__)

ClockFunc = Callable[[], datetime]
MonotonicFunc = Callable[[], float]


class SchedulerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class Scheduler:
    """Drives the trigger from a repeating timer until stopped.

    ``run`` blocks the calling thread. ``stop`` may be called from any thread
    or from a signal handler and wakes the loop immediately.
    """

    def __init__(
        self,
        store: ConfigStore,
        trigger: Trigger,
        *,
        now: Optional[ClockFunc] = None,
        monotonic: Optional[MonotonicFunc] = None,
    ) -> None:
        self._store = store
        self._trigger = trigger
        self._now = now or datetime.now
        self._monotonic = monotonic or time.monotonic
        self._stop_event = threading.Event()
        self._lock = threading.RLock()
        self._state = SchedulerState.IDLE
        self._has_run = False
        self.interval = store.snapshot().ticker

    @property
    def state(self) -> SchedulerState:
        return self._state

    def run(self) -> None:
        with self._lock:
            if self._state is SchedulerState.RUNNING:
                raise RuntimeError("Scheduler is already running")
            if self._has_run:
                raise RuntimeError("A stopped scheduler cannot be restarted")
            if self._state is SchedulerState.STOPPED:
                # stopped by a signal before the loop started
                return
            self._has_run = True
            self._state = SchedulerState.RUNNING
            self.interval = self._store.snapshot().ticker

        logger.info("Scheduler running, tick every %ss", self.interval)
        next_tick = self._monotonic() + self.interval
        try:
            while True:
                remaining = min(max(0.0, next_tick - self._monotonic()), threading.TIMEOUT_MAX)
                if self._stop_event.wait(remaining):
                    break
                self.tick()
                next_tick = self._next_tick(next_tick)
        finally:
            with self._lock:
                self._state = SchedulerState.STOPPED
        logger.info("Scheduler stopped")

    def stop(self) -> None:
        with self._lock:
            if self._state is SchedulerState.IDLE:
                self._state = SchedulerState.STOPPED
        self._stop_event.set()

    def tick(self) -> bool:
        """Evaluate the current windows once; return True if the trigger fired."""

        config = self._store.snapshot()
        if not is_active(self._now(), config.time_ranges):
            return False
        logger.info("Simulating double press of '%s'", config.key)
        try:
            self._trigger.fire(config.key)
        except InjectionError as exc:
            logger.error("Key press failed: %s", exc)
            return False
        return True

    def _next_tick(self, previous: float) -> float:
        now_value = self._monotonic()
        ticker = self._store.snapshot().ticker
        if ticker != self.interval:
            logger.info("Tick interval changed from %ss to %ss", self.interval, ticker)
            self.interval = ticker
            return now_value + ticker
        next_tick = previous + self.interval
        if next_tick <= now_value:
            # fell behind (slow injection or suspended host); skip missed ticks
            next_tick = now_value + self.interval
        return next_tick
