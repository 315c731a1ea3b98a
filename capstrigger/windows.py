"""Time-of-day window evaluation."""
from __future__ import annotations

from datetime import datetime
from typing import Iterable

from .types import TimeRange, parse_clock


def is_active(now: datetime, ranges: Iterable[TimeRange]) -> bool:
    """Return True when ``now`` lies strictly inside any of ``ranges``.

    Each range is anchored to ``now``'s calendar day, so a range whose end is
    not after its start (for example one crossing midnight) never matches.
    Ranges that fail to parse are skipped.
    """

    for time_range in ranges:
        try:
            start = parse_clock(time_range.start)
            end = parse_clock(time_range.end)
        except ValueError:
            continue
        start_at = now.replace(hour=start.hour, minute=start.minute, second=0, microsecond=0)
        end_at = now.replace(hour=end.hour, minute=end.minute, second=0, microsecond=0)
        if start_at < now < end_at:
            return True
    return False
