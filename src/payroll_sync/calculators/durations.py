"""Minute arithmetic that degrades malformed input to zero."""

from __future__ import annotations

import math
from datetime import datetime

from payroll_sync.calculators.types import TimeEntry

MINUTES_PER_DAY = 1440


def clamp_minutes(value: float | int | None, low: int, high: int) -> int:
    """Round ``value`` into ``[low, high]``; non-numbers become ``low``."""
    if value is None:
        return low
    try:
        number = float(value)
    except (TypeError, ValueError):
        return low
    if not math.isfinite(number):
        return low
    return max(low, min(high, round(number)))


def span_minutes(start: datetime | None, end: datetime | None) -> int:
    """Whole minutes between two timestamps, 0 when missing or reversed."""
    if start is None or end is None:
        return 0
    try:
        minutes = (end - start).total_seconds() / 60
    except TypeError:
        # naive vs aware
        return 0
    if not math.isfinite(minutes) or minutes < 0:
        return 0
    return round(minutes)


def explicit_minutes(duration: float | None) -> int:
    """Minutes from an explicit duration; values above 24 are already minutes."""
    if duration is None:
        return 0
    try:
        value = float(duration)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(value) or value <= 0:
        return 0
    if value > 24:
        return round(value)
    return round(value * 60)


def raw_minutes(entry: TimeEntry) -> int:
    """Elapsed minutes of a worked entry: start/end first, then explicit duration."""
    if entry.start is not None and entry.end is not None:
        return span_minutes(entry.start, entry.end)
    return explicit_minutes(entry.duration)
