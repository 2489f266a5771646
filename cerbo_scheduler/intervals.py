"""Half-open [start, end) interval helpers.

Anything with ``start`` and ``end`` datetimes works: windows, appointments,
candidates and bookings alike.
"""
from __future__ import annotations
from datetime import datetime, timedelta
from typing import Protocol


class Interval(Protocol):
    start: datetime
    end: datetime


def overlaps(a: Interval, b: Interval) -> bool:
    return a.start < b.end and a.end > b.start


def contains(outer: Interval, inner: Interval) -> bool:
    """True when ``inner`` lies entirely inside ``outer``."""
    return outer.start <= inner.start and inner.end <= outer.end


def same_interval(a: Interval, b: Interval) -> bool:
    return a.start == b.start and a.end == b.end


def gap_minutes(earlier_end: datetime, later_start: datetime) -> float:
    """Minutes from one end to the next start; negative when they overlap."""
    return (later_start - earlier_end) / timedelta(minutes=1)


def is_adjacent(earlier_end: datetime, later_start: datetime, tolerance_minutes: float = 1) -> bool:
    return gap_minutes(earlier_end, later_start) <= tolerance_minutes


def duration_minutes(interval: Interval) -> float:
    return (interval.end - interval.start) / timedelta(minutes=1)
