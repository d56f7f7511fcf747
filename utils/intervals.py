"""
Interval arithmetic over TimeRanges.

Pure functions - no calendar calls, no clock.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Iterable, List

from models.slots import TimeRange


def ranges_overlap(a: TimeRange, b: TimeRange) -> bool:
    """Half-open overlap test; ranges that only touch do not overlap."""
    return not (a.end <= b.start or a.start >= b.end)


def subtract_busy(window: TimeRange, busy: Iterable[TimeRange]) -> List[TimeRange]:
    """
    Free ranges left in `window` after removing every busy interval.

    Busy intervals are sorted here rather than trusted; overlapping or
    out-of-window intervals are tolerated by the cursor sweep.

    Returns disjoint, ordered, non-empty ranges.
    """
    free: List[TimeRange] = []
    cursor = window.start
    for b in sorted(busy, key=lambda r: r.start):
        if b.end <= cursor:
            continue
        if b.start > cursor:
            free_end = min(b.start, window.end)
            if free_end > cursor:
                free.append(TimeRange(cursor, free_end))
        cursor = max(cursor, b.end)
        if cursor >= window.end:
            break
    if cursor < window.end:
        free.append(TimeRange(cursor, window.end))
    return free


def split_into_fixed_slots(free_ranges: Iterable[TimeRange], slot_length: timedelta) -> List[TimeRange]:
    """Cut each free range into back-to-back slots; a short remainder is dropped."""
    if slot_length <= timedelta(0):
        raise ValueError("slot_length must be positive")
    slots: List[TimeRange] = []
    for r in free_ranges:
        s = r.start
        while s + slot_length <= r.end:
            slots.append(TimeRange(s, s + slot_length))
            s += slot_length
    return slots
