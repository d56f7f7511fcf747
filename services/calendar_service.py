"""
Calendar service for availability resolution.

Handles:
- Busy lookups chunked to the freebusy range limit, fetched concurrently
- Filtering candidate slots down to the free ones
- Listing free fixed-length slots across a window
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Sequence

from calendar_client import CalendarBackend
from config import (
    DEFAULT_LOOKAHEAD_DAYS,
    FREEBUSY_MAX_RANGE_DAYS,
    MAX_LOOKAHEAD_DAYS,
    SLOT_MINUTES,
    logger,
)
from models.slots import TimeRange, format_instant
from utils.intervals import ranges_overlap, split_into_fixed_slots, subtract_busy


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def chunk_window(window: TimeRange, max_days: int = FREEBUSY_MAX_RANGE_DAYS) -> List[TimeRange]:
    """Split `window` into consecutive sub-windows no longer than `max_days`."""
    step = timedelta(days=max_days)
    chunks: List[TimeRange] = []
    chunk_start = window.start
    while chunk_start < window.end:
        chunk_end = min(chunk_start + step, window.end)
        chunks.append(TimeRange(chunk_start, chunk_end))
        chunk_start = chunk_end
    return chunks


class AvailabilityResolver:
    """
    Answers "which of these slots are still free?" against one calendar.

    Every call goes to the calendar; nothing is cached, since the booking
    safety gate depends on reading current state.
    """

    def __init__(
        self,
        calendar: CalendarBackend,
        calendar_id: Optional[str] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.calendar = calendar
        self.calendar_id = calendar_id or calendar.calendar_id
        self.clock = clock

    def lookup_window(self, candidates: Sequence[TimeRange], now: datetime) -> TimeRange:
        """
        From now (or the earliest candidate, if earlier) to the latest
        candidate end; 30 days out with no candidates; never past 2 years.
        """
        cap = now + timedelta(days=MAX_LOOKAHEAD_DAYS)
        if not candidates:
            return TimeRange(now, now + timedelta(days=DEFAULT_LOOKAHEAD_DAYS))
        start = min([now] + [c.start for c in candidates])
        end = min(max(c.end for c in candidates), cap)
        if end <= start:
            end = start + timedelta(minutes=SLOT_MINUTES)
        return TimeRange(start, end)

    async def fetch_busy(self, window: TimeRange) -> List[TimeRange]:
        """
        Busy intervals for `window`. Sub-window requests run concurrently in
        worker threads; all of them must finish (or one fails) before this
        returns.
        """
        chunks = chunk_window(window)
        results = await asyncio.gather(
            *(asyncio.to_thread(self.calendar.query_busy, chunk, self.calendar_id) for chunk in chunks)
        )
        busy: List[TimeRange] = []
        for chunk_busy in results:
            busy.extend(chunk_busy)
        logger.debug(
            f"[AVAILABILITY] {len(busy)} busy blocks in {format_instant(window.start)} -> "
            f"{format_instant(window.end)} ({len(chunks)} requests)"
        )
        return busy

    async def find_available(self, candidates: Sequence[TimeRange]) -> List[TimeRange]:
        """
        Candidates overlapping no busy interval, in input order. Candidates
        ending past the lookahead cap are never reported free, since their
        busy data is not fetched.
        """
        now = self.clock()
        cap = now + timedelta(days=MAX_LOOKAHEAD_DAYS)
        in_range = [c for c in candidates if c.end <= cap]
        if len(in_range) < len(candidates):
            logger.warning(
                f"[AVAILABILITY] {len(candidates) - len(in_range)} candidate slots end after "
                f"{format_instant(cap)}; treating them as unavailable"
            )
        if not in_range:
            logger.info(f"[AVAILABILITY] 0/{len(candidates)} candidate slots free")
            return []
        window = self.lookup_window(in_range, now)
        busy = await self.fetch_busy(window)
        available = [c for c in in_range if not any(ranges_overlap(c, b) for b in busy)]
        logger.info(f"[AVAILABILITY] {len(available)}/{len(candidates)} candidate slots free")
        return available

    async def list_free_slots(self, window: TimeRange, slot_minutes: int = SLOT_MINUTES) -> List[TimeRange]:
        """Every free fixed-length slot in `window`."""
        busy = await self.fetch_busy(window)
        free = subtract_busy(window, busy)
        return split_into_fixed_slots(free, timedelta(minutes=slot_minutes))
