"""
Scheduling service for candidate slot generation.

Handles:
- Explicit slots proposed by the voice agent
- Slots inferred around a spoken day/time ("next Friday 2pm")
- Default business-hours slots when neither is usable
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, tzinfo
from enum import Enum
from typing import List, Optional, Sequence

from config import (
    DEFAULT_DAY_END_HOUR,
    DEFAULT_DAY_START_HOUR,
    DEFAULT_DAYS_AHEAD,
    DEFAULT_MAX_CANDIDATES,
    SLOT_MINUTES,
    TARGET_DAY_MAX_CANDIDATES,
    TARGET_DAY_OFFSET_MINUTES,
    logger,
)
from models.slots import TimeRange
from utils.date_parser import parse_day_time
from utils.template_utils import is_unsubstituted_template


class CandidateSource(str, Enum):
    EXPLICIT = "explicit"
    INFERRED = "inferred_from_day"
    DEFAULT = "default_fallback"


@dataclass
class CandidatePlan:
    slots: List[TimeRange] = field(default_factory=list)
    source: CandidateSource = CandidateSource.DEFAULT
    inferred_count: int = 0

    @property
    def used_fallback(self) -> bool:
        return self.source == CandidateSource.DEFAULT


def build_slots_around(
    base: datetime,
    now: datetime,
    slot_minutes: int = SLOT_MINUTES,
    offset_minutes: int = TARGET_DAY_OFFSET_MINUTES,
    limit: int = TARGET_DAY_MAX_CANDIDATES,
) -> List[TimeRange]:
    """
    The requested time plus nearby alternatives (±2 hours, same step as the
    slot length) so the agent can offer something close if it is busy.
    """
    length = timedelta(minutes=slot_minutes)
    slots: List[TimeRange] = []
    for offset in range(-offset_minutes, offset_minutes + 1, slot_minutes):
        start = base + timedelta(minutes=offset)
        if start > now:
            slots.append(TimeRange(start, start + length))
    return slots[:limit]


def build_slots_from_target_day(target_day: str, now: datetime, tz: tzinfo) -> List[TimeRange]:
    parsed = parse_day_time(target_day, now, tz)
    if parsed is None:
        logger.info(f"[SCHEDULE] Could not parse target day '{target_day}'")
        return []
    return build_slots_around(parsed, now)


def build_default_slots(
    now: datetime,
    tz: tzinfo,
    days_ahead: int = DEFAULT_DAYS_AHEAD,
    start_hour: int = DEFAULT_DAY_START_HOUR,
    end_hour: int = DEFAULT_DAY_END_HOUR,
    slot_minutes: int = SLOT_MINUTES,
    limit: int = DEFAULT_MAX_CANDIDATES,
) -> List[TimeRange]:
    """
    Business-hours slots for today and the following days, built from wall
    clock times in the calendar timezone (9 AM means 9 AM there, not on the
    server).
    """
    length = timedelta(minutes=slot_minutes)
    today = now.astimezone(tz).date()
    slots: List[TimeRange] = []
    for d in range(days_ahead):
        day = today + timedelta(days=d)
        for minutes in range(start_hour * 60, end_hour * 60, slot_minutes):
            start = datetime(day.year, day.month, day.day, minutes // 60, minutes % 60, tzinfo=tz)
            if start > now:
                slots.append(TimeRange(start, start + length))
    return slots[:limit]


def build_candidates(
    explicit_slots: Optional[Sequence[TimeRange]],
    target_day: Optional[str],
    now: datetime,
    tz: tzinfo,
) -> CandidatePlan:
    """
    Decide which slots to check against the calendar.

    Priority: explicit slots verbatim, then slots around a parsed target day,
    then the default business-hours window. A target day that is a template
    marker or fails to parse falls through to the default.
    """
    if explicit_slots:
        logger.info(f"[SCHEDULE] Using {len(explicit_slots)} explicit slots")
        return CandidatePlan(slots=list(explicit_slots), source=CandidateSource.EXPLICIT)

    inferred: List[TimeRange] = []
    if target_day and target_day.strip():
        if is_unsubstituted_template(target_day):
            logger.info(f"[SCHEDULE] Ignoring unsubstituted target day {target_day!r}")
        else:
            inferred = build_slots_from_target_day(target_day, now, tz)

    if inferred:
        logger.info(f"[SCHEDULE] Inferred {len(inferred)} slots from '{target_day}'")
        return CandidatePlan(slots=inferred, source=CandidateSource.INFERRED, inferred_count=len(inferred))

    defaults = build_default_slots(now, tz)
    logger.info(f"[SCHEDULE] Falling back to {len(defaults)} default slots")
    return CandidatePlan(slots=defaults, source=CandidateSource.DEFAULT)
