"""
Formatting utilities for speech and display.

Everything here renders in the calendar timezone so spoken times match what
the calendar owner sees.
"""

from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Dict, Iterable, List, Optional

from config import SLOT_MINUTES, get_calendar_tz, logger
from models.slots import TimeRange, format_instant

NO_SLOTS_MESSAGE = "No slots available"
ALL_DAY_MESSAGE = "There is availability from 9 AM to 6 PM"

_WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
_MONTH_ABBR = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

SUPPORTED_LOCALES = {"en-US", "en"}


def _resolve(tz: Optional[tzinfo]) -> tzinfo:
    return tz or get_calendar_tz()


def _check_locale(locale: str):
    if locale not in SUPPORTED_LOCALES:
        logger.debug(f"[FORMAT] Locale '{locale}' not supported, rendering en-US")


def format_time_for_voice(dt: datetime, tz: Optional[tzinfo] = None) -> str:
    """
    "9 AM" not "9:00 AM" (TTS would say "nine colon zero zero"),
    "11:30 AM" for anything off the hour.
    """
    local = dt.astimezone(_resolve(tz))
    hour = local.hour % 12 or 12
    period = "AM" if local.hour < 12 else "PM"
    if local.minute == 0:
        return f"{hour} {period}"
    return f"{hour}:{local.minute:02d} {period}"


def format_day_label(dt: datetime, tz: Optional[tzinfo] = None) -> str:
    """"Friday Feb 27" - the day said once per group in the compact summary."""
    local = dt.astimezone(_resolve(tz))
    return f"{_WEEKDAY_NAMES[local.weekday()]} {_MONTH_ABBR[local.month - 1]} {local.day}"


def format_slot_readable(slot: TimeRange, tz: Optional[tzinfo] = None) -> str:
    """"Friday, Feb 27, 2026, 11 AM - 11:30 AM"."""
    tz = _resolve(tz)
    local = slot.start.astimezone(tz)
    day = f"{_WEEKDAY_NAMES[local.weekday()]}, {_MONTH_ABBR[local.month - 1]} {local.day}, {local.year}"
    return f"{day}, {format_time_for_voice(slot.start, tz)} - {format_time_for_voice(slot.end, tz)}"


def format_iso_range(slot: TimeRange, locale: str = "en-US", tz: Optional[tzinfo] = None) -> Dict[str, str]:
    _check_locale(locale)
    return {
        "start": format_instant(slot.start),
        "end": format_instant(slot.end),
        "readable": format_slot_readable(slot, tz),
    }


def _wall_hours(dt: datetime, day_local: datetime) -> float:
    """Decimal wall-clock hours of `dt` counted from midnight of `day_local`'s date."""
    days = (dt.date() - day_local.date()).days
    return days * 24 + dt.hour + dt.minute / 60


def summarize_available_slots(
    slots: Iterable[TimeRange],
    locale: str = "en-US",
    tz: Optional[tzinfo] = None,
) -> str:
    """
    Compact spoken summary, one clause per calendar day:

        "Friday Feb 27: There is availability from 9 AM to 11 AM"
        "Friday Feb 27: 11 AM, 11:30 AM, 2 PM"

    A day reaching from 9:30 AM or earlier to 6 PM or later is read out as
    the fixed 9 AM - 6 PM phrase. A day whose slots tile its span with no
    gaps is read out as a range; anything else lists each start time once.
    """
    _check_locale(locale)
    tz = _resolve(tz)
    ordered = sorted(slots, key=lambda s: s.start)
    if not ordered:
        return NO_SLOTS_MESSAGE

    days: Dict[object, dict] = {}
    for slot in ordered:
        start = slot.start.astimezone(tz)
        end = slot.end.astimezone(tz)
        entry = days.get(start.date())
        if entry is None:
            entry = days[start.date()] = {
                "label": format_day_label(start, tz),
                "day": start,
                "first": start,
                "last": end,
                "count": 0,
                "times": [],
            }
        if end > entry["last"]:
            entry["last"] = end
        entry["count"] += 1
        spoken = format_time_for_voice(start, tz)
        if spoken not in entry["times"]:
            entry["times"].append(spoken)

    slot_hours = SLOT_MINUTES / 60
    parts: List[str] = []
    for entry in days.values():
        min_start_h = _wall_hours(entry["first"], entry["day"])
        max_end_h = _wall_hours(entry["last"], entry["day"])
        is_all_day = min_start_h <= 9.5 and max_end_h >= 18
        is_continuous = abs((max_end_h - min_start_h) - entry["count"] * slot_hours) < 0.01
        if is_all_day:
            parts.append(f"{entry['label']}: {ALL_DAY_MESSAGE}")
        elif is_continuous:
            parts.append(
                f"{entry['label']}: There is availability from "
                f"{format_time_for_voice(entry['first'], tz)} to {format_time_for_voice(entry['last'], tz)}"
            )
        else:
            parts.append(f"{entry['label']}: {', '.join(entry['times'])}")
    return "; ".join(parts)


def build_spoken_confirmation(slot: TimeRange, client_email: str, tz: Optional[tzinfo] = None) -> str:
    """Final sentence the agent reads back once the event exists."""
    return (
        f"Your meeting is confirmed for {format_slot_readable(slot, tz)}. "
        f"You'll receive a calendar invite at {client_email}."
    )
