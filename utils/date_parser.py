"""
Spoken day/time expression parsing.

Turns what the caller said ("next Friday 2pm", "March 15th", "tomorrow") into
a single aware instant in the calendar timezone.

Handles:
- "today" / "tonight" / "tomorrow" with an optional time
- "next Monday", "next week Monday" (always the following week)
- "March 15", "March 15th 2027", "15th of March", "Dec 25 next year"
- "3/15", "3/15/27", "3/15/2027"
- bare weekdays: "Friday", "Monday 2 pm"

The rules are an ordered tuple of (pattern, resolver) pairs. The first
pattern found in the text decides: its resolver returns the instant it
describes, or None for an impossible date ("Feb 30"). Later rules are not
consulted, and the result must lie strictly after `now`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from typing import Callable, Optional, Tuple

from config import logger

WEEKDAYS = {
    "mon": 0, "monday": 0,
    "tue": 1, "tues": 1, "tuesday": 1,
    "wed": 2, "wednesday": 2,
    "thu": 3, "thur": 3, "thurs": 3, "thursday": 3,
    "fri": 4, "friday": 4,
    "sat": 5, "saturday": 5,
    "sun": 6, "sunday": 6,
}

MONTHS = {
    "jan": 1, "january": 1,
    "feb": 2, "february": 2,
    "mar": 3, "march": 3,
    "apr": 4, "april": 4,
    "may": 5,
    "jun": 6, "june": 6,
    "jul": 7, "july": 7,
    "aug": 8, "august": 8,
    "sep": 9, "sept": 9, "september": 9,
    "oct": 10, "october": 10,
    "nov": 11, "november": 11,
    "dec": 12, "december": 12,
}

_WEEKDAY_RE = r"(sun(?:day)?|mon(?:day)?|tue(?:s|sday)?|wed(?:nesday)?|thu(?:r|rs|rsday)?|fri(?:day)?|sat(?:urday)?)"
_MONTH_RE = (
    r"(jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|jun(?:e)?|jul(?:y)?"
    r"|aug(?:ust)?|sep(?:t|tember)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)"
)

TIME_PAT = re.compile(r"\b(\d{1,2})(?::(\d{2}))?\s*(am|pm)\b")
TODAY_PAT = re.compile(r"\b(today|tonight)\b")
TOMORROW_PAT = re.compile(r"\btomorrow\b")
NEXT_WEEKDAY_PAT = re.compile(rf"\bnext\s+(?:week\s+)?{_WEEKDAY_RE}\b")
NEXT_YEAR_PAT = re.compile(r"\bnext\s+year\b")
MONTH_DAY_PAT = re.compile(rf"\b{_MONTH_RE}\s+(\d{{1,2}})(?:st|nd|rd|th)?(?:\s*,?\s*(\d{{4}}))?\b")
DAY_OF_MONTH_PAT = re.compile(rf"\b(\d{{1,2}})(?:st|nd|rd|th)?\s+of\s+{_MONTH_RE}(?:\s*,?\s*(\d{{4}}))?\b")
SLASH_DATE_PAT = re.compile(r"\b(\d{1,2})/(\d{1,2})(?:/(\d{2,4}))?\b")
WEEKDAY_PAT = re.compile(rf"\b{_WEEKDAY_RE}\b")

DEFAULT_HOUR = 9


@dataclass(frozen=True)
class ParseContext:
    """Everything a matcher needs besides the text itself."""
    now: datetime  # aware, expressed in `tz`
    tz: tzinfo
    hour: int
    minute: int
    default_year: int


Matcher = Callable[[re.Match, ParseContext], Optional[datetime]]


def _at(ctx: ParseContext, day: date) -> datetime:
    return datetime(day.year, day.month, day.day, ctx.hour, ctx.minute, tzinfo=ctx.tz)


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_time_of_day(text: str) -> Optional[Tuple[int, int]]:
    """
    Extract a 12-hour "H[:MM] am|pm" token as 24-hour (hour, minute).

    Returns (9, 0) when the text has no time token, and None when the token
    is out of range ("13pm", "9:75 am").
    """
    m = TIME_PAT.search(text)
    if not m:
        return DEFAULT_HOUR, 0
    hour = int(m.group(1))
    minute = int(m.group(2) or "0")
    if hour < 1 or hour > 12 or minute > 59:
        return None
    ampm = m.group(3)
    if ampm == "pm" and hour != 12:
        hour += 12
    elif ampm == "am" and hour == 12:
        hour = 0
    return hour, minute


# =============================================================================
# MATCHERS (in precedence order)
# =============================================================================

def match_today(m: re.Match, ctx: ParseContext) -> Optional[datetime]:
    return _at(ctx, ctx.now.date())


def match_tomorrow(m: re.Match, ctx: ParseContext) -> Optional[datetime]:
    return _at(ctx, ctx.now.date() + timedelta(days=1))


def match_next_weekday(m: re.Match, ctx: ParseContext) -> Optional[datetime]:
    """"next Monday" is never this week's Monday: always 7-13 days out."""
    target = WEEKDAYS[m.group(1)]
    days_until = (target - ctx.now.weekday()) % 7 + 7
    return _at(ctx, ctx.now.date() + timedelta(days=days_until))


def _absolute_date(ctx: ParseContext, month: int, day: int, explicit_year: Optional[int]) -> Optional[datetime]:
    year = explicit_year if explicit_year is not None else ctx.default_year
    d = _safe_date(year, month, day)
    if d is None:
        return None
    result = _at(ctx, d)
    # Only year-less dates roll to the next occurrence
    if result <= ctx.now and explicit_year is None:
        d = _safe_date(year + 1, month, day)
        if d is None:
            return None
        result = _at(ctx, d)
    return result


def match_month_day(m: re.Match, ctx: ParseContext) -> Optional[datetime]:
    year = int(m.group(3)) if m.group(3) else None
    return _absolute_date(ctx, MONTHS[m.group(1)], int(m.group(2)), year)


def match_day_of_month(m: re.Match, ctx: ParseContext) -> Optional[datetime]:
    year = int(m.group(3)) if m.group(3) else None
    return _absolute_date(ctx, MONTHS[m.group(2)], int(m.group(1)), year)


def match_slash_date(m: re.Match, ctx: ParseContext) -> Optional[datetime]:
    year = None
    if m.group(3):
        year = int(m.group(3))
        if year < 100:
            year += 2000
    return _absolute_date(ctx, int(m.group(1)), int(m.group(2)), year)


def match_weekday(m: re.Match, ctx: ParseContext) -> Optional[datetime]:
    target = WEEKDAYS[m.group(1)]
    delta = (target - ctx.now.weekday()) % 7
    candidate = _at(ctx, ctx.now.date() + timedelta(days=delta))
    if candidate <= ctx.now:
        candidate = _at(ctx, ctx.now.date() + timedelta(days=delta + 7))
    return candidate


# (name, pattern, resolver). The first pattern found in the text decides.
DAY_TIME_MATCHERS: Tuple[Tuple[str, re.Pattern, Matcher], ...] = (
    ("today", TODAY_PAT, match_today),
    ("tomorrow", TOMORROW_PAT, match_tomorrow),
    ("next_weekday", NEXT_WEEKDAY_PAT, match_next_weekday),
    ("month_day", MONTH_DAY_PAT, match_month_day),
    ("day_of_month", DAY_OF_MONTH_PAT, match_day_of_month),
    ("slash_date", SLASH_DATE_PAT, match_slash_date),
    ("weekday", WEEKDAY_PAT, match_weekday),
)


def build_parse_context(text: str, now: datetime, tz: tzinfo) -> Optional[ParseContext]:
    """None when the time-of-day token is invalid."""
    time_of_day = parse_time_of_day(text)
    if time_of_day is None:
        return None
    local_now = now.astimezone(tz)
    default_year = local_now.year + (1 if NEXT_YEAR_PAT.search(text) else 0)
    return ParseContext(
        now=local_now,
        tz=tz,
        hour=time_of_day[0],
        minute=time_of_day[1],
        default_year=default_year,
    )


def parse_day_time(text: Optional[str], now: datetime, tz: tzinfo) -> Optional[datetime]:
    """
    Resolve a spoken day/time expression to an instant strictly after `now`.

    Returns None ("unparseable") for empty text, an invalid time token, no
    recognizable day, or a result that is not in the future.
    """
    normalized = re.sub(r"\s+", " ", (text or "").strip().lower())
    if not normalized:
        return None

    ctx = build_parse_context(normalized, now, tz)
    if ctx is None:
        logger.debug(f"[DATE_PARSE] Invalid time of day in '{text}'")
        return None

    for name, pattern, resolve in DAY_TIME_MATCHERS:
        m = pattern.search(normalized)
        if not m:
            continue
        result = resolve(m, ctx)
        if result is None:
            logger.debug(f"[DATE_PARSE] '{text}' matched {name} but names no real date")
            return None
        if result <= ctx.now:
            logger.debug(f"[DATE_PARSE] '{text}' matched {name} but {result.isoformat()} is not in the future")
            return None
        logger.debug(f"[DATE_PARSE] '{text}' matched {name} -> {result.isoformat()}")
        return result

    logger.debug(f"[DATE_PARSE] No rule matched '{text}'")
    return None
