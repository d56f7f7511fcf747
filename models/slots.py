"""
Time range value type shared by the scheduling, availability and booking code.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from dateutil import parser as dtparser


class InvalidRangeError(ValueError):
    """Raised for naive instants or ranges whose end is not after start."""


def parse_instant(value: Any) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware datetime.

    Timestamps without an explicit offset (or "Z") are rejected, since a naive
    wall-clock time is ambiguous once it leaves the voice agent.
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        if not isinstance(value, str) or not value.strip():
            raise InvalidRangeError("Timestamp must be a non-empty ISO-8601 string")
        try:
            parsed = dtparser.isoparse(value.strip())
        except (ValueError, OverflowError) as e:
            raise InvalidRangeError(f"Invalid ISO-8601 timestamp: {value!r}") from e
    if parsed.tzinfo is None or parsed.utcoffset() is None:
        raise InvalidRangeError(f"Timestamp must include a timezone offset: {value!r}")
    return parsed


def try_parse_instant(value: Any) -> Optional[datetime]:
    """Like parse_instant, but returns None instead of raising."""
    try:
        return parse_instant(value)
    except InvalidRangeError:
        return None


def format_instant(dt: datetime) -> str:
    """Canonical wire form: UTC, millisecond precision, "Z" suffix."""
    utc = dt.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


@dataclass(frozen=True)
class TimeRange:
    """Half-open [start, end) interval between two aware instants."""
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise InvalidRangeError("TimeRange instants must be timezone-aware")
        if self.end <= self.start:
            raise InvalidRangeError(
                f"TimeRange end must be after start ({self.start.isoformat()} >= {self.end.isoformat()})"
            )

    @classmethod
    def from_iso(cls, start: Any, end: Any) -> "TimeRange":
        return cls(parse_instant(start), parse_instant(end))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TimeRange":
        return cls.from_iso(data.get("start"), data.get("end"))

    @property
    def duration(self):
        return self.end - self.start

    def to_dict(self) -> Dict[str, str]:
        return {"start": format_instant(self.start), "end": format_instant(self.end)}


# A slot is a time range proposed or confirmed as a meeting time; busy
# intervals are time ranges the calendar reports as occupied.
Slot = TimeRange
BusyInterval = TimeRange
