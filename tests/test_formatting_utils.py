"""
Tests for utils/formatting_utils.py spoken output.
"""

from datetime import datetime, timezone

from models.slots import TimeRange
from tests.fakes import TZ, local, local_slot
from utils.formatting_utils import (
    NO_SLOTS_MESSAGE,
    build_spoken_confirmation,
    format_iso_range,
    format_slot_readable,
    format_time_for_voice,
    summarize_available_slots,
)


class TestFormatTimeForVoice:
    def test_on_the_hour_has_no_minutes(self):
        assert format_time_for_voice(local(2026, 2, 27, 14), TZ) == "2 PM"

    def test_half_hour(self):
        assert format_time_for_voice(local(2026, 2, 27, 11, 30), TZ) == "11:30 AM"

    def test_midnight_and_noon(self):
        assert format_time_for_voice(local(2026, 2, 27, 0), TZ) == "12 AM"
        assert format_time_for_voice(local(2026, 2, 27, 12), TZ) == "12 PM"

    def test_converts_into_calendar_timezone(self):
        utc = datetime(2026, 2, 27, 16, 0, tzinfo=timezone.utc)
        assert format_time_for_voice(utc, TZ) == "11 AM"


class TestFormatSlotReadable:
    def test_readable_range(self):
        assert format_slot_readable(local_slot(2026, 2, 27, 11), TZ) == "Friday, Feb 27, 2026, 11 AM - 11:30 AM"

    def test_iso_range_carries_wire_timestamps(self):
        formatted = format_iso_range(local_slot(2026, 2, 27, 11), "en-US", TZ)
        assert formatted == {
            "start": "2026-02-27T16:00:00.000Z",
            "end": "2026-02-27T16:30:00.000Z",
            "readable": "Friday, Feb 27, 2026, 11 AM - 11:30 AM",
        }


class TestSummarizeAvailableSlots:
    def test_empty(self):
        assert summarize_available_slots([], "en-US", TZ) == NO_SLOTS_MESSAGE

    def test_continuous_block(self):
        slots = [local_slot(2026, 2, 27, 9, m) for m in (0, 30)] + [local_slot(2026, 2, 27, 10, m) for m in (0, 30)]
        assert summarize_available_slots(slots, "en-US", TZ) == (
            "Friday Feb 27: There is availability from 9 AM to 11 AM"
        )

    def test_gaps_list_each_time(self):
        slots = [local_slot(2026, 2, 27, 11), local_slot(2026, 2, 27, 11, 30), local_slot(2026, 2, 27, 14)]
        assert summarize_available_slots(slots, "en-US", TZ) == "Friday Feb 27: 11 AM, 11:30 AM, 2 PM"

    def test_full_business_day(self):
        slots = [local_slot(2026, 2, 27, 9 + i // 2, 30 * (i % 2)) for i in range(18)]
        assert summarize_available_slots(slots, "en-US", TZ) == (
            "Friday Feb 27: There is availability from 9 AM to 6 PM"
        )

    def test_all_day_checked_before_continuity(self):
        """A day spanning 9:30 AM - 6 PM uses the fixed phrase even with gaps."""
        slots = [local_slot(2026, 2, 27, 9, 30), local_slot(2026, 2, 27, 13), local_slot(2026, 2, 27, 17, 30)]
        assert summarize_available_slots(slots, "en-US", TZ) == (
            "Friday Feb 27: There is availability from 9 AM to 6 PM"
        )

    def test_days_in_chronological_order(self):
        slots = [local_slot(2026, 3, 2, 14), local_slot(2026, 2, 27, 11)]
        assert summarize_available_slots(slots, "en-US", TZ) == (
            "Friday Feb 27: There is availability from 11 AM to 11:30 AM; "
            "Monday Mar 2: There is availability from 2 PM to 2:30 PM"
        )

    def test_days_grouped_in_calendar_timezone(self):
        """02:00 UTC on the 28th is still Friday evening in New York."""
        late = TimeRange(
            datetime(2026, 2, 28, 2, 0, tzinfo=timezone.utc),
            datetime(2026, 2, 28, 2, 30, tzinfo=timezone.utc),
        )
        summary = summarize_available_slots([local_slot(2026, 2, 27, 11), late], "en-US", TZ)
        assert summary == "Friday Feb 27: 11 AM, 9 PM"

    def test_unsupported_locale_renders_english(self):
        assert summarize_available_slots([local_slot(2026, 2, 27, 11)], "fr-FR", TZ).startswith("Friday Feb 27")


class TestSpokenConfirmation:
    def test_confirmation_sentence(self):
        message = build_spoken_confirmation(local_slot(2026, 2, 27, 11), "ada@example.com", TZ)
        assert message == (
            "Your meeting is confirmed for Friday, Feb 27, 2026, 11 AM - 11:30 AM. "
            "You'll receive a calendar invite at ada@example.com."
        )
