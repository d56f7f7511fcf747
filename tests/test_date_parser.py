"""
Tests for utils/date_parser.py.

The fixed "now" is Wednesday Feb 25 2026, 10:00 AM America/New_York.
"""

from datetime import timedelta

import pytest

from tests.fakes import FIXED_NOW, TZ, local
from utils.date_parser import WEEKDAYS, parse_day_time, parse_time_of_day


def parse(text, now=FIXED_NOW):
    return parse_day_time(text, now, TZ)


# ─────────────────────────────────────────────────────────────────────────────
# Time of day
# ─────────────────────────────────────────────────────────────────────────────


class TestParseTimeOfDay:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("3pm", (15, 0)),
            ("3 pm", (15, 0)),
            ("2:30 pm", (14, 30)),
            ("12 pm", (12, 0)),
            ("12am", (0, 0)),
            ("11:45 am", (11, 45)),
        ],
    )
    def test_valid_tokens(self, text, expected):
        assert parse_time_of_day(text) == expected

    def test_defaults_to_nine_without_token(self):
        assert parse_time_of_day("tomorrow") == (9, 0)

    @pytest.mark.parametrize("text", ["13pm", "0am", "9:75 am"])
    def test_out_of_range_tokens(self, text):
        assert parse_time_of_day(text) is None


# ─────────────────────────────────────────────────────────────────────────────
# Relative days
# ─────────────────────────────────────────────────────────────────────────────


class TestRelativeDays:
    def test_tomorrow_with_time(self):
        assert parse("tomorrow 3pm") == local(2026, 2, 26, 15)

    def test_tomorrow_with_invalid_time(self):
        assert parse("tomorrow at 13pm") is None

    def test_tomorrow_defaults_to_nine(self):
        assert parse("Tomorrow") == local(2026, 2, 26, 9)

    def test_today_later(self):
        assert parse("today at 4 pm") == local(2026, 2, 25, 16)

    def test_today_already_passed_is_unparseable(self):
        assert parse("today 9am") is None

    def test_next_monday(self):
        assert parse("next Monday") == local(2026, 3, 9, 9)

    def test_next_week_prefix(self):
        assert parse("next week friday 2pm") == local(2026, 3, 6, 14)

    @pytest.mark.parametrize("weekday", ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"])
    @pytest.mark.parametrize("days_later", range(7))
    def test_next_weekday_is_always_the_following_week(self, weekday, days_later):
        """"next X" lands 7-13 days out whatever today is, never within 6 days."""
        now = FIXED_NOW + timedelta(days=days_later)
        result = parse(f"next {weekday} 10am", now=now)
        today = now.astimezone(TZ).date()
        assert result is not None
        assert result.weekday() == WEEKDAYS[weekday]
        assert 7 <= (result.date() - today).days <= 13

    def test_bare_weekday_this_week(self):
        assert parse("friday 2pm") == local(2026, 2, 27, 14)

    def test_bare_weekday_same_day_later(self):
        assert parse("wednesday 11am") == local(2026, 2, 25, 11)

    def test_bare_weekday_same_day_passed_rolls_a_week(self):
        assert parse("wednesday 9am") == local(2026, 3, 4, 9)


# ─────────────────────────────────────────────────────────────────────────────
# Absolute dates
# ─────────────────────────────────────────────────────────────────────────────


class TestAbsoluteDates:
    def test_month_day(self):
        assert parse("March 15th") == local(2026, 3, 15, 9)

    def test_day_of_month(self):
        assert parse("15th of march at 2:30 pm") == local(2026, 3, 15, 14, 30)

    def test_past_date_without_year_rolls_forward(self):
        assert parse("Jan 5") == local(2027, 1, 5, 9)

    def test_past_date_with_explicit_year_is_unparseable(self):
        assert parse("Jan 5 2026") is None

    def test_explicit_future_year(self):
        assert parse("march 3, 2027 10am") == local(2027, 3, 3, 10)

    def test_next_year(self):
        assert parse("dec 25 next year") == local(2027, 12, 25, 9)

    def test_slash_date(self):
        assert parse("3/15") == local(2026, 3, 15, 9)

    def test_slash_date_two_digit_year(self):
        assert parse("3/15/27 1pm") == local(2027, 3, 15, 13)

    def test_impossible_date(self):
        assert parse("2/30") is None

    def test_impossible_date_does_not_fall_through_to_weekday(self):
        """The first rule whose pattern appears decides, even when it rejects."""
        assert parse("friday feb 30") is None

    def test_month_day_beats_weekday(self):
        assert parse("monday march 2 3pm") == local(2026, 3, 2, 15)


class TestUnparseable:
    @pytest.mark.parametrize("text", ["", "   ", None, "sometime soon", "whenever works"])
    def test_returns_none(self, text):
        assert parse(text) is None

    def test_results_are_strictly_future(self):
        for text in ["tomorrow", "friday", "next tuesday 8am", "march 15", "3/1"]:
            result = parse(text)
            assert result is not None
            assert result > FIXED_NOW
