"""
Tests for config.get_calendar_tz.
"""

import time
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest
from dateutil import tz

import config


@pytest.fixture
def new_york_process_tz(monkeypatch):
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is unavailable on this platform")
    monkeypatch.setenv("TZ", "America/New_York")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


def test_named_timezone(monkeypatch):
    monkeypatch.setattr(config, "CALENDAR_TIMEZONE", "Europe/Berlin")
    assert config.get_calendar_tz() == ZoneInfo("Europe/Berlin")


@pytest.mark.parametrize("name", [None, "Mars/Olympus_Mons"])
def test_falls_back_to_local_timezone(monkeypatch, name):
    monkeypatch.setattr(config, "CALENDAR_TIMEZONE", name)
    assert isinstance(config.get_calendar_tz(), tz.tzlocal)


def test_local_fallback_follows_dst(monkeypatch, new_york_process_tz):
    """Slots on either side of a DST change keep their wall-clock hour."""
    monkeypatch.setattr(config, "CALENDAR_TIMEZONE", None)
    local_tz = config.get_calendar_tz()

    before = datetime(2026, 3, 7, 9, tzinfo=local_tz)
    after = datetime(2026, 3, 9, 9, tzinfo=local_tz)

    assert before.utcoffset() == timedelta(hours=-5)
    assert after.utcoffset() == timedelta(hours=-4)
