"""Shared test fixtures for the receptionist tests.

This module provides common fixtures used across all test modules:
- A fixed clock and calendar timezone
- An in-memory calendar and availability store
- The resolver, booking service and FastAPI test client wired to them

Usage:
    def test_something(fake_calendar, resolver):
        fake_calendar.busy.append(...)
        ...
"""

import pytest

from availability_store import InMemoryAvailabilityStore
from services.booking_service import BookingConfirmationService
from services.calendar_service import AvailabilityResolver
from tests.fakes import FIXED_NOW, TZ, FakeCalendar


# ─────────────────────────────────────────────────────────────────────────────
# Clock & Timezone
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def tz():
    return TZ


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


# ─────────────────────────────────────────────────────────────────────────────
# Collaborators
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def fake_calendar() -> FakeCalendar:
    return FakeCalendar()


@pytest.fixture
def store() -> InMemoryAvailabilityStore:
    return InMemoryAvailabilityStore()


@pytest.fixture
def resolver(fake_calendar, clock) -> AvailabilityResolver:
    return AvailabilityResolver(fake_calendar, clock=clock)


@pytest.fixture
def booking_service(resolver, fake_calendar, store, tz) -> BookingConfirmationService:
    return BookingConfirmationService(resolver, fake_calendar, store=store, tz=tz)


# ─────────────────────────────────────────────────────────────────────────────
# HTTP
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def app(fake_calendar, store, clock, tz):
    from http_service import create_app

    return create_app(calendar=fake_calendar, store=store, clock=clock, tz=tz)


@pytest.fixture
def test_client(app):
    from fastapi.testclient import TestClient

    with TestClient(app) as client:
        yield client
