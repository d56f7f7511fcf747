"""
Service modules package.

This package contains business logic services for:
- Candidate slot generation
- Availability resolution against the calendar
- Booking confirmation
"""

from .scheduling_service import (
    CandidatePlan,
    CandidateSource,
    build_candidates,
    build_default_slots,
    build_slots_from_target_day,
)
from .calendar_service import (
    AvailabilityResolver,
    chunk_window,
)
from .booking_service import BookingConfirmationService

__all__ = [
    "CandidatePlan",
    "CandidateSource",
    "build_candidates",
    "build_default_slots",
    "build_slots_from_target_day",
    "AvailabilityResolver",
    "chunk_window",
    "BookingConfirmationService",
]
