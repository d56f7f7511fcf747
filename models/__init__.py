"""
Data models for the calendar receptionist.
"""

from .slots import (
    TimeRange,
    Slot,
    BusyInterval,
    InvalidRangeError,
    parse_instant,
    try_parse_instant,
    format_instant,
)
from .booking import (
    BookingState,
    BookingRequest,
    BookingRepair,
    BookingResult,
)
from .webhook_args import (
    SlotArgs,
    CheckAvailabilityArgs,
    ConfirmMeetingArgs,
    flatten_validation_errors,
)

__all__ = [
    "TimeRange",
    "Slot",
    "BusyInterval",
    "InvalidRangeError",
    "parse_instant",
    "try_parse_instant",
    "format_instant",
    "BookingState",
    "BookingRequest",
    "BookingRepair",
    "BookingResult",
    "SlotArgs",
    "CheckAvailabilityArgs",
    "ConfirmMeetingArgs",
    "flatten_validation_errors",
]
