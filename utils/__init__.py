"""
Utility modules for the calendar receptionist.
"""

from .intervals import ranges_overlap, subtract_busy, split_into_fixed_slots
from .date_parser import parse_day_time, parse_time_of_day
from .template_utils import is_unsubstituted_template, unsubstituted_fields
from .formatting_utils import (
    format_time_for_voice,
    format_slot_readable,
    format_iso_range,
    summarize_available_slots,
    build_spoken_confirmation,
)

__all__ = [
    "ranges_overlap",
    "subtract_busy",
    "split_into_fixed_slots",
    "parse_day_time",
    "parse_time_of_day",
    "is_unsubstituted_template",
    "unsubstituted_fields",
    "format_time_for_voice",
    "format_slot_readable",
    "format_iso_range",
    "summarize_available_slots",
    "build_spoken_confirmation",
]
