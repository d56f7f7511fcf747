"""
Booking request and outcome types for the confirm-meeting flow.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from models.slots import TimeRange


class BookingState(str, Enum):
    RECEIVED = "received"
    REPAIRED = "repaired"
    VALIDATED = "validated"
    AVAILABILITY_CONFIRMED = "availability_confirmed"
    COMMITTED = "committed"
    # Terminal failures
    REJECTED_INVALID = "rejected_invalid"
    REJECTED_CONFLICT = "rejected_conflict"
    COMMIT_FAILED = "commit_failed"


# Wire name -> attribute name
BOOKING_FIELDS = {
    "start": "start",
    "end": "end",
    "clientEmail": "client_email",
    "purpose": "purpose",
    "attendeeName": "attendee_name",
}


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


@dataclass
class BookingRequest:
    """Untrusted confirm-meeting fields, exactly as the voice agent sent them."""
    start: Optional[str] = None
    end: Optional[str] = None
    client_email: Optional[str] = None
    purpose: Optional[str] = None
    attendee_name: Optional[str] = None

    @classmethod
    def from_body(cls, body: Optional[Dict[str, Any]]) -> "BookingRequest":
        body = body if isinstance(body, dict) else {}
        return cls(**{attr: _as_text(body.get(wire)) for wire, attr in BOOKING_FIELDS.items()})

    def to_body(self) -> Dict[str, Optional[str]]:
        return {wire: getattr(self, attr) for wire, attr in BOOKING_FIELDS.items()}


@dataclass
class BookingRepair:
    """One logged substitution made during the repair pass."""
    field: str
    reason: str
    original: Optional[str]
    replacement: Optional[str]

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "field": self.field,
            "reason": self.reason,
            "original": self.original,
            "replacement": self.replacement,
        }


@dataclass
class BookingResult:
    """Outcome of one pass through the confirmation state machine."""
    state: BookingState
    request: BookingRequest
    slot: Optional[TimeRange] = None
    event: Optional[Dict[str, Any]] = None
    degraded: bool = False
    confirmation_message: Optional[str] = None
    repairs: List[BookingRepair] = field(default_factory=list)
    # REJECTED_INVALID details
    errors: List[Dict[str, Any]] = field(default_factory=list)
    unsubstituted_fields: List[str] = field(default_factory=list)
    hint: Optional[str] = None
    # COMMIT_FAILED details
    error: Optional[Exception] = None

    @property
    def committed(self) -> bool:
        return self.state == BookingState.COMMITTED
