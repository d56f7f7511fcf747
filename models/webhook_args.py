"""
Pydantic models for the voice-agent webhook bodies.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ValidationError, field_validator, model_validator

from models.slots import TimeRange, parse_instant

END_AFTER_START_MESSAGE = "Meeting end must be after start"


class SlotArgs(BaseModel):
    start: datetime
    end: datetime

    @field_validator("start", "end", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> datetime:
        return parse_instant(value)

    @model_validator(mode="after")
    def _end_after_start(self) -> "SlotArgs":
        if self.end <= self.start:
            raise ValueError("Each slot must have end after start")
        return self

    def to_range(self) -> TimeRange:
        return TimeRange(self.start, self.end)


class CheckAvailabilityArgs(BaseModel):
    proposedSlots: List[SlotArgs] = []
    targetDay: Optional[str] = None


class ConfirmMeetingArgs(BaseModel):
    start: datetime
    end: datetime
    clientEmail: str
    purpose: Optional[str] = None
    attendeeName: Optional[str] = None

    @field_validator("start", "end", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> datetime:
        return parse_instant(value)

    @field_validator("clientEmail")
    @classmethod
    def _valid_email(cls, value: str) -> str:
        try:
            validate_email(value.strip(), check_deliverability=False)
        except EmailNotValidError as e:
            raise ValueError(f"Invalid email address: {e}") from e
        return value.strip()

    @model_validator(mode="after")
    def _end_after_start(self) -> "ConfirmMeetingArgs":
        if self.end <= self.start:
            raise ValueError(END_AFTER_START_MESSAGE)
        return self

    def to_range(self) -> TimeRange:
        return TimeRange(self.start, self.end)


def flatten_validation_errors(exc: ValidationError) -> List[Dict[str, str]]:
    """Field-level, JSON-safe description of a pydantic ValidationError."""
    details = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ())) or "body"
        msg = err.get("msg", "")
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        details.append({"field": loc, "message": msg})
    return details
