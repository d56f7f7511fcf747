# calendar_client.py
"""
Google Calendar collaborator: freebusy queries and event creation.

Failures are translated into the CalendarError family so callers can tell a
configuration defect (bad key, missing delegation) from a transient upstream
failure, and recognise the attendee-invite delegation error that allows a
degraded booking.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

from google.auth.exceptions import GoogleAuthError, RefreshError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from config import (
    GCP_CLIENT_EMAIL,
    GCP_IMPERSONATE,
    GCP_PRIVATE_KEY,
    GCP_PROJECT_ID,
    GCP_SUBJECT_EMAIL,
    GOOGLE_CALENDAR_ID,
    GOOGLE_CALENDAR_SCOPES,
    logger,
)
from models.slots import TimeRange, format_instant

_TOKEN_URI = "https://oauth2.googleapis.com/token"

INVALID_KEY_MESSAGE = (
    "Invalid GCP_PRIVATE_KEY format. Ensure it is copied from the service-account JSON "
    "and uses \\n for newlines."
)
MISSING_CREDENTIALS_MESSAGE = "Missing GCP_CLIENT_EMAIL or GCP_PRIVATE_KEY; cannot reach Google Calendar."
UNAUTHORIZED_SUBJECT_MESSAGE = (
    "The service account is not allowed to act as GCP_SUBJECT_EMAIL. Enable Domain-Wide Delegation "
    "for the calendar scope in the Workspace admin console, or unset GCP_IMPERSONATE."
)


# =============================================================================
# ERRORS
# =============================================================================

class CalendarError(Exception):
    """Base for calendar collaborator failures; `status` is the HTTP status to surface."""
    default_status = 502

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status or self.default_status


class CalendarConfigurationError(CalendarError):
    """Credential material or delegation setup is broken. Server-side fault."""
    default_status = 500


class DelegationRequiredError(CalendarError):
    """Attendee invitations need Domain-Wide Delegation the caller does not have."""
    default_status = 403


class CalendarRequestError(CalendarError):
    """Any other upstream failure; keeps the upstream status when known."""


def _is_key_decode_failure(message: str) -> bool:
    return (
        "DECODER routines::unsupported" in message
        or "Could not deserialize key data" in message
        or "No key could be detected" in message
    )


def translate_calendar_error(error: Exception, operation: str) -> CalendarError:
    """Map a Google client / auth exception onto the CalendarError family."""
    if isinstance(error, CalendarError):
        return error

    message = str(error) or f"Google Calendar {operation} failed"
    if isinstance(error, HttpError):
        message = getattr(error, "reason", None) or message

    if "Domain-Wide Delegation" in message:
        return DelegationRequiredError(message)
    if _is_key_decode_failure(message):
        return CalendarConfigurationError(INVALID_KEY_MESSAGE)
    if isinstance(error, RefreshError) and "unauthorized_client" in message:
        return CalendarConfigurationError(UNAUTHORIZED_SUBJECT_MESSAGE)

    status = None
    if isinstance(error, HttpError):
        status = getattr(error.resp, "status", None)
        try:
            status = int(status) if status is not None else None
        except (TypeError, ValueError):
            status = None
    return CalendarRequestError(message, status=status)


# =============================================================================
# COLLABORATOR CONTRACT
# =============================================================================

@dataclass
class EventAttendee:
    email: str
    display_name: Optional[str] = None


@dataclass
class EventFields:
    summary: str
    start: datetime
    end: datetime
    description: Optional[str] = None
    attendees: List[EventAttendee] = field(default_factory=list)

    def without_attendees(self) -> "EventFields":
        return EventFields(
            summary=self.summary,
            start=self.start,
            end=self.end,
            description=self.description,
            attendees=[],
        )


class CalendarBackend(Protocol):
    calendar_id: str

    def query_busy(self, window: TimeRange, calendar_id: str) -> List[TimeRange]:
        ...

    def create_event(self, fields: EventFields, send_updates: str = "all") -> Dict[str, Any]:
        ...


# =============================================================================
# GOOGLE IMPLEMENTATION
# =============================================================================

class GoogleCalendarClient:
    """
    Service-account backed Google Calendar client.

    The googleapiclient service is built lazily so a process without
    credentials can still start and answer health checks.
    """

    def __init__(
        self,
        client_email: Optional[str] = GCP_CLIENT_EMAIL,
        private_key: Optional[str] = GCP_PRIVATE_KEY,
        project_id: Optional[str] = GCP_PROJECT_ID,
        subject_email: Optional[str] = GCP_SUBJECT_EMAIL,
        impersonate: bool = GCP_IMPERSONATE,
        calendar_id: str = GOOGLE_CALENDAR_ID,
    ):
        self.client_email = client_email
        self.private_key = private_key
        self.project_id = project_id
        self.subject_email = subject_email
        self.impersonate = impersonate
        self.calendar_id = calendar_id
        self._service = None

    def _build_credentials(self):
        if not self.client_email or not self.private_key:
            raise CalendarConfigurationError(MISSING_CREDENTIALS_MESSAGE)
        info = {
            "type": "service_account",
            "client_email": self.client_email,
            "private_key": self.private_key,
            "token_uri": _TOKEN_URI,
            "project_id": self.project_id,
        }
        try:
            creds = service_account.Credentials.from_service_account_info(info, scopes=GOOGLE_CALENDAR_SCOPES)
        except (ValueError, GoogleAuthError) as e:
            logger.error(f"[CALENDAR] Service account credential error: {e}")
            raise CalendarConfigurationError(INVALID_KEY_MESSAGE) from e
        # Only act as the subject when impersonation is explicitly enabled
        if self.impersonate and self.subject_email:
            creds = creds.with_subject(self.subject_email)
        return creds

    def _get_service(self):
        if self._service is None:
            creds = self._build_credentials()
            self._service = build("calendar", "v3", credentials=creds, cache_discovery=False)
        return self._service

    def query_busy(self, window: TimeRange, calendar_id: str) -> List[TimeRange]:
        """Busy intervals on `calendar_id` within `window` (one freebusy request)."""
        body = {
            "timeMin": format_instant(window.start),
            "timeMax": format_instant(window.end),
            "items": [{"id": calendar_id}],
        }
        try:
            resp = self._get_service().freebusy().query(body=body).execute()
        except CalendarError:
            raise
        except (HttpError, GoogleAuthError, ValueError, OSError) as e:
            err = translate_calendar_error(e, "freebusy query")
            logger.error(f"[CALENDAR] freebusy {body['timeMin']} -> {body['timeMax']} failed: {err.message}")
            raise err from e

        entry = (resp.get("calendars") or {}).get(calendar_id) or {}
        if entry.get("errors"):
            reasons = ", ".join(str(e.get("reason")) for e in entry["errors"])
            raise CalendarRequestError(f"Google Calendar could not read '{calendar_id}': {reasons}")

        busy = []
        for b in entry.get("busy") or []:
            try:
                busy.append(TimeRange.from_dict(b))
            except ValueError:
                logger.warning(f"[CALENDAR] Skipping malformed busy block {b!r}")
        return busy

    def create_event(self, fields: EventFields, send_updates: str = "all") -> Dict[str, Any]:
        """Insert the event with a Google Meet link; returns the API resource."""
        event = {
            "summary": fields.summary,
            "description": fields.description or None,
            "start": {"dateTime": format_instant(fields.start)},
            "end": {"dateTime": format_instant(fields.end)},
            "attendees": [
                {"email": a.email, "displayName": a.display_name} for a in fields.attendees
            ],
            "reminders": {"useDefault": True},
            "conferenceData": {
                "createRequest": {
                    "conferenceSolutionKey": {"type": "hangoutsMeet"},
                    "requestId": f"meet-{uuid.uuid4().hex[:16]}",
                }
            },
        }
        try:
            created = self._get_service().events().insert(
                calendarId=self.calendar_id,
                body=event,
                sendUpdates=send_updates,
                conferenceDataVersion=1,
            ).execute()
        except CalendarError:
            raise
        except (HttpError, GoogleAuthError, ValueError, OSError) as e:
            err = translate_calendar_error(e, "event insert")
            logger.error(f"[CALENDAR] Event insert failed: {err.message}")
            raise err from e

        logger.info(f"[CALENDAR] Created event id={created.get('id')}")
        return created
