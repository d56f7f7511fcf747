"""
Booking confirmation service.

Handles:
- Repairing malformed or unsubstituted confirm-meeting fields
- Validating the repaired request
- Re-checking the requested slot right before the write (safety gate)
- Creating the event, degrading to an attendee-less event when invites
  need Domain-Wide Delegation
"""

from __future__ import annotations

import asyncio
from datetime import timedelta, tzinfo
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from availability_store import AvailabilityStore
from calendar_client import (
    CalendarBackend,
    CalendarError,
    DelegationRequiredError,
    EventAttendee,
    EventFields,
)
from config import (
    FALLBACK_ATTENDEE_NAME,
    FALLBACK_CLIENT_EMAIL,
    FALLBACK_PURPOSE,
    SLOT_MINUTES,
    get_calendar_tz,
    logger,
)
from models.booking import (
    BookingRepair,
    BookingRequest,
    BookingResult,
    BookingState,
)
from models.slots import format_instant, try_parse_instant
from models.webhook_args import (
    END_AFTER_START_MESSAGE,
    ConfirmMeetingArgs,
    flatten_validation_errors,
)
from services.calendar_service import AvailabilityResolver
from utils.formatting_utils import build_spoken_confirmation
from utils.template_utils import is_unsubstituted_template, unsubstituted_fields

TEMPLATE_HINT = (
    "The voice agent sent unsubstituted template variables. Map start/end from the "
    "check-availability response (first_slot_start / first_slot_end) and collect the "
    "caller's email and name as tool parameters."
)
END_AFTER_START_HINT = (
    "End must come after start. Check that the end variable is mapped to the selected "
    "slot end and has no trailing whitespace in its name."
)


class BookingConfirmationService:
    """
    Drives one confirm-meeting request through
    RECEIVED -> REPAIRED -> VALIDATED -> AVAILABILITY_CONFIRMED -> COMMITTED.

    The store is only read here (snapshot recovery); writing the committed
    event back is left to the caller.
    """

    def __init__(
        self,
        resolver: AvailabilityResolver,
        calendar: CalendarBackend,
        store: Optional[AvailabilityStore] = None,
        tz: Optional[tzinfo] = None,
    ):
        self.resolver = resolver
        self.calendar = calendar
        self.store = store
        self.tz = tz or get_calendar_tz()

    # ------------------------------------------------------------------
    # Repair
    # ------------------------------------------------------------------

    def _record(self, repairs: List[BookingRepair], field: str, reason: str, original, replacement):
        repairs.append(BookingRepair(field=field, reason=reason, original=original, replacement=replacement))
        logger.info(f"[REPAIR] {field}: {reason} ({original!r} -> {replacement!r})")

    def _repair_duration(self, request: BookingRequest, repairs: List[BookingRepair]):
        if not request.start or not request.end:
            return
        if is_unsubstituted_template(request.start) or is_unsubstituted_template(request.end):
            return
        start = try_parse_instant(request.start)
        end = try_parse_instant(request.end)
        if start is None or end is None:
            return
        duration = end - start
        if duration <= timedelta(0) or duration > timedelta(minutes=SLOT_MINUTES):
            fixed_end = format_instant(start + timedelta(minutes=SLOT_MINUTES))
            if duration == timedelta(0):
                reason = "identical start and end"
            elif duration < timedelta(0):
                reason = "end before start"
            else:
                reason = "slot must be 30 minutes"
            self._record(repairs, "end", reason, request.end, fixed_end)
            request.end = fixed_end

    def _recover_from_snapshot(self, original: BookingRequest, request: BookingRequest, repairs: List[BookingRepair]):
        if not (is_unsubstituted_template(original.start) or is_unsubstituted_template(original.end)):
            return
        if self.store is None:
            return
        try:
            slot = self.store.read_last_availability()
        except (OSError, ValueError) as e:
            logger.warning(f"[REPAIR] Could not read last availability: {e}")
            return
        if slot is None:
            logger.info("[REPAIR] No availability snapshot to recover start/end from")
            return
        recovered = slot.to_dict()
        self._record(repairs, "start", "recovered from last availability", request.start, recovered["start"])
        self._record(repairs, "end", "recovered from last availability", request.end, recovered["end"])
        request.start = recovered["start"]
        request.end = recovered["end"]

    def repair(self, request: BookingRequest) -> Tuple[BookingRequest, List[BookingRepair]]:
        """
        Apply each independent repair to a copy of `request`. Only
        unsubstituted or structurally broken fields are touched.
        """
        repaired = BookingRequest(**vars(request))
        repairs: List[BookingRepair] = []

        self._repair_duration(repaired, repairs)
        self._recover_from_snapshot(request, repaired, repairs)

        fallbacks = (
            ("client_email", "clientEmail", FALLBACK_CLIENT_EMAIL),
            ("purpose", "purpose", FALLBACK_PURPOSE),
            ("attendee_name", "attendeeName", FALLBACK_ATTENDEE_NAME),
        )
        for attr, wire, fallback in fallbacks:
            value = getattr(request, attr)
            if is_unsubstituted_template(value):
                self._record(repairs, wire, "unsubstituted template", value, fallback)
                setattr(repaired, attr, fallback)

        return repaired, repairs

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _reject_invalid(
        self,
        request: BookingRequest,
        repairs: List[BookingRepair],
        errors: List[Dict[str, Any]],
    ) -> BookingResult:
        unsubstituted = unsubstituted_fields(request.to_body())
        hint = None
        if unsubstituted:
            hint = TEMPLATE_HINT
        elif any(e.get("message") == END_AFTER_START_MESSAGE for e in errors):
            hint = END_AFTER_START_HINT
        logger.warning(f"[CONFIRM] Rejected invalid request: {errors}")
        return BookingResult(
            state=BookingState.REJECTED_INVALID,
            request=request,
            repairs=repairs,
            errors=errors,
            unsubstituted_fields=unsubstituted,
            hint=hint,
        )

    # ------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------

    def _event_fields(self, args: ConfirmMeetingArgs) -> EventFields:
        name = args.attendeeName or FALLBACK_ATTENDEE_NAME
        return EventFields(
            summary=args.purpose or FALLBACK_PURPOSE,
            start=args.start,
            end=args.end,
            description=f"With: {name} ({args.clientEmail})",
            attendees=[EventAttendee(email=args.clientEmail, display_name=args.attendeeName)],
        )

    async def _commit_without_attendees(self, fields: EventFields) -> Dict[str, Any]:
        """The one retry: same event, no attendees, no invitation emails."""
        logger.warning("[CONFIRM] Attendee invites need Domain-Wide Delegation; creating event without attendees")
        return await asyncio.to_thread(self.calendar.create_event, fields.without_attendees(), "none")

    async def confirm(self, body: Optional[Dict[str, Any]]) -> BookingResult:
        request = BookingRequest.from_body(body)
        logger.info(f"[CONFIRM] {BookingState.RECEIVED.value}: {request.to_body()}")

        repaired, repairs = self.repair(request)
        logger.info(f"[CONFIRM] {BookingState.REPAIRED.value}: {len(repairs)} repairs")

        try:
            args = ConfirmMeetingArgs.model_validate(repaired.to_body())
        except ValidationError as e:
            return self._reject_invalid(repaired, repairs, flatten_validation_errors(e))
        slot = args.to_range()
        logger.info(f"[CONFIRM] {BookingState.VALIDATED.value}: {format_instant(slot.start)} -> {format_instant(slot.end)}")

        # Safety gate: always the last read before the write
        available = await self.resolver.find_available([slot])
        if not available:
            logger.info(f"[CONFIRM] {BookingState.REJECTED_CONFLICT.value}: slot is busy")
            return BookingResult(state=BookingState.REJECTED_CONFLICT, request=repaired, slot=slot, repairs=repairs)
        logger.info(f"[CONFIRM] {BookingState.AVAILABILITY_CONFIRMED.value}")

        fields = self._event_fields(args)
        degraded = False
        try:
            try:
                event = await asyncio.to_thread(self.calendar.create_event, fields)
            except DelegationRequiredError:
                event = await self._commit_without_attendees(fields)
                degraded = True
        except CalendarError as e:
            logger.error(f"[CONFIRM] {BookingState.COMMIT_FAILED.value}: {e.message}")
            return BookingResult(
                state=BookingState.COMMIT_FAILED,
                request=repaired,
                slot=slot,
                repairs=repairs,
                error=e,
            )

        logger.info(f"[CONFIRM] {BookingState.COMMITTED.value}: event id={event.get('id')} degraded={degraded}")
        return BookingResult(
            state=BookingState.COMMITTED,
            request=repaired,
            slot=slot,
            event=event,
            degraded=degraded,
            confirmation_message=build_spoken_confirmation(slot, args.clientEmail, self.tz),
            repairs=repairs,
        )
