"""
HTTP service for the voice-agent webhooks.

Routes:
- GET  /health                     liveness
- POST /webhooks/check-availability which candidate slots are free, plus a spoken summary
- POST /webhooks/confirm-meeting    repair, validate, re-check and book one slot
- GET  /api/availability           last availability answer (frontend polling)
- GET  /api/last-event             last created event (frontend polling)

The voice agent templating layer reads flat fields, so the availability
response repeats the first free slot as first_slot_start / first_slot_end.
"""

from __future__ import annotations

import time
from datetime import datetime, tzinfo
from typing import Any, Callable, Dict, Optional, Tuple

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from availability_store import AvailabilityStore, JsonFileAvailabilityStore
from calendar_client import CalendarBackend, CalendarError, GoogleCalendarClient
from config import get_calendar_tz, logger
from models.booking import BookingState
from models.webhook_args import CheckAvailabilityArgs, flatten_validation_errors
from services.booking_service import BookingConfirmationService
from services.calendar_service import AvailabilityResolver, utc_now
from services.scheduling_service import build_candidates
from utils.formatting_utils import format_iso_range, summarize_available_slots

CONFLICT_MESSAGE = "Requested slot is unavailable. Please choose another time."


async def _read_json_body(request: Request) -> Tuple[Optional[Any], bool]:
    """(body, ok). An empty body reads as {}; malformed JSON is not ok."""
    raw = await request.body()
    if not raw.strip():
        return {}, True
    try:
        return await request.json(), True
    except ValueError:
        return None, False


def create_app(
    calendar: Optional[CalendarBackend] = None,
    store: Optional[AvailabilityStore] = None,
    clock: Callable[[], datetime] = utc_now,
    tz: Optional[tzinfo] = None,
) -> FastAPI:
    """
    Build the app around its collaborators. Defaults are the Google client
    and the JSON file store; tests pass fakes.
    """
    calendar = calendar or GoogleCalendarClient()
    store = store or JsonFileAvailabilityStore()
    tz = tz or get_calendar_tz()
    resolver = AvailabilityResolver(calendar, clock=clock)
    booking = BookingConfirmationService(resolver, calendar, store=store, tz=tz)

    app = FastAPI(title="Calendar Receptionist", docs_url=None, redoc_url=None)
    app.state.calendar = calendar
    app.state.store = store
    app.state.resolver = resolver
    app.state.booking = booking

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        t0 = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - t0) * 1000
        logger.info(f"[HTTP] {request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.0f}ms)")
        return response

    # ------------------------------------------------------------------
    # Error handlers
    # ------------------------------------------------------------------

    @app.exception_handler(CalendarError)
    async def calendar_error_handler(request: Request, exc: CalendarError):
        logger.error(f"[HTTP] Calendar error on {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.status, content={"error": exc.message})

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(f"[HTTP] Unhandled exception on {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    # ------------------------------------------------------------------
    # Routes
    # ------------------------------------------------------------------

    @app.get("/health")
    def health_check():
        return {"ok": True}

    @app.post("/webhooks/check-availability")
    async def check_availability(request: Request):
        body, ok = await _read_json_body(request)
        if not ok:
            return JSONResponse(
                status_code=400,
                content={"error": "Invalid availability payload", "details": [{"field": "body", "message": "Malformed JSON"}]},
            )
        try:
            args = CheckAvailabilityArgs.model_validate(body)
        except ValidationError as e:
            return JSONResponse(
                status_code=400,
                content={"error": "Invalid availability payload", "details": flatten_validation_errors(e)},
            )

        now = resolver.clock()
        plan = build_candidates([s.to_range() for s in args.proposedSlots], args.targetDay, now, tz)
        logger.info(
            f"[AVAILABILITY] targetDay={args.targetDay!r} explicit={len(args.proposedSlots)} "
            f"source={plan.source.value} candidates={len(plan.slots)}"
        )

        available = await resolver.find_available(plan.slots)
        available_wire = [s.to_dict() for s in available]
        formatted = [format_iso_range(s, "en-US", tz) for s in available]
        summary = summarize_available_slots(available, "en-US", tz)

        try:
            store.write_availability(available_wire, formatted)
        except OSError as e:
            logger.error(f"[STORE] Failed to write availability: {e}")

        first = available_wire[0] if available_wire else None
        return {
            "available": available_wire,
            "formatted": formatted,
            "available_summary": summary,
            "first_slot_start": first["start"] if first else None,
            "first_slot_end": first["end"] if first else None,
            "usedFallback": plan.used_fallback,
            "usedTargetDayInference": plan.inferred_count > 0,
            "candidateSource": plan.source.value,
        }

    @app.post("/webhooks/confirm-meeting")
    async def confirm_meeting(request: Request):
        body, ok = await _read_json_body(request)
        if not ok:
            return JSONResponse(
                status_code=400,
                content={"error": "Invalid confirm meeting payload", "details": [{"field": "body", "message": "Malformed JSON"}]},
            )

        result = await booking.confirm(body)

        if result.state == BookingState.REJECTED_INVALID:
            content: Dict[str, Any] = {"error": "Invalid confirm meeting payload", "details": result.errors}
            if result.hint:
                content["hint"] = result.hint
            if result.unsubstituted_fields:
                content["unsubstitutedFields"] = result.unsubstituted_fields
            return JSONResponse(status_code=400, content=content)

        if result.state == BookingState.REJECTED_CONFLICT:
            return JSONResponse(status_code=409, content={"ok": False, "error": CONFLICT_MESSAGE})

        if result.state == BookingState.COMMIT_FAILED:
            return JSONResponse(status_code=result.error.status, content={"error": result.error.message})

        try:
            store.write_last_event(result.event)
        except OSError as e:
            logger.error(f"[STORE] Failed to write last event: {e}")

        return {
            "ok": True,
            "event": result.event,
            "degraded": result.degraded,
            "repairs": [r.to_dict() for r in result.repairs],
            "confirmationMessage": result.confirmation_message,
        }

    @app.get("/api/availability")
    def last_availability():
        try:
            data = store.read_availability()
        except (OSError, ValueError) as e:
            logger.error(f"[STORE] Failed to read availability: {e}")
            return JSONResponse(status_code=500, content={"error": "failed to read availability"})
        if data is None:
            return JSONResponse(status_code=404, content={"error": "no availability yet"})
        return data

    @app.get("/api/last-event")
    def last_event():
        try:
            data = store.read_last_event()
        except (OSError, ValueError) as e:
            logger.error(f"[STORE] Failed to read last event: {e}")
            return JSONResponse(status_code=500, content={"error": "failed to read last event"})
        if data is None:
            return JSONResponse(status_code=404, content={"error": "no event yet"})
        return data

    return app
