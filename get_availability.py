"""
Print every free fixed-length slot on a calendar as JSON.

Usage:
    python get_availability.py
    python get_availability.py --start 2026-03-02T09:00:00Z --end 2026-03-02T18:00:00Z
    python get_availability.py --slot 45 --calendar someone@example.com --key service-account.json
"""

from __future__ import annotations

import asyncio
import json
import sys
from datetime import timedelta
from typing import Any, Dict, List, Optional

from calendar_client import CalendarError, GoogleCalendarClient
from config import SLOT_MINUTES, logger
from models.slots import InvalidRangeError, TimeRange, format_instant, parse_instant
from services.calendar_service import AvailabilityResolver, utc_now

DEFAULT_RANGE_DAYS = 7


def build_client(key_path: Optional[str], calendar_id: Optional[str]) -> GoogleCalendarClient:
    """Client from a service-account JSON key file, or from the environment."""
    if not key_path:
        client = GoogleCalendarClient()
        if calendar_id:
            client.calendar_id = calendar_id
        return client
    with open(key_path, "r", encoding="utf-8") as f:
        key = json.load(f)
    return GoogleCalendarClient(
        client_email=key.get("client_email"),
        private_key=key.get("private_key"),
        project_id=key.get("project_id"),
        subject_email=None,
        impersonate=False,
        calendar_id=calendar_id or key.get("client_email"),
    )


async def free_slots(client: GoogleCalendarClient, window: TimeRange, slot_minutes: int) -> List[Dict[str, str]]:
    resolver = AvailabilityResolver(client)
    slots = await resolver.list_free_slots(window, slot_minutes)
    return [s.to_dict() for s in slots]


def main(argv: Optional[List[str]] = None) -> int:
    import argparse

    parser = argparse.ArgumentParser(description="List free calendar slots")
    parser.add_argument("--start", default=None, help="ISO-8601 start (default: now)")
    parser.add_argument("--end", default=None, help=f"ISO-8601 end (default: start + {DEFAULT_RANGE_DAYS} days)")
    parser.add_argument("--slot", type=int, default=SLOT_MINUTES, help="Slot length in minutes")
    parser.add_argument("--calendar", default=None, help="Calendar id to read")
    parser.add_argument("--key", default=None, help="Service-account JSON key file")
    args = parser.parse_args(argv)

    if args.slot <= 0:
        parser.error("--slot must be a positive number of minutes")
    try:
        start = parse_instant(args.start) if args.start else utc_now()
        end = parse_instant(args.end) if args.end else start + timedelta(days=DEFAULT_RANGE_DAYS)
        window = TimeRange(start, end)
    except InvalidRangeError as e:
        parser.error(str(e))

    try:
        client = build_client(args.key, args.calendar)
    except (OSError, ValueError) as e:
        logger.error(f"[CLI] Could not load key file {args.key}: {e}")
        return 2

    try:
        slots = asyncio.run(free_slots(client, window, args.slot))
    except CalendarError as e:
        logger.error(f"[CLI] {e.message}")
        return 1

    output: Dict[str, Any] = {
        "calendar": client.calendar_id,
        "start": format_instant(window.start),
        "end": format_instant(window.end),
        "slotMinutes": args.slot,
        "availableSlots": slots,
    }
    print(json.dumps(output, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
