"""
Configuration and constants for the calendar receptionist.

Contains all environment variables, Google Calendar credentials and the
scheduling tuning parameters.
"""

from __future__ import annotations

import os
import logging
from datetime import tzinfo
from typing import Optional
from dateutil import tz
from dotenv import load_dotenv
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

# =============================================================================
# Load Environment
# =============================================================================

load_dotenv(".env.local")


def _normalize_env_string(value: Optional[str]) -> Optional[str]:
    """Strip whitespace and surrounding double quotes from a .env value."""
    if value is None:
        return None
    trimmed = value.strip()
    if len(trimmed) >= 2 and trimmed.startswith('"') and trimmed.endswith('"'):
        trimmed = trimmed[1:-1]
    return trimmed


# =============================================================================
# SCHEDULING CONSTANTS
# =============================================================================

# Every slot the receptionist offers or books is this long
SLOT_MINUTES = 30

# Candidates around a spoken day/time: -120..+120 minutes in 30 minute steps
TARGET_DAY_OFFSET_MINUTES = 120
TARGET_DAY_MAX_CANDIDATES = 9

# Default generator when nothing usable was provided
DEFAULT_DAYS_AHEAD = 3
DEFAULT_DAY_START_HOUR = 9
DEFAULT_DAY_END_HOUR = 17
DEFAULT_MAX_CANDIDATES = 24

# Busy lookups
DEFAULT_LOOKAHEAD_DAYS = 30
MAX_LOOKAHEAD_DAYS = 365 * 2
# Google freebusy rejects ranges over ~2 months
FREEBUSY_MAX_RANGE_DAYS = 50

# Fallback values used when the voice agent leaves template variables in
FALLBACK_CLIENT_EMAIL = "guest@example.com"
FALLBACK_PURPOSE = "Meeting via Receptionist"
FALLBACK_ATTENDEE_NAME = "Guest"

# =============================================================================
# STRUCTURED LOGGER
# =============================================================================

# Mute noisy transport debug logs
logging.getLogger("googleapiclient.discovery_cache").setLevel(logging.WARNING)
logging.getLogger("urllib3").setLevel(logging.WARNING)

logger = logging.getLogger("receptionist")
logger.setLevel(logging.DEBUG)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(message)s", datefmt="%H:%M:%S"
    ))
    logger.addHandler(handler)

# =============================================================================
# ENVIRONMENT & APPLICATION CONFIG
# =============================================================================

ENVIRONMENT = (os.getenv("ENVIRONMENT") or "development").strip().lower()
PORT = int(os.getenv("PORT", "4000"))

OUTPUTS_DIR = os.getenv("OUTPUTS_DIR", "./outputs")

# IANA name, e.g. "America/New_York". Empty means the process local timezone.
CALENDAR_TIMEZONE = _normalize_env_string(os.getenv("CALENDAR_TIMEZONE")) or None

# =============================================================================
# GOOGLE CALENDAR CONFIGURATION
# =============================================================================

GCP_CLIENT_EMAIL = _normalize_env_string(os.getenv("GCP_CLIENT_EMAIL"))
# Keys pasted into .env usually carry literal "\n" sequences
GCP_PRIVATE_KEY = (_normalize_env_string(os.getenv("GCP_PRIVATE_KEY")) or "").replace("\\n", "\n") or None
GCP_PROJECT_ID = _normalize_env_string(os.getenv("GCP_PROJECT_ID"))
GCP_SUBJECT_EMAIL = _normalize_env_string(os.getenv("GCP_SUBJECT_EMAIL"))
GCP_IMPERSONATE = (os.getenv("GCP_IMPERSONATE") or "").strip().lower() == "true"

GOOGLE_CALENDAR_SCOPES = ["https://www.googleapis.com/auth/calendar"]

# The calendar we read and write is the impersonated user's, else the service account's own
GOOGLE_CALENDAR_ID = GCP_SUBJECT_EMAIL or GCP_CLIENT_EMAIL or "primary"


def get_calendar_tz() -> tzinfo:
    """
    Timezone used for naive wall-clock times and all spoken formatting.
    Falls back to the DST-aware process local timezone when CALENDAR_TIMEZONE
    is unset or unknown.
    """
    if CALENDAR_TIMEZONE:
        try:
            return ZoneInfo(CALENDAR_TIMEZONE)
        except (ZoneInfoNotFoundError, ValueError) as e:
            logger.warning(f"[CONFIG] Unknown CALENDAR_TIMEZONE '{CALENDAR_TIMEZONE}': {e}")
    return tz.tzlocal()
