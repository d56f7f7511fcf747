"""
Main entry point for the Calendar Receptionist.

Builds the FastAPI app around the Google Calendar client and the JSON file
store, then serves it with Uvicorn:
- Startup check of the calendar configuration
- Graceful shutdown handling (SIGTERM/SIGINT)
"""

from __future__ import annotations

import signal
import sys

import uvicorn

from config import (
    CALENDAR_TIMEZONE,
    ENVIRONMENT,
    GCP_CLIENT_EMAIL,
    GCP_IMPERSONATE,
    GCP_PRIVATE_KEY,
    GCP_SUBJECT_EMAIL,
    GOOGLE_CALENDAR_ID,
    OUTPUTS_DIR,
    PORT,
    logger,
)
from http_service import create_app


def log_startup_config():
    logger.info(f"[CONFIG] Environment: {ENVIRONMENT}")
    logger.info(f"[CONFIG] Calendar: {GOOGLE_CALENDAR_ID} (tz={CALENDAR_TIMEZONE or 'local'})")
    logger.info(f"[CONFIG] Outputs dir: {OUTPUTS_DIR}")
    if GCP_CLIENT_EMAIL and GCP_PRIVATE_KEY:
        logger.info(f"[CONFIG] ✓ Service account: {GCP_CLIENT_EMAIL}")
    else:
        logger.warning("[CONFIG] ❌ GCP_CLIENT_EMAIL / GCP_PRIVATE_KEY missing; calendar calls will fail")
    if GCP_IMPERSONATE and not GCP_SUBJECT_EMAIL:
        logger.warning("[CONFIG] GCP_IMPERSONATE is true but GCP_SUBJECT_EMAIL is empty")


app = create_app()


if __name__ == "__main__":
    logger.info("[INIT] Initializing Server...")
    log_startup_config()

    config = uvicorn.Config(
        app,
        host="0.0.0.0",
        port=PORT,
        log_level="info",
        access_log=False,  # requests are already logged by the [HTTP] middleware
    )
    server = uvicorn.Server(config)

    # Let our handler own SIGTERM so shutdown is logged
    server.install_signal_handlers = lambda: None

    def handle_signal(signum, frame):
        sig_name = signal.Signals(signum).name
        logger.info(f"[SIGNAL] Received {sig_name}. Initiating graceful shutdown...")
        server.should_exit = True

    signal.signal(signal.SIGTERM, handle_signal)
    signal.signal(signal.SIGINT, handle_signal)

    logger.info(f"[HTTP] Starting FastAPI server on port {PORT}")
    try:
        server.run()
    except OSError as e:
        logger.error(f"[HTTP] Server failed: {e}")
        sys.exit(1)

    logger.info("[SHUTDOWN] Process exiting.")
