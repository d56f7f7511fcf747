# availability_store.py
"""
Last-known availability and last-created event, kept between requests.

The confirm-meeting repair pass reads the first slot of the last availability
answer when the voice agent forgets to fill in start/end. The polling
endpoints read both records back.
"""

from __future__ import annotations

import json
import os
import threading
from typing import Any, Dict, List, Optional, Protocol

from config import OUTPUTS_DIR, logger
from models.slots import TimeRange

AVAILABILITY_FILE = "availability.json"
LAST_EVENT_FILE = "lastEvent.json"


def first_slot_of(snapshot: Optional[Dict[str, Any]]) -> Optional[TimeRange]:
    """First usable slot in an availability snapshot, or None."""
    if not isinstance(snapshot, dict):
        return None
    slots = snapshot.get("available") or snapshot.get("formatted")
    if not isinstance(slots, list) or not slots:
        return None
    first = slots[0]
    if not isinstance(first, dict) or not first.get("start") or not first.get("end"):
        return None
    return TimeRange.from_dict(first)


class AvailabilityStore(Protocol):
    def read_availability(self) -> Optional[Dict[str, Any]]:
        ...

    def read_last_availability(self) -> Optional[TimeRange]:
        ...

    def write_availability(self, available: List[Dict[str, str]], formatted: List[Dict[str, str]]) -> None:
        ...

    def read_last_event(self) -> Optional[Dict[str, Any]]:
        ...

    def write_last_event(self, event: Dict[str, Any]) -> None:
        ...


class InMemoryAvailabilityStore:
    """Process-local store; used by tests and single-process dev runs."""

    def __init__(self):
        self._availability: Optional[Dict[str, Any]] = None
        self._last_event: Optional[Dict[str, Any]] = None

    def read_availability(self) -> Optional[Dict[str, Any]]:
        return self._availability

    def read_last_availability(self) -> Optional[TimeRange]:
        return first_slot_of(self._availability)

    def write_availability(self, available, formatted) -> None:
        self._availability = {"available": list(available), "formatted": list(formatted)}

    def read_last_event(self) -> Optional[Dict[str, Any]]:
        return self._last_event

    def write_last_event(self, event: Dict[str, Any]) -> None:
        self._last_event = dict(event)


class JsonFileAvailabilityStore:
    """JSON files under OUTPUTS_DIR, shared with the polling frontend."""

    def __init__(self, outputs_dir: str = OUTPUTS_DIR):
        self.outputs_dir = outputs_dir
        self._lock = threading.Lock()

    def _path(self, name: str) -> str:
        return os.path.join(self.outputs_dir, name)

    def _read(self, name: str) -> Optional[Dict[str, Any]]:
        path = self._path(name)
        if not os.path.exists(path):
            return None
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    def _write(self, name: str, data: Dict[str, Any]):
        os.makedirs(self.outputs_dir, exist_ok=True)
        path = self._path(name)
        tmp_path = f"{path}.tmp"
        with self._lock:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, path)
        logger.debug(f"[STORE] Wrote {path}")

    def read_availability(self) -> Optional[Dict[str, Any]]:
        return self._read(AVAILABILITY_FILE)

    def read_last_availability(self) -> Optional[TimeRange]:
        return first_slot_of(self._read(AVAILABILITY_FILE))

    def write_availability(self, available, formatted) -> None:
        self._write(AVAILABILITY_FILE, {"available": list(available), "formatted": list(formatted)})

    def read_last_event(self) -> Optional[Dict[str, Any]]:
        return self._read(LAST_EVENT_FILE)

    def write_last_event(self, event: Dict[str, Any]) -> None:
        self._write(LAST_EVENT_FILE, event)
