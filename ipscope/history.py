"""Recent-lookup history: capped, deduplicated, most-recent-first."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable

from .config import HISTORY_KEY, MAX_HISTORY
from .models import HistoryEntry
from .storage import SQLiteStorage

logger = logging.getLogger(__name__)


# Latest instant datetime can represent (9999-12-31T23:59:59.999Z)
MAX_TIMESTAMP_MS = 253402300799999


def _now_ms() -> int:
    return int(time.time() * 1000)


def decode_history(value: str | None, capacity: int = MAX_HISTORY) -> list[HistoryEntry]:
    """Decode a persisted log, treating anything unreadable as empty.

    Ill-shaped entries are skipped, repeated ips keep their first
    (most recent) occurrence, and the result is capped at *capacity*.
    """
    if value is None:
        return []
    try:
        data = json.loads(value)
    except ValueError:
        logger.warning("Discarding unreadable history (invalid JSON)")
        return []
    if not isinstance(data, list):
        logger.warning("Discarding unreadable history (not a list)")
        return []

    entries: list[HistoryEntry] = []
    seen: set[str] = set()
    for item in data:
        if not isinstance(item, dict):
            continue
        ip = item.get("ip")
        location = item.get("location")
        timestamp = item.get("timestamp")
        if not isinstance(ip, str) or not ip or ip in seen:
            continue
        if not isinstance(location, str):
            continue
        if isinstance(timestamp, bool) or not isinstance(timestamp, int):
            continue
        if not 0 <= timestamp <= MAX_TIMESTAMP_MS:
            continue
        seen.add(ip)
        entries.append(HistoryEntry(ip=ip, location=location, timestamp=timestamp))
    return entries[:capacity]


def encode_history(entries: list[HistoryEntry]) -> str:
    return json.dumps([e.to_dict() for e in entries])


class HistoryStore:
    """Persisted log of past successful lookups.

    The whole log is read, modified and written back on every mutation;
    nothing is cached between calls.
    """

    def __init__(
        self,
        storage: SQLiteStorage,
        key: str = HISTORY_KEY,
        capacity: int = MAX_HISTORY,
        clock: Callable[[], int] | None = None,
    ):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.storage = storage
        self.key = key
        self.capacity = capacity
        self._clock = clock or _now_ms

    def record(self, ip: str, location: str) -> None:
        """Put *ip* at the front of the log, replacing any older entry for it."""
        entry = HistoryEntry(ip=ip, location=location, timestamp=self._clock())

        def _insert(old: str | None) -> str:
            entries = [e for e in decode_history(old, self.capacity) if e.ip != ip]
            entries.insert(0, entry)
            if len(entries) > self.capacity:
                evicted = entries.pop()
                logger.debug("History full, evicted %s", evicted.ip)
            return encode_history(entries)

        self.storage.update(self.key, _insert)
        logger.debug("Recorded %s (%s) in history", ip, location)

    def list(self) -> list[HistoryEntry]:
        """Snapshot of the log, most recent first."""
        return decode_history(self.storage.get(self.key), self.capacity)

    def clear(self) -> None:
        self.storage.update(self.key, lambda _old: None)
        logger.info("History cleared")
