"""In-memory analysis cache with a bounded size and a TTL."""

import logging
import threading
import time

from cachetools import TLRUCache

from schemas import AnalysisReport
from settings import CACHE_MAX_ENTRIES, CACHE_TTL_SECONDS

logger = logging.getLogger(__name__)


def _entry_expiry(key, entry, now):
    return now + entry[1]


class AnalysisCache:
    """Thread-safe wrapper around TLRUCache keyed by normalized URL.

    Entries live for `ttl_seconds` unless `set` is given a shorter lifetime.
    Expired entries read as absent. Concurrent writes for the same key are
    last-write-wins.
    """

    def __init__(
        self,
        ttl_seconds: float = CACHE_TTL_SECONDS,
        max_entries: int = CACHE_MAX_ENTRIES,
        timer=time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._entries: TLRUCache = TLRUCache(maxsize=max_entries, ttu=_entry_expiry, timer=timer)
        self._lock = threading.Lock()

    def get(self, key: str) -> AnalysisReport | None:
        with self._lock:
            entry = self._entries.get(key)
        logger.debug("Cache %s key=%s", "hit" if entry is not None else "miss", key)
        return entry[0] if entry is not None else None

    def set(self, key: str, report: AnalysisReport, ttl_seconds: float | None = None) -> None:
        """Store `report`; `ttl_seconds` is capped at the cache-wide TTL."""
        lifetime = self.ttl_seconds if ttl_seconds is None else min(ttl_seconds, self.ttl_seconds)
        if lifetime <= 0:
            return
        with self._lock:
            self._entries[key] = (report, lifetime)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            self._entries.expire()
            return len(self._entries)
