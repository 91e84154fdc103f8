"""In-process TTL cache for finished analyses, keyed by normalized address."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

log = logging.getLogger(__name__)


class AnalysisCache:
    """
    Plain dict with per-entry timestamps. Reads and writes are synchronous;
    the event loop is single-threaded so no locking is needed.
    """

    def __init__(self, ttl_s: float = 24 * 60 * 60, clock: Callable[[], float] = time.time) -> None:
        self.ttl_s = ttl_s
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}
        self._hits = 0
        self._misses = 0

    def get(self, key: str, max_age: float | None = None) -> Any | None:
        """Return the cached value, or None if absent or older than the TTL."""
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None
        stored_at, value = entry
        limit = self.ttl_s if max_age is None else min(max_age, self.ttl_s)
        if self._clock() - stored_at >= limit:
            del self._entries[key]
            self._misses += 1
            log.debug("cache expired key=%s", key)
            return None
        self._hits += 1
        return value

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = (self._clock(), value)

    def clear(self) -> None:
        self._entries.clear()

    def stats(self) -> dict[str, int]:
        return {"hits": self._hits, "misses": self._misses, "size": len(self._entries)}

    def __len__(self) -> int:
        return len(self._entries)
