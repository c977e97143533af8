"""Bounded, time-expiring cache of remote matches."""

from __future__ import annotations

import time
from typing import Callable

from hover_lookup.core.logging import get_logger
from hover_lookup.core.metrics import CACHE_ENTRIES
from hover_lookup.lookup.types import CacheEntry, Record
from hover_lookup.utils.text import as_key

logger = get_logger(__name__)


class ResultCache:
    """FIFO-evicting TTL cache keyed by the stringified search token.

    Reads never refresh an entry's position: the entry inserted earliest is
    always the one evicted when the cache is full. Expired entries are purged
    lazily when read.
    """

    def __init__(
        self,
        max_size: int = 1000,
        ttl_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, token: object) -> bool:
        return as_key(token) in self._entries

    def get(self, token: object) -> CacheEntry | None:
        key = as_key(token)
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.inserted_at > self.ttl_seconds:
            del self._entries[key]
            CACHE_ENTRIES.set(len(self._entries))
            return None
        return entry

    def put(self, token: object, record: Record, provenance: str) -> None:
        key = as_key(token)
        if key in self._entries:
            del self._entries[key]
        while len(self._entries) >= self.max_size:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
        self._entries[key] = CacheEntry(record=record, provenance=provenance, inserted_at=self._clock())
        CACHE_ENTRIES.set(len(self._entries))

    def clear(self) -> None:
        self._entries.clear()
        CACHE_ENTRIES.set(0)
        logger.info("Remote result cache cleared")

    def configure(self, max_size: int, ttl_seconds: float) -> None:
        """Apply new limits, evicting the oldest entries if the cache shrank."""
        self.max_size = max(1, max_size)
        self.ttl_seconds = ttl_seconds
        while len(self._entries) > self.max_size:
            del self._entries[next(iter(self._entries))]
        CACHE_ENTRIES.set(len(self._entries))


__all__ = ["ResultCache"]
