"""
In-process TTL cache used by the scrapers
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_TTL = 5 * 60  # seconds

@dataclass
class CacheEntry:
    value: Any
    expiry: float


class MemoryCache:
    """TTL-only key/value store, no LRU eviction and no locking.

    Two concurrent misses on the same key both compute and both write; the last
    write wins. Values are derived from the same upstream state within a TTL
    window so this only costs an extra fetch.
    """

    def __init__(self, default_ttl: float = DEFAULT_TTL, clock: Callable[[], float] = time.monotonic):
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def get(self, key: str, default: Any = None) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return default
        if self._clock() > entry.expiry:
            # Expired entries are evicted before anyone recomputes them
            del self._entries[key]
            logger.debug(f"Cache entry expired: {key}")
            return default
        return entry.value

    def set(self, key: str, value: Any, ttl: Optional[float] = None):
        ttl = self.default_ttl if ttl is None else ttl
        now = self._clock()
        self._sweep(now)
        self._entries[key] = CacheEntry(value=value, expiry=now + ttl)

    def _sweep(self, now: float):
        """Drop every expired entry, including keys nobody reads again"""
        expired = [k for k, entry in self._entries.items() if now > entry.expiry]
        for k in expired:
            del self._entries[k]
        if expired:
            logger.debug(f"Swept {len(expired)} expired cache entries")

    def delete(self, key: str):
        self._entries.pop(key, None)

    def clear(self):
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key, _ABSENT) is not _ABSENT


_ABSENT = object()
