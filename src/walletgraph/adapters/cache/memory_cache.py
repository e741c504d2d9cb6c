"""
In-process TTL cache, the first tier in front of the shared Redis cache.

Only touched from the event loop thread, so no locking.
"""

import time
from collections import OrderedDict
from typing import Any, Callable, Dict, Optional, Tuple


class MemoryCache:
    """
    TTL cache with a size limit and LRU eviction.

    Entries are (expires_at, value); reads refresh recency.
    """

    def __init__(
        self,
        ttl_seconds: float = 300,
        max_size: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._clock = clock
        self._cache: "OrderedDict[str, Tuple[float, Any]]" = OrderedDict()

        # Stats
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def get(self, key: str) -> Optional[Any]:
        entry = self._cache.get(key)
        if entry is None:
            self.misses += 1
            return None

        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._cache[key]
            self.misses += 1
            return None

        self._cache.move_to_end(key)
        self.hits += 1
        return value

    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        if key in self._cache:
            self._cache.move_to_end(key)
        elif len(self._cache) >= self.max_size:
            self._cache.popitem(last=False)
            self.evictions += 1

        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        self._cache[key] = (self._clock() + ttl, value)

    def delete(self, key: str) -> None:
        self._cache.pop(key, None)

    def clear(self) -> None:
        self._cache.clear()
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def __len__(self) -> int:
        return len(self._cache)

    def get_stats(self) -> Dict[str, Any]:
        total_requests = self.hits + self.misses
        hit_rate = (self.hits / total_requests * 100) if total_requests > 0 else 0
        return {
            "size": len(self._cache),
            "max_size": self.max_size,
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate_pct": hit_rate,
            "evictions": self.evictions,
            "ttl_seconds": self.ttl_seconds,
        }
