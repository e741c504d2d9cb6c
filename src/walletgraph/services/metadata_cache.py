from __future__ import annotations

import json
import logging
from typing import Any, Optional

from walletgraph.adapters.cache.memory_cache import MemoryCache
from walletgraph.config import settings
from walletgraph.ports.cache_port import CachePort

logger = logging.getLogger(__name__)


class MetadataCache:
    """
    Two-tier cache for entity and token records.

    - local: in-process MemoryCache, always present
    - shared: optional CachePort (Redis); any failure is logged and treated
      as a miss / dropped write, never raised
    """

    def __init__(
        self,
        shared: Optional[CachePort] = None,
        local: Optional[MemoryCache] = None,
        ttl_seconds: int = settings.CACHE_TTL_SECONDS,
    ) -> None:
        self._shared = shared
        self._local = local or MemoryCache(ttl_seconds=ttl_seconds, max_size=settings.LOCAL_CACHE_MAX_SIZE)
        self._ttl = ttl_seconds

    @property
    def local(self) -> MemoryCache:
        return self._local

    def get_local(self, key: str) -> Optional[Any]:
        return self._local.get(key)

    async def get_shared(self, key: str) -> Optional[Any]:
        """Shared-tier read; a hit is copied into the local tier."""
        if self._shared is None:
            return None
        try:
            raw = await self._shared.get(key)
        except Exception as exc:
            logger.warning("Shared cache GET %s failed: %s", key, exc)
            return None
        if raw is None:
            return None
        try:
            value = json.loads(raw)
        except ValueError:
            logger.warning("Shared cache value for %s is not JSON, ignoring", key)
            return None
        self._local.set(key, value, self._ttl)
        return value

    async def get(self, key: str) -> Optional[Any]:
        value = self.get_local(key)
        if value is not None:
            return value
        return await self.get_shared(key)

    async def set(self, key: str, value: Any) -> None:
        """Write-through to both tiers."""
        self._local.set(key, value, self._ttl)
        if self._shared is None:
            return
        try:
            await self._shared.set_with_ttl(key, json.dumps(value), self._ttl)
        except Exception as exc:
            logger.warning("Shared cache SET %s failed: %s", key, exc)
