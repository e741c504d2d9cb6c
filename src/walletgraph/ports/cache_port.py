from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional


class CachePort(ABC):
    """Shared key/value store with per-key TTL. Values are JSON strings."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    @abstractmethod
    async def set_with_ttl(self, key: str, value: str, ttl_seconds: int) -> None:
        raise NotImplementedError
