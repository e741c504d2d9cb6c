from __future__ import annotations

from typing import Optional

from redis.asyncio import Redis

from walletgraph.config import settings
from walletgraph.ports.cache_port import CachePort


def create_redis_client(url: Optional[str] = None) -> Optional[Redis]:
    url = url or settings.REDIS_URL
    if not url:
        return None
    return Redis.from_url(
        url,
        decode_responses=True,
        socket_timeout=settings.REDIS_SOCKET_TIMEOUT_SEC,
        socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT_SEC,
    )


class RedisCache(CachePort):
    """Shared metadata cache. Errors propagate; MetadataCache absorbs them."""

    def __init__(self, redis: Redis) -> None:
        self._redis = redis

    async def get(self, key: str) -> Optional[str]:
        value = await self._redis.get(key)
        if value is None:
            return None
        return value if isinstance(value, str) else value.decode("utf-8")

    async def set_with_ttl(self, key: str, value: str, ttl_seconds: int) -> None:
        await self._redis.set(key, value, ex=int(ttl_seconds))
