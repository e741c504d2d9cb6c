from __future__ import annotations

import uuid
from typing import Tuple

from redis.asyncio import Redis

from walletgraph.config import settings
from walletgraph.core.dto import RateLimitWindow
from walletgraph.ports.rate_limit_store_port import RateLimitStorePort


# Sorted-set request log: score = admission time in ms. Only admitted
# requests are recorded, so a client hammering a closed window does not
# push its own reset further out.
_SLIDING_WINDOW_LUA = """
local key = KEYS[1]
local now = tonumber(ARGV[1])
local window = tonumber(ARGV[2])
local limit = tonumber(ARGV[3])
local member = ARGV[4]

redis.call('ZREMRANGEBYSCORE', key, '-inf', now - window)
local count = redis.call('ZCARD', key)
local allowed = 0
if count < limit then
  redis.call('ZADD', key, now, member)
  count = count + 1
  allowed = 1
end
redis.call('PEXPIRE', key, window)

local oldest = now
local first = redis.call('ZRANGE', key, 0, 0, 'WITHSCORES')
if first[2] then
  oldest = tonumber(first[2])
end
return {allowed, count, oldest}
"""


class RedisSlidingWindowStore(RateLimitStorePort):

    def __init__(self, redis: Redis, key_prefix: str = settings.RATE_LIMIT_KEY_PREFIX) -> None:
        self._redis = redis
        self._prefix = key_prefix
        self._script = redis.register_script(_SLIDING_WINDOW_LUA)

    async def hit(
        self,
        identifier: str,
        limit: int,
        window_ms: int,
        now_ms: int,
    ) -> Tuple[bool, RateLimitWindow]:
        member = f"{now_ms}-{uuid.uuid4().hex}"
        allowed, count, oldest = await self._script(
            keys=[f"{self._prefix}{identifier}"],
            args=[now_ms, window_ms, limit, member],
        )
        oldest = int(oldest)
        return bool(int(allowed)), RateLimitWindow(
            identifier=identifier,
            window_start_ms=oldest,
            count=int(count),
            limit=limit,
            reset_at_ms=oldest + window_ms,
        )
