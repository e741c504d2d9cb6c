from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable, Optional

from walletgraph.config import settings
from walletgraph.core.dto import RateLimitDecision
from walletgraph.ports.rate_limit_store_port import RateLimitStorePort

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class SlidingWindowRateLimiter:
    """
    Per-client request admission: at most `limit` requests in any trailing
    `window_seconds`. Fails open when the store is missing or broken.
    """

    def __init__(
        self,
        store: Optional[RateLimitStorePort],
        limit: int = settings.RATE_LIMIT_REQUESTS,
        window_seconds: float = settings.RATE_LIMIT_WINDOW_SEC,
        clock_ms: Callable[[], int] = _now_ms,
    ) -> None:
        if limit <= 0:
            raise ValueError("limit must be > 0")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        self._store = store
        self._limit = limit
        self._window_ms = int(window_seconds * 1000)
        self._clock_ms = clock_ms

    @property
    def limit(self) -> int:
        return self._limit

    async def check(self, identifier: str) -> RateLimitDecision:
        now_ms = self._clock_ms()

        if self._store is None:
            logger.warning("No rate-limit store configured, admitting %s", identifier)
            return self._open(now_ms)

        try:
            allowed, window = await self._store.hit(identifier, self._limit, self._window_ms, now_ms)
        except Exception:
            logger.exception("Rate-limit store failed, admitting %s", identifier)
            return self._open(now_ms)

        decision = RateLimitDecision(
            allowed=allowed,
            limit=self._limit,
            remaining=max(0, self._limit - window.count),
            reset_at=_to_datetime(window.reset_at_ms),
        )
        if not allowed:
            logger.info("Rate limit hit for %s (resets %s)", identifier, decision.reset_at.isoformat())
        return decision

    def retry_after_seconds(self, decision: RateLimitDecision) -> int:
        """Seconds until `decision` resets, measured on this limiter's clock."""
        return decision.retry_after_seconds(_to_datetime(self._clock_ms()))

    def _open(self, now_ms: int) -> RateLimitDecision:
        return RateLimitDecision(
            allowed=True,
            limit=self._limit,
            remaining=self._limit,
            reset_at=_to_datetime(now_ms + self._window_ms),
        )


def _to_datetime(ms: int) -> datetime:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)
