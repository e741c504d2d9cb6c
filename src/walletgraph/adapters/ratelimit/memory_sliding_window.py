from __future__ import annotations

from collections import deque
from typing import Deque, Dict, Tuple

from walletgraph.core.dto import RateLimitWindow
from walletgraph.ports.rate_limit_store_port import RateLimitStorePort


class InMemorySlidingWindowStore(RateLimitStorePort):
    """Single-process request log, for local runs and tests."""

    def __init__(self, sweep_every: int = 1000) -> None:
        if sweep_every <= 0:
            raise ValueError("sweep_every must be > 0")
        self._logs: Dict[str, Deque[int]] = {}
        self._sweep_every = sweep_every
        self._hits = 0

    def __len__(self) -> int:
        return len(self._logs)

    async def hit(
        self,
        identifier: str,
        limit: int,
        window_ms: int,
        now_ms: int,
    ) -> Tuple[bool, RateLimitWindow]:
        self._hits += 1
        if self._hits % self._sweep_every == 0:
            self._sweep(now_ms - window_ms)

        log = self._logs.setdefault(identifier, deque())
        _prune(log, now_ms - window_ms)

        allowed = len(log) < limit
        if allowed:
            log.append(now_ms)
        elif not log:
            del self._logs[identifier]

        oldest = log[0] if log else now_ms
        return allowed, RateLimitWindow(
            identifier=identifier,
            window_start_ms=oldest,
            count=len(log),
            limit=limit,
            reset_at_ms=oldest + window_ms,
        )

    def _sweep(self, cutoff_ms: int) -> None:
        # identifiers with nothing left inside the window
        for identifier in list(self._logs):
            log = self._logs[identifier]
            _prune(log, cutoff_ms)
            if not log:
                del self._logs[identifier]


def _prune(log: Deque[int], cutoff_ms: int) -> None:
    while log and log[0] <= cutoff_ms:
        log.popleft()
