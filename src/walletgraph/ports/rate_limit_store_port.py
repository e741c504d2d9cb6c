from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Tuple

from walletgraph.core.dto import RateLimitWindow


class RateLimitStorePort(ABC):

    @abstractmethod
    async def hit(
        self,
        identifier: str,
        limit: int,
        window_ms: int,
        now_ms: int,
    ) -> Tuple[bool, RateLimitWindow]:
        """
        Atomically record one request for `identifier` if fewer than `limit`
        were admitted in the last `window_ms`. Returns (admitted, window).
        """
        raise NotImplementedError
