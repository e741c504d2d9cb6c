import time
from typing import Callable

from walletgraph.core.errors import ProcessingTimeout


class Deadline:
    """
    Wall-clock budget started at request start and passed to every stage
    that fans out network work.
    """

    def __init__(self, budget_sec: float, clock: Callable[[], float] = time.monotonic) -> None:
        if budget_sec <= 0:
            raise ValueError("budget_sec must be > 0")
        self._clock = clock
        self._budget = budget_sec
        self._expires_at = clock() + budget_sec

    @property
    def budget(self) -> float:
        return self._budget

    def remaining(self) -> float:
        return max(0.0, self._expires_at - self._clock())

    def elapsed(self) -> float:
        return self._budget - (self._expires_at - self._clock())

    def expired(self) -> bool:
        return self.remaining() <= 0

    def check(self, stage: str) -> None:
        if self.expired():
            raise ProcessingTimeout(f"deadline of {self._budget:.0f}s exceeded before {stage}")
