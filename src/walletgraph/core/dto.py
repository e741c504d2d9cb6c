import math
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class RawTransfer:
    """One transfer leg pulled out of a raw transaction, before filtering."""

    from_address: Optional[str]
    to_address: Optional[str]
    is_native: bool
    raw_amount: Decimal         # lamports / raw token units
    ui_amount: Decimal          # decimals applied
    decimals: int
    token_amount: Optional[Decimal] = None     # amount as reported on the record
    mint: Optional[str] = None
    token_symbol: Optional[str] = None


@dataclass(frozen=True)
class DexScreenerPair:
    chain_id: str
    dex_id: str
    pair_address: str
    base_token: str
    base_symbol: Optional[str]
    base_name: Optional[str]
    quote_token: str
    price_usd: Optional[Decimal]
    liquidity_usd: Optional[Decimal]


@dataclass(frozen=True)
class RateLimitWindow:
    identifier: str
    window_start_ms: int
    count: int
    limit: int
    reset_at_ms: int


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_at: datetime

    def retry_after_seconds(self, now: Optional[datetime] = None) -> int:
        now = now or datetime.now(timezone.utc)
        return max(1, math.ceil((self.reset_at - now).total_seconds()))
