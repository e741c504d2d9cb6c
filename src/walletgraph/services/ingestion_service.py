from __future__ import annotations

import asyncio
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence

from walletgraph.config import settings
from walletgraph.core.errors import InvalidAddress, InvalidTimeRange
from walletgraph.core.models import TimeRange
from walletgraph.ports.chain_data_port import ChainDataPort

logger = logging.getLogger(__name__)

_ADDRESS_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")

# values below this are unix seconds, at or above it milliseconds
_SECONDS_CUTOFF = 1e10

# (max days, limit); narrower windows get more records
_LIMIT_STEPS = ((1, 100), (3, 75), (7, 50), (14, 30))
_WIDE_RANGE_LIMIT = 20

# fromisoformat before 3.11 only takes 3 or 6 fraction digits and HH:MM offsets
_FRACTION_RE = re.compile(r"\.(\d+)")
_COMPACT_OFFSET_RE = re.compile(r"(?<=\d)([+-])(\d{2})(\d{2})$")


def validate_address(address: Any) -> str:
    if not isinstance(address, str):
        raise InvalidAddress("address must be a string")
    cleaned = address.strip()
    if not _ADDRESS_RE.match(cleaned):
        raise InvalidAddress(f"not a base58 address: {cleaned[:8]}...")
    return cleaned


def _parse_iso(value: Any, field: str) -> datetime:
    if not isinstance(value, str) or not value.strip():
        raise InvalidTimeRange(f"timeRange.{field} must be an ISO-8601 string")
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    if "T" in text or " " in text:
        text = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
        text = _COMPACT_OFFSET_RE.sub(r"\1\2:\3", text)
    try:
        dt = datetime.fromisoformat(text)
    except ValueError as e:
        raise InvalidTimeRange(f"timeRange.{field} is not ISO-8601: {value!r}") from e
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def parse_time_range(raw: Optional[Mapping[str, Any]]) -> Optional[TimeRange]:
    if raw is None:
        return None
    if not isinstance(raw, Mapping) or "start" not in raw or "end" not in raw:
        raise InvalidTimeRange("timeRange must have start and end")
    start = _parse_iso(raw["start"], "start")
    end = _parse_iso(raw["end"], "end")
    if start > end:
        raise InvalidTimeRange("timeRange.start is after timeRange.end")
    return TimeRange(start=start, end=end)


def limit_for_time_range(time_range: Optional[TimeRange], default: int = settings.HELIUS_DEFAULT_LIMIT) -> int:
    if time_range is None:
        return default
    days = time_range.days
    for max_days, limit in _LIMIT_STEPS:
        if days <= max_days:
            return limit
    return _WIDE_RANGE_LIMIT


def normalize_timestamp_ms(ts: Any) -> int:
    if ts is None:
        return 0
    try:
        val = float(ts)
    except (TypeError, ValueError):
        return 0
    if val < _SECONDS_CUTOFF:
        val *= 1000
    return int(val)


def filter_by_time_range(
    transactions: Sequence[Dict[str, Any]],
    time_range: Optional[TimeRange],
) -> List[Dict[str, Any]]:
    if time_range is None:
        return list(transactions)
    start_ms, end_ms = time_range.start_ms, time_range.end_ms
    return [
        tx for tx in transactions
        if start_ms <= normalize_timestamp_ms(tx.get("timestamp")) <= end_ms
    ]


class IngestionService:
    """Fetches raw history for an address; the chain adapter is blocking."""

    def __init__(
        self,
        chain: ChainDataPort,
        transaction_types: Sequence[str] = tuple(settings.HELIUS_TRANSACTION_TYPES),
    ) -> None:
        self._chain = chain
        self._types = list(transaction_types)

    async def fetch(self, address: str, time_range: Optional[TimeRange]) -> List[Dict[str, Any]]:
        limit = limit_for_time_range(time_range)
        logger.debug("Fetching up to %d transactions for %s...", limit, address[:8])
        return await asyncio.to_thread(self._chain.fetch_transactions, address, limit, self._types)
