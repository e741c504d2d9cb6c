from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional

from walletgraph.config import settings
from walletgraph.core.deadline import Deadline
from walletgraph.core.models import TokenMetadataRecord, TransferEdge
from walletgraph.ports.chain_data_port import ChainDataPort
from walletgraph.services.metadata_cache import MetadataCache

logger = logging.getLogger(__name__)

TOKEN_KEY_PREFIX = "token:"
_UNKNOWN_SYMBOLS = ("", "Unknown")


def mints_needing_metadata(edges: Iterable[TransferEdge]) -> List[str]:
    """Unique mints (first-seen order) of edges whose symbol is unknown."""
    seen = set()
    out: List[str] = []
    for e in edges:
        if not e.mint or e.mint in seen:
            continue
        if e.token_symbol is None or e.token_symbol in _UNKNOWN_SYMBOLS:
            seen.add(e.mint)
            out.append(e.mint)
    return out


def apply_token_metadata(edges: Iterable[TransferEdge], records: Dict[str, TokenMetadataRecord]) -> None:
    for e in edges:
        rec = records.get(e.mint) if e.mint else None
        if rec is None:
            continue
        e.token_symbol = rec.symbol
        e.token_name = rec.name
        e.token_logo = rec.logo_url


class TokenMetadataService:
    """
    Fills in symbol/name/logo for token edges.

    Cache first; misses go to the chain's batch endpoint in fixed-size
    groups. A failed group is retried mint by mint, so one bad mint does not
    cost the whole group.
    """

    def __init__(
        self,
        chain: ChainDataPort,
        cache: MetadataCache,
        batch_size: int = settings.TOKEN_METADATA_BATCH_SIZE,
        batch_timeout: float = settings.TOKEN_METADATA_BATCH_TIMEOUT_SEC,
        item_timeout: float = settings.TOKEN_METADATA_ITEM_TIMEOUT_SEC,
    ) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be > 0")
        self._chain = chain
        self._cache = cache
        self._batch_size = batch_size
        self._batch_timeout = batch_timeout
        self._item_timeout = item_timeout

    async def enrich(
        self,
        edges: List[TransferEdge],
        deadline: Optional[Deadline] = None,
    ) -> Dict[str, TokenMetadataRecord]:
        mints = mints_needing_metadata(edges)
        if not mints:
            return {}

        records: Dict[str, TokenMetadataRecord] = {}
        cached = await asyncio.gather(*(self._cache.get(TOKEN_KEY_PREFIX + m) for m in mints))
        misses: List[str] = []
        for mint, value in zip(mints, cached):
            rec = self._decode(value)
            if rec is None:
                misses.append(mint)
            else:
                records[mint] = rec
        logger.debug("Token metadata: %d cached, %d to fetch", len(records), len(misses))

        for i in range(0, len(misses), self._batch_size):
            if deadline is not None:
                deadline.check("token metadata")
            batch = misses[i:i + self._batch_size]
            fetched = await self._fetch_batch(batch, deadline)

            wanted = set(batch)
            fresh = [rec for rec in fetched if rec.mint in wanted]
            for rec in fresh:
                records[rec.mint] = rec
            await asyncio.gather(*(self._cache.set(TOKEN_KEY_PREFIX + rec.mint, rec.to_dict()) for rec in fresh))

        apply_token_metadata(edges, records)
        return records

    # -------------------------
    # Fetching
    # -------------------------

    async def _fetch_batch(self, batch: List[str], deadline: Optional[Deadline]) -> List[TokenMetadataRecord]:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._chain.get_token_metadata, batch, self._batch_timeout),
                timeout=self._batch_timeout,
            )
        except Exception as exc:
            logger.warning("Token metadata batch of %d failed (%s), falling back to single mints", len(batch), exc)

        out: List[TokenMetadataRecord] = []
        for mint in batch:
            if deadline is not None:
                deadline.check("token metadata fallback")
            try:
                out.extend(await asyncio.wait_for(
                    asyncio.to_thread(self._chain.get_token_metadata, [mint], self._item_timeout),
                    timeout=self._item_timeout,
                ))
            except Exception as exc:
                logger.debug("Token metadata for %s failed: %s", mint[:8], exc)
        return out

    @staticmethod
    def _decode(value: Any) -> Optional[TokenMetadataRecord]:
        if value is None:
            return None
        try:
            return TokenMetadataRecord.from_dict(value)
        except (KeyError, TypeError, ValueError):
            logger.warning("Discarding malformed cached token record: %r", value)
            return None
