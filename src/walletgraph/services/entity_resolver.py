from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from walletgraph.config import settings
from walletgraph.core.deadline import Deadline
from walletgraph.core.models import EntityAnnotation
from walletgraph.ports.entity_lookup_port import EntityLookupPort
from walletgraph.services.entity_registry import EntityRegistry
from walletgraph.services.metadata_cache import MetadataCache

logger = logging.getLogger(__name__)

ENTITY_KEY_PREFIX = "entity:"


class EntityResolver:
    """
    Maps addresses to the real-world actor behind them.

    Cascade per address, stopping at the first hit:
    local cache -> shared cache -> registry -> each network lookup in order.
    Network lookups are blocking adapters run in worker threads, each bounded
    by its own timeout; an error or timeout just moves on to the next source.
    """

    def __init__(
        self,
        registry: EntityRegistry,
        lookups: Sequence[EntityLookupPort],
        cache: MetadataCache,
        batch_size: int = settings.ENTITY_BATCH_SIZE,
        lookup_timeout: float = settings.ENTITY_LOOKUP_TIMEOUT_SEC,
    ) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be > 0")
        self._registry = registry
        self._lookups = list(lookups)
        self._cache = cache
        self._batch_size = batch_size
        self._lookup_timeout = lookup_timeout

    async def resolve(self, address: str) -> Optional[EntityAnnotation]:
        if not address:
            return None
        key = ENTITY_KEY_PREFIX + address

        cached = self._decode(self._cache.get_local(key))
        if cached is not None:
            return cached
        cached = self._decode(await self._cache.get_shared(key))
        if cached is not None:
            return cached

        hit = self._registry.resolve(address)
        if hit is None:
            for lookup in self._lookups:
                hit = await self._run_lookup(lookup, address)
                if hit is not None:
                    break

        if hit is not None:
            await self._cache.set(key, hit.to_dict())
        return hit

    async def resolve_many(
        self,
        addresses: Iterable[str],
        deadline: Optional[Deadline] = None,
    ) -> Dict[str, EntityAnnotation]:
        candidates = self._candidates(addresses)
        results: Dict[str, EntityAnnotation] = {}

        for i in range(0, len(candidates), self._batch_size):
            if deadline is not None:
                deadline.check("entity resolution")
            batch = candidates[i:i + self._batch_size]
            outcomes = await asyncio.gather(*(self.resolve(a) for a in batch), return_exceptions=True)
            for address, outcome in zip(batch, outcomes):
                if isinstance(outcome, BaseException):
                    logger.warning("Entity resolution failed for %s: %s", address[:8], outcome)
                    continue
                if outcome is not None:
                    results[address] = outcome

        logger.debug("Resolved %d/%d addresses", len(results), len(candidates))
        return results

    # -------------------------
    # Helpers
    # -------------------------

    def _candidates(self, addresses: Iterable[str]) -> List[str]:
        seen = set()
        out: List[str] = []
        for a in addresses:
            if not a or a in seen or self._registry.is_system_account(a):
                continue
            seen.add(a)
            out.append(a)
        return out

    async def _run_lookup(self, lookup: EntityLookupPort, address: str) -> Optional[EntityAnnotation]:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(lookup.resolve, address),
                timeout=self._lookup_timeout,
            )
        except asyncio.TimeoutError:
            logger.debug("%s lookup timed out for %s", lookup.name, address[:8])
        except Exception as exc:
            logger.debug("%s lookup failed for %s: %s", lookup.name, address[:8], exc)
        return None

    @staticmethod
    def _decode(value: Any) -> Optional[EntityAnnotation]:
        if value is None:
            return None
        try:
            return EntityAnnotation.from_dict(value)
        except (KeyError, TypeError, ValueError):
            logger.warning("Discarding malformed cached entity: %r", value)
            return None
