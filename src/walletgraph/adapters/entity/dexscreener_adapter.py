from __future__ import annotations

from decimal import Decimal
from typing import Any, List, Optional

import requests

from walletgraph.adapters.http.json_client import JsonHttpClient
from walletgraph.config import settings
from walletgraph.core.dto import DexScreenerPair
from walletgraph.core.enums import EntityKind, EntitySource
from walletgraph.core.models import EntityAnnotation
from walletgraph.ports.entity_lookup_port import EntityLookupPort


class DexScreenerAdapter(EntityLookupPort):
    """
    Token-info lookup through DexScreener pairs: an address that is the base
    token of at least one Solana pair is annotated as a token.
    """

    name = "dexscreener"

    def __init__(
        self,
        base_url: str = settings.DEXSCREENER_BASE_URL,
        requests_per_sec: float = settings.DEXSCREENER_REQUESTS_PER_SEC,
        timeout_sec: float = settings.ENTITY_LOOKUP_TIMEOUT_SEC,
        chain_id: str = settings.DEXSCREENER_CHAIN_ID,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._chain_id = chain_id
        self._http = JsonHttpClient(
            base_url,
            timeout_sec=timeout_sec,
            requests_per_sec=requests_per_sec,
            session=session,
            name="DexScreener",
        )

    @staticmethod
    def _dec(val: Any) -> Optional[Decimal]:
        if val is None:
            return None
        try:
            return Decimal(str(val))
        except Exception:
            return None

    def get_pairs(self, token_address: str) -> List[DexScreenerPair]:
        data = self._http.get(f"tokens/{token_address}")
        if not isinstance(data, dict):
            return []
        pairs = data.get("pairs") if isinstance(data.get("pairs"), list) else []
        out: List[DexScreenerPair] = []
        for p in pairs:
            if not isinstance(p, dict):
                continue
            chain_id = str(p.get("chainId") or "")
            if self._chain_id and chain_id != self._chain_id:
                continue
            base = p.get("baseToken") or {}
            quote = p.get("quoteToken") or {}
            out.append(
                DexScreenerPair(
                    chain_id=chain_id,
                    dex_id=str(p.get("dexId") or ""),
                    pair_address=str(p.get("pairAddress") or ""),
                    base_token=str(base.get("address") or ""),
                    base_symbol=base.get("symbol"),
                    base_name=base.get("name"),
                    quote_token=str(quote.get("address") or ""),
                    price_usd=self._dec(p.get("priceUsd")),
                    liquidity_usd=self._dec((p.get("liquidity") or {}).get("usd")),
                )
            )
        return out

    def resolve(self, address: str) -> Optional[EntityAnnotation]:
        pairs = [p for p in self.get_pairs(address) if p.base_token == address and p.base_symbol]
        if not pairs:
            return None

        # most liquid pair wins (unknown liquidity ranks last)
        best = max(pairs, key=lambda p: p.liquidity_usd if p.liquidity_usd is not None else Decimal("-1"))
        symbol = str(best.base_symbol)
        return EntityAnnotation.create(
            name=str(best.base_name or symbol),
            kind=EntityKind.TOKEN,
            description=f"Token: {symbol}",
            source=EntitySource.TOKEN_LIST,
            metadata={
                "symbol": symbol,
                "dex": best.dex_id,
                "pairAddress": best.pair_address,
                "priceUsd": str(best.price_usd) if best.price_usd is not None else None,
                "liquidityUsd": str(best.liquidity_usd) if best.liquidity_usd is not None else None,
                "pairCount": len(pairs),
                "provider": "dexscreener",
            },
        )
