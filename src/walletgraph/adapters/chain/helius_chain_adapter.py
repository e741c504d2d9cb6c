from typing import Any, Dict, List, Optional, Sequence

import requests

from walletgraph.adapters.http.json_client import JsonHttpClient
from walletgraph.config import settings
from walletgraph.core.errors import ConfigurationError, DataSourceError
from walletgraph.core.models import TokenMetadataRecord
from walletgraph.ports.chain_data_port import ChainDataPort


UNKNOWN_SYMBOL = "Unknown"


class HeliusChainAdapter(ChainDataPort):

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = settings.HELIUS_BASE_URL,
        timeout_sec: float = settings.HELIUS_TIMEOUT_SEC,
        max_retries: int = settings.HELIUS_MAX_RETRIES,
        requests_per_sec: float = settings.HELIUS_REQUESTS_PER_SEC,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._api_key = api_key if api_key is not None else settings.HELIUS_API_KEY
        self._http = JsonHttpClient(
            base_url,
            timeout_sec=timeout_sec,
            max_retries=max_retries,
            requests_per_sec=requests_per_sec,
            headers={"Content-Type": "application/json"},
            session=session,
            name="Helius",
        )

    # ---------- internal ----------

    def _key_params(self) -> Dict[str, Any]:
        if not self._api_key:
            raise ConfigurationError("HELIUS_API_KEY not configured")
        return {"api-key": self._api_key}

    # ---------- port methods ----------

    def fetch_transactions(
        self,
        address: str,
        limit: int,
        transaction_types: Sequence[str] = (),
    ) -> List[Dict[str, Any]]:
        params = self._key_params()
        params["limit"] = int(limit)
        if transaction_types:
            params["transactionTypes[]"] = list(transaction_types)

        data = self._http.get(f"addresses/{address}/transactions", params=params)
        if data is None:
            return []
        if not isinstance(data, list):
            raise DataSourceError(f"Invalid Helius transactions response: {type(data).__name__}")
        return [tx for tx in data if isinstance(tx, dict)]

    def get_token_metadata(
        self,
        mints: Sequence[str],
        timeout_sec: Optional[float] = None,
    ) -> List[TokenMetadataRecord]:
        if not mints:
            return []
        data = self._http.post(
            "token-metadata",
            json_body={"mintAccounts": list(mints), "includeOffChain": True},
            params=self._key_params(),
            timeout=timeout_sec,
        )
        if data is None:
            return []
        if not isinstance(data, list):
            raise DataSourceError(f"Invalid Helius token-metadata response: {type(data).__name__}")

        out: List[TokenMetadataRecord] = []
        for item in data:
            if not isinstance(item, dict):
                continue
            rec = token_record_from_helius(item)
            if rec is not None:
                out.append(rec)
        return out


def _clean(val: Any) -> Optional[str]:
    # on-chain metadata strings are NUL padded to a fixed width
    if val is None:
        return None
    s = str(val).replace("\x00", "").strip()
    return s or None


def _dig(d: Any, *path: str) -> Any:
    for key in path:
        if not isinstance(d, dict):
            return None
        d = d.get(key)
    return d


def token_record_from_helius(item: Dict[str, Any]) -> Optional[TokenMetadataRecord]:
    mint = _clean(item.get("account") or item.get("mint"))
    if not mint:
        return None

    on_chain = _dig(item, "onChainMetadata", "metadata") or {}
    on_data = on_chain.get("data") or {}
    off_chain = item.get("offChainMetadata") or {}
    off_meta = off_chain.get("metadata") or off_chain
    legacy = item.get("legacyMetadata") or {}
    parsed_info = _dig(item, "onChainAccountInfo", "accountInfo", "data", "parsed", "info") or {}

    on_symbol = _clean(on_data.get("symbol"))
    off_symbol = _clean(off_meta.get("symbol"))
    on_name = _clean(on_data.get("name"))
    off_name = _clean(off_meta.get("name"))

    symbol = on_symbol or off_symbol or (on_name[:4] if on_name else None) or UNKNOWN_SYMBOL
    name = on_name or off_name or _clean(legacy.get("name")) or UNKNOWN_SYMBOL

    decimals = parsed_info.get("decimals")
    if decimals is None:
        decimals = on_data.get("decimals", legacy.get("decimals"))
    supply = parsed_info.get("supply", on_data.get("supply"))

    collection = on_chain.get("collection") or on_data.get("collection")
    if isinstance(collection, dict):
        collection = collection.get("key")

    logo = (
        _clean(off_meta.get("image"))
        or _clean(off_chain.get("logoURI"))
        or _clean(legacy.get("logoURI"))
    )

    return TokenMetadataRecord(
        mint=mint,
        symbol=symbol,
        name=name,
        decimals=int(decimals) if isinstance(decimals, (int, float)) or str(decimals).isdigit() else None,
        supply=str(supply) if supply is not None else None,
        collection=_clean(collection),
        logo_url=logo,
    )
