from typing import Optional

import requests

from walletgraph.adapters.http.json_client import JsonHttpClient
from walletgraph.config import settings
from walletgraph.core.enums import EntityKind, EntitySource
from walletgraph.core.models import EntityAnnotation
from walletgraph.ports.entity_lookup_port import EntityLookupPort


class JupiterTokenAdapter(EntityLookupPort):
    """Token-list lookup: is this address a listed mint?"""

    name = "jupiter"

    def __init__(
        self,
        base_url: str = settings.JUPITER_TOKEN_BASE_URL,
        timeout_sec: float = settings.ENTITY_LOOKUP_TIMEOUT_SEC,
        requests_per_sec: float = settings.JUPITER_REQUESTS_PER_SEC,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._http = JsonHttpClient(
            base_url,
            timeout_sec=timeout_sec,
            requests_per_sec=requests_per_sec,
            session=session,
            name="Jupiter",
        )

    def resolve(self, address: str) -> Optional[EntityAnnotation]:
        data = self._http.get(f"token/{address}")
        if not isinstance(data, dict) or not data.get("symbol"):
            return None
        symbol = str(data["symbol"])
        token_name = str(data.get("name") or symbol)
        return EntityAnnotation.create(
            name=token_name,
            kind=EntityKind.TOKEN,
            description=f"Token: {symbol}",
            source=EntitySource.TOKEN_LIST,
            metadata={
                "symbol": symbol,
                "decimals": data.get("decimals"),
                "logoURI": data.get("logoURI"),
                "tags": data.get("tags") or [],
                "provider": "jupiter",
            },
        )
