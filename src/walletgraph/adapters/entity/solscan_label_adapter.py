from typing import Optional

import requests

from walletgraph.adapters.http.json_client import JsonHttpClient
from walletgraph.config import settings
from walletgraph.core.enums import EntityKind, EntitySource
from walletgraph.core.models import EntityAnnotation
from walletgraph.ports.entity_lookup_port import EntityLookupPort


class SolscanLabelAdapter(EntityLookupPort):
    name = "solscan"

    def __init__(
        self,
        base_url: str = settings.SOLSCAN_BASE_URL,
        timeout_sec: float = settings.ENTITY_LOOKUP_TIMEOUT_SEC,
        requests_per_sec: float = settings.SOLSCAN_REQUESTS_PER_SEC,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._http = JsonHttpClient(
            base_url,
            timeout_sec=timeout_sec,
            requests_per_sec=requests_per_sec,
            headers={"User-Agent": settings.SOLSCAN_USER_AGENT},
            session=session,
            name="Solscan",
        )

    def resolve(self, address: str) -> Optional[EntityAnnotation]:
        data = self._http.get("account", params={"address": address})
        if not isinstance(data, dict):
            return None
        account = data.get("data")
        label = account.get("label") if isinstance(account, dict) else None
        if not label:
            return None
        label = str(label)
        return EntityAnnotation.create(
            name=label,
            kind=EntityKind.LABELED_ADDRESS,
            description=f"Labeled: {label}",
            source=EntitySource.LABEL_SERVICE,
        )
