from typing import Optional

import requests

from walletgraph.adapters.http.json_client import JsonHttpClient
from walletgraph.config import settings
from walletgraph.core.enums import EntityKind, EntitySource
from walletgraph.core.models import EntityAnnotation
from walletgraph.ports.entity_lookup_port import EntityLookupPort


class SnsNameAdapter(EntityLookupPort):
    """Reverse lookup of a Solana Name Service domain owned by the address."""

    name = "sns"

    def __init__(
        self,
        base_url: str = settings.SNS_BASE_URL,
        timeout_sec: float = settings.ENTITY_LOOKUP_TIMEOUT_SEC,
        requests_per_sec: float = settings.SNS_REQUESTS_PER_SEC,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._http = JsonHttpClient(
            base_url,
            timeout_sec=timeout_sec,
            requests_per_sec=requests_per_sec,
            session=session,
            name="SNS",
        )

    def resolve(self, address: str) -> Optional[EntityAnnotation]:
        data = self._http.get(f"resolve/{address}")
        if not isinstance(data, dict):
            return None
        domain = data.get("name")
        if not domain:
            return None
        domain = str(domain)
        return EntityAnnotation.create(
            name=domain,
            kind=EntityKind.SNS_DOMAIN,
            description=f"SNS Domain: {domain}",
            source=EntitySource.NAME_SERVICE,
        )
