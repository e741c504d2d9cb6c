from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from walletgraph.core.models import TokenMetadataRecord


class ChainDataPort(ABC):
    """
    Abstract Class for fetching chain-related facts for graph building.

    Implementations are blocking; services run them off the event loop.
    """

    # --- Raw transaction history ---

    @abstractmethod
    def fetch_transactions(
        self,
        address: str,
        limit: int,
        transaction_types: Sequence[str] = (),
    ) -> List[Dict[str, Any]]:
        raise NotImplementedError

    # --- Token metadata by mint (batch) ---

    @abstractmethod
    def get_token_metadata(
        self,
        mints: Sequence[str],
        timeout_sec: Optional[float] = None,
    ) -> List[TokenMetadataRecord]:
        raise NotImplementedError
