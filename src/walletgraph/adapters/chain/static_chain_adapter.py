import copy
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from walletgraph.core.models import TokenMetadataRecord
from walletgraph.ports.chain_data_port import ChainDataPort

class StaticChainAdapter(ChainDataPort):
    def __init__(self,
                 transactions: Optional[List[Dict[str, Any]]] = None,
                 token_metadata: Optional[Dict[str, TokenMetadataRecord]] = None,
                 ):
        self._txs = transactions or []
        self._meta = token_metadata or {}
        self.fetch_calls: List[Dict[str, Any]] = []
        self.metadata_calls: List[List[str]] = []

    @classmethod
    def from_fixture(cls, path: str) -> "StaticChainAdapter":
        # either a bare list of transactions or {"transactions": [...], "tokenMetadata": {...}}
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        if isinstance(data, list):
            return cls(transactions=data)
        meta = {
            mint: TokenMetadataRecord.from_dict({"mint": mint, **rec})
            for mint, rec in (data.get("tokenMetadata") or {}).items()
        }
        return cls(transactions=data.get("transactions") or [], token_metadata=meta)

    def fetch_transactions(self, address, limit, transaction_types = ()):
        self.fetch_calls.append({"address": address, "limit": limit, "types": list(transaction_types)})
        return copy.deepcopy(self._txs[:limit])

    def get_token_metadata(self, mints: Sequence[str], timeout_sec = None):
        self.metadata_calls.append(list(mints))
        return [self._meta[m] for m in mints if m in self._meta]
