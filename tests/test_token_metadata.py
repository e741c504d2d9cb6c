import unittest
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from walletgraph.adapters.chain.static_chain_adapter import StaticChainAdapter
from walletgraph.core.deadline import Deadline
from walletgraph.core.enums import EdgeKind
from walletgraph.core.errors import DataSourceError, ProcessingTimeout
from walletgraph.core.models import TokenMetadataRecord, TransferEdge
from walletgraph.services.metadata_cache import MetadataCache
from walletgraph.services.token_metadata_service import (
    TOKEN_KEY_PREFIX,
    TokenMetadataService,
    apply_token_metadata,
    mints_needing_metadata,
)


W = "W" * 32 + "1111"
A = "A" * 32 + "2222"


def _edge(i: int, mint: Optional[str], symbol: Optional[str] = None, kind=EdgeKind.NFT) -> TransferEdge:
    return TransferEdge(
        id=f"{W}-{A}-{i}-0",
        source=W,
        target=A,
        kind=kind,
        raw_amount=Decimal("1"),
        ui_amount=Decimal("1"),
        decimals=0,
        signature=f"sig{i}",
        timestamp_ms=1700000000000 + i,
        is_direct=True,
        is_incidental=False,
        mint=mint,
        token_symbol=symbol,
    )


def _record(mint: str, symbol: str = None) -> TokenMetadataRecord:
    symbol = symbol or mint[:3].upper()
    return TokenMetadataRecord(mint=mint, symbol=symbol, name=f"{symbol} token", decimals=0, logo_url=f"https://logo.test/{mint}")


class _BatchFailingChain(StaticChainAdapter):
    """Batch endpoint fails for more than one mint; single-mint calls work."""

    def __init__(self, records: Dict[str, TokenMetadataRecord], broken: Sequence[str] = ()) -> None:
        super().__init__(token_metadata=records)
        self.broken = set(broken)

    def get_token_metadata(self, mints: Sequence[str], timeout_sec=None) -> List[TokenMetadataRecord]:
        self.metadata_calls.append(list(mints))
        if len(mints) > 1 or set(mints) & self.broken:
            raise DataSourceError("batch rejected")
        return [self._meta[m] for m in mints if m in self._meta]


class TokenHelperTests(unittest.TestCase):
    def test_mints_needing_metadata(self) -> None:
        edges = [
            _edge(0, "mintA"),
            _edge(1, "mintB", symbol="Unknown"),
            _edge(2, "mintC", symbol="BONK"),
            _edge(3, "mintA"),
            _edge(4, None, symbol="SOL", kind=EdgeKind.NATIVE),
            _edge(5, "mintD", symbol=""),
        ]
        self.assertEqual(mints_needing_metadata(edges), ["mintA", "mintB", "mintD"])

    def test_apply_updates_every_edge_with_mint(self) -> None:
        edges = [_edge(0, "mintA"), _edge(1, "mintA"), _edge(2, "mintB")]
        apply_token_metadata(edges, {"mintA": _record("mintA", "AAA")})

        self.assertEqual([e.token_symbol for e in edges], ["AAA", "AAA", None])
        self.assertEqual(edges[1].token_name, "AAA token")
        self.assertEqual(edges[1].token_logo, "https://logo.test/mintA")


class TokenMetadataServiceTests(unittest.IsolatedAsyncioTestCase):
    async def test_fetches_and_applies(self) -> None:
        chain = StaticChainAdapter(token_metadata={"mintA": _record("mintA", "AAA")})
        edges = [_edge(0, "mintA"), _edge(1, "mintA"), _edge(2, "mintZ")]
        svc = TokenMetadataService(chain, MetadataCache())

        records = await svc.enrich(edges)

        self.assertEqual(list(records), ["mintA"])
        self.assertEqual(chain.metadata_calls, [["mintA", "mintZ"]])
        self.assertEqual([e.token_symbol for e in edges], ["AAA", "AAA", None])

    async def test_cache_hit_skips_network(self) -> None:
        chain = StaticChainAdapter()
        cache = MetadataCache()
        await cache.set(TOKEN_KEY_PREFIX + "mintA", _record("mintA", "AAA").to_dict())
        edges = [_edge(0, "mintA")]

        records = await TokenMetadataService(chain, cache).enrich(edges)

        self.assertEqual(records["mintA"].symbol, "AAA")
        self.assertEqual(chain.metadata_calls, [])
        self.assertEqual(edges[0].token_symbol, "AAA")

    async def test_records_are_cached(self) -> None:
        chain = StaticChainAdapter(token_metadata={"mintA": _record("mintA")})
        cache = MetadataCache()
        svc = TokenMetadataService(chain, cache)

        await svc.enrich([_edge(0, "mintA")])
        await svc.enrich([_edge(1, "mintA")])

        self.assertEqual(chain.metadata_calls, [["mintA"]])
        self.assertEqual(cache.get_local(TOKEN_KEY_PREFIX + "mintA")["symbol"], "MIN")

    async def test_batches_of_five(self) -> None:
        mints = [f"mint{i}" for i in range(7)]
        chain = StaticChainAdapter(token_metadata={m: _record(m) for m in mints})

        records = await TokenMetadataService(chain, MetadataCache()).enrich([_edge(i, m) for i, m in enumerate(mints)])

        self.assertEqual(len(records), 7)
        self.assertEqual(chain.metadata_calls, [mints[:5], mints[5:]])

    async def test_batch_failure_falls_back_to_single_mints(self) -> None:
        recs = {m: _record(m) for m in ("mintA", "mintB", "mintC")}
        chain = _BatchFailingChain(recs, broken=["mintB"])
        edges = [_edge(0, "mintA"), _edge(1, "mintB"), _edge(2, "mintC")]

        with self.assertLogs("walletgraph.services.token_metadata_service", level="WARNING"):
            records = await TokenMetadataService(chain, MetadataCache()).enrich(edges)

        self.assertEqual(set(records), {"mintA", "mintC"})
        self.assertEqual(chain.metadata_calls, [["mintA", "mintB", "mintC"], ["mintA"], ["mintB"], ["mintC"]])
        self.assertIsNone(edges[1].token_symbol)

    async def test_nothing_to_do(self) -> None:
        chain = StaticChainAdapter()
        records = await TokenMetadataService(chain, MetadataCache()).enrich([_edge(0, "mintA", symbol="AAA")])

        self.assertEqual(records, {})
        self.assertEqual(chain.metadata_calls, [])

    async def test_expired_deadline_stops_before_fetch(self) -> None:
        now = [0.0]
        deadline = Deadline(1.0, clock=lambda: now[0])
        now[0] = 5.0
        chain = StaticChainAdapter(token_metadata={"mintA": _record("mintA")})

        with self.assertRaises(ProcessingTimeout):
            await TokenMetadataService(chain, MetadataCache()).enrich([_edge(0, "mintA")], deadline)
        self.assertEqual(chain.metadata_calls, [])


if __name__ == "__main__":
    unittest.main()
