import unittest
from decimal import Decimal
from unittest import mock

from walletgraph.adapters.entity.dexscreener_adapter import DexScreenerAdapter
from walletgraph.adapters.entity.jupiter_token_adapter import JupiterTokenAdapter
from walletgraph.adapters.entity.sns_adapter import SnsNameAdapter
from walletgraph.adapters.entity.solscan_label_adapter import SolscanLabelAdapter
from walletgraph.core.enums import EntityKind, EntitySource


ADDR = "A" * 32 + "2222"
BONK = "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"


def _session(status=200, payload=None):
    session = mock.MagicMock()
    resp = mock.MagicMock()
    resp.status_code = status
    resp.json.return_value = payload
    session.request.return_value = resp
    return session


class SnsNameAdapterTests(unittest.TestCase):
    def test_domain_found(self) -> None:
        session = _session(payload={"name": "alice.sol"})
        hit = SnsNameAdapter(session=session, requests_per_sec=1000).resolve(ADDR)

        self.assertEqual(hit.name, "alice.sol")
        self.assertEqual(hit.kind, EntityKind.SNS_DOMAIN)
        self.assertEqual(hit.source, EntitySource.NAME_SERVICE)
        self.assertEqual(hit.icon, "🌐")
        self.assertTrue(session.request.call_args.args[1].endswith(f"/resolve/{ADDR}"))

    def test_no_domain(self) -> None:
        self.assertIsNone(SnsNameAdapter(session=_session(payload={}), requests_per_sec=1000).resolve(ADDR))
        self.assertIsNone(SnsNameAdapter(session=_session(status=404), requests_per_sec=1000).resolve(ADDR))


class SolscanLabelAdapterTests(unittest.TestCase):
    def test_label_found(self) -> None:
        session = _session(payload={"data": {"label": "Wintermute"}})
        hit = SolscanLabelAdapter(session=session, requests_per_sec=1000).resolve(ADDR)

        self.assertEqual(hit.name, "Wintermute")
        self.assertEqual(hit.kind, EntityKind.LABELED_ADDRESS)
        self.assertEqual(hit.description, "Labeled: Wintermute")
        self.assertEqual(session.request.call_args.kwargs["params"], {"address": ADDR})
        session.headers.update.assert_called_once()

    def test_unlabeled(self) -> None:
        adapter = SolscanLabelAdapter(session=_session(payload={"data": {}}), requests_per_sec=1000)
        self.assertIsNone(adapter.resolve(ADDR))


class JupiterTokenAdapterTests(unittest.TestCase):
    def test_listed_token(self) -> None:
        payload = {"address": BONK, "symbol": "Bonk", "name": "Bonk", "decimals": 5, "tags": ["verified"]}
        hit = JupiterTokenAdapter(session=_session(payload=payload), requests_per_sec=1000).resolve(BONK)

        self.assertEqual(hit.kind, EntityKind.TOKEN)
        self.assertEqual(hit.source, EntitySource.TOKEN_LIST)
        self.assertEqual(hit.description, "Token: Bonk")
        self.assertEqual(hit.metadata["decimals"], 5)
        self.assertEqual(hit.metadata["provider"], "jupiter")

    def test_not_listed(self) -> None:
        self.assertIsNone(JupiterTokenAdapter(session=_session(status=404), requests_per_sec=1000).resolve(ADDR))


class DexScreenerAdapterTests(unittest.TestCase):
    def _pairs(self):
        return {"pairs": [
            {
                "chainId": "solana", "dexId": "raydium", "pairAddress": "P1",
                "baseToken": {"address": BONK, "symbol": "Bonk", "name": "Bonk"},
                "quoteToken": {"address": "SOL"}, "priceUsd": "0.00002",
                "liquidity": {"usd": 1000},
            },
            {
                "chainId": "solana", "dexId": "orca", "pairAddress": "P2",
                "baseToken": {"address": BONK, "symbol": "Bonk", "name": "Bonk"},
                "quoteToken": {"address": "USDC"}, "priceUsd": "0.000021",
                "liquidity": {"usd": 250000},
            },
            {
                "chainId": "ethereum", "dexId": "uniswap", "pairAddress": "P3",
                "baseToken": {"address": BONK, "symbol": "BONK"},
                "quoteToken": {"address": "WETH"}, "liquidity": {"usd": 9999999},
            },
        ]}

    def test_pairs_filtered_by_chain(self) -> None:
        adapter = DexScreenerAdapter(session=_session(payload=self._pairs()), requests_per_sec=1000)
        pairs = adapter.get_pairs(BONK)

        self.assertEqual([p.pair_address for p in pairs], ["P1", "P2"])
        self.assertEqual(pairs[1].liquidity_usd, Decimal("250000"))

    def test_most_liquid_pair_wins(self) -> None:
        adapter = DexScreenerAdapter(session=_session(payload=self._pairs()), requests_per_sec=1000)
        hit = adapter.resolve(BONK)

        self.assertEqual(hit.kind, EntityKind.TOKEN)
        self.assertEqual(hit.metadata["dex"], "orca")
        self.assertEqual(hit.metadata["pairCount"], 2)

    def test_not_a_base_token(self) -> None:
        adapter = DexScreenerAdapter(session=_session(payload=self._pairs()), requests_per_sec=1000)
        self.assertIsNone(adapter.resolve(ADDR))

    def test_no_pairs(self) -> None:
        adapter = DexScreenerAdapter(session=_session(payload={"pairs": None}), requests_per_sec=1000)
        self.assertIsNone(adapter.resolve(BONK))


if __name__ == "__main__":
    unittest.main()
