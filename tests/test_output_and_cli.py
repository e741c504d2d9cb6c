import io
import json
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from unittest import mock

from walletgraph.cli.main import main
from walletgraph.core.enums import EdgeKind, EntityKind, EntitySource, NodeKind
from walletgraph.core.models import EntityAnnotation, GraphResponse, TransferEdge, WalletNode
from walletgraph.io.output_writer import write_response_json, write_summary_md


W = "W" * 32 + "1111"
A = "A" * 32 + "2222"
MINT = "M" * 32 + "5555"
JUPITER = "JUP6LkbZbjS1jKKwapdHNy74zcZ3tLUZoi5QNyVTaV4"


def _response() -> GraphResponse:
    jup = EntityAnnotation.create("Jupiter", EntityKind.DEX, "DEX Aggregator", EntitySource.REGISTRY)
    edges = [
        TransferEdge(
            id=f"{W}-{A}-0-0", source=W, target=A, kind=EdgeKind.NFT,
            raw_amount=Decimal("1"), ui_amount=Decimal("1"), decimals=0,
            signature="sig0", timestamp_ms=1714560000000, is_direct=True, is_incidental=False,
            mint=MINT, token_symbol="MAD",
        ),
        TransferEdge(
            id=f"{JUPITER}-{W}-1-0", source=JUPITER, target=W, kind=EdgeKind.NATIVE,
            raw_amount=Decimal("2500000000"), ui_amount=Decimal("2.5"), decimals=9,
            signature="sig1", timestamp_ms=1714570000000, is_direct=True, is_incidental=False,
            token_symbol="SOL",
        ),
    ]
    return GraphResponse(
        nodes=[
            WalletNode(id=W, label="WWWW...1111", kind=NodeKind.INPUT),
            WalletNode(id=A, label="AAAA...2222"),
            WalletNode(id=JUPITER, label="JUP6...TaV4", entity=jup),
        ],
        edges=edges,
        total_transactions=2,
        processed_at=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
        entity_info={JUPITER: jup},
    )


class OutputWriterTests(unittest.TestCase):
    def test_write_response_json(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = write_response_json(_response(), str(Path(tmp) / "nested"))
            data = json.loads(Path(path).read_text(encoding="utf-8"))

        self.assertEqual(len(data["nodes"]), 3)
        self.assertEqual(data["edges"][1]["uiAmount"], "2.5")
        self.assertEqual(data["entityInfo"][JUPITER]["icon"], "🔄")

    def test_write_summary_md(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = write_summary_md(_response(), tmp, seed_address=W)
            text = Path(path).read_text(encoding="utf-8")

        self.assertIn("# Wallet Graph Summary", text)
        self.assertIn("- Nodes: **3**", text)
        self.assertIn("Jupiter (JUP6...TaV4)", text)
        self.assertIn("NFT 1 MAD", text)
        self.assertIn("NATIVE 2.5 SOL", text)


class CliTests(unittest.TestCase):
    def _fixture(self, tmp: str) -> str:
        path = Path(tmp) / "fixture.json"
        path.write_text(json.dumps({
            "transactions": [{
                "signature": "sig0",
                "timestamp": 1714560000,
                "tokenTransfers": [{"fromUserAccount": W, "toUserAccount": A, "tokenAmount": 1, "mint": MINT}],
            }],
            "tokenMetadata": {MINT: {"symbol": "MAD", "name": "Mad Lad"}},
        }), encoding="utf-8")
        return str(path)

    @mock.patch("walletgraph.cli.main.create_redis_client", return_value=None)
    def test_fixture_run_writes_outputs(self, _redis) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            out_dir = str(Path(tmp) / "out")
            with redirect_stdout(io.StringIO()) as stdout:
                code = main(["--address", W, "--fixture", self._fixture(tmp), "--no-lookups", "--out", out_dir])

            self.assertEqual(code, 0)
            data = json.loads((Path(out_dir) / "graph.json").read_text(encoding="utf-8"))
            self.assertTrue((Path(out_dir) / "summary.md").exists())

        self.assertEqual(data["edges"][0]["tokenSymbol"], "MAD")
        self.assertIn("Wrote:", stdout.getvalue())

    def test_missing_address(self) -> None:
        with redirect_stderr(io.StringIO()):
            self.assertEqual(main([]), 2)

    @mock.patch("walletgraph.cli.main.create_redis_client", return_value=None)
    def test_pipeline_error_prints_safe_payload(self, _redis) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with redirect_stdout(io.StringIO()), redirect_stderr(io.StringIO()) as stderr:
                code = main(["--address", "bad!", "--fixture", self._fixture(tmp), "--no-lookups", "--out", tmp])

        self.assertEqual(code, 1)
        body = json.loads(stderr.getvalue().strip().splitlines()[-1])
        self.assertEqual(body["error"], "INVALID_ADDRESS")


if __name__ == "__main__":
    unittest.main()
