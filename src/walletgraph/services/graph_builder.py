from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set

from walletgraph.core.dto import RawTransfer
from walletgraph.core.enums import EdgeKind, NodeKind
from walletgraph.core.models import Graph, TransferEdge, WalletNode
from walletgraph.services.ingestion_service import normalize_timestamp_ms

logger = logging.getLogger(__name__)


LAMPORTS_PER_SOL = Decimal("1000000000")
SOL_DECIMALS = 9
NATIVE_SYMBOL = "SOL"


def short_label(address: str) -> str:
    if not address:
        return ""
    return f"{address[:4]}...{address[-4:]}"


def collect_endpoint_addresses(edges: Iterable[TransferEdge]) -> List[str]:
    seen: Set[str] = set()
    out: List[str] = []
    for e in edges:
        for addr in (e.source, e.target):
            if addr not in seen:
                seen.add(addr)
                out.append(addr)
    return out


class GraphBuilder:
    """
    Turns a wallet's (already time-filtered) transactions into a
    one-hop interaction graph around the queried address.

    - Nodes: queried address (INPUT) + every counterparty of a kept transfer
    - Edges: one per kept transfer leg, in input order
    - Kept: direct legs (queried address is an endpoint) and incidental legs
      (queried address is in the transaction's account list, e.g. royalties)
    """

    def build(self, transactions: Sequence[Dict[str, Any]], queried: str) -> Graph:
        graph = Graph(nodes={}, edges=[])
        graph.nodes[queried] = WalletNode(id=queried, label=short_label(queried), kind=NodeKind.INPUT)

        skipped = 0
        for tx_index, tx in enumerate(transactions):
            transfers = self._extract_transfers(tx)
            if not transfers:
                skipped += 1
                continue

            queried_in_tx = queried in self._account_addresses(tx)
            signature = tx.get("signature")
            timestamp_ms = normalize_timestamp_ms(tx.get("timestamp"))

            for transfer_index, t in enumerate(transfers):
                src, dst = t.from_address, t.to_address
                if not src or not dst:
                    continue

                is_direct = src == queried or dst == queried
                is_incidental = not is_direct and queried_in_tx
                if not (is_direct or is_incidental):
                    continue

                self._ensure_node(graph, src)
                self._ensure_node(graph, dst)
                graph.edges.append(
                    TransferEdge(
                        id=f"{src}-{dst}-{tx_index}-{transfer_index}",
                        source=src,
                        target=dst,
                        kind=self.classify(t),
                        raw_amount=t.raw_amount,
                        ui_amount=t.ui_amount,
                        decimals=t.decimals,
                        signature=signature,
                        timestamp_ms=timestamp_ms,
                        is_direct=is_direct,
                        is_incidental=is_incidental,
                        mint=t.mint,
                        token_symbol=NATIVE_SYMBOL if t.is_native else t.token_symbol,
                    )
                )

        logger.debug(
            "Built graph: %d nodes, %d edges (%d/%d transactions without transfers)",
            len(graph.nodes), len(graph.edges), skipped, len(transactions),
        )
        return graph

    @staticmethod
    def classify(t: RawTransfer) -> EdgeKind:
        if t.is_native:
            return EdgeKind.NATIVE
        # amount == 1 heuristic; a single unit of a fungible token also matches
        if t.token_amount == 1 or t.ui_amount == 1:
            return EdgeKind.NFT
        return EdgeKind.SPL_TOKEN

    # -------------------------
    # Transfer extraction
    # -------------------------

    def _extract_transfers(self, tx: Dict[str, Any]) -> List[RawTransfer]:
        out: List[RawTransfer] = []
        for item in _as_list(tx.get("tokenTransfers")):
            out.append(self._token_transfer(item))
        for item in _as_list(tx.get("nativeTransfers")):
            out.append(self._native_transfer(item))

        # alternate shape; legs already seen under the primary keys are not repeated
        primary = set(out)
        for item in _as_list(tx.get("transfers")):
            kind = item.get("type")
            if kind == "token" or item.get("mint"):
                t = self._token_transfer(item)
            elif kind == "native" or _dec(item.get("amount")):
                # untyped legs need a non-zero amount to count as native
                t = self._native_transfer(item)
            else:
                continue
            if t not in primary:
                out.append(t)
        return out

    @staticmethod
    def _token_transfer(item: Dict[str, Any]) -> RawTransfer:
        ui_info = item.get("uiTokenAmount") or {}
        raw_info = item.get("rawTokenAmount") or {}

        decimals = _int(raw_info.get("decimals"))
        if decimals is None:
            decimals = _int(ui_info.get("decimals")) or 0

        token_amount = _dec(item.get("tokenAmount"))
        ui_amount = _dec(ui_info.get("uiAmount"))
        if ui_amount is None:
            ui_amount = token_amount if token_amount is not None else Decimal("0")
        raw_amount = _dec(raw_info.get("tokenAmount"))
        if raw_amount is None:
            raw_amount = ui_amount * (Decimal(10) ** decimals)

        return RawTransfer(
            from_address=item.get("fromUserAccount") or item.get("from"),
            to_address=item.get("toUserAccount") or item.get("to"),
            is_native=False,
            raw_amount=raw_amount,
            ui_amount=ui_amount,
            decimals=decimals,
            token_amount=token_amount,
            mint=item.get("mint"),
            token_symbol=item.get("tokenSymbol") or None,
        )

    @staticmethod
    def _native_transfer(item: Dict[str, Any]) -> RawTransfer:
        lamports = _dec(item.get("amount")) or Decimal("0")
        return RawTransfer(
            from_address=item.get("fromUserAccount") or item.get("from"),
            to_address=item.get("toUserAccount") or item.get("to"),
            is_native=True,
            raw_amount=lamports,
            ui_amount=lamports / LAMPORTS_PER_SOL,
            decimals=SOL_DECIMALS,
        )

    # -------------------------
    # Helpers
    # -------------------------

    @staticmethod
    def _account_addresses(tx: Dict[str, Any]) -> Set[str]:
        return {
            a.get("account")
            for a in _as_list(tx.get("accountData"))
            if a.get("account")
        }

    @staticmethod
    def _ensure_node(graph: Graph, address: str) -> None:
        # first write wins; the INPUT node is seeded before any edge
        if address in graph.nodes:
            return
        graph.nodes[address] = WalletNode(id=address, label=short_label(address), kind=NodeKind.CONNECTED)


def _as_list(val: Any) -> List[Dict[str, Any]]:
    if not isinstance(val, list):
        return []
    return [v for v in val if isinstance(v, dict)]


def _dec(val: Any) -> Optional[Decimal]:
    if val is None or isinstance(val, bool):
        return None
    try:
        return Decimal(str(val))
    except (InvalidOperation, ValueError):
        return None


def _int(val: Any) -> Optional[int]:
    if val is None or isinstance(val, bool):
        return None
    try:
        return int(val)
    except (TypeError, ValueError):
        return None
