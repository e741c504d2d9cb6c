from __future__ import annotations

import json
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from walletgraph.core.enums import EdgeKind
from walletgraph.core.models import GraphResponse, TransferEdge
from walletgraph.io.schemas import response_to_dict


def write_response_json(response: GraphResponse, out_dir: str, filename: str = "graph.json") -> str:
    p = Path(out_dir)
    p.mkdir(parents=True, exist_ok=True)

    out_path = p / filename
    with out_path.open("w", encoding="utf-8") as f:
        json.dump(response_to_dict(response), f, indent=2, ensure_ascii=False)

    return str(out_path)


def write_summary_md(
    response: GraphResponse,
    out_dir: str,
    filename: str = "summary.md",
    seed_address: Optional[str] = None,
) -> str:
    """Markdown digest of one graph response: counterparties, entities, latest transfers."""
    p = Path(out_dir)
    p.mkdir(parents=True, exist_ok=True)

    out_path = p / filename

    seed = seed_address or ""
    edges = response.edges
    labels: Dict[str, str] = {n.id: n.label for n in response.nodes}
    names: Dict[str, str] = {addr: a.name for addr, a in response.entity_info.items()}

    def who(addr: str) -> str:
        name = names.get(addr)
        short = labels.get(addr) or addr
        return f"{name} ({short})" if name else short

    def asset(e: TransferEdge) -> str:
        return e.token_symbol or (e.mint[:8] + "..." if e.mint else "?")

    inflow = [e for e in edges if seed and e.target == seed]
    outflow = [e for e in edges if seed and e.source == seed]
    incidental = [e for e in edges if e.is_incidental]

    top_in = Counter(e.source for e in inflow).most_common(10)
    top_out = Counter(e.target for e in outflow).most_common(10)
    kind_counts = Counter(e.kind for e in edges)

    def interpretation() -> str:
        if not seed:
            return "Seed address unknown; direction of flows cannot be judged."
        if not inflow and not outflow:
            return "Only incidental transfers (royalties, fees) involve the seed in this window."
        uniq_in = len(set(e.source for e in inflow))
        uniq_out = len(set(e.target for e in outflow))
        if kind_counts[EdgeKind.NFT] > len(edges) / 2:
            return "Activity is dominated by NFT movements (sales, mints or transfers)."
        if uniq_out >= uniq_in * 2 and len(outflow) > len(inflow):
            return (
                "Mostly sending: the seed pays out to a wide set of counterparties, "
                "typical of airdrop, payroll or sweeper wallets."
            )
        if uniq_in >= uniq_out * 2 and len(inflow) > len(outflow):
            return (
                "Mostly receiving: many counterparties send to the seed, "
                "typical of deposit, treasury or collector wallets."
            )
        return (
            "Two-way activity with no dominant direction; "
            "looks like a regularly used personal or trading wallet."
        )

    lines: List[str] = []
    lines.append("# Wallet Graph Summary\n")
    lines.append(f"- Nodes: **{len(response.nodes)}**\n")
    lines.append(f"- Edges: **{len(edges)}** ")
    lines.append(
        f"(NFT {kind_counts[EdgeKind.NFT]}, SPL {kind_counts[EdgeKind.SPL_TOKEN]}, "
        f"SOL {kind_counts[EdgeKind.NATIVE]}, incidental {len(incidental)})\n"
    )
    lines.append(f"- Transactions: **{response.total_transactions}**\n")
    if seed:
        lines.append(f"- Seed: **{seed}**\n")
    lines.append(f"- Processed at: {response.processed_at.isoformat()}\n")
    lines.append("\n")

    lines.append("## Top 10 Inbound Counterparties (by transfer count)\n\n")
    if not top_in:
        lines.append("_Nothing was received by the seed in this window._\n\n")
    else:
        for addr, count in top_in:
            lines.append(f"- **{count}** | {who(addr)}\n")
        lines.append("\n")

    lines.append("## Top 10 Outbound Counterparties (by transfer count)\n\n")
    if not top_out:
        lines.append("_Nothing was sent by the seed in this window._\n\n")
    else:
        for addr, count in top_out:
            lines.append(f"- **{count}** | {who(addr)}\n")
        lines.append("\n")

    lines.append("## Reading\n\n")
    lines.append(f"{interpretation()}\n\n")

    lines.append("## Identified Entities\n\n")
    if not response.entity_info:
        lines.append("_No known entities among the counterparties._\n\n")
    else:
        for addr, a in sorted(response.entity_info.items(), key=lambda x: (x[1].kind.value, x[1].name)):
            lines.append(f"- {a.icon} **{a.name}** ({a.kind.value}, via {a.source.value}) | {addr}\n")
        lines.append("\n")

    lines.append("## Caveats\n\n")
    lines.append("- Only one hop around the seed address is shown.\n")
    lines.append("- NFT detection is a heuristic: any single-unit token transfer counts as an NFT.\n")
    lines.append("- Entity labels and token metadata are best-effort and may be missing.\n")
    lines.append("- Large wallets are capped by the upstream fetch limit for the chosen window.\n\n")

    lines.append("## Latest Transfers\n\n")
    latest = sorted(edges, key=lambda e: e.timestamp_ms, reverse=True)[:15]
    if not latest:
        lines.append("_No transfers in this window._\n")
    else:
        for e in latest:
            when = datetime.fromtimestamp(e.timestamp_ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")
            lines.append(
                f"- {when} | {e.kind.value} {e.ui_amount.normalize():f} {asset(e)} "
                f"| {who(e.source)} -> {who(e.target)} "
                f"| tx: {e.signature}\n"
            )

    with out_path.open("w", encoding="utf-8") as f:
        f.writelines(lines)

    return str(out_path)
