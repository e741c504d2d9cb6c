from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional

from walletgraph.core.errors import PipelineError, ProcessingTimeout, RateLimited, UpstreamRateLimited
from walletgraph.core.models import EntityAnnotation, GraphResponse, TokenMetadataRecord, TransferEdge, WalletNode


def _dec_to_str(x: Decimal) -> str:
    # keep as string for JSON precision safety
    return format(x, "f")


def _iso_utc(dt) -> str:
    return dt.isoformat().replace("+00:00", "Z")


def entity_to_dict(a: EntityAnnotation) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "name": a.name,
        "kind": a.kind.value,
        "description": a.description,
        "source": a.source.value,
        "icon": a.icon,
        "color": a.color,
    }
    if a.metadata:
        out["metadata"] = a.metadata
    return out


def token_to_dict(t: TokenMetadataRecord) -> Dict[str, Any]:
    return {
        "mint": t.mint,
        "symbol": t.symbol,
        "name": t.name,
        "decimals": t.decimals,
        "supply": t.supply,
        "collection": t.collection,
        "logoUrl": t.logo_url,
    }


def node_to_dict(n: WalletNode) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "id": n.id,
        "label": n.label,
        "kind": n.kind.value,
    }
    if n.entity is not None:
        out["entity"] = entity_to_dict(n.entity)
    return out


def edge_to_dict(e: TransferEdge) -> Dict[str, Any]:
    return {
        "id": e.id,
        "source": e.source,
        "target": e.target,
        "kind": e.kind.value,
        "rawAmount": _dec_to_str(e.raw_amount),
        "uiAmount": _dec_to_str(e.ui_amount),
        "decimals": e.decimals,
        "mint": e.mint,
        "tokenSymbol": e.token_symbol,
        "tokenName": e.token_name,
        "tokenLogo": e.token_logo,
        "signature": e.signature,
        "timestampMs": e.timestamp_ms,
        "isDirect": e.is_direct,
        "isIncidental": e.is_incidental,
    }


def response_to_dict(r: GraphResponse) -> Dict[str, Any]:
    return {
        "nodes": [node_to_dict(n) for n in r.nodes],
        "edges": [edge_to_dict(e) for e in r.edges],
        "totalTransactions": r.total_transactions,
        "processedAt": _iso_utc(r.processed_at),
        "entityInfo": {addr: entity_to_dict(a) for addr, a in r.entity_info.items()},
        "tokenMetadata": {mint: token_to_dict(t) for mint, t in r.token_metadata.items()},
    }


def error_to_dict(exc: BaseException) -> Dict[str, Any]:
    """
    Caller-facing error body. Only the class-level safe message is exposed;
    anything not in the taxonomy is reported as UNKNOWN_FAILURE.
    """
    if not isinstance(exc, PipelineError):
        exc = PipelineError()

    out: Dict[str, Any] = {
        "error": exc.code,
        "message": exc.safe_message,
    }
    retry_after: Optional[int] = None
    if isinstance(exc, (RateLimited, UpstreamRateLimited)):
        retry_after = exc.retry_after
    if retry_after is not None:
        out["retryAfter"] = retry_after
    if isinstance(exc, ProcessingTimeout):
        out["suggestion"] = exc.suggestion
    return out


def error_status(exc: BaseException) -> int:
    return exc.status if isinstance(exc, PipelineError) else PipelineError.status
