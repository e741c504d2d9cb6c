from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from walletgraph.core.enums import (
    DEFAULT_ENTITY_COLOR,
    DEFAULT_ENTITY_ICON,
    ENTITY_COLORS,
    ENTITY_ICONS,
    EdgeKind,
    EntityKind,
    EntitySource,
    NodeKind,
)



# Request models

@dataclass(frozen=True)
class TimeRange:
    start: datetime
    end: datetime

    @property
    def start_ms(self) -> int:
        return int(self.start.timestamp() * 1000)

    @property
    def end_ms(self) -> int:
        return int(self.end.timestamp() * 1000)

    @property
    def days(self) -> float:
        return (self.end - self.start).total_seconds() / 86400


@dataclass(frozen=True)
class PipelineRequest:
    """
    What the HTTP layer hands over: a raw address string and an optional
    raw time range mapping ({"start": iso, "end": iso}). Validation happens
    in the pipeline, not here.
    """

    address: str
    time_range: Optional[Dict[str, Any]] = None



# Annotation models

@dataclass(frozen=True)
class EntityAnnotation:
    name: str
    kind: EntityKind
    description: str
    source: EntitySource
    icon: str = DEFAULT_ENTITY_ICON
    color: str = DEFAULT_ENTITY_COLOR
    metadata: Optional[Dict[str, Any]] = None

    @classmethod
    def create(
        cls,
        name: str,
        kind: EntityKind,
        description: str,
        source: EntitySource,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> EntityAnnotation:
        return cls(
            name=name,
            kind=kind,
            description=description,
            source=source,
            icon=ENTITY_ICONS.get(kind, DEFAULT_ENTITY_ICON),
            color=ENTITY_COLORS.get(kind, DEFAULT_ENTITY_COLOR),
            metadata=metadata,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "description": self.description,
            "source": self.source.value,
            "icon": self.icon,
            "color": self.color,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> EntityAnnotation:
        return cls(
            name=d["name"],
            kind=EntityKind(d["kind"]),
            description=d.get("description") or "",
            source=EntitySource(d["source"]),
            icon=d.get("icon") or DEFAULT_ENTITY_ICON,
            color=d.get("color") or DEFAULT_ENTITY_COLOR,
            metadata=d.get("metadata"),
        )


@dataclass(frozen=True)
class TokenMetadataRecord:
    mint: str
    symbol: str
    name: str
    decimals: Optional[int] = None
    supply: Optional[str] = None
    collection: Optional[str] = None
    logo_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mint": self.mint,
            "symbol": self.symbol,
            "name": self.name,
            "decimals": self.decimals,
            "supply": self.supply,
            "collection": self.collection,
            "logo_url": self.logo_url,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> TokenMetadataRecord:
        return cls(
            mint=d["mint"],
            symbol=d["symbol"],
            name=d["name"],
            decimals=d.get("decimals"),
            supply=d.get("supply"),
            collection=d.get("collection"),
            logo_url=d.get("logo_url"),
        )



# Graph models

@dataclass
class WalletNode:

    id: str
    label: str
    kind: NodeKind = NodeKind.CONNECTED
    entity: Optional[EntityAnnotation] = None


@dataclass
class TransferEdge:

    id: str
    source: str
    target: str
    kind: EdgeKind

    raw_amount: Decimal
    ui_amount: Decimal
    decimals: int

    signature: Optional[str]
    timestamp_ms: int

    is_direct: bool
    is_incidental: bool

    mint: Optional[str] = None
    token_symbol: Optional[str] = None      # None = unknown, enrichment may fill it
    token_name: Optional[str] = None
    token_logo: Optional[str] = None


@dataclass
class Graph:

    nodes: Dict[str, WalletNode] = field(default_factory=dict)
    edges: List[TransferEdge] = field(default_factory=list)



# Response model

@dataclass
class GraphResponse:

    nodes: List[WalletNode]
    edges: List[TransferEdge]
    total_transactions: int
    processed_at: datetime
    entity_info: Dict[str, EntityAnnotation] = field(default_factory=dict)
    token_metadata: Dict[str, TokenMetadataRecord] = field(default_factory=dict)
