from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Tuple

from walletgraph.config import settings
from walletgraph.core.deadline import Deadline
from walletgraph.core.errors import PipelineError, ProcessingTimeout, RateLimited, UnknownFailure
from walletgraph.core.models import EntityAnnotation, Graph, GraphResponse, PipelineRequest, TokenMetadataRecord
from walletgraph.services.entity_resolver import EntityResolver
from walletgraph.services.graph_builder import GraphBuilder, collect_endpoint_addresses
from walletgraph.services.ingestion_service import (
    IngestionService,
    filter_by_time_range,
    parse_time_range,
    validate_address,
)
from walletgraph.services.rate_limiter import SlidingWindowRateLimiter
from walletgraph.services.token_metadata_service import TokenMetadataService

logger = logging.getLogger(__name__)

ProgressFn = Callable[[str, Dict[str, Any]], None]


def _noop_progress(event: str, data: Dict[str, Any]) -> None:
    return None


class GraphPipelineService:
    """
    Request -> annotated wallet graph.

    validate -> rate limit -> fetch -> time filter -> build graph
    -> (entities, token metadata) under the request deadline -> response.

    Enrichment is best-effort per item, but the phase as a whole is bounded:
    when the deadline runs out the request fails with ProcessingTimeout
    instead of waiting on stragglers.
    """

    def __init__(
        self,
        ingestion: IngestionService,
        builder: GraphBuilder,
        entity_resolver: EntityResolver,
        token_service: TokenMetadataService,
        rate_limiter: SlidingWindowRateLimiter,
        deadline_sec: float = settings.PIPELINE_DEADLINE_SEC,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ingestion = ingestion
        self.builder = builder
        self.entity_resolver = entity_resolver
        self.token_service = token_service
        self.rate_limiter = rate_limiter
        self.deadline_sec = deadline_sec
        self._clock = clock

    async def run(
        self,
        request: PipelineRequest,
        client_id: str = "anonymous",
        on_progress: Optional[ProgressFn] = None,
    ) -> GraphResponse:
        progress = on_progress or _noop_progress
        try:
            return await self._run(request, client_id, progress)
        except PipelineError as exc:
            logger.info("Request failed: %s (%s)", exc.code, exc)
            raise
        except Exception as exc:
            logger.exception("Unexpected failure while building graph")
            raise UnknownFailure(exc.__class__.__name__) from exc

    async def _run(self, request: PipelineRequest, client_id: str, progress: ProgressFn) -> GraphResponse:
        address = validate_address(request.address)
        time_range = parse_time_range(request.time_range)
        short = f"{address[:8]}..."
        logger.info("Graph request for %s from %s", short, client_id)

        decision = await self.rate_limiter.check(client_id)
        if not decision.allowed:
            raise RateLimited(self.rate_limiter.retry_after_seconds(decision))

        deadline = Deadline(self.deadline_sec, clock=self._clock)
        timings: Dict[str, float] = {}
        progress("start", {"address": address, "time_range": time_range})

        # Fetch + filter
        t0 = self._clock()
        deadline.check("ingestion")
        progress("fetch", {"address": address})
        raw = await self.ingestion.fetch(address, time_range)
        transactions = filter_by_time_range(raw, time_range)
        timings["fetch"] = self._clock() - t0
        progress("fetch_done", {"fetched": len(raw), "count": len(transactions)})
        if time_range is not None:
            logger.debug("Time filter kept %d/%d transactions", len(transactions), len(raw))

        # Build
        t0 = self._clock()
        graph = self.builder.build(transactions, address)
        timings["build"] = self._clock() - t0
        progress("built", {"nodes": len(graph.nodes), "edges": len(graph.edges)})

        if not graph.edges:
            logger.info("No transfers for %s in %d transactions", short, len(transactions))
            progress("done", {"nodes": len(graph.nodes), "edges": 0})
            return self._assemble(graph, len(transactions), {}, {})

        # Enrich
        t0 = self._clock()
        deadline.check("enrichment")
        progress("enrich", {"addresses": len(graph.nodes)})
        try:
            entities, tokens = await asyncio.wait_for(
                self._enrich(graph, deadline),
                timeout=deadline.remaining(),
            )
        except asyncio.TimeoutError as exc:
            raise ProcessingTimeout(f"enrichment exceeded the {self.deadline_sec:.0f}s budget") from exc
        timings["enrich"] = self._clock() - t0

        for address_, annotation in entities.items():
            node = graph.nodes.get(address_)
            if node is not None:
                node.entity = annotation

        logger.debug(
            "Stage timings for %s: %s (total %.2fs)",
            short,
            ", ".join(f"{k}={v:.2f}s" for k, v in timings.items()),
            deadline.elapsed(),
        )
        progress("done", {"nodes": len(graph.nodes), "edges": len(graph.edges)})
        return self._assemble(graph, len(transactions), entities, tokens)

    async def _enrich(
        self,
        graph: Graph,
        deadline: Deadline,
    ) -> Tuple[Dict[str, EntityAnnotation], Dict[str, TokenMetadataRecord]]:
        entities = await self.entity_resolver.resolve_many(collect_endpoint_addresses(graph.edges), deadline)
        tokens = await self.token_service.enrich(graph.edges, deadline)
        return entities, tokens

    @staticmethod
    def _assemble(
        graph: Graph,
        total_transactions: int,
        entities: Dict[str, EntityAnnotation],
        tokens: Dict[str, TokenMetadataRecord],
    ) -> GraphResponse:
        return GraphResponse(
            nodes=list(graph.nodes.values()),
            edges=list(graph.edges),
            total_transactions=total_transactions,
            processed_at=datetime.now(timezone.utc),
            entity_info=entities,
            token_metadata=tokens,
        )
