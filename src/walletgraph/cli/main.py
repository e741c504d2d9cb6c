from __future__ import annotations

import argparse
import asyncio
import datetime as dt
import json
import logging
import sys
import time
from typing import List, Optional

from walletgraph.config import settings
from walletgraph.core.errors import PipelineError
from walletgraph.core.models import GraphResponse, PipelineRequest
from walletgraph.io.output_writer import write_response_json, write_summary_md
from walletgraph.io.schemas import error_to_dict
from walletgraph.ports.chain_data_port import ChainDataPort
from walletgraph.ports.entity_lookup_port import EntityLookupPort
from walletgraph.services.entity_registry import EntityRegistry
from walletgraph.services.entity_resolver import EntityResolver
from walletgraph.services.graph_builder import GraphBuilder
from walletgraph.services.ingestion_service import IngestionService
from walletgraph.services.metadata_cache import MetadataCache
from walletgraph.services.pipeline_service import GraphPipelineService, ProgressFn
from walletgraph.services.rate_limiter import SlidingWindowRateLimiter
from walletgraph.services.token_metadata_service import TokenMetadataService

from walletgraph.adapters.cache.redis_cache import RedisCache, create_redis_client
from walletgraph.adapters.chain.helius_chain_adapter import HeliusChainAdapter
from walletgraph.adapters.chain.static_chain_adapter import StaticChainAdapter
from walletgraph.adapters.entity.dexscreener_adapter import DexScreenerAdapter
from walletgraph.adapters.entity.jupiter_token_adapter import JupiterTokenAdapter
from walletgraph.adapters.entity.sns_adapter import SnsNameAdapter
from walletgraph.adapters.entity.solscan_label_adapter import SolscanLabelAdapter
from walletgraph.adapters.ratelimit.memory_sliding_window import InMemorySlidingWindowStore
from walletgraph.adapters.ratelimit.redis_sliding_window import RedisSlidingWindowStore


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="walletgraph", description="Solana wallet interaction graph")
    p.add_argument("--address", required=False, help="Wallet address to graph")
    p.add_argument("--start", help="Window start, ISO-8601 (e.g. 2024-05-01T00:00:00Z)")
    p.add_argument("--end", help="Window end, ISO-8601")
    p.add_argument("--out", default="out", help="Output folder")
    p.add_argument("--fixture", help="Read transactions from a JSON file instead of Helius (dev/testing)")
    p.add_argument("--no-lookups", action="store_true", help="Registry only; skip SNS/Solscan/Jupiter/DexScreener")
    p.add_argument("--client-id", default="cli", help="Identifier used for rate limiting")
    p.add_argument("--log-level", default=settings.LOG_LEVEL, help="Logging level (DEBUG, INFO, ...)")
    return p


def default_lookups() -> List[EntityLookupPort]:
    # cascade order: name service, label service, token list, token info
    return [
        SnsNameAdapter(),
        SolscanLabelAdapter(),
        JupiterTokenAdapter(),
        DexScreenerAdapter(),
    ]


def build_service(
    chain: ChainDataPort,
    redis=None,
    lookups: Optional[List[EntityLookupPort]] = None,
) -> GraphPipelineService:
    """Wire the pipeline. With no Redis client the cache is local-only and rate limiting is per-process."""
    if redis is not None:
        cache = MetadataCache(shared=RedisCache(redis))
        store = RedisSlidingWindowStore(redis)
    else:
        cache = MetadataCache()
        store = InMemorySlidingWindowStore()

    return GraphPipelineService(
        ingestion=IngestionService(chain),
        builder=GraphBuilder(),
        entity_resolver=EntityResolver(
            registry=EntityRegistry(),
            lookups=default_lookups() if lookups is None else lookups,
            cache=cache,
        ),
        token_service=TokenMetadataService(chain, cache),
        rate_limiter=SlidingWindowRateLimiter(store),
    )


def _make_progress_reporter(address: str) -> ProgressFn:
    start_time = time.time()

    def _ts() -> str:
        return dt.datetime.now().strftime("%H:%M:%S")

    def progress(event: str, data: dict) -> None:
        if event == "start":
            window = data.get("time_range")
            span = f"{window.start:%Y-%m-%d} .. {window.end:%Y-%m-%d}" if window else "latest activity"
            print(f"[{_ts()}] Graphing {address} • {span}")
            return
        if event == "fetch":
            print("Fetching transactions...")
            return
        if event == "fetch_done":
            print(f"Fetched {data['fetched']} transaction(s), {data['count']} in window")
            return
        if event == "enrich":
            print(f"Resolving entities and token metadata for {data['addresses']} address(es)...")
            return
        if event == "done":
            elapsed = time.time() - start_time
            print(f"[{_ts()}] Done in {elapsed:.1f}s • {data['nodes']} nodes • {data['edges']} edges")

    return progress


async def _run(args: argparse.Namespace) -> GraphResponse:
    if args.fixture:
        chain: ChainDataPort = StaticChainAdapter.from_fixture(args.fixture)
        print("Adapter: StaticChainAdapter (fixture)")
    else:
        chain = HeliusChainAdapter()
        print("Adapter: HeliusChainAdapter")

    redis = create_redis_client()
    try:
        svc = build_service(chain, redis=redis, lookups=[] if args.no_lookups else None)
        time_range = {"start": args.start, "end": args.end} if (args.start or args.end) else None
        request = PipelineRequest(address=args.address, time_range=time_range)
        return await svc.run(request, client_id=args.client_id, on_progress=_make_progress_reporter(args.address))
    finally:
        if redis is not None:
            await redis.aclose()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.address:
        print("Missing --address", file=sys.stderr)
        return 2

    for warning in settings.validate_environment():
        logging.getLogger(__name__).warning(warning)

    try:
        response = asyncio.run(_run(args))
    except PipelineError as exc:
        print(json.dumps(error_to_dict(exc)), file=sys.stderr)
        return 1

    # Outputs
    print("Writing outputs...")
    graph_path = write_response_json(response, args.out)
    summary_path = write_summary_md(response, args.out, seed_address=args.address.strip())
    print(f"Wrote: {graph_path}")
    print(f"Wrote: {summary_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
