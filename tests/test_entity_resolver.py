import json
import time
import unittest
from typing import Dict, Optional
from unittest import mock

from walletgraph.core.deadline import Deadline
from walletgraph.core.enums import EntityKind, EntitySource
from walletgraph.core.errors import ProcessingTimeout
from walletgraph.core.models import EntityAnnotation
from walletgraph.ports.cache_port import CachePort
from walletgraph.ports.entity_lookup_port import EntityLookupPort
from walletgraph.services.entity_registry import EntityRegistry, KnownEntity
from walletgraph.services.entity_resolver import ENTITY_KEY_PREFIX, EntityResolver
from walletgraph.services.metadata_cache import MetadataCache


JUPITER = "JUP6LkbZbjS1jKKwapdHNy74zcZ3tLUZoi5QNyVTaV4"
SYSTEM = "11111111111111111111111111111111"
A = "A" * 32 + "2222"
B = "B" * 32 + "3333"
C = "C" * 32 + "4444"


def _domain(name: str) -> EntityAnnotation:
    return EntityAnnotation.create(name, EntityKind.SNS_DOMAIN, f"SNS Domain: {name}", EntitySource.NAME_SERVICE)


def _label(name: str) -> EntityAnnotation:
    return EntityAnnotation.create(name, EntityKind.LABELED_ADDRESS, f"Labeled: {name}", EntitySource.LABEL_SERVICE)


class _Lookup(EntityLookupPort):
    def __init__(self, name: str, hits: Optional[Dict[str, EntityAnnotation]] = None, error=None, delay=0.0):
        self.name = name
        self.hits = hits or {}
        self.error = error
        self.delay = delay
        self.calls = []

    def resolve(self, address: str) -> Optional[EntityAnnotation]:
        self.calls.append(address)
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.hits.get(address)


class _DictCache(CachePort):
    def __init__(self, data=None, fail=False):
        self.data = dict(data or {})
        self.fail = fail
        self.sets = []

    async def get(self, key):
        if self.fail:
            raise ConnectionError("redis down")
        return self.data.get(key)

    async def set_with_ttl(self, key, value, ttl_seconds):
        if self.fail:
            raise ConnectionError("redis down")
        self.sets.append((key, ttl_seconds))
        self.data[key] = value


class EntityResolverTests(unittest.IsolatedAsyncioTestCase):
    def _resolver(self, lookups, shared=None, **kw) -> EntityResolver:
        return EntityResolver(EntityRegistry(), lookups, MetadataCache(shared=shared), **kw)

    async def test_registry_hit_skips_network(self) -> None:
        sns = _Lookup("sns")
        resolver = self._resolver([sns])

        hit = await resolver.resolve(JUPITER)

        self.assertEqual(hit.name, "Jupiter")
        self.assertEqual(hit.kind, EntityKind.DEX)
        self.assertEqual(hit.source, EntitySource.REGISTRY)
        self.assertEqual(sns.calls, [])

    async def test_cascade_stops_at_first_hit(self) -> None:
        sns = _Lookup("sns")
        solscan = _Lookup("solscan", hits={A: _label("Whale")})
        jupiter = _Lookup("jupiter", hits={A: _domain("never.sol")})
        resolver = self._resolver([sns, solscan, jupiter])

        hit = await resolver.resolve(A)

        self.assertEqual(hit.name, "Whale")
        self.assertEqual(sns.calls, [A])
        self.assertEqual(solscan.calls, [A])
        self.assertEqual(jupiter.calls, [])

    async def test_failing_lookup_moves_on(self) -> None:
        broken = _Lookup("sns", error=RuntimeError("boom"))
        solscan = _Lookup("solscan", hits={A: _label("Market Maker")})
        resolver = self._resolver([broken, solscan])

        hit = await resolver.resolve(A)

        self.assertEqual(hit.name, "Market Maker")

    async def test_slow_lookup_times_out(self) -> None:
        slow = _Lookup("sns", hits={A: _domain("slow.sol")}, delay=0.3)
        fast = _Lookup("solscan", hits={A: _label("Fast")})
        resolver = self._resolver([slow, fast], lookup_timeout=0.05)

        hit = await resolver.resolve(A)

        self.assertEqual(hit.name, "Fast")

    async def test_no_match_is_none(self) -> None:
        resolver = self._resolver([_Lookup("sns"), _Lookup("solscan")])
        self.assertIsNone(await resolver.resolve(A))

    async def test_second_resolve_is_served_from_cache(self) -> None:
        sns = _Lookup("sns", hits={A: _domain("alice.sol")})
        resolver = self._resolver([sns])

        first = await resolver.resolve(A)
        second = await resolver.resolve(A)

        self.assertEqual(first, second)
        self.assertEqual(sns.calls, [A])

    async def test_hit_written_to_shared_cache(self) -> None:
        shared = _DictCache()
        resolver = self._resolver([_Lookup("sns", hits={A: _domain("alice.sol")})], shared=shared)

        await resolver.resolve(A)

        stored = json.loads(shared.data[ENTITY_KEY_PREFIX + A])
        self.assertEqual(stored["name"], "alice.sol")
        self.assertEqual(shared.sets, [(ENTITY_KEY_PREFIX + A, 86400)])

    async def test_shared_cache_hit_skips_lookups(self) -> None:
        shared = _DictCache({ENTITY_KEY_PREFIX + A: json.dumps(_domain("cached.sol").to_dict())})
        sns = _Lookup("sns", hits={A: _domain("fresh.sol")})
        resolver = self._resolver([sns], shared=shared)

        hit = await resolver.resolve(A)

        self.assertEqual(hit.name, "cached.sol")
        self.assertEqual(sns.calls, [])

    async def test_shared_cache_failure_degrades(self) -> None:
        sns = _Lookup("sns", hits={A: _domain("alice.sol")})
        resolver = self._resolver([sns], shared=_DictCache(fail=True))

        with self.assertLogs("walletgraph.services.metadata_cache", level="WARNING"):
            hit = await resolver.resolve(A)

        self.assertEqual(hit.name, "alice.sol")

    async def test_resolve_many_skips_system_accounts_and_duplicates(self) -> None:
        sns = _Lookup("sns", hits={A: _domain("alice.sol")})
        resolver = self._resolver([sns])

        results = await resolver.resolve_many([A, SYSTEM, A, JUPITER, B])

        self.assertEqual(set(results), {A, JUPITER})
        self.assertNotIn(SYSTEM, sns.calls)
        self.assertEqual(sorted(sns.calls), sorted([A, B]))

    async def test_resolve_many_batches(self) -> None:
        addrs = [A, B, C]
        sns = _Lookup("sns", hits={a: _domain(f"{a[:4]}.sol") for a in addrs})
        resolver = self._resolver([sns], batch_size=2)

        results = await resolver.resolve_many(addrs)

        self.assertEqual(list(results), addrs)

    async def test_failed_group_does_not_block_later_groups(self) -> None:
        sns = _Lookup("sns", hits={B: _domain("bob.sol")})
        resolver = self._resolver([sns], batch_size=1)
        real_resolve = resolver.resolve

        async def resolve(address):
            if address == A:
                raise RuntimeError("corrupt annotation")
            return await real_resolve(address)

        with mock.patch.object(resolver, "resolve", side_effect=resolve):
            with self.assertLogs("walletgraph.services.entity_resolver", level="WARNING") as logs:
                results = await resolver.resolve_many([A, B])

        self.assertEqual(list(results), [B])
        self.assertEqual(results[B].name, "bob.sol")
        self.assertIn("corrupt annotation", logs.output[0])

    async def test_resolve_many_checks_deadline(self) -> None:
        now = [0.0]
        deadline = Deadline(1.0, clock=lambda: now[0])
        now[0] = 2.0
        sns = _Lookup("sns")
        resolver = self._resolver([sns])

        with self.assertRaises(ProcessingTimeout):
            await resolver.resolve_many([A, B], deadline)
        self.assertEqual(sns.calls, [])


class EntityRegistryTests(unittest.TestCase):
    def test_registry_contents(self) -> None:
        reg = EntityRegistry()
        self.assertIn(JUPITER, reg)
        self.assertNotIn(A, reg)
        self.assertTrue(reg.is_system_account(SYSTEM))
        self.assertFalse(reg.is_system_account(JUPITER))
        self.assertGreater(len(reg), 30)

    def test_annotation_carries_icon_and_color(self) -> None:
        hit = EntityRegistry().resolve(JUPITER)
        self.assertEqual(hit.icon, "🔄")
        self.assertTrue(hit.color.startswith("#"))

    def test_duplicate_address_rejected(self) -> None:
        entities = [
            KnownEntity("One", EntityKind.DEX, "DEX", (A,)),
            KnownEntity("Two", EntityKind.DEX, "DEX", (A,)),
        ]
        with self.assertRaises(ValueError):
            EntityRegistry(entities)


if __name__ == "__main__":
    unittest.main()
