"""Unit tests for the application cache layer – keys, envelopes, stats, invalidation bus."""
import asyncio
import json

import pytest

from tagcache.application.cache import (
    CacheEntry,
    CacheKey,
    InvalidationBus,
    InvalidationEvent,
    InvalidationKind,
    KeySpace,
    StatsCollector,
)
from tagcache.kernel.errors import SerializationError
from tagcache.testing.fakes import FakeClock, InMemoryInvalidationTransport


# ---------------------------------------------------------------------------
# CacheKey / KeySpace
# ---------------------------------------------------------------------------

class TestCacheKey:
    def test_plain_string_identifier(self):
        assert CacheKey.for_identifier("customers", "list") == "customers:list"

    def test_int_identifier_is_not_hashed(self):
        assert CacheKey.for_identifier("pets", 7) == "pets:7"

    def test_structured_identifier_is_hashed_to_8_hex_chars(self):
        key = CacheKey.for_identifier("search", {"q": "dog", "page": 2})
        namespace, digest = key.split(":")
        assert namespace == "search"
        assert len(digest) == 8
        int(digest, 16)

    def test_structured_identifier_deterministic(self):
        k1 = CacheKey.for_identifier("search", {"q": "dog", "page": 2})
        k2 = CacheKey.for_identifier("search", {"page": 2, "q": "dog"})
        assert k1 == k2

    def test_different_structures_differ(self):
        assert CacheKey.for_identifier("fn", [1, 2]) != CacheKey.for_identifier("fn", [2, 1])

    def test_list_and_tuple_share_a_key(self):
        assert CacheKey.for_identifier("fn", (1, "a")) == CacheKey.for_identifier("fn", [1, "a"])

    def test_mixed_key_types_dict_is_hashed(self):
        key = CacheKey.for_identifier("ns", {1: "a", "b": 2})
        namespace, digest = key.split(":")
        assert namespace == "ns"
        assert len(digest) == 8
        assert key == CacheKey.for_identifier("ns", {1: "a", "b": 2})

    def test_tuple_key_dict_is_hashed(self):
        key = CacheKey.for_identifier("ns", {(1, 2): "pair"})
        assert len(key.split(":")[1]) == 8
        assert key != CacheKey.for_identifier("ns", {(2, 1): "pair"})

    def test_self_referencing_list_is_hashed(self):
        loop: list = [1]
        loop.append(loop)
        assert len(CacheKey.digest(loop)) == 8


class TestKeySpace:
    def test_entry_key_carries_prefix(self):
        assert KeySpace("shop:").entry("customers", "1") == "shop:customers:1"

    def test_tag_key(self):
        assert KeySpace("shop:").tag("user:42") == "shop:tags:user:42"

    def test_pattern(self):
        assert KeySpace("shop:").pattern("customers:*") == "shop:customers:*"

    def test_strip(self):
        keys = KeySpace("shop:")
        assert keys.strip("shop:customers:1") == "customers:1"
        assert keys.strip("other:1") == "other:1"


# ---------------------------------------------------------------------------
# CacheEntry
# ---------------------------------------------------------------------------

class TestCacheEntry:
    def test_create_sets_expiry_from_ttl(self):
        now = FakeClock().epoch_ms()
        entry = CacheEntry.create({"a": 1}, now_ms=now, ttl=60)
        assert entry.metadata.created_at == now
        assert entry.metadata.expires_at == now + 60_000
        assert entry.metadata.version == 1
        assert entry.metadata.hit_count == 0

    def test_permanent_entry_has_no_expiry(self):
        entry = CacheEntry.create("v", now_ms=1000, ttl=0)
        assert entry.metadata.expires_at is None

    def test_tags_are_deduplicated_in_order(self):
        entry = CacheEntry.create("v", now_ms=1000, ttl=10, tags=["b", "a", "b"])
        assert entry.metadata.tags == ["b", "a"]

    def test_json_uses_camel_case_metadata(self):
        entry = CacheEntry.create({"uid": 42}, now_ms=1000, ttl=5, version=3, tags=["user:42"])
        decoded = json.loads(entry.to_json())
        assert decoded["data"] == {"uid": 42}
        assert decoded["metadata"] == {
            "createdAt": 1000,
            "expiresAt": 6000,
            "version": 3,
            "tags": ["user:42"],
            "hitCount": 0,
        }

    def test_from_json_restores_entry(self):
        raw = CacheEntry.create([1, 2, 3], now_ms=5, ttl=0, tags=["x"]).to_json()
        entry = CacheEntry.from_json(raw)
        assert entry.data == [1, 2, 3]
        assert entry.metadata.tags == ["x"]
        assert entry.metadata.expires_at is None

    def test_missing_hit_count_defaults_to_zero(self):
        entry = CacheEntry.from_json('{"data": 1, "metadata": {"createdAt": 1, "version": 1}}')
        assert entry.metadata.hit_count == 0

    def test_record_hit_increments(self):
        entry = CacheEntry.create("v", now_ms=1, ttl=1)
        entry.record_hit()
        entry.record_hit()
        assert entry.metadata.hit_count == 2

    @pytest.mark.parametrize(
        "raw",
        [
            "not json",
            "[]",
            '{"metadata": {"createdAt": 1, "version": 1}}',
            '{"data": 1}',
            '{"data": 1, "metadata": {"createdAt": "yesterday", "version": 1}}',
            '{"data": 1, "metadata": {"createdAt": 1, "version": 1.5}}',
            '{"data": 1, "metadata": {"createdAt": 1, "version": 1, "tags": "x"}}',
            '{"data": 1, "metadata": {"createdAt": 1, "version": 1, "expiresAt": "soon"}}',
        ],
    )
    def test_malformed_envelopes_raise_serialization_error(self, raw):
        with pytest.raises(SerializationError):
            CacheEntry.from_json(raw)

    def test_unserialisable_payload_raises_serialization_error(self):
        entry = CacheEntry.create(object(), now_ms=1, ttl=1)
        with pytest.raises(SerializationError) as exc_info:
            entry.to_json()
        assert exc_info.value.payload_type == "object"


# ---------------------------------------------------------------------------
# StatsCollector
# ---------------------------------------------------------------------------

class TestStatsCollector:
    def test_empty_hit_rate_is_zero(self):
        assert StatsCollector().snapshot().hit_rate == 0

    @pytest.mark.parametrize("hits,misses", [(1, 0), (0, 3), (3, 1), (7, 13)])
    def test_hit_rate(self, hits, misses):
        stats = StatsCollector()
        for _ in range(hits):
            stats.record_hit()
        for _ in range(misses):
            stats.record_miss()
        assert stats.snapshot().hit_rate == pytest.approx(hits / (hits + misses) * 100)

    def test_running_average_latency(self):
        stats = StatsCollector()
        for sample in (10.0, 20.0, 60.0):
            stats.record_miss()
            stats.record_latency(sample)
        assert stats.snapshot().avg_response_time_ms == pytest.approx(30.0)

    def test_counters(self):
        stats = StatsCollector()
        stats.record_set()
        stats.record_delete()
        stats.record_delete(4)
        stats.record_error()
        snap = stats.snapshot()
        assert (snap.sets, snap.deletes, snap.errors) == (1, 5, 1)

    def test_reset(self):
        stats = StatsCollector()
        stats.record_hit()
        stats.record_latency(5.0)
        stats.record_error()
        stats.reset()
        snap = stats.snapshot()
        assert snap.hits == 0 and snap.errors == 0 and snap.avg_response_time_ms == 0

    def test_to_dict_is_camel_case(self):
        stats = StatsCollector()
        stats.record_hit()
        assert stats.snapshot().to_dict() == {
            "hits": 1,
            "misses": 0,
            "sets": 0,
            "deletes": 0,
            "errors": 0,
            "hitRate": 100.0,
            "avgResponseTimeMs": 0.0,
        }


# ---------------------------------------------------------------------------
# InvalidationEvent / InvalidationBus
# ---------------------------------------------------------------------------

class TestInvalidationEvent:
    def test_channels(self):
        assert InvalidationKind.TAG.channel == "invalidate:tag"
        assert InvalidationKind.PATTERN.channel == "invalidate:pattern"
        assert InvalidationKind.ALL.channel == "invalidate:all"

    def test_tag_payload_is_comma_joined(self):
        event = InvalidationEvent.for_tags(["a", "b"])
        assert event.payload == "a,b"
        assert event.tags == ["a", "b"]

    def test_non_tag_event_has_no_tags(self):
        assert InvalidationEvent.for_pattern("customers:*").tags == []

    def test_all_event_payload_is_wildcard(self):
        assert InvalidationEvent.for_all().payload == "*"

    def test_from_message(self):
        event = InvalidationEvent.from_message("invalidate:pattern", b"pets:*")
        assert event == InvalidationEvent(InvalidationKind.PATTERN, "pets:*")

    def test_from_unknown_channel_raises(self):
        with pytest.raises(ValueError):
            InvalidationEvent.from_message("news", "x")


class TestInvalidationBus:
    def test_subscribe_uses_three_channels(self):
        transport = InMemoryInvalidationTransport()
        bus = InvalidationBus(transport)
        asyncio.run(bus.subscribe())
        assert transport.channels == ["invalidate:tag", "invalidate:pattern", "invalidate:all"]
        assert bus.subscribed

    def test_published_event_reaches_local_handler(self):
        received = []

        async def run():
            bus = InvalidationBus(InMemoryInvalidationTransport())
            bus.on_invalidation(InvalidationKind.TAG, received.append)
            await bus.subscribe()
            assert await bus.publish(InvalidationEvent.for_tags(["x"])) is True

        asyncio.run(run())
        assert received == [InvalidationEvent(InvalidationKind.TAG, "x")]

    def test_handlers_only_for_their_kind(self):
        tags, patterns = [], []

        async def run():
            bus = InvalidationBus(InMemoryInvalidationTransport())
            bus.on_invalidation("tag", tags.append)
            bus.on_invalidation("pattern", patterns.append)
            await bus.dispatch(InvalidationEvent.for_pattern("a:*"))

        asyncio.run(run())
        assert tags == []
        assert len(patterns) == 1

    def test_async_handlers_are_awaited(self):
        seen = []

        async def handler(event):
            await asyncio.sleep(0)
            seen.append(event.payload)

        async def run():
            bus = InvalidationBus(InMemoryInvalidationTransport())
            bus.on_invalidation(InvalidationKind.ALL, handler)
            await bus.dispatch(InvalidationEvent.for_all())

        asyncio.run(run())
        assert seen == ["*"]

    def test_failing_handler_does_not_block_others(self):
        seen = []

        def broken(event):
            raise RuntimeError("boom")

        async def run():
            bus = InvalidationBus(InMemoryInvalidationTransport())
            bus.on_invalidation(InvalidationKind.TAG, broken)
            bus.on_invalidation(InvalidationKind.TAG, seen.append)
            await bus.dispatch(InvalidationEvent.for_tags(["t"]))

        asyncio.run(run())
        assert len(seen) == 1

    def test_publish_failure_is_swallowed(self):
        transport = InMemoryInvalidationTransport()
        transport.fail_publish = True
        bus = InvalidationBus(transport)
        assert asyncio.run(bus.publish(InvalidationEvent.for_all())) is False

    def test_unknown_channel_message_is_ignored(self):
        seen = []

        async def run():
            bus = InvalidationBus(InMemoryInvalidationTransport())
            bus.on_invalidation(InvalidationKind.TAG, seen.append)
            await bus.handle_message("something:else", "x")

        asyncio.run(run())
        assert seen == []

    def test_close_stops_transport(self):
        transport = InMemoryInvalidationTransport()

        async def run():
            bus = InvalidationBus(transport)
            await bus.subscribe()
            await bus.close()
            await bus.close()
            assert not bus.subscribed

        asyncio.run(run())
        assert not transport.started
