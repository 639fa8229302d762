"""Redis adapter – TaggedRedisCache.

Namespaced get/set/delete over Redis with tag and pattern invalidation,
cross-process invalidation events and hit/miss instrumentation.  The cache
is an accelerator: no public coroutine raises because the backend is down;
each one degrades to ``None``/``False``/``0`` and bumps the error counter.

Usage::

    async with TaggedRedisCache(load_cache_settings()) as cache:
        await cache.set("session", "abc123", {"uid": 42}, ttl=60, tags=["user:42"])
        await cache.get("session", "abc123")          # {"uid": 42}
        await cache.invalidate_tags(["user:42"])
        await cache.get("session", "abc123")          # None
"""
from __future__ import annotations

import logging
import time
from typing import Any, Awaitable, Callable, Mapping, Sequence, TypeVar

from tagcache.adapters.redis.connection import RedisConnection
from tagcache.adapters.redis.pubsub import RedisPubSubTransport
from tagcache.adapters.redis.tags import RedisTagIndex
from tagcache.application.cache.entry import CacheEntry
from tagcache.application.cache.invalidation import (
    InvalidationBus,
    InvalidationEvent,
    InvalidationHandler,
    InvalidationKind,
    InvalidationTransport,
)
from tagcache.application.cache.keys import Identifier, KeySpace
from tagcache.application.cache.stats import CacheStats, StatsCollector
from tagcache.config import CacheSettings, TTLTier, load_cache_settings
from tagcache.kernel.errors import BackendUnavailableError, InfrastructureError, SerializationError
from tagcache.kernel.time import Clock, SystemClock
from tagcache.resilience.cache import cache_aside

T = TypeVar("T")
logger = logging.getLogger(__name__)

TTL = int | TTLTier | str | None

_SCAN_COUNT = 500


class TaggedRedisCache:
    """Tagged, namespaced async cache backed by a shared Redis instance."""

    def __init__(
        self,
        settings: CacheSettings | None = None,
        *,
        connection: RedisConnection | None = None,
        transport: InvalidationTransport | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.settings = settings or (connection.settings if connection is not None else CacheSettings())
        self._connection = connection or RedisConnection(self.settings)
        self._keys = KeySpace(self.settings.key_prefix)
        self._tags = RedisTagIndex(self._connection, self._keys, self.settings.tag_ttl)
        self._bus = InvalidationBus(transport or RedisPubSubTransport(self._connection))
        self._stats = StatsCollector()
        self._clock = clock or SystemClock()

    @classmethod
    def from_env(cls, env_file: str | None = None, **overrides: Any) -> TaggedRedisCache:
        return cls(load_cache_settings(env_file, **overrides))

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------

    @property
    def connection(self) -> RedisConnection:
        return self._connection

    @property
    def keys(self) -> KeySpace:
        return self._keys

    @property
    def bus(self) -> InvalidationBus:
        return self._bus

    async def connect(self) -> None:
        """Subscribe to the invalidation channels; call once at startup."""
        await self._bus.subscribe()
        logger.info("cache.connected settings=%s", self.settings.redacted())

    async def disconnect(self) -> None:
        """Stop the listener and release both connections (idempotent)."""
        await self._bus.close()
        await self._connection.close()

    async def __aenter__(self) -> TaggedRedisCache:
        await self.connect()
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.disconnect()

    # ------------------------------------------------------------------
    # single-entry operations
    # ------------------------------------------------------------------

    def resolve_ttl(self, ttl: TTL) -> int:
        """Seconds for *ttl*: ``None`` is the default tier, ``0`` never expires."""
        if ttl is None:
            return self.settings.ttl_for(TTLTier.DEFAULT)
        if isinstance(ttl, str):
            return self.settings.ttl_for(TTLTier(ttl))
        if isinstance(ttl, bool) or not isinstance(ttl, int):
            raise ValueError(f"ttl must be an int or TTLTier, got {ttl!r}")
        if ttl < 0:
            raise ValueError(f"ttl must be >= 0, got {ttl}")
        return ttl

    async def get(self, namespace: str, identifier: Identifier) -> Any:
        """Return the cached value, or ``None`` on a miss, a malformed entry or a backend error."""
        started = time.perf_counter()
        key = self._keys.entry(namespace, identifier)
        client = self._connection.client
        try:
            raw = await self._connection.execute("get", lambda: client.get(key))
        except InfrastructureError as exc:
            self._failed("get", key, exc)
            return None

        entry = self._decode(key, raw)
        if entry is None:
            self._stats.record_miss()
            self._stats.record_latency(self._elapsed_ms(started))
            logger.debug("cache.miss key=%s", key)
            return None

        entry.record_hit()
        await self._persist_hit_count(key, entry)
        self._stats.record_hit()
        self._stats.record_latency(self._elapsed_ms(started))
        logger.debug("cache.hit key=%s hits=%d", key, entry.metadata.hit_count)
        return entry.data

    async def get_entry(self, namespace: str, identifier: Identifier) -> CacheEntry[Any] | None:
        """Full envelope for diagnostics; does not touch hit counts or stats."""
        key = self._keys.entry(namespace, identifier)
        client = self._connection.client
        try:
            raw = await self._connection.execute("get", lambda: client.get(key))
        except InfrastructureError as exc:
            self._failed("get_entry", key, exc)
            return None
        return self._decode(key, raw)

    async def set(
        self,
        namespace: str,
        identifier: Identifier,
        data: Any,
        *,
        ttl: TTL = None,
        tags: Sequence[str] | None = None,
        version: int = 1,
    ) -> bool:
        key = self._keys.entry(namespace, identifier)
        try:
            seconds = self.resolve_ttl(ttl)
        except ValueError as exc:
            logger.warning("cache.set_rejected key=%s reason=%s", key, exc)
            return False

        entry = CacheEntry.create(
            data, now_ms=self._clock.epoch_ms(), ttl=seconds, version=version, tags=list(tags) if tags else None
        )
        client = self._connection.client
        try:
            payload = entry.to_json()
            await self._connection.execute("set", lambda: client.set(key, payload, ex=seconds or None))
            if entry.metadata.tags:
                await self._tags.add(key, entry.metadata.tags)
        except InfrastructureError as exc:
            self._failed("set", key, exc)
            return False

        self._stats.record_set()
        logger.debug("cache.set key=%s ttl=%d tags=%s", key, seconds, entry.metadata.tags)
        return True

    async def delete(self, namespace: str, identifier: Identifier) -> bool:
        """Remove one entry; tag sets that reference it are left alone."""
        key = self._keys.entry(namespace, identifier)
        client = self._connection.client
        try:
            removed = await self._connection.execute("delete", lambda: client.delete(key))
        except InfrastructureError as exc:
            self._failed("delete", key, exc)
            return False
        self._stats.record_delete()
        logger.debug("cache.delete key=%s removed=%d", key, removed)
        return removed == 1

    async def exists(self, namespace: str, identifier: Identifier) -> bool:
        key = self._keys.entry(namespace, identifier)
        client = self._connection.client
        try:
            return bool(await self._connection.execute("exists", lambda: client.exists(key)))
        except InfrastructureError as exc:
            self._failed("exists", key, exc)
            return False

    async def expire(self, namespace: str, identifier: Identifier, ttl: TTL) -> bool:
        """Reset the remaining TTL of an existing entry (``0`` makes it permanent)."""
        key = self._keys.entry(namespace, identifier)
        try:
            seconds = self.resolve_ttl(ttl)
        except ValueError as exc:
            logger.warning("cache.expire_rejected key=%s reason=%s", key, exc)
            return False
        client = self._connection.client
        try:
            if seconds == 0:
                return bool(await self._connection.execute("persist", lambda: client.persist(key)))
            return bool(await self._connection.execute("expire", lambda: client.expire(key, seconds)))
        except InfrastructureError as exc:
            self._failed("expire", key, exc)
            return False

    # ------------------------------------------------------------------
    # batch operations
    # ------------------------------------------------------------------

    async def get_many(self, namespace: str, identifiers: Sequence[Identifier]) -> list[Any]:
        """One MGET; positions line up with *identifiers*.  Hit counts are not rewritten."""
        if not identifiers:
            return []
        started = time.perf_counter()
        keys = [self._keys.entry(namespace, i) for i in identifiers]
        client = self._connection.client
        try:
            raws = await self._connection.execute("mget", lambda: client.mget(keys))
        except InfrastructureError as exc:
            self._failed("get_many", namespace, exc)
            return [None] * len(keys)

        # one latency sample per identifier
        per_key_ms = self._elapsed_ms(started) / len(keys)
        results: list[Any] = []
        for key, raw in zip(keys, raws):
            entry = self._decode(key, raw)
            if entry is None:
                self._stats.record_miss()
                results.append(None)
            else:
                self._stats.record_hit()
                results.append(entry.data)
            self._stats.record_latency(per_key_ms)
        return results

    async def set_many(
        self,
        namespace: str,
        items: Mapping[str, Any],
        *,
        ttl: TTL = None,
        tags: Sequence[str] | None = None,
        version: int = 1,
    ) -> bool:
        """Write every ``identifier -> value`` pair in one pipeline."""
        if not items:
            return True
        try:
            seconds = self.resolve_ttl(ttl)
        except ValueError as exc:
            logger.warning("cache.set_rejected namespace=%s reason=%s", namespace, exc)
            return False

        now_ms = self._clock.epoch_ms()
        tag_list = list(tags) if tags else None
        client = self._connection.client
        try:
            payloads = {
                self._keys.entry(namespace, identifier): CacheEntry.create(
                    value, now_ms=now_ms, ttl=seconds, version=version, tags=tag_list
                ).to_json()
                for identifier, value in items.items()
            }

            async def _op() -> None:
                async with client.pipeline(transaction=False) as pipe:
                    for key, payload in payloads.items():
                        pipe.set(key, payload, ex=seconds or None)
                    await pipe.execute()

            await self._connection.execute("set_many", _op)
            if tag_list:
                for key in payloads:
                    await self._tags.add(key, tag_list)
        except InfrastructureError as exc:
            self._failed("set_many", namespace, exc)
            return False

        for _ in payloads:
            self._stats.record_set()
        return True

    # ------------------------------------------------------------------
    # invalidation
    # ------------------------------------------------------------------

    async def invalidate_pattern(self, pattern: str) -> int:
        """Delete every key matching ``<prefix><pattern>`` and announce it."""
        match = self._keys.pattern(pattern)
        client = self._connection.client

        async def _scan() -> list[str]:
            found = [key async for key in client.scan_iter(match=match, count=_SCAN_COUNT)]
            return list(dict.fromkeys(found))

        try:
            keys = await self._connection.execute("scan", _scan)
            if not keys:
                return 0
            deleted = await self._connection.execute("delete", lambda: client.delete(*keys))
        except InfrastructureError as exc:
            self._failed("invalidate_pattern", match, exc)
            return 0

        self._stats.record_delete(deleted)
        logger.info("cache.invalidated_pattern pattern=%s deleted=%d", pattern, deleted)
        await self._bus.publish(InvalidationEvent.for_pattern(pattern))
        return int(deleted)

    async def invalidate_tags(self, tags: Sequence[str]) -> int:
        """Delete every entry registered under any of *tags*.

        Returns the number of member deletions attempted, counted per tag.
        """
        tags = list(tags)
        if not tags:
            return 0
        result = await self._tags.invalidate(tags)
        for _ in result.failed:
            self._stats.record_error()
        self._stats.record_delete(result.attempted)
        logger.info("cache.invalidated_tags tags=%s deleted=%d failed=%s", tags, result.attempted, result.failed)
        if len(result.failed) < len(tags):
            await self._bus.publish(InvalidationEvent.for_tags(tags))
        return result.attempted

    async def clear(self) -> bool:
        """FLUSHDB on the cache database.  Privileged callers only."""
        client = self._connection.client
        try:
            await self._connection.execute("flushdb", client.flushdb)
        except InfrastructureError as exc:
            self._failed("clear", "*", exc)
            return False
        self._stats.reset()
        logger.warning("cache.cleared db=%d", self.settings.db)
        await self._bus.publish(InvalidationEvent.for_all())
        return True

    def on_invalidation(self, kind: InvalidationKind | str, handler: InvalidationHandler) -> None:
        self._bus.on_invalidation(kind, handler)

    # ------------------------------------------------------------------
    # cache-aside
    # ------------------------------------------------------------------

    def wrap(
        self,
        namespace: str,
        fn: Callable[..., Awaitable[T]],
        *,
        ttl: TTL = None,
        tags: Sequence[str] | None = None,
        version: int = 1,
        coalesce: bool = False,
    ) -> Callable[..., Awaitable[T]]:
        return cache_aside(self, namespace, fn, ttl=ttl, tags=tags, version=version, coalesce=coalesce)

    def cached(
        self,
        namespace: str,
        *,
        ttl: TTL = None,
        tags: Sequence[str] | None = None,
        version: int = 1,
        coalesce: bool = False,
    ) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
        """Decorator form of :meth:`wrap`."""

        def decorator(fn: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
            return self.wrap(namespace, fn, ttl=ttl, tags=tags, version=version, coalesce=coalesce)

        return decorator

    # ------------------------------------------------------------------
    # diagnostics
    # ------------------------------------------------------------------

    def get_stats(self) -> CacheStats:
        return self._stats.snapshot()

    async def get_info(self, section: str | None = None) -> str | None:
        """Raw ``INFO`` text as the server sent it, or ``None`` when the backend is unreachable."""
        client = self._connection.client
        try:
            return await self._connection.execute("info", lambda: client.info(section) if section else client.info())
        except InfrastructureError as exc:
            logger.error("cache.info_failed %s", exc)
            return None

    async def get_info_fields(self, section: str | None = None) -> dict[str, str] | None:
        """``INFO`` as a flat ``field -> value`` mapping (see :func:`parse_info`)."""
        raw = await self.get_info(section)
        return None if raw is None else parse_info(raw)

    async def health_check(self) -> bool:
        if not self._connection.is_up:
            return False
        try:
            return await self._connection.ping()
        except InfrastructureError as exc:
            logger.error("cache.health_check_failed %s", exc)
            return False

    # ------------------------------------------------------------------
    # internals
    # ------------------------------------------------------------------

    def _decode(self, key: str, raw: str | bytes | None) -> CacheEntry[Any] | None:
        if raw is None:
            return None
        try:
            return CacheEntry.from_json(raw)
        except SerializationError as exc:
            logger.warning("cache.malformed_entry key=%s exc=%s", key, exc.message)
            return None

    async def _persist_hit_count(self, key: str, entry: CacheEntry[Any]) -> None:
        # XX: never resurrect an entry deleted between the read and this write
        client = self._connection.client
        payload = entry.to_json()
        try:
            await self._connection.execute("touch", lambda: client.set(key, payload, keepttl=True, xx=True))
        except InfrastructureError as exc:
            self._failed("touch", key, exc, level=logging.DEBUG)

    def _failed(self, operation: str, key: str, exc: InfrastructureError, level: int = logging.ERROR) -> None:
        self._stats.record_error()
        if isinstance(exc, BackendUnavailableError):
            level = logging.DEBUG
        fields = exc.with_context(operation=operation, key=key).log_fields()
        logger.log(level, "cache.%s_failed %s", operation, " ".join(f"{name}={value}" for name, value in fields.items()))

    @staticmethod
    def _elapsed_ms(started: float) -> float:
        return (time.perf_counter() - started) * 1000


def parse_info(raw: str) -> dict[str, str]:
    """Split ``INFO`` text into ``field -> value``; ``# Section`` headers and blank lines are skipped."""
    fields: dict[str, str] = {}
    for line in raw.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        name, sep, value = line.partition(":")
        if sep:
            fields[name] = value
    return fields


TaggedCache = TaggedRedisCache

__all__ = ["TTL", "TaggedCache", "TaggedRedisCache", "parse_info"]
