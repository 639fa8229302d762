"""Unit tests for cache-aside wrapping."""
import asyncio

import pytest

from tagcache.application.cache import CacheKey
from tagcache.resilience.cache import cache_aside, identifier_for


class _InMemCache:
    def __init__(self):
        self._store: dict = {}
        self.sets: list = []

    async def get(self, namespace, identifier):
        return self._store.get(CacheKey.for_identifier(namespace, identifier))

    async def set(self, namespace, identifier, data, *, ttl=None, tags=None, version=1) -> bool:
        self._store[CacheKey.for_identifier(namespace, identifier)] = data
        self.sets.append((namespace, identifier, ttl, tags, version))
        return True


class TestIdentifierFor:
    def test_no_arguments(self):
        assert identifier_for((), {}) == "default"

    def test_positional_arguments(self):
        assert identifier_for((1, "a"), {}) == [1, "a"]

    def test_keyword_arguments(self):
        assert identifier_for((1,), {"page": 2}) == {"args": [1], "kwargs": {"page": 2}}


class TestCacheAside:
    def test_same_arguments_call_through_once(self):
        cache = _InMemCache()
        calls = []

        async def load(customer_id):
            calls.append(customer_id)
            return {"id": customer_id}

        async def run():
            wrapped = cache_aside(cache, "customers", load, ttl=60)
            assert await wrapped(1) == {"id": 1}
            assert await wrapped(1) == {"id": 1}
            assert await wrapped(2) == {"id": 2}

        asyncio.run(run())
        assert calls == [1, 2]

    def test_options_are_forwarded_to_set(self):
        cache = _InMemCache()

        async def load():
            return "v"

        asyncio.run(cache_aside(cache, "cfg", load, ttl="long", tags=["cfg"], version=3)())
        assert cache.sets == [("cfg", "default", "long", ["cfg"], 3)]

    def test_none_result_is_not_memoized(self):
        cache = _InMemCache()
        calls = []

        async def load():
            calls.append(1)
            return None

        async def run():
            wrapped = cache_aside(cache, "empty", load)
            await wrapped()
            await wrapped()

        asyncio.run(run())
        assert len(calls) == 2

    def test_wrapper_keeps_metadata(self):
        async def list_pets():
            """Return every pet."""
            return []

        wrapped = cache_aside(_InMemCache(), "pets", list_pets)
        assert wrapped.__name__ == "list_pets"
        assert wrapped.__doc__ == "Return every pet."
        assert wrapped.cache_namespace == "pets"

    def test_loader_exception_propagates_and_is_not_cached(self):
        cache = _InMemCache()

        async def load():
            raise RuntimeError("db down")

        with pytest.raises(RuntimeError):
            asyncio.run(cache_aside(cache, "x", load)())
        assert cache.sets == []


class TestCoalescing:
    def test_concurrent_misses_share_one_call(self):
        cache = _InMemCache()
        calls = []

        async def load(n):
            calls.append(n)
            await asyncio.sleep(0.05)
            return n * 2

        async def run():
            wrapped = cache_aside(cache, "slow", load, coalesce=True)
            return await asyncio.gather(*(wrapped(3) for _ in range(5)))

        assert asyncio.run(run()) == [6] * 5
        assert calls == [3]

    def test_without_coalescing_each_miss_calls_through(self):
        cache = _InMemCache()
        calls = []

        async def load(n):
            calls.append(n)
            await asyncio.sleep(0.05)
            return n

        async def run():
            wrapped = cache_aside(cache, "slow", load)
            await asyncio.gather(*(wrapped(3) for _ in range(3)))

        asyncio.run(run())
        assert calls == [3, 3, 3]

    def test_waiters_share_the_exception(self):
        cache = _InMemCache()
        calls = []

        async def load():
            calls.append(1)
            await asyncio.sleep(0.05)
            raise ValueError("bad")

        async def run():
            wrapped = cache_aside(cache, "boom", load, coalesce=True)
            return await asyncio.gather(*(wrapped() for _ in range(3)), return_exceptions=True)

        results = asyncio.run(run())
        assert all(isinstance(r, ValueError) for r in results)
        assert calls == [1]
