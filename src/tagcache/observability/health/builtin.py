from __future__ import annotations

from typing import Any, Protocol

from tagcache.observability.health.check import HealthCheck, HealthStatus

__all__ = ["CacheHealthCheck"]


class _Pingable(Protocol):
    async def health_check(self) -> bool: ...
    def get_stats(self) -> Any: ...


class CacheHealthCheck(HealthCheck):
    """PINGs the cache backend and attaches the current stats snapshot.

    ``TaggedRedisCache.health_check`` never raises, so an unreachable backend
    shows up as ``healthy=False`` with the stats still populated.
    """

    def __init__(self, cache: _Pingable, name: str = "cache") -> None:
        self._cache = cache
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    async def check(self) -> HealthStatus:
        healthy = await self._cache.health_check()
        stats = self._cache.get_stats()
        return HealthStatus(
            healthy=healthy,
            detail=f"{'connected' if healthy else 'disconnected'} hit_rate={stats.hit_rate:.2f}% errors={stats.errors}",
            data=stats.to_dict(),
        )
