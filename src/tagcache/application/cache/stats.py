"""Application cache – StatsCollector."""
from __future__ import annotations

import dataclasses
from typing import Any

__all__ = ["CacheStats", "StatsCollector"]


@dataclasses.dataclass(frozen=True)
class CacheStats:
    hits: int = 0
    misses: int = 0
    sets: int = 0
    deletes: int = 0
    errors: int = 0
    hit_rate: float = 0.0
    avg_response_time_ms: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """camelCase form used by the admin stats endpoint."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "sets": self.sets,
            "deletes": self.deletes,
            "errors": self.errors,
            "hitRate": self.hit_rate,
            "avgResponseTimeMs": self.avg_response_time_ms,
        }


class StatsCollector:
    """In-process counters for cache traffic.

    Counters are per process; they are not shared through the backend.
    """

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._deletes = 0
        self._errors = 0
        self._avg_ms = 0.0

    def record_hit(self) -> None:
        self._hits += 1

    def record_miss(self) -> None:
        self._misses += 1

    def record_set(self) -> None:
        self._sets += 1

    def record_delete(self, count: int = 1) -> None:
        self._deletes += count

    def record_error(self) -> None:
        self._errors += 1

    def record_latency(self, ms: float) -> None:
        """Fold *ms* into the running mean; call after record_hit/record_miss."""
        n = self._hits + self._misses
        if n <= 1:
            self._avg_ms = ms
        else:
            self._avg_ms = (self._avg_ms * (n - 1) + ms) / n

    @property
    def hit_rate(self) -> float:
        total = self._hits + self._misses
        return self._hits / total * 100 if total else 0.0

    def snapshot(self) -> CacheStats:
        return CacheStats(
            hits=self._hits,
            misses=self._misses,
            sets=self._sets,
            deletes=self._deletes,
            errors=self._errors,
            hit_rate=self.hit_rate,
            avg_response_time_ms=self._avg_ms,
        )
