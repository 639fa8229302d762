"""Application – backend-agnostic cache building blocks."""

from tagcache.application.cache import (
    CacheEntry,
    CacheKey,
    CacheStats,
    InvalidationBus,
    InvalidationEvent,
    InvalidationKind,
    KeySpace,
    StatsCollector,
)

__all__ = [
    "CacheEntry",
    "CacheKey",
    "CacheStats",
    "InvalidationBus",
    "InvalidationEvent",
    "InvalidationKind",
    "KeySpace",
    "StatsCollector",
]
