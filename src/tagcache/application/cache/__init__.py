"""Application cache – keys, envelopes, stats and the invalidation bus."""
from tagcache.application.cache.entry import CacheEntry, EntryMetadata
from tagcache.application.cache.invalidation import (
    InvalidationBus,
    InvalidationEvent,
    InvalidationHandler,
    InvalidationKind,
    InvalidationTransport,
)
from tagcache.application.cache.keys import CacheKey, Identifier, KeySpace
from tagcache.application.cache.stats import CacheStats, StatsCollector

__all__ = [
    "CacheEntry",
    "CacheKey",
    "CacheStats",
    "EntryMetadata",
    "Identifier",
    "InvalidationBus",
    "InvalidationEvent",
    "InvalidationHandler",
    "InvalidationKind",
    "InvalidationTransport",
    "KeySpace",
    "StatsCollector",
]
