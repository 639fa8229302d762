"""
tagcache – tagged, namespaced cache layer over a shared Redis backend.

Import path convention::

    from tagcache import TaggedCache, TTLTier, load_cache_settings
    from tagcache.application.cache import InvalidationKind, CacheKey
    from tagcache.observability.health import CacheHealthCheck
"""

from tagcache.adapters.redis import TaggedCache, TaggedRedisCache
from tagcache.application.cache import CacheStats, InvalidationEvent, InvalidationKind
from tagcache.config import CacheSettings, TTLTier, load_cache_settings

__version__ = "0.1.0"
__all__ = [
    "CacheSettings",
    "CacheStats",
    "InvalidationEvent",
    "InvalidationKind",
    "TTLTier",
    "TaggedCache",
    "TaggedRedisCache",
    "__version__",
    "load_cache_settings",
]
