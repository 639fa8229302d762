"""Resilience – cache-aside wrapping of async loaders."""
from tagcache.resilience.cache.aside import AsideCache, cache_aside, identifier_for

__all__ = ["AsideCache", "cache_aside", "identifier_for"]
