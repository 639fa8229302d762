"""Resilience – bounded retry for backend calls and cache-aside wrapping."""

from tagcache.resilience.cache import cache_aside
from tagcache.resilience.retry import RetryPolicy

__all__ = ["RetryPolicy", "cache_aside"]
