"""Testing fakes – in-memory doubles for cache ports."""
from tagcache.testing.fakes.clock import DEFAULT_EPOCH_MS, FakeClock
from tagcache.testing.fakes.invalidation import InMemoryInvalidationTransport

__all__ = [
    "DEFAULT_EPOCH_MS",
    "FakeClock",
    "InMemoryInvalidationTransport",
]
