"""Testing helpers – fakes shipped with the library for downstream test suites."""
from tagcache.testing.fakes import DEFAULT_EPOCH_MS, FakeClock, InMemoryInvalidationTransport

__all__ = ["DEFAULT_EPOCH_MS", "FakeClock", "InMemoryInvalidationTransport"]
