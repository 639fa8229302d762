"""Kernel time – Clock port + implementations."""
from tagcache.kernel.time.clock import Clock, FrozenClock, SystemClock, epoch_ms

__all__ = ["Clock", "FrozenClock", "SystemClock", "epoch_ms"]
