"""Kernel – framework-agnostic building blocks (errors, clocks)."""

from tagcache.kernel.errors import (
    BackendUnavailableError,
    BaseError,
    ConnectionError,
    InfrastructureError,
    SerializationError,
)
from tagcache.kernel.time import Clock, FrozenClock, SystemClock

__all__ = [
    "BackendUnavailableError",
    "BaseError",
    "Clock",
    "ConnectionError",
    "FrozenClock",
    "InfrastructureError",
    "SerializationError",
    "SystemClock",
]
