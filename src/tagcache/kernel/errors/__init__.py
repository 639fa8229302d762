"""Kernel error hierarchy – public re-export surface.

Hierarchy::

    BaseError
    └── InfrastructureError  (infrastructure.py)
        ├── ConnectionError
        │   └── BackendUnavailableError
        ├── TimeoutError
        └── SerializationError
"""

from tagcache.kernel.errors.base import BaseError
from tagcache.kernel.errors.infrastructure import (
    BackendUnavailableError,
    ConnectionError,
    InfrastructureError,
    SerializationError,
)
from tagcache.kernel.errors.infrastructure import TimeoutError as InfrastructureTimeoutError

__all__ = [
    "BackendUnavailableError",
    "BaseError",
    "ConnectionError",
    "InfrastructureError",
    "InfrastructureTimeoutError",
    "SerializationError",
]
