"""Infrastructure errors – backend I/O and payload encoding failures."""

from __future__ import annotations

from typing import Any

from tagcache.kernel.errors.base import BaseError


class InfrastructureError(BaseError):
    """Failure talking to, or decoding data from, the backing store."""

    default_code = "infrastructure_error"


class ConnectionError(InfrastructureError):  # noqa: A001
    """The backing store could not be reached after the retry budget was spent."""

    default_code = "connection_error"

    def __init__(
        self,
        resource: str,
        message: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message or f"Could not connect to '{resource}'", **kwargs)
        self.resource = resource


class BackendUnavailableError(ConnectionError):
    """Raised without any I/O while the connection is marked down."""

    default_code = "backend_unavailable"

    def __init__(self, resource: str, **kwargs: Any) -> None:
        super().__init__(resource, f"'{resource}' is marked down; waiting for recovery", **kwargs)


class TimeoutError(InfrastructureError):  # noqa: A001
    """A backend call exceeded its socket timeout."""

    default_code = "infrastructure_timeout"


class SerializationError(InfrastructureError):
    """A cache envelope could not be encoded or decoded."""

    default_code = "serialization_error"

    def __init__(
        self,
        message: str,
        *,
        payload_type: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.payload_type = payload_type


__all__ = [
    "BackendUnavailableError",
    "ConnectionError",
    "InfrastructureError",
    "SerializationError",
    "TimeoutError",
]
