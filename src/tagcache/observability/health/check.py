from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

__all__ = ["HealthCheck", "HealthStatus"]

DEFAULT_CHECK_TIMEOUT = 2.0


@dataclass
class HealthStatus:
    healthy: bool
    detail: str | None = None
    latency_ms: float = 0.0
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "healthy": self.healthy,
            "detail": self.detail,
            "latency_ms": round(self.latency_ms, 2),
        }
        if self.data:
            payload["data"] = self.data
        return payload


class HealthCheck(ABC):
    """Base class for all health checks.

    A backend that accepts the connection but never answers would hang a
    plain ``check()``; :meth:`timed_check` bounds it and reports a timeout
    as unhealthy.
    """

    @property
    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    async def check(self) -> HealthStatus: ...

    async def timed_check(self, timeout: float | None = DEFAULT_CHECK_TIMEOUT) -> HealthStatus:
        start = time.monotonic()
        try:
            status = await asyncio.wait_for(self.check(), timeout)
        except asyncio.TimeoutError:
            status = HealthStatus(healthy=False, detail=f"timed out after {timeout}s")
        status.latency_ms = (time.monotonic() - start) * 1000
        return status
