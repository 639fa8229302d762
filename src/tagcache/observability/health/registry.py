from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

from tagcache.observability.health.check import DEFAULT_CHECK_TIMEOUT, HealthCheck, HealthStatus

__all__ = ["HealthRegistry", "HealthReport"]


@dataclass
class HealthReport:
    results: dict[str, HealthStatus] = field(default_factory=dict)

    @property
    def overall(self) -> bool:
        return all(s.healthy for s in self.results.values())

    @property
    def failing(self) -> list[str]:
        return [name for name, s in self.results.items() if not s.healthy]

    def to_dict(self) -> dict[str, Any]:
        return {
            "healthy": self.overall,
            "checks": {name: s.to_dict() for name, s in self.results.items()},
        }


class HealthRegistry:
    """Runs registered health checks concurrently and aggregates results."""

    def __init__(self, timeout: float | None = DEFAULT_CHECK_TIMEOUT) -> None:
        self._checks: dict[str, HealthCheck] = {}
        self._timeout = timeout

    def register(self, check: HealthCheck) -> None:
        if check.name in self._checks:
            raise ValueError(f"health check {check.name!r} is already registered")
        self._checks[check.name] = check

    async def _run_one(self, check: HealthCheck) -> HealthStatus:
        try:
            return await check.timed_check(self._timeout)
        except Exception as exc:  # noqa: BLE001
            return HealthStatus(healthy=False, detail=f"exception: {exc}")

    async def run_all(self) -> HealthReport:
        checks = list(self._checks.values())
        statuses = await asyncio.gather(*(self._run_one(c) for c in checks))
        return HealthReport(results={c.name: s for c, s in zip(checks, statuses)})
