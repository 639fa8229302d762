"""Kernel time – Clock protocol + implementations.

Envelope timestamps are integer milliseconds since the Unix epoch so that
entries written by other processes sharing the store decode identically.
"""
from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Protocol


class Clock(Protocol):
    """Port: abstract clock for deterministic testing."""

    def now(self) -> datetime: ...
    def epoch_ms(self) -> int: ...


class SystemClock:
    """Production clock that delegates to ``datetime.now(UTC)``."""

    def now(self) -> datetime:
        return datetime.now(UTC)

    def epoch_ms(self) -> int:
        return int(self.now().timestamp() * 1000)


class FrozenClock:
    """Test clock pinned to a fixed point in time."""

    def __init__(self, fixed: datetime) -> None:
        self._fixed = fixed

    def now(self) -> datetime:
        return self._fixed

    def epoch_ms(self) -> int:
        return int(self._fixed.timestamp() * 1000)

    def advance(self, **kwargs: int | float) -> None:
        """Advance the frozen time by the given ``timedelta`` kwargs."""
        self._fixed += timedelta(**kwargs)


def epoch_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return SystemClock().epoch_ms()


__all__ = ["Clock", "FrozenClock", "SystemClock", "epoch_ms"]
