"""Unit tests for kernel clocks."""

from __future__ import annotations

import time
from datetime import UTC, datetime

from tagcache.kernel.time import FrozenClock, SystemClock, epoch_ms


class TestSystemClock:
    def test_now_is_timezone_aware(self) -> None:
        assert SystemClock().now().tzinfo is not None

    def test_epoch_ms_tracks_wall_clock(self) -> None:
        assert abs(SystemClock().epoch_ms() - int(time.time() * 1000)) < 1000

    def test_module_helper(self) -> None:
        assert abs(epoch_ms() - int(time.time() * 1000)) < 1000


class TestFrozenClock:
    def test_epoch_ms(self) -> None:
        clock = FrozenClock(datetime(2026, 1, 1, 12, 0, tzinfo=UTC))
        assert clock.epoch_ms() == 1767268800000

    def test_advance(self) -> None:
        clock = FrozenClock(datetime(2026, 1, 1, tzinfo=UTC))
        start = clock.epoch_ms()
        clock.advance(seconds=90)
        assert clock.epoch_ms() - start == 90_000
        assert clock.now() == datetime(2026, 1, 1, 0, 1, 30, tzinfo=UTC)
