"""Application cache – InvalidationBus, events and the transport port.

The bus only tells local observers that something was invalidated; the
entries themselves live in the shared backend and are already gone by the
time an event is published.  Every process, including the publisher,
receives every event, so handlers must be idempotent::

    bus.on_invalidation(InvalidationKind.TAG, lambda event: local_lru.drop_tags(event.tags))
"""
from __future__ import annotations

import dataclasses
import enum
import inspect
from typing import Awaitable, Callable, Protocol, Sequence

from tagcache.kernel.errors import InfrastructureError
from tagcache.observability.logging import get_logger

__all__ = [
    "InvalidationBus",
    "InvalidationEvent",
    "InvalidationHandler",
    "InvalidationKind",
    "InvalidationTransport",
    "MessageCallback",
]

logger = get_logger(__name__)

CHANNEL_PREFIX = "invalidate:"
WILDCARD = "*"


class InvalidationKind(str, enum.Enum):
    TAG = "tag"
    PATTERN = "pattern"
    ALL = "all"

    @property
    def channel(self) -> str:
        return f"{CHANNEL_PREFIX}{self.value}"

    @classmethod
    def from_channel(cls, channel: str) -> InvalidationKind:
        if not channel.startswith(CHANNEL_PREFIX):
            raise ValueError(f"not an invalidation channel: {channel!r}")
        return cls(channel[len(CHANNEL_PREFIX):])


@dataclasses.dataclass(frozen=True)
class InvalidationEvent:
    """``(kind, payload)``: comma-joined tags, a glob pattern, or ``*``."""

    kind: InvalidationKind
    payload: str

    @property
    def tags(self) -> list[str]:
        if self.kind is not InvalidationKind.TAG:
            return []
        return [t for t in self.payload.split(",") if t]

    @classmethod
    def for_tags(cls, tags: Sequence[str]) -> InvalidationEvent:
        return cls(InvalidationKind.TAG, ",".join(tags))

    @classmethod
    def for_pattern(cls, pattern: str) -> InvalidationEvent:
        return cls(InvalidationKind.PATTERN, pattern)

    @classmethod
    def for_all(cls) -> InvalidationEvent:
        return cls(InvalidationKind.ALL, WILDCARD)

    @classmethod
    def from_message(cls, channel: str, data: str | bytes) -> InvalidationEvent:
        payload = data.decode() if isinstance(data, bytes) else data
        return cls(InvalidationKind.from_channel(channel), payload)


InvalidationHandler = Callable[[InvalidationEvent], "Awaitable[None] | None"]
MessageCallback = Callable[[str, str], Awaitable[None]]


class InvalidationTransport(Protocol):
    """Port: fire-and-forget pub/sub used by :class:`InvalidationBus`."""

    async def publish(self, channel: str, payload: str) -> None: ...
    async def start(self, channels: Sequence[str], on_message: MessageCallback) -> None: ...
    async def stop(self) -> None: ...


class InvalidationBus:
    """Local handler registry plus publish/subscribe over a transport."""

    def __init__(self, transport: InvalidationTransport) -> None:
        self._transport = transport
        self._handlers: dict[InvalidationKind, list[InvalidationHandler]] = {kind: [] for kind in InvalidationKind}
        self._subscribed = False

    @property
    def subscribed(self) -> bool:
        return self._subscribed

    def on_invalidation(self, kind: InvalidationKind | str, handler: InvalidationHandler) -> None:
        self._handlers[InvalidationKind(kind)].append(handler)

    def handlers(self, kind: InvalidationKind | str) -> list[InvalidationHandler]:
        return list(self._handlers[InvalidationKind(kind)])

    async def publish(self, event: InvalidationEvent) -> bool:
        """Broadcast *event*; failures are logged and reported as ``False``."""
        try:
            await self._transport.publish(event.kind.channel, event.payload)
        except InfrastructureError as exc:
            logger.warning("cache.publish_failed", channel=event.kind.channel, payload=event.payload, error=exc.message)
            return False
        return True

    async def subscribe(self) -> None:
        """Start listening on the three well-known channels (once)."""
        if self._subscribed:
            return
        await self._transport.start([kind.channel for kind in InvalidationKind], self.handle_message)
        self._subscribed = True
        logger.info("cache.invalidation_subscribed", channels=[kind.channel for kind in InvalidationKind])

    async def close(self) -> None:
        if not self._subscribed:
            return
        self._subscribed = False
        await self._transport.stop()

    async def handle_message(self, channel: str, data: str) -> None:
        try:
            event = InvalidationEvent.from_message(channel, data)
        except ValueError:
            logger.debug("cache.invalidation_ignored", channel=channel)
            return
        await self.dispatch(event)

    async def dispatch(self, event: InvalidationEvent) -> None:
        """Invoke every handler for ``event.kind``; one failing handler does not stop the rest."""
        for handler in self.handlers(event.kind):
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:  # noqa: BLE001
                logger.exception("cache.invalidation_handler_failed", kind=event.kind.value, payload=event.payload)
