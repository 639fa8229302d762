"""Redis adapter – RedisPubSubTransport for invalidation events.

Publishes on the data connection; listens on the dedicated subscriber
connection so that a broken subscription never blocks reads or writes.
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Sequence

from redis.exceptions import RedisError

from tagcache.adapters.redis.connection import RedisConnection
from tagcache.application.cache.invalidation import MessageCallback

logger = logging.getLogger(__name__)

_POLL_TIMEOUT = 1.0


class RedisPubSubTransport:
    def __init__(self, connection: RedisConnection) -> None:
        self._connection = connection
        self._pubsub: Any = None
        self._task: asyncio.Task[None] | None = None
        self._channels: list[str] = []
        self._on_message: MessageCallback | None = None

    async def publish(self, channel: str, payload: str) -> None:
        await self._connection.execute("publish", lambda: self._connection.client.publish(channel, payload))
        logger.debug("cache.published channel=%s payload=%s", channel, payload)

    async def start(self, channels: Sequence[str], on_message: MessageCallback) -> None:
        """Subscribe and start the listener task; never raises on a down backend."""
        self._channels = list(channels)
        self._on_message = on_message
        try:
            await self._subscribe()
        except RedisError as exc:
            logger.warning("cache.subscribe_failed channels=%s exc=%r", self._channels, exc)
            await self._reset()
        self._task = asyncio.create_task(self._listen(), name="tagcache-invalidation-listener")

    async def _subscribe(self) -> None:
        self._pubsub = self._connection.subscriber.pubsub(ignore_subscribe_messages=True)
        await self._pubsub.subscribe(*self._channels)

    async def _reset(self) -> None:
        if self._pubsub is None:
            return
        pubsub, self._pubsub = self._pubsub, None
        try:
            await pubsub.aclose()
        except RedisError as exc:
            logger.debug("cache.pubsub_close_failed exc=%r", exc)

    async def _listen(self) -> None:
        while True:
            if self._pubsub is None:
                await asyncio.sleep(self._connection.settings.reconnect_interval)
                try:
                    await self._subscribe()
                    logger.info("cache.resubscribed channels=%s", self._channels)
                except RedisError as exc:
                    logger.debug("cache.resubscribe_failed exc=%r", exc)
                    await self._reset()
                continue
            try:
                message = await self._pubsub.get_message(ignore_subscribe_messages=True, timeout=_POLL_TIMEOUT)
            except RedisError as exc:
                logger.warning("cache.subscriber_disconnected exc=%r", exc)
                await self._reset()
                continue
            if message is None or message.get("type") != "message":
                continue
            if self._on_message is not None:
                await self._on_message(message["channel"], message["data"])

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        await self._reset()


__all__ = ["RedisPubSubTransport"]
