"""Redis adapter – RedisConnection.

Owns the two process-wide clients (data + subscriber), the retry policy and
the up/down state.  Once a call exhausts its retry budget the connection is
marked down and every later call fails fast with
:class:`~tagcache.kernel.errors.BackendUnavailableError` until a background
PING succeeds again.
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Awaitable, Callable, TypeVar

import redis.asyncio as aioredis
from redis.asyncio.retry import Retry
from redis.backoff import NoBackoff
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from tagcache.config import CacheSettings
from tagcache.kernel.errors import BackendUnavailableError, ConnectionError, InfrastructureError
from tagcache.resilience.retry import RetryPolicy

T = TypeVar("T")
logger = logging.getLogger(__name__)

_TRANSIENT = (RedisConnectionError, RedisTimeoutError)


def _raw_reply(response: Any, **_: Any) -> Any:
    return response


class RedisConnection:
    """Data and subscriber connections plus shared failure handling."""

    RESOURCE = "redis"

    def __init__(
        self,
        settings: CacheSettings | None = None,
        *,
        client: aioredis.Redis | None = None,
        subscriber: aioredis.Redis | None = None,
        retry: RetryPolicy | None = None,
    ) -> None:
        self.settings = settings or CacheSettings()
        self.client = client if client is not None else self._create_client()
        self.subscriber = subscriber if subscriber is not None else self._create_client()
        # INFO replies stay as the server's text instead of redis-py's parsed dict
        self.client.set_response_callback("INFO", _raw_reply)
        self.retry = retry or RetryPolicy(
            max_attempts=self.settings.max_retries,
            base_delay=self.settings.retry_base_delay,
            max_delay=self.settings.retry_max_delay,
            retry_on=_TRANSIENT,
        )
        self._up = True
        self._closed = False
        self._probe_task: asyncio.Task[None] | None = None

    def _create_client(self) -> aioredis.Redis:
        s = self.settings
        # retries are handled by RetryPolicy, not by redis-py
        return aioredis.Redis(
            host=s.host,
            port=s.port,
            password=s.password,
            db=s.db,
            decode_responses=True,
            socket_connect_timeout=s.connect_timeout,
            socket_timeout=s.socket_timeout,
            retry=Retry(NoBackoff(), 0),
        )

    @property
    def is_up(self) -> bool:
        return self._up and not self._closed

    @property
    def closed(self) -> bool:
        return self._closed

    async def execute(self, operation: str, func: Callable[[], Awaitable[T]]) -> T:
        """Run *func* under the retry policy, translating redis-py errors."""
        if not self.is_up:
            raise BackendUnavailableError(self.RESOURCE, operation=operation)
        try:
            return await self.retry.execute_async(func)
        except _TRANSIENT as exc:
            self.mark_down(exc)
            raise ConnectionError(
                self.RESOURCE,
                f"{operation} failed after {self.retry.max_attempts} attempts",
                operation=operation,
                cause=exc,
            ) from exc
        except RedisError as exc:
            raise InfrastructureError(f"{operation} failed: {exc}", operation=operation, cause=exc) from exc

    async def ping(self) -> bool:
        return bool(await self.execute("ping", self.client.ping))

    def mark_down(self, exc: BaseException | None = None) -> None:
        if not self._up or self._closed:
            return
        self._up = False
        logger.warning("cache.connection_down resource=%s exc=%r", self.RESOURCE, exc)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._probe_task = loop.create_task(self._probe(), name="tagcache-reconnect-probe")

    def mark_up(self) -> None:
        if self._up or self._closed:
            return
        self._up = True
        logger.info("cache.reconnected resource=%s", self.RESOURCE)

    async def _probe(self) -> None:
        while not self._up and not self._closed:
            await asyncio.sleep(self.settings.reconnect_interval)
            try:
                await self.client.ping()
            except RedisError as exc:
                logger.debug("cache.reconnect_failed exc=%r", exc)
                continue
            self.mark_up()

    async def close(self) -> None:
        """Release both connections; safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        if self._probe_task is not None:
            self._probe_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._probe_task
            self._probe_task = None
        for client in (self.subscriber, self.client):
            try:
                await client.aclose()
            except RedisError as exc:
                logger.warning("cache.close_failed exc=%r", exc)
        logger.info("cache.disconnected resource=%s", self.RESOURCE)


__all__ = ["RedisConnection"]
