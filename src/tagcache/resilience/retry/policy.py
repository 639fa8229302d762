"""Resilience – RetryPolicy backed by ``tenacity``.

Every backend call made by the cache goes through one shared policy::

    policy = RetryPolicy(
        max_attempts=3,
        base_delay=0.1,
        max_delay=3.0,
        retry_on=(redis.exceptions.ConnectionError, redis.exceptions.TimeoutError),
    )
    value = await policy.execute_async(lambda: client.get("tagcache:customers:1"))

Only the exception types in ``retry_on`` are retried; anything else (e.g. a
``ResponseError`` for a wrong-type key) propagates on the first attempt.
"""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, TypeVar

import tenacity

T = TypeVar("T")
logger = logging.getLogger(__name__)


class RetryPolicy:
    """Bounded exponential backoff with a capped number of attempts.

    Parameters
    ----------
    max_attempts:
        Maximum number of call attempts (including the first call).
    base_delay:
        Multiplier for ``tenacity.wait_exponential``; the n-th wait is
        ``base_delay * 2**(n-1)`` seconds.
    max_delay:
        Upper bound for a single wait.
    retry_on:
        Exception types that trigger another attempt.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 0.1,
        max_delay: float = 3.0,
        retry_on: tuple[type[BaseException], ...] = (Exception,),
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.retry_on = retry_on

    def _before_sleep(self, state: tenacity.RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome is not None else None
        delay = state.next_action.sleep if state.next_action is not None else 0.0
        logger.debug("retry attempt=%d delay=%.2fs exc=%r", state.attempt_number, delay, exc)

    def _build_async_retrying(self) -> tenacity.AsyncRetrying:
        return tenacity.AsyncRetrying(
            stop=tenacity.stop_after_attempt(self.max_attempts),
            wait=tenacity.wait_exponential(multiplier=self.base_delay, max=self.max_delay),
            retry=tenacity.retry_if_exception_type(self.retry_on),
            before_sleep=self._before_sleep,
            reraise=True,
        )

    async def execute_async(self, func: Callable[[], Awaitable[T]]) -> T:
        """Execute *func* with retry; the last exception is re-raised when exhausted."""
        result: Any = None
        async for attempt in self._build_async_retrying():
            with attempt:
                result = await func()
        return result  # type: ignore[no-any-return]


__all__ = ["RetryPolicy"]
