from __future__ import annotations

import asyncio
import functools
from typing import Any, Awaitable, Callable, Protocol, Sequence, TypeVar

from tagcache.application.cache.keys import CacheKey, Identifier

__all__ = [
    "AsideCache",
    "cache_aside",
    "identifier_for",
]

T = TypeVar("T")

DEFAULT_IDENTIFIER = "default"


class AsideCache(Protocol):
    async def get(self, namespace: str, identifier: Identifier) -> Any: ...

    async def set(
        self,
        namespace: str,
        identifier: Identifier,
        data: Any,
        *,
        ttl: Any = None,
        tags: Sequence[str] | None = None,
        version: int = 1,
    ) -> bool: ...


def identifier_for(args: tuple[Any, ...], kwargs: dict[str, Any]) -> Identifier:
    """The call's argument list, or ``"default"`` for a call without arguments."""
    if kwargs:
        return {"args": list(args), "kwargs": kwargs}
    return list(args) if args else DEFAULT_IDENTIFIER


def cache_aside(
    cache: AsideCache,
    namespace: str,
    fn: Callable[..., Awaitable[T]],
    *,
    ttl: Any = None,
    tags: Sequence[str] | None = None,
    version: int = 1,
    coalesce: bool = False,
) -> Callable[..., Awaitable[T]]:
    """Return a cache-aside version of *fn*.

    Lookup by arguments, call through on a miss, store the result.  A
    cached ``None`` is indistinguishable from a miss, so functions returning
    ``None`` are called every time.

    Concurrent identical misses each call *fn* unless ``coalesce=True``, in
    which case callers in this process share the first caller's result (or
    exception).
    """
    inflight: dict[str, asyncio.Future[Any]] = {}

    async def _load(identifier: Identifier, args: tuple[Any, ...], kwargs: dict[str, Any]) -> T:
        result = await fn(*args, **kwargs)
        await cache.set(namespace, identifier, result, ttl=ttl, tags=tags, version=version)
        return result

    async def _load_once(identifier: Identifier, args: tuple[Any, ...], kwargs: dict[str, Any]) -> T:
        token = CacheKey.for_identifier(namespace, identifier)
        pending = inflight.get(token)
        if pending is not None:
            return await asyncio.shield(pending)

        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        inflight[token] = future
        try:
            result = await _load(identifier, args, kwargs)
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as exc:
            future.set_exception(exc)
            future.exception()  # mark retrieved when nobody else is waiting
            raise
        else:
            future.set_result(result)
            return result
        finally:
            inflight.pop(token, None)

    @functools.wraps(fn)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        identifier = identifier_for(args, kwargs)
        cached = await cache.get(namespace, identifier)
        if cached is not None:
            return cached  # type: ignore[no-any-return]
        if coalesce:
            return await _load_once(identifier, args, kwargs)
        return await _load(identifier, args, kwargs)

    wrapper.cache_namespace = namespace  # type: ignore[attr-defined]
    return wrapper
