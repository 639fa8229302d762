"""Redis adapter – RedisTagIndex.

A tag ``t`` is a Redis set at ``<prefix>tags:t`` whose members are full
entry keys.  The index is best-effort: members may already have expired, and
plain deletes never prune it.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Sequence

from tagcache.adapters.redis.connection import RedisConnection
from tagcache.application.cache.keys import KeySpace
from tagcache.kernel.errors import InfrastructureError

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class TagInvalidation:
    attempted: int = 0
    failed: list[str] = dataclasses.field(default_factory=list)


class RedisTagIndex:
    def __init__(self, connection: RedisConnection, keys: KeySpace, tag_ttl: int = 86400) -> None:
        self._connection = connection
        self._keys = keys
        self._tag_ttl = tag_ttl

    async def add_member(self, tag: str, key: str) -> None:
        await self.add(key, [tag])

    async def add(self, key: str, tags: Sequence[str]) -> None:
        """Add *key* to every tag set in one MULTI/EXEC, refreshing each set's TTL."""

        async def _op() -> None:
            async with self._connection.client.pipeline(transaction=True) as pipe:
                for tag in tags:
                    tag_key = self._keys.tag(tag)
                    pipe.sadd(tag_key, key)
                    pipe.expire(tag_key, self._tag_ttl)
                await pipe.execute()

        await self._connection.execute("tags.add", _op)

    async def members(self, tag: str) -> set[str]:
        tag_key = self._keys.tag(tag)
        return set(await self._connection.execute("tags.members", lambda: self._connection.client.smembers(tag_key)))

    async def invalidate(self, tags: Sequence[str]) -> TagInvalidation:
        """Delete every member of each tag set, then the set itself.

        Tags are processed independently: a failure is recorded in
        ``failed`` and the remaining tags still run.  ``attempted`` counts
        member deletions per tag, so a key carrying two of the given tags is
        counted twice.
        """
        result = TagInvalidation()
        for tag in tags:
            try:
                result.attempted += await self._invalidate_one(tag)
            except InfrastructureError as exc:
                logger.error("cache.tag_invalidation_failed tag=%s %s", tag, exc.with_context(key=self._keys.tag(tag)))
                result.failed.append(tag)
        return result

    async def _invalidate_one(self, tag: str) -> int:
        tag_key = self._keys.tag(tag)
        members = await self.members(tag)

        async def _op() -> None:
            async with self._connection.client.pipeline(transaction=False) as pipe:
                if members:
                    pipe.delete(*members)
                pipe.delete(tag_key)
                await pipe.execute()

        await self._connection.execute("tags.invalidate", _op)
        return len(members)


__all__ = ["RedisTagIndex", "TagInvalidation"]
