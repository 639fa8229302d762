"""Application cache – CacheEntry envelope.

The stored text is JSON with camelCase metadata so that every process
sharing the backend, whatever it is written in, reads the same shape::

    {"data": {...}, "metadata": {"createdAt": 1767268800000,
     "expiresAt": 1767269100000, "version": 1, "tags": ["user:42"],
     "hitCount": 3}}
"""
from __future__ import annotations

import dataclasses
import json
from typing import Any, Generic, TypeVar

from tagcache.kernel.errors import SerializationError

__all__ = ["CacheEntry", "EntryMetadata"]

T = TypeVar("T")


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclasses.dataclass
class EntryMetadata:
    created_at: int
    expires_at: int | None = None
    version: int = 1
    tags: list[str] | None = None
    hit_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"createdAt": self.created_at, "version": self.version, "hitCount": self.hit_count}
        if self.expires_at is not None:
            payload["expiresAt"] = self.expires_at
        if self.tags is not None:
            payload["tags"] = list(self.tags)
        return payload

    @classmethod
    def from_dict(cls, raw: Any) -> EntryMetadata:
        if not isinstance(raw, dict):
            raise SerializationError("metadata is not an object", payload_type="CacheEntry")
        created_at = raw.get("createdAt")
        expires_at = raw.get("expiresAt")
        version = raw.get("version")
        tags = raw.get("tags")
        hit_count = raw.get("hitCount", 0)
        if not _is_int(created_at):
            raise SerializationError("metadata.createdAt must be an integer", payload_type="CacheEntry")
        if expires_at is not None and not _is_int(expires_at):
            raise SerializationError("metadata.expiresAt must be an integer", payload_type="CacheEntry")
        if not _is_int(version):
            raise SerializationError("metadata.version must be an integer", payload_type="CacheEntry")
        if tags is not None and not (isinstance(tags, list) and all(isinstance(t, str) for t in tags)):
            raise SerializationError("metadata.tags must be a list of strings", payload_type="CacheEntry")
        if not _is_int(hit_count):
            raise SerializationError("metadata.hitCount must be an integer", payload_type="CacheEntry")
        return cls(created_at=created_at, expires_at=expires_at, version=version, tags=tags, hit_count=hit_count)


@dataclasses.dataclass
class CacheEntry(Generic[T]):
    """A cached payload plus its metadata, as persisted in the backend."""

    data: T
    metadata: EntryMetadata

    @classmethod
    def create(
        cls,
        data: T,
        *,
        now_ms: int,
        ttl: int,
        version: int = 1,
        tags: list[str] | None = None,
    ) -> CacheEntry[T]:
        return cls(
            data=data,
            metadata=EntryMetadata(
                created_at=now_ms,
                expires_at=now_ms + ttl * 1000 if ttl > 0 else None,
                version=version,
                tags=list(dict.fromkeys(tags)) if tags else None,
            ),
        )

    def record_hit(self) -> None:
        self.metadata.hit_count += 1

    def to_json(self) -> str:
        try:
            return json.dumps({"data": self.data, "metadata": self.metadata.to_dict()}, separators=(",", ":"))
        except (TypeError, ValueError) as exc:
            raise SerializationError(
                f"cache payload is not JSON-serialisable: {exc}",
                payload_type=type(self.data).__name__,
                cause=exc,
            ) from exc

    @classmethod
    def from_json(cls, raw: str | bytes) -> CacheEntry[Any]:
        try:
            decoded = json.loads(raw)
        except (TypeError, ValueError) as exc:
            raise SerializationError("cache entry is not valid JSON", payload_type="CacheEntry", cause=exc) from exc
        if not isinstance(decoded, dict) or "data" not in decoded:
            raise SerializationError("cache entry has no data field", payload_type="CacheEntry")
        return cls(data=decoded["data"], metadata=EntryMetadata.from_dict(decoded.get("metadata")))
