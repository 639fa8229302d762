"""Application cache – CacheKey codec and KeySpace."""
from __future__ import annotations

import hashlib
import json
from typing import Any

__all__ = ["CacheKey", "Identifier", "KeySpace"]

Identifier = Any
"""A plain ``str``/``int`` identifier, or any JSON-serialisable structured value."""

_DIGEST_CHARS = 8


class CacheKey:
    """Factory for deterministic, namespaced cache key strings."""

    @staticmethod
    def for_identifier(namespace: str, identifier: Identifier) -> str:
        """``namespace:identifier`` for plain ids, ``namespace:<digest>`` otherwise.

        >>> CacheKey.for_identifier("customers", "42")
        'customers:42'
        """
        if isinstance(identifier, str):
            return f"{namespace}:{identifier}"
        if isinstance(identifier, int) and not isinstance(identifier, bool):
            return f"{namespace}:{identifier}"
        return f"{namespace}:{CacheKey.digest(identifier)}"

    @staticmethod
    def digest(value: Any) -> str:
        """First 8 hex chars of SHA-256 over a canonical text form of *value*.

        Dicts are key-sorted so that equal dicts built in any order share a
        key.  Values JSON cannot sort or encode (mixed ``int``/``str`` keys,
        tuple keys, cycles) fall back to unsorted JSON, then to ``repr``.
        """
        try:
            canonical = json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)
        except (TypeError, ValueError):
            try:
                canonical = json.dumps(value, separators=(",", ":"), default=str)
            except (TypeError, ValueError):
                canonical = repr(value)
        return hashlib.sha256(canonical.encode()).hexdigest()[:_DIGEST_CHARS]


class KeySpace:
    """Applies the configured key prefix to entry keys, tag sets and scan patterns."""

    TAG_NAMESPACE = "tags"

    def __init__(self, prefix: str = "") -> None:
        self.prefix = prefix

    def entry(self, namespace: str, identifier: Identifier) -> str:
        return f"{self.prefix}{CacheKey.for_identifier(namespace, identifier)}"

    def tag(self, tag: str) -> str:
        return f"{self.prefix}{self.TAG_NAMESPACE}:{tag}"

    def pattern(self, glob: str) -> str:
        return f"{self.prefix}{glob}"

    def strip(self, key: str) -> str:
        """Remove the prefix from a full backend key."""
        return key[len(self.prefix):] if self.prefix and key.startswith(self.prefix) else key
