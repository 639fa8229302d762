"""Root error class for the tagcache error hierarchy."""

from __future__ import annotations

from typing import Any


class BaseError(Exception):
    """Root of the tagcache error hierarchy.

    Every cache failure is tied to the call that produced it: ``operation``
    names the cache or backend step (``get``, ``mget``, ``tags.add``,
    ``flushdb`` ...) and ``key`` the full backend key or namespace it touched.
    The adapter that raises usually knows the operation; the caller that
    catches usually knows the key, and fills it in with :meth:`with_context`.

    Args:
        message: Human-readable description.
        code: Machine-readable slug (defaults to ``default_code``).
        operation: Cache or backend step that failed.
        key: Backend key or namespace involved.
        detail: Extra context (serialisable dict), e.g. the offending setting.
        cause: Original exception, usually a ``redis.exceptions.RedisError``
            or a ``json`` decoding error.
    """

    default_code: str = "tagcache_error"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        operation: str | None = None,
        key: str | None = None,
        detail: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.operation = operation
        self.key = key
        self.detail: dict[str, Any] = detail or {}
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def with_context(self, *, operation: str | None = None, key: str | None = None) -> BaseError:
        """Fill in ``operation``/``key`` where the raiser left them unset."""
        if self.operation is None:
            self.operation = operation
        if self.key is None:
            self.key = key
        return self

    def log_fields(self) -> dict[str, Any]:
        """Flat ``code``/``operation``/``key``/``cause`` fields for a log line; unset ones are omitted."""
        fields: dict[str, Any] = {"code": self.code}
        if self.operation is not None:
            fields["operation"] = self.operation
        if self.key is not None:
            fields["key"] = self.key
        if self.cause is not None:
            fields["cause"] = repr(self.cause)
        return fields

    def __str__(self) -> str:
        where = " ".join(f"{name}={value}" for name, value in self.log_fields().items() if name in ("operation", "key"))
        return f"[{self.code}] {self.message}" + (f" ({where})" if where else "")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, operation={self.operation!r}, message={self.message!r})"

    def to_dict(self) -> dict[str, Any]:
        """Plain dict form, safe to attach to log records or health payloads."""
        payload: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "detail": self.detail,
        }
        payload.update(self.log_fields())
        return payload


__all__ = ["BaseError"]
