"""Config – CacheSettings and TTL tiers.

Environment variables use the ``REDIS_`` prefix::

    REDIS_HOST=cache.internal
    REDIS_PORT=6380
    REDIS_PASSWORD=s3cret
    REDIS_KEY_PREFIX=shop:
    REDIS_TTL_SHORT=30
"""
from __future__ import annotations

import dataclasses
import enum
from typing import Any, ClassVar

from tagcache.config.settings import DotenvSettingsLoader, EnvSettingsLoader, Settings, SettingsFactory
from tagcache.config.settings.loaders import SettingsLoader
from tagcache.config.validation import InvalidSettingValueError

__all__ = ["CacheSettings", "TTLTier", "load_cache_settings"]


class TTLTier(str, enum.Enum):
    """Named TTL presets; durations are resolved through :class:`CacheSettings`."""

    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"
    DEFAULT = "default"
    PERMANENT = "permanent"


@dataclasses.dataclass
class CacheSettings(Settings):
    """Connection, key-space and TTL configuration for the tagged cache."""

    _prefix: ClassVar[str] = "redis"

    host: str = "localhost"
    port: int = 6379
    password: str | None = None
    db: int = 0
    key_prefix: str = "tagcache:"

    ttl_default: int = 300
    ttl_short: int = 60
    ttl_medium: int = 900
    ttl_long: int = 3600
    ttl_permanent: int = 0
    tag_ttl: int = 86400

    max_retries: int = 3
    retry_base_delay: float = 0.1
    retry_max_delay: float = 3.0
    connect_timeout: float = 10.0
    socket_timeout: float = 5.0
    reconnect_interval: float = 5.0

    def _validate(self) -> None:
        if not 0 < self.port < 65536:
            raise InvalidSettingValueError("port", self.port, "must be in 1..65535")
        if self.db < 0:
            raise InvalidSettingValueError("db", self.db, "must be >= 0")
        for tier in TTLTier:
            value = self.ttl_for(tier)
            if value < 0:
                raise InvalidSettingValueError(f"ttl_{tier.value}", value, "must be >= 0")
        if self.ttl_permanent != 0:
            raise InvalidSettingValueError("ttl_permanent", self.ttl_permanent, "permanent entries never expire")
        if self.tag_ttl <= 0:
            raise InvalidSettingValueError("tag_ttl", self.tag_ttl, "must be > 0")
        if self.max_retries < 1:
            raise InvalidSettingValueError("max_retries", self.max_retries, "must be >= 1")
        for name in ("retry_base_delay", "retry_max_delay", "connect_timeout", "socket_timeout", "reconnect_interval"):
            if getattr(self, name) < 0:
                raise InvalidSettingValueError(name, getattr(self, name), "must be >= 0")

    def ttl_for(self, tier: TTLTier) -> int:
        return int(getattr(self, f"ttl_{TTLTier(tier).value}"))

    def redacted(self) -> dict[str, Any]:
        data = dataclasses.asdict(self)
        if data["password"] is not None:
            data["password"] = "[REDACTED]"
        return data


def load_cache_settings(env_file: str | None = None, **overrides: Any) -> CacheSettings:
    """Build :class:`CacheSettings` from the environment, an optional ``.env``
    file and explicit keyword overrides (highest priority)."""
    loaders: list[SettingsLoader] = [EnvSettingsLoader()]
    if env_file is not None:
        loaders.append(DotenvSettingsLoader(env_file))
    return SettingsFactory.create(CacheSettings, loaders=loaders, overrides=overrides or None)
