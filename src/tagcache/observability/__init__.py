"""Observability – structured logging and health checks."""

from tagcache.observability.health import CacheHealthCheck, HealthCheck, HealthRegistry, HealthStatus
from tagcache.observability.logging import JsonLoggerFactory, SensitiveFieldsFilter, get_logger

__all__ = [
    "CacheHealthCheck",
    "HealthCheck",
    "HealthRegistry",
    "HealthStatus",
    "JsonLoggerFactory",
    "SensitiveFieldsFilter",
    "get_logger",
]
