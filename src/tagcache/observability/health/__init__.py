"""Observability – Health Checks."""
from tagcache.observability.health.builtin import CacheHealthCheck
from tagcache.observability.health.check import HealthCheck, HealthStatus
from tagcache.observability.health.registry import HealthRegistry, HealthReport

__all__ = [
    "CacheHealthCheck",
    "HealthCheck",
    "HealthRegistry",
    "HealthReport",
    "HealthStatus",
]
