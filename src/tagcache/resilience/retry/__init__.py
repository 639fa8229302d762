"""Resilience – bounded exponential-backoff retry backed by tenacity."""
from tagcache.resilience.retry.policy import RetryPolicy

__all__ = ["RetryPolicy"]
