"""Adapters – concrete backends for the cache ports."""
