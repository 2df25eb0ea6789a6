"""Cache subsystem — content-addressed artifacts with a per-document reverse index."""

from texrender.cache.keys import hash_source
from texrender.cache.stats import CacheStats
from texrender.cache.store import CacheStore

__all__ = [
    "CacheStore",
    "CacheStats",
    "hash_source",
]
