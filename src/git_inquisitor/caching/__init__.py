"""On-disk caching of collected datasets."""

from .cache_store import CacheStore

__all__ = [
    "CacheStore",
]
