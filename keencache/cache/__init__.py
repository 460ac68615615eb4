"""Redis persistence for query results.

Results are stored as their Keen JSON body string under a caller-chosen key
with a caller-chosen expiration. Caching is optional: a client without a
store simply skips writes.

Usage:
    >>> from keencache.cache import CacheStore
    >>>
    >>> store = CacheStore.connect("redis://localhost:6379/0")
    >>> store.write("daily:purchases", '{"result": 42}', expire=3600)
    >>> store.get("daily:purchases")
    '{"result": 42}'
"""

from keencache.cache.models import CacheConfig, CacheStats
from keencache.cache.store import CacheStore

__all__ = [
    "CacheStore",
    "CacheConfig",
    "CacheStats",
]
