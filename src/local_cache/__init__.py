"""Two-tier client-side cache for callback-style fetchers.

Values are memoized in memory and mirrored into a string key/value store when
one is available. Concurrent requests for the same (category, id) share a
single fetch.

Public API:
    - LocalCache: The cache context; `initialize` then `fetch_through`.
    - CachedFetcher: A fetcher bound to one category via `LocalCache.bind`.
    - PersistenceBridge: Thaw and write-back of partitions.
    - StorageAdapter: Abstract string key/value store.
    - InMemoryStorage, JsonFileStorage: Storage adapters.
    - CacheConfig: Settings and storage factory.
    - setup_logging: Console and rotating-file logging.
"""

from .backends.file import JsonFileStorage
from .backends.memory import InMemoryStorage
from .cache import CacheState, LocalCache, Partition
from .config.config import CacheConfig
from .interfaces import Fetcher, StorageAdapter
from .logging_config import setup_logging
from .persistence import PersistenceBridge
from .repository import CachedFetcher
from .utils.exceptions import LocalCacheError, StorageError, StorageQuotaExceededError

__all__ = [
    "CacheConfig",
    "CacheState",
    "CachedFetcher",
    "Fetcher",
    "InMemoryStorage",
    "JsonFileStorage",
    "LocalCache",
    "LocalCacheError",
    "Partition",
    "PersistenceBridge",
    "StorageAdapter",
    "StorageError",
    "StorageQuotaExceededError",
    "setup_logging",
]
