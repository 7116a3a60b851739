"""Custom exception types for the local cache."""


class LocalCacheError(Exception):
    """Base exception class for this package."""

    pass


class StorageError(LocalCacheError):
    """Raised when a storage adapter cannot read or write a key."""

    pass


class StorageQuotaExceededError(StorageError):
    """Raised when a storage adapter runs out of capacity."""

    pass
