"""Collaborator interfaces for the cache.

`StorageAdapter` is the string key/value contract the persistence tier writes
through. `Fetcher` describes the callback-completing functions the cache sits
in front of.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Protocol

ResultCallback = Callable[[Any], None]


class Fetcher(Protocol):
    """A data source that reports its result through a continuation.

    Implementations must call ``on_result`` exactly once, eventually, with the
    value to cache. ``args`` is forwarded verbatim from the caller.
    """

    def __call__(self, args: Any, on_result: ResultCallback) -> None: ...


class StorageAdapter(ABC):
    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``.

        Raises:
            StorageQuotaExceededError: If the backend is out of capacity.
            StorageError: For any other write failure.

        """
        raise NotImplementedError

    @abstractmethod
    def remove(self, key: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def clear(self) -> None:
        raise NotImplementedError
