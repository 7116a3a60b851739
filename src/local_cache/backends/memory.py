from typing import Optional

from ..interfaces import StorageAdapter
from ..utils.exceptions import StorageQuotaExceededError


class InMemoryStorage(StorageAdapter):
    """Process-local storage adapter.

    Used where no persistent store is available and in tests. When
    ``capacity`` is given, the total length of keys and values is limited to
    that many characters and writes past it fail with
    ``StorageQuotaExceededError``, the way a browser store reports a full quota.
    """

    def __init__(self, capacity: Optional[int] = None, initial: Optional[dict[str, str]] = None):
        if capacity is not None and capacity < 0:
            raise ValueError("capacity must be non-negative.")
        self.capacity = capacity
        self._stash: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._stash.get(key)

    def set(self, key: str, value: str) -> None:
        if self.capacity is not None:
            used = self.size() - self._item_size(key, self._stash.get(key))
            if used + self._item_size(key, value) > self.capacity:
                raise StorageQuotaExceededError(
                    f"Writing {key!r} would exceed the storage capacity of {self.capacity}."
                )
        self._stash[key] = value

    def remove(self, key: str) -> None:
        self._stash.pop(key, None)

    def clear(self) -> None:
        self._stash.clear()

    def keys(self) -> list[str]:
        return list(self._stash)

    def size(self) -> int:
        return sum(self._item_size(k, v) for k, v in self._stash.items())

    def __len__(self) -> int:
        return len(self._stash)

    @staticmethod
    def _item_size(key: str, value: Optional[str]) -> int:
        if value is None:
            return 0
        return len(key) + len(value)
