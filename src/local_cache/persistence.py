import logging
from collections.abc import Mapping
from typing import Any, Optional

from pydantic import ValidationError

from .interfaces import StorageAdapter
from .schema import decode_partition, encode_partition
from .utils.exceptions import StorageError


class PersistenceBridge:
    """Moves cache partitions between memory and a storage adapter.

    A bridge without a storage adapter is *degraded*: `thaw` always returns an
    empty mapping and dirty tracking and write-back do nothing. Storage faults
    never escape this class; they are logged and the in-memory cache stays
    authoritative.
    """

    def __init__(
        self,
        storage: Optional[StorageAdapter] = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.storage = storage
        self.logger = logger or logging.getLogger(__name__)
        self._dirty: dict[str, None] = {}

    @property
    def degraded(self) -> bool:
        return self.storage is None

    @property
    def dirty(self) -> frozenset[str]:
        return frozenset(self._dirty)

    def thaw(self, name: str) -> dict[str, Any]:
        """Load the persisted entries of partition ``name``, or an empty dict."""
        if self.storage is None:
            return {}
        try:
            raw = self.storage.get(name)
        except Exception:
            self.logger.warning("Failed to read partition %r from storage", name, exc_info=True)
            return {}
        if not raw:
            return {}
        try:
            entries = decode_partition(raw)
        except ValidationError:
            self.logger.debug("Discarding malformed persisted partition %r", name)
            return {}
        self.logger.debug("Thawed partition %r (%d entries)", name, len(entries))
        return entries

    def mark_dirty(self, name: str) -> None:
        if self.storage is None:
            return
        self._dirty[name] = None

    def write_back(self, partitions: Mapping[str, Mapping[str, Any]]) -> None:
        """Flush every dirty partition found in ``partitions``.

        A partition that fails to store stays dirty and is retried on the next
        pass. One that cannot be serialized is dropped from the dirty set.
        """
        if self.storage is None:
            return
        for name in list(self._dirty):
            entries = partitions.get(name)
            if entries is None:
                self._dirty.pop(name, None)
                continue
            try:
                payload = encode_partition(dict(entries))
            except (TypeError, ValueError):
                self.logger.error(
                    "Partition %r holds values that are not JSON serializable; not persisted",
                    name,
                    exc_info=True,
                )
                self._dirty.pop(name, None)
                continue
            try:
                self.storage.set(name, payload)
            except StorageError as exc:
                self.logger.warning("Failed to persist partition %r: %s", name, exc)
                continue
            except Exception:
                self.logger.warning("Unexpected error persisting partition %r", name, exc_info=True)
                continue
            self._dirty.pop(name, None)
            self.logger.debug("Persisted partition %r (%d entries)", name, len(entries))

    def reset(self) -> None:
        self._dirty.clear()
