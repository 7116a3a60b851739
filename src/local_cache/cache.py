"""Two-tier fetch-through cache.

`LocalCache` memoizes values produced by callback-style fetchers in memory and,
once initialized with a storage adapter, mirrors each partition into that
adapter as a JSON object so it survives a restart. Concurrent requests for the
same (category, id) pair share a single fetch.

Typical use::

    cache = LocalCache(JsonFileStorage("cache.json"))
    cache.initialize(validator=session_id)

    def get_color(color_id, callback):
        cache.fetch_through("color", color_id, fetch_color, {"id": color_id}, callback)
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Hashable, Optional

from .interfaces import Fetcher, ResultCallback, StorageAdapter
from .persistence import PersistenceBridge
from .schema import ValidatorToken, token_to_str

if TYPE_CHECKING:
    from .config.config import CacheConfig
    from .repository import CachedFetcher

DEFAULT_VALIDATOR_KEY = "_validator"


class CacheState(Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"


@dataclass
class Partition:
    """Entries of one category plus the callbacks waiting on in-flight ids.

    An id is either resolved (in ``entries``) or in flight (in ``pending``),
    never both.
    """

    name: str
    entries: dict[str, Any] = field(default_factory=dict)
    pending: dict[str, list[Optional[ResultCallback]]] = field(default_factory=dict)


class LocalCache:
    def __init__(
        self,
        storage: Optional[StorageAdapter] = None,
        validator_key: str = DEFAULT_VALIDATOR_KEY,
        logger: logging.Logger | None = None,
    ) -> None:
        """Create an uninitialized cache.

        Args:
            storage (Optional[StorageAdapter]): Persistent tier. ``None`` keeps the
                cache in memory only.
            validator_key (str): Storage key reserved for the validator token.
            logger (Optional[logging.Logger]): Logger for cache events. Defaults to
                the module logger.

        """
        self.validator_key = validator_key
        self.logger = logger or logging.getLogger(__name__)
        self._storage = storage
        # storage is attached to the bridge by initialize()
        self._bridge = PersistenceBridge(None, logger=self.logger)
        self._partitions: dict[str, Partition] = {}
        self._state = CacheState.UNINITIALIZED
        self._validator: Optional[str] = None
        self._lock = threading.RLock()
        self._warned_uninitialized = False

    @classmethod
    def from_config(
        cls, config: "CacheConfig | None" = None, logger: logging.Logger | None = None
    ) -> "LocalCache":
        from .config.config import CacheConfig

        config = config or CacheConfig.get_instance()
        return cls(
            storage=config.build_storage(logger=logger),
            validator_key=config.validator_key,
            logger=logger,
        )

    @property
    def state(self) -> CacheState:
        return self._state

    @property
    def persistent(self) -> bool:
        """True when initialized with a working storage adapter."""
        return not self._bridge.degraded

    @property
    def bridge(self) -> PersistenceBridge:
        return self._bridge

    def initialize(self, validator: ValidatorToken = None) -> None:
        """Attach the storage adapter, invalidating it if ``validator`` changed.

        If ``validator`` is given and differs from the one stored previously
        (or none was stored), the whole store is erased and the new token is
        saved. Without a validator the stored data is trusted as is. Any storage
        failure here leaves the cache in memory-only mode.

        Raises:
            pydantic.ValidationError: If ``validator`` is not a string or number.

        """
        token = token_to_str(validator)
        with self._lock:
            if self._state is CacheState.READY:
                self.logger.debug("Cache already initialized; ignoring initialize()")
                return
            self._state = CacheState.READY
            self._validator = token

            if self._storage is None:
                self.logger.info("No storage adapter available. Caching in memory only.")
                return

            try:
                if token is not None and self._storage.get(self.validator_key) != token:
                    self.logger.info("Validator changed. Clearing persisted cache.")
                    self._storage.clear()
                    self._storage.set(self.validator_key, token)
            except Exception:
                self.logger.warning(
                    "Storage unusable during initialization. Caching in memory only.",
                    exc_info=True,
                )
                return

            self._bridge.storage = self._storage
            # partitions touched before initialize() were thawed empty
            for partition in self._partitions.values():
                merged = self._bridge.thaw(partition.name)
                if partition.entries:
                    merged.update(partition.entries)
                    self._bridge.mark_dirty(partition.name)
                partition.entries = merged
            self.logger.debug("Cache initialized with persistent storage")

    def fetch_through(
        self,
        category: str,
        id: Hashable,
        fetcher: Fetcher,
        args: Any = None,
        callback: Optional[ResultCallback] = None,
    ) -> None:
        """Deliver the value for ``(category, id)`` to ``callback``.

        A cached value is delivered immediately. Otherwise ``fetcher(args,
        on_result)`` is called, unless a fetch for the same id is already in
        flight, in which case ``callback`` waits for that one. Waiting callbacks
        are invoked in arrival order. Entries that are not callable are skipped.

        Raises:
            ValueError: If ``category`` is empty or is the reserved validator key.
            Exception: Whatever ``fetcher`` raises before reporting a result.

        """
        self._validate_category(category)
        key = str(id)
        with self._lock:
            self._warn_if_uninitialized()
            partition = self._partition(category)
            hit = key in partition.entries
            if hit:
                value = partition.entries[key]
            elif key in partition.pending:
                partition.pending[key].append(callback)
                self.logger.debug("Fetch in flight for %s (id=%s); queued callback", category, key)
                return
            else:
                waiting = [callback]
                partition.pending[key] = waiting

        if hit:
            self.logger.debug("Cache hit for %s (id=%s)", category, key)
            if callable(callback):
                callback(value)
            return

        self.logger.info("Cache miss for %s. Fetching (id=%s)...", category, key)
        on_result = self._completion(partition, key, waiting)
        try:
            fetcher(args, on_result)
        except Exception:
            with self._lock:
                if partition.pending.get(key) is waiting:
                    del partition.pending[key]
                    if len(waiting) > 1:
                        self.logger.warning(
                            "Dropping %d queued callbacks for %s (id=%s)",
                            len(waiting) - 1,
                            category,
                            key,
                        )
            self.logger.exception("Error fetching %s (id=%s)", category, key)
            raise

    def fetch_future(
        self, category: str, id: Hashable, fetcher: Fetcher, args: Any = None
    ) -> "Future[Any]":
        """Like `fetch_through`, but return a future resolved with the value.

        The future cannot be cancelled. If the fetcher raises before reporting a
        result, the future holds that exception.
        """
        self._validate_category(category)
        future: Future[Any] = Future()
        future.set_running_or_notify_cancel()
        try:
            self.fetch_through(category, id, fetcher, args, future.set_result)
        except Exception as exc:
            if future.done():
                # raised by another waiter after this future was resolved
                self.logger.warning(
                    "Ignoring error raised after %s (id=%s) resolved: %r", category, id, exc
                )
            else:
                future.set_exception(exc)
        return future

    def bind(self, category: str, fetcher: Fetcher) -> "CachedFetcher":
        """Return a callable fetching ``category`` values through this cache."""
        from .repository import CachedFetcher

        return CachedFetcher(self, category, fetcher)

    def get(self, category: str, id: Hashable, default: Any = None) -> Any:
        """Return the cached value for ``(category, id)`` without fetching."""
        self._validate_category(category)
        with self._lock:
            return self._partition(category).entries.get(str(id), default)

    def is_pending(self, category: str, id: Hashable) -> bool:
        with self._lock:
            partition = self._partitions.get(category)
            return partition is not None and str(id) in partition.pending

    def categories(self) -> list[str]:
        with self._lock:
            return list(self._partitions)

    def clear(self) -> None:
        """Forget every resolved entry, in memory and in storage.

        Fetches in flight are kept and will still deliver and cache their result.
        """
        with self._lock:
            for partition in self._partitions.values():
                partition.entries.clear()
            self._bridge.reset()
            storage = self._bridge.storage
            if storage is not None:
                try:
                    storage.clear()
                    if self._validator is not None:
                        storage.set(self.validator_key, self._validator)
                except Exception:
                    self.logger.warning("Failed to clear persistent storage", exc_info=True)
        self.logger.info("Cache cleared")

    def _completion(
        self, partition: Partition, key: str, waiting: list[Optional[ResultCallback]]
    ) -> ResultCallback:
        fired = False

        def on_result(result: Any) -> None:
            nonlocal fired
            with self._lock:
                if fired:
                    self.logger.warning(
                        "Result for %s (id=%s) reported more than once; ignoring",
                        partition.name,
                        key,
                    )
                    return
                fired = True
                self._bridge.mark_dirty(partition.name)
                partition.entries[key] = result
                if partition.pending.get(key) is waiting:
                    del partition.pending[key]

            self.logger.debug(
                "Fetched %s (id=%s); notifying %d callbacks", partition.name, key, len(waiting)
            )
            errors: list[Exception] = []
            for cb in waiting:
                if not callable(cb):
                    continue
                try:
                    cb(result)
                except Exception as exc:
                    self.logger.exception(
                        "Callback for %s (id=%s) raised", partition.name, key
                    )
                    errors.append(exc)

            with self._lock:
                self._bridge.write_back(
                    {name: p.entries for name, p in self._partitions.items()}
                )

            if errors:
                raise errors[0]

        return on_result

    def _partition(self, name: str) -> Partition:
        partition = self._partitions.get(name)
        if partition is None:
            partition = Partition(name=name, entries=self._bridge.thaw(name))
            self._partitions[name] = partition
        return partition

    def _validate_category(self, category: str) -> None:
        if not category or not isinstance(category, str):
            self.logger.error("Invalid cache category: %r", category)
            raise ValueError("Category must be a non-empty string.")
        if category == self.validator_key:
            self.logger.error("Category %r collides with the validator key", category)
            raise ValueError(f"Category {category!r} is reserved.")

    def _warn_if_uninitialized(self) -> None:
        if self._state is CacheState.UNINITIALIZED and not self._warned_uninitialized:
            self._warned_uninitialized = True
            self.logger.warning(
                "fetch_through() called before initialize(); "
                "values will not be persisted until it runs"
            )
