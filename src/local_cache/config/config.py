"""Configuration module for the local cache."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar, Optional

from ..backends.file import JsonFileStorage
from ..backends.memory import InMemoryStorage
from ..cache import DEFAULT_VALIDATOR_KEY
from ..interfaces import StorageAdapter

__all__ = ["CacheConfig"]


DEFAULT_LOG_DIR = "logs"


@dataclass
class CacheConfig:
    """Settings used to build a `LocalCache`.

    Attributes:
        persistent (bool): Whether to attach a storage adapter at all. When False
            the cache runs in memory-only mode.
        storage_path (Optional[Path]): JSON file backing the persistent tier. When
            unset, a process-local `InMemoryStorage` is used instead.
        storage_capacity (Optional[int]): Character limit for `InMemoryStorage`.
        validator_key (str): Storage key reserved for the validator token.
        log_level (int): Console log level passed to `setup_logging`.
        log_dir (str): Directory for the rotating log file.

    """

    persistent: bool = True
    storage_path: Optional[Path] = None
    storage_capacity: Optional[int] = None
    validator_key: str = DEFAULT_VALIDATOR_KEY
    log_level: int = logging.INFO
    log_dir: str = DEFAULT_LOG_DIR

    _instance: ClassVar["CacheConfig | None"] = None

    def __post_init__(self) -> None:
        if self.storage_path is not None:
            self.storage_path = Path(self.storage_path)
        if not self.validator_key:
            raise ValueError("validator_key must be a non-empty string.")

    @classmethod
    def get_instance(cls) -> "CacheConfig":
        """Get the singleton instance of the CacheConfig."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def set_instance(cls, config: "CacheConfig | None"):
        """Explicitly set the singleton instance (useful for testing or custom configs)."""
        cls._instance = config

    def build_storage(self, logger: logging.Logger | None = None) -> Optional[StorageAdapter]:
        """Create the storage adapter described by this config.

        Returns None, and so memory-only caching, when persistence is disabled
        or the adapter cannot be constructed.
        """
        logger = logger or logging.getLogger(__name__)
        if not self.persistent:
            return None
        try:
            if self.storage_path is not None:
                return JsonFileStorage(self.storage_path, logger=logger)
            return InMemoryStorage(capacity=self.storage_capacity)
        except Exception:
            logger.warning("Could not create storage adapter; caching in memory only", exc_info=True)
            return None
