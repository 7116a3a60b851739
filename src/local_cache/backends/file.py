import errno
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from ..interfaces import StorageAdapter
from ..utils.exceptions import StorageError, StorageQuotaExceededError


class JsonFileStorage(StorageAdapter):
    """Storage adapter keeping every key in one JSON object on disk.

    The whole stash is read once at construction and rewritten on each
    mutation. Writes go through a temporary file in the same directory
    followed by ``os.replace`` so a crash never leaves a half-written stash.
    """

    def __init__(self, path: str | Path, logger: logging.Logger | None = None):
        self.path = Path(path)
        self.logger = logger or logging.getLogger(__name__)
        self._stash: dict[str, str] = self._load()

    def get(self, key: str) -> Optional[str]:
        return self._stash.get(key)

    def set(self, key: str, value: str) -> None:
        previous = self._stash.get(key)
        self._stash[key] = value
        try:
            self._save()
        except StorageError:
            # keep memory in step with what is on disk
            if previous is None:
                self._stash.pop(key, None)
            else:
                self._stash[key] = previous
            raise

    def remove(self, key: str) -> None:
        if key not in self._stash:
            return
        previous = self._stash.pop(key)
        try:
            self._save()
        except StorageError:
            self._stash[key] = previous
            raise

    def clear(self) -> None:
        previous = self._stash
        self._stash = {}
        try:
            self._save()
        except StorageError:
            self._stash = previous
            raise

    def keys(self) -> list[str]:
        return list(self._stash)

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                payload = json.load(fh)
        except (OSError, ValueError):
            self.logger.warning("Ignoring unreadable storage file %s", self.path, exc_info=True)
            return {}
        if not isinstance(payload, dict):
            self.logger.warning("Ignoring storage file %s: not a JSON object", self.path)
            return {}
        return {str(k): v for k, v in payload.items() if isinstance(v, str)}

    def _save(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(self._stash, fh, ensure_ascii=False)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            if exc.errno in (errno.ENOSPC, errno.EDQUOT):
                raise StorageQuotaExceededError(f"No space left to write {self.path}") from exc
            raise StorageError(f"Failed to write storage file {self.path}: {exc}") from exc
