from __future__ import annotations

import logging
import os
import re
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from threading import RLock
from typing import Optional

from .settings import Settings

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


# PUBLIC_INTERFACE
class BlobStore(ABC):
    """Abstract key-value blob store contract for persistence backends."""

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """Return the bytes stored under key, or None if absent."""

    @abstractmethod
    def set(self, key: str, value: bytes) -> None:
        """Store value under key, replacing any previous value."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key. Removing an absent key is not an error."""


class InMemoryBlobStore(BlobStore):
    """
    Thread-safe in-memory blob store suitable for testing.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: dict[str, bytes] = {}

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._items.get(key)

    def set(self, key: str, value: bytes) -> None:
        with self._lock:
            self._items[key] = bytes(value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._items.pop(key, None)


class FileBlobStore(BlobStore):
    """
    One JSON file per key under a root directory.

    Writes land in a temporary sibling first and are moved into place with
    os.replace, so readers see either the old or the new value.
    """

    def __init__(self, root: str) -> None:
        self._root = Path(root)
        self._root.mkdir(parents=True, exist_ok=True)
        self._lock = RLock()

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self._root / f"{key}.json"

    def get(self, key: str) -> Optional[bytes]:
        path = self._path(key)
        with self._lock:
            try:
                return path.read_bytes()
            except FileNotFoundError:
                return None

    def set(self, key: str, value: bytes) -> None:
        path = self._path(key)
        with self._lock:
            fd, tmp_name = tempfile.mkstemp(dir=self._root, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(value)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise

    def delete(self, key: str) -> None:
        path = self._path(key)
        with self._lock:
            try:
                path.unlink()
            except FileNotFoundError:
                pass


# PUBLIC_INTERFACE
def get_blob_store(settings: Settings) -> BlobStore:
    """
    Factory to return the configured blob store based on settings.
    - memory: InMemoryBlobStore
    - file: FileBlobStore rooted at DATA_DIR
    - sqlite: SQLiteBlobStore at SQLITE_DB_PATH
    """
    if settings.storage_backend == "sqlite":
        from .db import SQLiteBlobStore

        logger.info("Using sqlite blob store at %s", settings.sqlite_db_path)
        return SQLiteBlobStore(settings.sqlite_db_path)
    if settings.storage_backend == "memory":
        logger.info("Using in-memory blob store; nothing survives a restart")
        return InMemoryBlobStore()
    logger.info("Using file blob store under %s", settings.data_dir)
    return FileBlobStore(settings.data_dir)
