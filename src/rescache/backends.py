"""Backend Port -- the byte-oriented key/value store entries are persisted in.

:class:`~rescache.storage.Storage` only needs :meth:`Backend.read` and
:meth:`Backend.write`; any conforming store (a distributed cache client,
a database table) can be injected by subclassing :class:`Backend`. Two
implementations ship with the package:

* :class:`MemoryBackend` -- a process-local dict, mainly for tests.
* :class:`DiskBackend` -- a :class:`diskcache.Cache` directory, safe to
  share between processes.

Backend failures are raised as :class:`~rescache.exceptions.StorageError`;
nothing here retries.
"""

from __future__ import annotations

import logging
import sqlite3
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

import diskcache

from rescache.exceptions import StorageError

logger = logging.getLogger(__name__)


class Backend(ABC):
    """Abstract base class for cache storage backends.

    Subclasses must implement :meth:`read` and :meth:`write`. The
    maintenance helpers (:meth:`delete`, :meth:`clear`, :meth:`stats`)
    have defaults that raise :class:`NotImplementedError` or report
    nothing, so minimal ports stay minimal.
    """

    @abstractmethod
    def read(self, key: str) -> Optional[bytes]:
        """Return the bytes stored under *key*, or ``None`` on a miss.

        Raises:
            StorageError: If the store cannot be reached.
        """

    @abstractmethod
    def write(self, key: str, value: bytes) -> None:
        """Store *value* under *key*, replacing any existing entry.

        Raises:
            StorageError: If the store cannot be reached.
        """

    def delete(self, key: str) -> bool:
        """Remove *key*. Returns ``True`` when an entry was removed."""
        raise NotImplementedError(f"{type(self).__name__} does not support delete")

    def clear(self) -> int:
        """Remove every entry. Returns the number of entries removed."""
        raise NotImplementedError(f"{type(self).__name__} does not support clear")

    def stats(self) -> dict[str, Any]:
        """Return backend statistics for display."""
        return {"backend": type(self).__name__}

    def close(self) -> None:
        """Release resources held by the backend."""

    def __enter__(self) -> Backend:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


class MemoryBackend(Backend):
    """Process-local dict backend. Nothing is shared between processes."""

    def __init__(self) -> None:
        self._data: dict[str, bytes] = {}

    def read(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def write(self, key: str, value: bytes) -> None:
        self._data[key] = bytes(value)

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def clear(self) -> int:
        count = len(self._data)
        self._data.clear()
        return count

    def stats(self) -> dict[str, Any]:
        return {"backend": "memory", "size": len(self._data)}

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data


class DiskBackend(Backend):
    """Disk-backed store built on :class:`diskcache.Cache`.

    Entries never expire at this layer; freshness is decided by the caller
    through :class:`~rescache.response.CachedResponse`. The directory is
    created on first use.

    Args:
        directory: Directory holding the ``diskcache`` database.

    Example::

        with DiskBackend("/tmp/rescache") as backend:
            backend.write("abc", b"payload")
            backend.read("abc")   # b"payload"
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)
        self._cache: Optional[diskcache.Cache] = None

    @property
    def directory(self) -> Path:
        return self._directory

    def _open(self) -> diskcache.Cache:
        if self._cache is None:
            try:
                self._cache = diskcache.Cache(str(self._directory))
            except (OSError, sqlite3.Error) as exc:
                raise StorageError(f"Cannot open cache directory {self._directory}: {exc}") from exc
        return self._cache

    def read(self, key: str) -> Optional[bytes]:
        try:
            value = self._open().get(key)
        except (OSError, sqlite3.Error) as exc:
            logger.warning("Cache read failed for key %s: %s", key, exc)
            raise StorageError(f"Cannot read cache entry {key}: {exc}") from exc
        if value is None:
            return None
        return bytes(value)

    def write(self, key: str, value: bytes) -> None:
        try:
            self._open().set(key, bytes(value))
        except (OSError, sqlite3.Error) as exc:
            logger.warning("Cache write failed for key %s: %s", key, exc)
            raise StorageError(f"Cannot write cache entry {key}: {exc}") from exc

    def delete(self, key: str) -> bool:
        try:
            return bool(self._open().delete(key))
        except (OSError, sqlite3.Error) as exc:
            raise StorageError(f"Cannot delete cache entry {key}: {exc}") from exc

    def clear(self) -> int:
        try:
            return int(self._open().clear())
        except (OSError, sqlite3.Error) as exc:
            raise StorageError(f"Cannot clear cache at {self._directory}: {exc}") from exc

    def stats(self) -> dict[str, Any]:
        try:
            cache = self._open()
            size = len(cache)
            volume = cache.volume()
        except (OSError, sqlite3.Error) as exc:
            raise StorageError(f"Cannot read cache statistics at {self._directory}: {exc}") from exc
        return {
            "backend": "disk",
            "size": size,
            "directory": str(self._directory),
            "volume_bytes": volume,
        }

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache`. Safe to call twice."""
        if self._cache is not None:
            self._cache.close()
            self._cache = None

    def __len__(self) -> int:
        try:
            return len(self._open())
        except (OSError, sqlite3.Error) as exc:
            raise StorageError(f"Cannot count cache entries at {self._directory}: {exc}") from exc
