"""Key-value storage: an interface, an in-memory store and a disk store."""

from __future__ import annotations

import hashlib
import sqlite3
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from os import PathLike
from pathlib import Path

RAMD_P2P_KEYPAIR_KEY = b"ramd_p2p_pk"
"""Storage key under which the p2p private key is kept."""

BytesLike = bytes | bytearray | memoryview


class StorageError(Exception):
    """A storage operation failed."""


class KeyNotFoundError(StorageError):
    """The requested key is not present."""


def hash_sha256(data: BytesLike) -> bytes:
    """SHA-256 digest of the given bytes."""
    return hashlib.sha256(data).digest()


class Storage(ABC):
    """Byte-keyed, byte-valued store safe to share between threads."""

    def has(self, key: BytesLike) -> bool:
        return self.get_opt(key) is not None

    def get(self, key: BytesLike) -> bytes:
        value = self.get_opt(key)
        if value is None:
            raise KeyNotFoundError("Key not found")
        return value

    @abstractmethod
    def get_opt(self, key: BytesLike) -> bytes | None:
        """Value stored under key, or None."""

    @abstractmethod
    def set(self, key: BytesLike, value: BytesLike) -> None:
        """Store value under key, replacing any previous value."""

    @abstractmethod
    def delete(self, key: BytesLike) -> None:
        """Remove key; removing an absent key is not an error."""


class MemoryStorage(Storage):
    """Storage held in a dictionary."""

    def __init__(self) -> None:
        self._data: dict[bytes, bytes] = {}
        self._lock = threading.Lock()

    def get_opt(self, key: BytesLike) -> bytes | None:
        with self._lock:
            return self._data.get(bytes(key))

    def set(self, key: BytesLike, value: BytesLike) -> None:
        with self._lock:
            self._data[bytes(key)] = bytes(value)

    def delete(self, key: BytesLike) -> None:
        with self._lock:
            self._data.pop(bytes(key), None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


class DiskStorage(Storage):
    """Persistent storage in a directory, backed by SQLite."""

    _FILE_NAME = "data.sqlite"

    def __init__(self, path: str | PathLike[str]) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()
        try:
            self.path.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(
                self.path / self._FILE_NAME,
                check_same_thread=False,
                isolation_level=None,
            )
            self._conn.execute(
                "CREATE TABLE IF NOT EXISTS kv (key BLOB PRIMARY KEY, value BLOB NOT NULL)"
            )
        except (OSError, sqlite3.Error) as err:
            raise StorageError(f"failed to open storage at {self.path}: {err}") from err

    @contextmanager
    def _guard(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                yield self._conn
            except sqlite3.Error as err:
                raise StorageError(str(err)) from err

    def get_opt(self, key: BytesLike) -> bytes | None:
        with self._guard() as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (bytes(key),)).fetchone()
        return None if row is None else bytes(row[0])

    def set(self, key: BytesLike, value: BytesLike) -> None:
        with self._guard() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)",
                (bytes(key), bytes(value)),
            )

    def delete(self, key: BytesLike) -> None:
        with self._guard() as conn:
            conn.execute("DELETE FROM kv WHERE key = ?", (bytes(key),))

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> DiskStorage:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()