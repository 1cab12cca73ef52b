"""
In-memory storage implementation for testing.

This module provides a dict-backed storage backend for:
- Unit tests of checksum, retention and restore logic
- Failure injection (unreadable files, failed writes, failed deletes)
- Local experiments without touching disk

Invariants:
    - All data is lost on process exit
    - Same error semantics as LocalStorage (StorageError subclasses)
    - Directory listings come back in creation order, which is NOT sorted

How to change safely:
    - This is test-only code, changes don't affect production
    - Keep interface compatible with the Storage protocol
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath

from .base import FileStat, StorageError, StorageNotFoundError


def _key(path: Path | PurePosixPath | str) -> PurePosixPath:
    return PurePosixPath(str(path))


class InMemoryStorage:
    """In-memory implementation of Storage for testing.

    Attributes:
        fail_reads: Paths whose reads raise StorageError
        fail_writes: Paths whose writes raise StorageError
        fail_removes: Paths whose removal raises StorageError
        fail_listing: If True, every list_dir() raises StorageError

    Example:
        >>> storage = InMemoryStorage()
        >>> storage.write_bytes(Path("/data/users.json"), b"[]")
        >>> storage.list_dir(Path("/data"))
        ['users.json']
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        """Initialize empty storage.

        Args:
            clock: Source of modification times (defaults to UTC now)
        """
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._files: dict[PurePosixPath, bytes] = {}
        self._mtimes: dict[PurePosixPath, datetime] = {}
        self._dirs: dict[PurePosixPath, None] = {PurePosixPath("/"): None}
        self._lock = threading.Lock()

        self.fail_reads: set[PurePosixPath] = set()
        self.fail_writes: set[PurePosixPath] = set()
        self.fail_removes: set[PurePosixPath] = set()
        self.fail_listing = False

    def exists(self, path: Path) -> bool:
        key = _key(path)
        return key in self._files or key in self._dirs

    def is_dir(self, path: Path) -> bool:
        return _key(path) in self._dirs

    def read_bytes(self, path: Path) -> bytes:
        key = _key(path)
        if key in self.fail_reads:
            raise StorageError(f"Injected read failure: {key}")
        try:
            return self._files[key]
        except KeyError:
            raise StorageNotFoundError(f"File not found: {key}") from None

    def write_bytes(self, path: Path, data: bytes) -> None:
        key = _key(path)
        if key in self.fail_writes:
            raise StorageError(f"Injected write failure: {key}")
        if key in self._dirs:
            raise StorageError(f"Is a directory: {key}")

        with self._lock:
            self._add_dirs(key.parent)
            self._files[key] = bytes(data)
            self._mtimes[key] = self._clock()

    def make_dirs(self, path: Path) -> None:
        key = _key(path)
        if key in self.fail_writes:
            raise StorageError(f"Injected mkdir failure: {key}")
        if key in self._files:
            raise StorageError(f"Is a file: {key}")

        with self._lock:
            self._add_dirs(key)

    def list_dir(self, path: Path) -> list[str]:
        key = _key(path)
        if self.fail_listing:
            raise StorageError(f"Injected listing failure: {key}")
        if key not in self._dirs:
            raise StorageNotFoundError(f"Directory not found: {key}")

        children = [d.name for d in self._dirs if d.parent == key and d != key]
        children.extend(f.name for f in self._files if f.parent == key)
        return children

    def remove_tree(self, path: Path) -> None:
        key = _key(path)
        if key in self.fail_removes:
            raise StorageError(f"Injected remove failure: {key}")

        with self._lock:
            for f in [f for f in self._files if f == key or key in f.parents]:
                del self._files[f]
                self._mtimes.pop(f, None)
            for d in [d for d in self._dirs if d == key or key in d.parents]:
                del self._dirs[d]

    def stat(self, path: Path) -> FileStat:
        key = _key(path)
        if key not in self._files:
            raise StorageNotFoundError(f"File not found: {key}")
        return FileStat(size_bytes=len(self._files[key]), modified_at=self._mtimes[key])

    def _add_dirs(self, key: PurePosixPath) -> None:
        for parent in reversed(key.parents):
            self._dirs.setdefault(parent, None)
        self._dirs.setdefault(key, None)

    # Testing helpers

    def files(self) -> dict[str, bytes]:
        """Snapshot of every stored file keyed by path string (testing helper)."""
        return {str(k): v for k, v in self._files.items()}

    def corrupt(self, path: Path, data: bytes = b"{not json") -> None:
        """Overwrite a file in place without touching its mtime (testing helper)."""
        self._files[_key(path)] = data

    def delete(self, path: Path) -> None:
        """Remove a single file (testing helper)."""
        key = _key(path)
        self._files.pop(key, None)
        self._mtimes.pop(key, None)
