"""
Base protocol and types for storage access.

All filesystem access made by the backup engine goes through the Storage
protocol defined here, so the checksum, retention and restore logic can be
exercised against an in-memory fake without touching real disk.

Invariants:
    - write_bytes() replaces the target atomically (readers see old or new
      content, never a torn file)
    - make_dirs() is idempotent
    - Backends raise StorageError subclasses, never native OS errors

How to change safely:
    - Protocol changes require updating all implementations
    - Keep error translation consistent across backends
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..config import EngineConfig


class StorageError(Exception):
    """Base exception for storage operations."""

    pass


class StorageNotFoundError(StorageError):
    """The requested path does not exist."""

    pass


@dataclass(frozen=True)
class FileStat:
    """Size and modification time of a stored file.

    Attributes:
        size_bytes: File size in bytes
        modified_at: Last modification time (timezone-aware, UTC)
    """

    size_bytes: int
    modified_at: datetime


@runtime_checkable
class Storage(Protocol):
    """Protocol for storage backends.

    Paths are absolute pathlib.Path values; the in-memory backend treats
    them as opaque keys with POSIX semantics.

    Example:
        >>> storage = LocalStorage()
        >>> storage.write_bytes(Path("/tmp/data/customers.json"), b"[]")
        >>> storage.read_bytes(Path("/tmp/data/customers.json"))
        b'[]'
    """

    @abstractmethod
    def exists(self, path: Path) -> bool:
        """Whether a file or directory exists at path."""
        ...

    @abstractmethod
    def is_dir(self, path: Path) -> bool:
        """Whether path is an existing directory."""
        ...

    @abstractmethod
    def read_bytes(self, path: Path) -> bytes:
        """Read the raw bytes of a file.

        Raises:
            StorageNotFoundError: If the file does not exist
            StorageError: For other read failures
        """
        ...

    @abstractmethod
    def write_bytes(self, path: Path, data: bytes) -> None:
        """Atomically replace a file's content, creating parent directories.

        Raises:
            StorageError: If the write fails
        """
        ...

    @abstractmethod
    def make_dirs(self, path: Path) -> None:
        """Create a directory and its parents; succeeds if it already exists.

        Raises:
            StorageError: If the directory cannot be created
        """
        ...

    @abstractmethod
    def list_dir(self, path: Path) -> list[str]:
        """List the names of a directory's children.

        Raises:
            StorageNotFoundError: If the directory does not exist
            StorageError: For other listing failures
        """
        ...

    @abstractmethod
    def remove_tree(self, path: Path) -> None:
        """Recursively remove a directory (or a single file).

        Raises:
            StorageError: If removal fails
        """
        ...

    @abstractmethod
    def stat(self, path: Path) -> FileStat:
        """Get size and modification time of a file.

        Raises:
            StorageNotFoundError: If the file does not exist
        """
        ...


def create_storage(config: EngineConfig) -> Storage:
    """Factory function to create a storage backend from configuration.

    Args:
        config: Engine configuration

    Returns:
        Appropriate Storage implementation

    Raises:
        ValueError: If backend is not supported
    """
    from ..config import StorageBackend
    from .local import LocalStorage
    from .memory import InMemoryStorage

    if config.storage.backend == StorageBackend.LOCAL:
        return LocalStorage()
    elif config.storage.backend == StorageBackend.MEMORY:
        return InMemoryStorage()
    else:
        raise ValueError(f"Unsupported storage backend: {config.storage.backend}")
