"""
Storage access abstraction for JSONVault.

This module isolates every filesystem operation behind one small protocol:
- Local filesystem (production)
- In-memory (for testing)

The filesystem is the only database. Live collections and the snapshot
tree are both reached exclusively through a Storage instance.

Invariants:
    - Writes replace files atomically
    - Backends raise StorageError, never raw OSError

How to change safely:
    - New backends must implement the Storage protocol
    - Run the full unit suite against InMemoryStorage and the integration
      suite against LocalStorage
"""

from .base import (
    FileStat,
    Storage,
    StorageError,
    StorageNotFoundError,
    create_storage,
)
from .local import LocalStorage
from .memory import InMemoryStorage

__all__ = [
    # Protocol and types
    "Storage",
    "FileStat",
    "StorageError",
    "StorageNotFoundError",
    # Factory
    "create_storage",
    # Implementations
    "LocalStorage",
    "InMemoryStorage",
]
