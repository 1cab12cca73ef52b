"""
Local filesystem storage backend.

Invariants:
    - Writes go to a temporary sibling file that is renamed over the target
    - OSError is always translated into StorageError
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from .base import FileStat, StorageError, StorageNotFoundError

logger = logging.getLogger(__name__)


class LocalStorage:
    """Storage backed by the local filesystem.

    Example:
        >>> storage = LocalStorage()
        >>> storage.make_dirs(Path("/var/lib/jsonvault/backups"))
    """

    def exists(self, path: Path) -> bool:
        return path.exists()

    def is_dir(self, path: Path) -> bool:
        return path.is_dir()

    def read_bytes(self, path: Path) -> bytes:
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise StorageNotFoundError(f"File not found: {path}") from e
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}") from e

    def write_bytes(self, path: Path, data: bytes) -> None:
        """Write via temp file + rename so readers never see a partial file."""
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp"
            )
        except OSError as e:
            raise StorageError(f"Failed to prepare write of {path}: {e}") from e

        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}") from e
        finally:
            if tmp_path.exists():
                tmp_path.unlink()

    def make_dirs(self, path: Path) -> None:
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to create directory {path}: {e}") from e

    def list_dir(self, path: Path) -> list[str]:
        try:
            return [entry.name for entry in path.iterdir()]
        except FileNotFoundError as e:
            raise StorageNotFoundError(f"Directory not found: {path}") from e
        except OSError as e:
            raise StorageError(f"Failed to list {path}: {e}") from e

    def remove_tree(self, path: Path) -> None:
        try:
            if path.is_dir():
                shutil.rmtree(path)
            else:
                path.unlink()
        except FileNotFoundError:
            logger.debug(f"Nothing to remove at {path}")
        except OSError as e:
            raise StorageError(f"Failed to remove {path}: {e}") from e

    def stat(self, path: Path) -> FileStat:
        try:
            st = path.stat()
        except FileNotFoundError as e:
            raise StorageNotFoundError(f"File not found: {path}") from e
        except OSError as e:
            raise StorageError(f"Failed to stat {path}: {e}") from e

        return FileStat(
            size_bytes=st.st_size,
            modified_at=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
        )
