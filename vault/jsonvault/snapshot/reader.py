"""
Snapshot reader for JSONVault.

Enumerates valid snapshots (directories with a readable manifest) and
locates the newest copy of a collection whose bytes still match the
checksum recorded at capture time.

Invariants:
    - Directories without a readable manifest are invisible to every read path
    - Candidates are visited newest first by embedded timestamp, across classes
    - A checksum mismatch is never returned; the search moves to older snapshots
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..storage import Storage, StorageError, StorageNotFoundError
from .manifest import MANIFEST_FILE, Manifest, ManifestError, compute_checksum
from .naming import newest_first

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerifiedCopy:
    """A snapshot copy of a collection whose checksum matched its manifest.

    Attributes:
        content: Raw bytes of the copy
        snapshot_name: Snapshot directory the copy came from
        checksum: SHA-256 hex digest (equal to the manifest entry)
    """

    content: bytes
    snapshot_name: str
    checksum: str


@dataclass
class BackupInfo:
    """Summary of one valid snapshot for listings.

    Attributes:
        name: Snapshot directory name
        snapshot_class: Retention class
        timestamp: Capture time, ISO-8601 UTC
        collections: Collections present in the snapshot
        checksums: Collection -> SHA-256 hex digest
    """

    name: str
    snapshot_class: str
    timestamp: str
    collections: list[str] = field(default_factory=list)
    checksums: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.snapshot_class,
            "timestamp": self.timestamp,
            "files": list(self.collections),
            "checksums": dict(self.checksums),
        }


class SnapshotReader:
    """Read-only access to the snapshot tree.

    Example:
        >>> reader = SnapshotReader(storage, Path("/data/backups"))
        >>> copy = reader.find_latest_valid("customers")
        >>> copy.snapshot_name if copy else "none"
        'hourly_2026-10-19T20-00-00-000Z'
    """

    def __init__(self, storage: Storage, backup_root: Path) -> None:
        self.storage = storage
        self.backup_root = backup_root

    def read_manifest(self, name: str) -> Manifest | None:
        """Load a snapshot's manifest, or None if it has no readable manifest."""
        try:
            raw = self.storage.read_bytes(self.backup_root / name / MANIFEST_FILE)
            return Manifest.from_bytes(raw)
        except (StorageError, ManifestError) as e:
            logger.debug(f"Ignoring {name}: {e}")
            return None

    def list_snapshots(self) -> list[tuple[str, Manifest]]:
        """List every valid snapshot with its manifest, newest first."""
        try:
            names = self.storage.list_dir(self.backup_root)
        except StorageNotFoundError:
            return []
        except StorageError as e:
            logger.error(f"Failed to list snapshots in {self.backup_root}: {e}")
            return []

        snapshots = []
        for name in newest_first(names):
            manifest = self.read_manifest(name)
            if manifest is not None:
                snapshots.append((name, manifest))
        return snapshots

    def iter_verified_copies(self, collection: str) -> Iterator[VerifiedCopy]:
        """Yield checksum-verified copies of a collection, newest first."""
        for name, manifest in self.list_snapshots():
            file_name = manifest.files.get(collection)
            if not file_name:
                continue

            try:
                content = self.storage.read_bytes(self.backup_root / name / file_name)
            except StorageError as e:
                logger.warning(
                    f"Unreadable copy of {collection} in {name}: {e}, trying next...",
                    extra={"snapshot": name, "collection": collection},
                )
                continue

            checksum = compute_checksum(content)
            if manifest.checksums.get(collection) != checksum:
                logger.warning(
                    f"Checksum mismatch for {collection} in {name}, trying next...",
                    extra={"snapshot": name, "collection": collection},
                )
                continue

            yield VerifiedCopy(content=content, snapshot_name=name, checksum=checksum)

    def find_latest_valid(self, collection: str) -> VerifiedCopy | None:
        """Find the newest intact copy of a collection.

        Returns:
            The newest VerifiedCopy, or None if no snapshot holds a valid copy
        """
        return next(self.iter_verified_copies(collection), None)

    def list_backups(self) -> list[BackupInfo]:
        """Summaries of every valid snapshot, newest first."""
        return [
            BackupInfo(
                name=name,
                snapshot_class=manifest.snapshot_class,
                timestamp=manifest.timestamp,
                collections=manifest.collections,
                checksums=dict(manifest.checksums),
            )
            for name, manifest in self.list_snapshots()
        ]
