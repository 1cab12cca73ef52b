"""
Snapshot writer for JSONVault.

The SnapshotWriter copies every registered live collection into a new,
timestamped snapshot directory and records a checksum per copy:

    <backup_root>/<class>_<encoded timestamp>/
        customers.json
        quotes.json
        ...
        manifest.json

Invariants:
    - Copies are byte-identical to the live file at read time
    - The manifest is written last and lists only copies that were written
    - Absent live files are omitted, not treated as errors
    - Pruning for the same class always follows a successful snapshot

How to change safely:
    - Keep the manifest wire format stable (see manifest.py)
    - Test restore with snapshots written by older versions
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

from ..registry import CollectionRegistry
from ..storage import Storage, StorageError
from .manifest import MANIFEST_FILE, Manifest, compute_checksum, copy_file_name
from .naming import SnapshotClass, format_timestamp, normalize_class, snapshot_name
from .retention import RetentionPruner

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SnapshotWriter:
    """Creates checksummed snapshots of every registered collection.

    Attributes:
        storage: Storage backend for live files and snapshots
        registry: Collections to capture
        backup_root: Snapshot root directory
        pruner: Retention pruner invoked after each snapshot

    Example:
        >>> writer = SnapshotWriter(storage, registry, Path("/data/backups"), pruner)
        >>> manifest = writer.create_snapshot("daily")
        >>> manifest.collections
        ['customers', 'quotes', 'dealers']
    """

    def __init__(
        self,
        storage: Storage,
        registry: CollectionRegistry,
        backup_root: Path,
        pruner: RetentionPruner,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the writer.

        Args:
            storage: Storage backend
            registry: Collection registry
            backup_root: Snapshot root directory
            pruner: Pruner run after each snapshot
            clock: Source of capture timestamps (UTC)
        """
        self.storage = storage
        self.registry = registry
        self.backup_root = backup_root
        self.pruner = pruner
        self.clock = clock

    def create_snapshot(self, snapshot_class: str | SnapshotClass | None = None) -> Manifest:
        """Create a snapshot of every existing collection.

        Args:
            snapshot_class: Retention class; defaults to "hourly"

        Returns:
            The manifest written to disk

        Raises:
            StorageError: If the snapshot directory or manifest cannot be written
        """
        snapshot_class = normalize_class(snapshot_class)
        moment = self.clock()
        name = snapshot_name(snapshot_class, moment)
        snapshot_dir = self.backup_root / name

        self.storage.make_dirs(snapshot_dir)

        manifest = Manifest(snapshot_class=snapshot_class, timestamp=format_timestamp(moment))

        for collection, live_path in self.registry.items():
            if not self.storage.exists(live_path):
                logger.debug(f"Skipping absent collection {collection}")
                continue

            file_name = copy_file_name(collection)
            try:
                content = self.storage.read_bytes(live_path)
                self.storage.write_bytes(snapshot_dir / file_name, content)
            except StorageError as e:
                logger.error(
                    f"Failed to copy {collection} into snapshot {name}: {e}",
                    extra={"snapshot": name, "collection": collection},
                )
                continue

            manifest.add(collection, file_name, compute_checksum(content))

        self.storage.write_bytes(snapshot_dir / MANIFEST_FILE, manifest.to_bytes())

        logger.info(
            f"Created {snapshot_class} snapshot: {name} ({len(manifest.files)} files)",
            extra={
                "snapshot": name,
                "snapshot_class": snapshot_class,
                "collections": manifest.collections,
            },
        )

        self.pruner.prune(snapshot_class)
        return manifest
