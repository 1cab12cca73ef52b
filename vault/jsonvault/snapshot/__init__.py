"""
Snapshot module for JSONVault.

This module handles point-in-time copies of the live collections for:
- Recovery from missing or corrupted collection files
- Operator-driven rollback to the newest intact state
- Safety copies before bulk imports

Invariants:
    - Snapshots are immutable once their manifest is written
    - Snapshots include per-collection checksums for restore validation
    - Only the retention pruner deletes snapshots
"""

from .manifest import MANIFEST_FILE, Manifest, ManifestError, compute_checksum
from .naming import SnapshotClass, parse_snapshot_name, recency_key, snapshot_name
from .reader import BackupInfo, SnapshotReader, VerifiedCopy
from .restorer import SnapshotRestorer
from .retention import RetentionPruner
from .writer import SnapshotWriter

__all__ = [
    "SnapshotWriter",
    "SnapshotReader",
    "SnapshotRestorer",
    "RetentionPruner",
    "Manifest",
    "ManifestError",
    "MANIFEST_FILE",
    "BackupInfo",
    "VerifiedCopy",
    "SnapshotClass",
    "compute_checksum",
    "snapshot_name",
    "parse_snapshot_name",
    "recency_key",
]
