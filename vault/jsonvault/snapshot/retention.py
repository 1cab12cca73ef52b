"""
Snapshot retention enforcement.

After every snapshot of a class, the pruner deletes that class's oldest
snapshots beyond its retention count.

Invariants:
    - After prune(c), at most retention(c) snapshots of class c remain
    - The retained snapshots are the most recent ones by embedded timestamp
    - A failed deletion never stops evaluation of the remaining snapshots
"""

from __future__ import annotations

import logging
from pathlib import Path

from ..config import RetentionConfig
from ..storage import Storage, StorageError, StorageNotFoundError
from .naming import class_prefix, newest_first, normalize_class

logger = logging.getLogger(__name__)


class RetentionPruner:
    """Deletes excess snapshots per retention class.

    Example:
        >>> pruner = RetentionPruner(storage, Path("/data/backups"), RetentionConfig())
        >>> pruner.prune("hourly")
        ['hourly_2026-10-18T19-00-00-000Z']
    """

    def __init__(
        self,
        storage: Storage,
        backup_root: Path,
        retention: RetentionConfig | None = None,
    ) -> None:
        self.storage = storage
        self.backup_root = backup_root
        self.retention = retention or RetentionConfig()

    def prune(self, snapshot_class: str) -> list[str]:
        """Delete every snapshot of a class beyond its retention count.

        Args:
            snapshot_class: Retention class to prune

        Returns:
            Names of the snapshots actually removed
        """
        snapshot_class = normalize_class(snapshot_class)
        keep = self.retention.for_class(snapshot_class)
        prefix = class_prefix(snapshot_class)

        try:
            names = [n for n in self.storage.list_dir(self.backup_root) if n.startswith(prefix)]
        except StorageNotFoundError:
            return []
        except StorageError as e:
            logger.error(f"Prune error listing {self.backup_root}: {e}")
            return []

        removed = []
        for name in newest_first(names)[keep:]:
            try:
                self.storage.remove_tree(self.backup_root / name)
            except StorageError as e:
                logger.error(
                    f"Failed to prune snapshot {name}: {e}",
                    extra={"snapshot": name, "snapshot_class": snapshot_class},
                )
                continue
            removed.append(name)
            logger.info("Pruned old snapshot", extra={"snapshot": name})

        return removed
