"""
Restore of live collections from snapshots.

The restorer is the only component allowed to overwrite a live collection
file. It replaces the whole file with the newest verified snapshot copy.

Invariants:
    - The live file is untouched unless a verified, parseable copy exists
    - Restore is a full replace, never a merge
    - restore() reports failure as False, never by raising
"""

from __future__ import annotations

import json
import logging

from ..registry import CollectionRegistry
from ..storage import Storage, StorageError
from ..transfer import serialize_records
from .reader import SnapshotReader

logger = logging.getLogger(__name__)


class SnapshotRestorer:
    """Overwrites live collections with their newest valid snapshot copy.

    Example:
        >>> restorer = SnapshotRestorer(storage, registry, reader)
        >>> restorer.restore("quotes")
        True
    """

    def __init__(
        self,
        storage: Storage,
        registry: CollectionRegistry,
        reader: SnapshotReader,
    ) -> None:
        self.storage = storage
        self.registry = registry
        self.reader = reader

    def restore(self, collection: str) -> bool:
        """Restore a collection from the newest verified snapshot copy.

        A verified copy that does not parse as JSON (the live file was
        already corrupt when captured) is skipped in favour of an older one.

        Args:
            collection: Logical collection name

        Returns:
            True if the live file was replaced, False otherwise
        """
        target = self.registry.get(collection)
        if target is None:
            logger.warning(f"Cannot restore unknown collection {collection!r}")
            return False

        for copy in self.reader.iter_verified_copies(collection):
            try:
                records = json.loads(copy.content.decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError) as e:
                logger.warning(
                    f"Copy of {collection} in {copy.snapshot_name} is not valid JSON: {e}, "
                    "trying next...",
                    extra={"snapshot": copy.snapshot_name, "collection": collection},
                )
                continue

            try:
                self.storage.write_bytes(target, serialize_records(records))
            except StorageError as e:
                logger.error(
                    f"Failed to write restored {collection}: {e}",
                    extra={"snapshot": copy.snapshot_name, "collection": collection},
                )
                return False

            logger.info(
                f"RESTORED {collection} from snapshot {copy.snapshot_name}",
                extra={"snapshot": copy.snapshot_name, "collection": collection},
            )
            return True

        logger.warning(f"No valid snapshot found for {collection}")
        return False
