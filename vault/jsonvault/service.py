"""
Backup service: the boundary API used by the host application.

The BackupService wires the registry, storage, snapshot writer, pruner,
reader, restorer, auditor and scheduler together and exposes the logical
operations the surrounding application (HTTP layer, admin tooling) calls:

    create_backup(class)        -> Manifest
    restore_latest(collection)  -> bool
    restore_all()               -> {collection: bool}
    verify_integrity()          -> [Issue]
    list_backups()              -> [BackupInfo]
    start_schedule()            -> BackupScheduler
    export_data()               -> ExportDocument
    import_data(payload)        -> ImportResult
    status()                    -> dict

Invariants:
    - Every backup, restore, prune, audit and import runs under one
      process-wide lock, so a manual backup never interleaves with a
      scheduled one
    - Failures surface as log lines plus boolean/partial results; only
      snapshot directory or manifest write failures raise StorageError

How to change safely:
    - Keep operations thin; behaviour belongs in the component modules
    - New operations must take the lock if they read or write the snapshot tree
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .audit import IntegrityAuditor, Issue
from .config import EngineConfig, RetentionConfig, ScheduleConfig
from .registry import CollectionRegistry
from .schedule import AsyncioTimerService, BackupScheduler, TimerService
from .snapshot import (
    BackupInfo,
    Manifest,
    RetentionPruner,
    SnapshotClass,
    SnapshotReader,
    SnapshotRestorer,
    SnapshotWriter,
    compute_checksum,
)
from .snapshot.naming import format_timestamp
from .snapshot.writer import utc_now
from .storage import Storage, StorageError, create_storage
from .transfer import (
    EXPORT_VERSION,
    ExportDocument,
    ImportOutcome,
    ImportPayload,
    ImportResult,
    serialize_records,
)

logger = logging.getLogger(__name__)


class InvalidImportError(ValueError):
    """The bulk import payload is malformed."""

    pass


class BackupService:
    """Boundary API over the backup/restore/integrity engine.

    Attributes:
        registry: Collection registry
        storage: Storage backend
        backup_root: Snapshot root directory
        writer: Snapshot writer
        pruner: Retention pruner
        reader: Snapshot reader
        restorer: Snapshot restorer
        auditor: Integrity auditor

    Example:
        >>> service = BackupService.from_config(EngineConfig.from_env())
        >>> manifest = service.create_backup("daily")
        >>> service.restore_latest("customers")
        True
    """

    def __init__(
        self,
        registry: CollectionRegistry,
        storage: Storage,
        backup_root: Path,
        retention: RetentionConfig | None = None,
        schedule: ScheduleConfig | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the service.

        Args:
            registry: Collection registry
            storage: Storage backend
            backup_root: Snapshot root directory
            retention: Retention counts per class
            schedule: Schedule configuration
            clock: Source of UTC timestamps
        """
        self.registry = registry
        self.storage = storage
        self.backup_root = backup_root
        self.schedule_config = schedule or ScheduleConfig()
        self.clock = clock

        self.pruner = RetentionPruner(storage, backup_root, retention)
        self.writer = SnapshotWriter(storage, registry, backup_root, self.pruner, clock=clock)
        self.reader = SnapshotReader(storage, backup_root)
        self.restorer = SnapshotRestorer(storage, registry, self.reader)
        self.auditor = IntegrityAuditor(storage, registry, self.restorer)

        self._lock = threading.RLock()
        self._scheduler: BackupScheduler | None = None

    @classmethod
    def from_config(cls, config: EngineConfig, storage: Storage | None = None) -> BackupService:
        """Build a service from engine configuration."""
        return cls(
            registry=CollectionRegistry.for_data_dir(config.storage.data_path),
            storage=storage or create_storage(config),
            backup_root=config.storage.backup_path,
            retention=config.retention,
            schedule=config.schedule,
        )

    # =========================================================================
    # Core Operations
    # =========================================================================

    def create_backup(self, snapshot_class: str | SnapshotClass | None = None) -> Manifest:
        """Create a snapshot of every collection, then prune its class.

        Raises:
            StorageError: If the snapshot directory or manifest cannot be written
        """
        with self._lock:
            return self.writer.create_snapshot(snapshot_class)

    def restore_latest(self, collection: str) -> bool:
        """Restore one collection from its newest valid snapshot copy."""
        with self._lock:
            return self.restorer.restore(collection)

    def restore_all(self) -> dict[str, bool]:
        """Restore every collection; returns the outcome per collection."""
        with self._lock:
            return {name: self.restorer.restore(name) for name in self.registry}

    def verify_integrity(self) -> list[Issue]:
        """Audit every collection, restoring missing or corrupted ones."""
        with self._lock:
            return self.auditor.audit_all()

    def list_backups(self) -> list[BackupInfo]:
        """Every valid snapshot, newest first."""
        with self._lock:
            return self.reader.list_backups()

    def prepare(self) -> None:
        """Ensure the snapshot root directory exists."""
        self.storage.make_dirs(self.backup_root)

    # =========================================================================
    # Schedule
    # =========================================================================

    def start_schedule(self, timers: TimerService | None = None) -> BackupScheduler:
        """Start the process-lifetime backup schedule (once per service).

        Args:
            timers: Timer source; defaults to the running asyncio loop
        """
        if self._scheduler is not None and self._scheduler.running:
            logger.warning("Backup schedule already started")
            return self._scheduler

        self._scheduler = BackupScheduler(
            create_snapshot=self.create_backup,
            run_audit=self.verify_integrity,
            timers=timers or AsyncioTimerService(),
            config=self.schedule_config,
            prepare=self.prepare,
        )
        self._scheduler.start()
        return self._scheduler

    def stop_schedule(self) -> None:
        if self._scheduler is not None:
            self._scheduler.stop()

    @property
    def scheduler(self) -> BackupScheduler | None:
        return self._scheduler

    # =========================================================================
    # Live collection access
    # =========================================================================

    def read_collection(self, collection: str) -> list[Any]:
        """Read a collection's records, degrading to [] when missing or corrupt.

        Non-audit read paths use this fallback; verify_integrity() is what
        reports the underlying problem.

        Raises:
            UnknownCollectionError: If collection is not registered
        """
        path = self.registry.path_for(collection)
        if not self.storage.exists(path):
            return []

        try:
            data = json.loads(self.storage.read_bytes(path).decode("utf-8"))
        except (StorageError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.error(f"Error reading {collection}, treating as empty: {e}")
            return []

        if not isinstance(data, list):
            logger.error(f"Collection {collection} is not a JSON array, treating as empty")
            return []
        return data

    def ensure_collection(self, collection: str) -> bool:
        """Make sure a collection's live file exists.

        A missing file is restored from the newest valid snapshot, or
        created as an empty array when no snapshot holds it. Creating it
        empty while snapshots exist means data was lost and is logged as
        critical; on a tree with no snapshots at all it is a warning.

        Returns:
            True if the file was restored from a snapshot, False otherwise
        """
        path = self.registry.path_for(collection)
        with self._lock:
            if self.storage.exists(path):
                return False
            if self.restorer.restore(collection):
                return True
            self.storage.write_bytes(path, serialize_records([]))
            if self.reader.list_snapshots():
                logger.critical(
                    f"UNRECOVERED DATA: {collection} was missing and no snapshot holds "
                    "a valid copy; created it empty",
                    extra={"collection": collection},
                )
            else:
                logger.warning(
                    f"Collection {collection} was missing and no snapshots exist yet; "
                    "created it empty",
                    extra={"collection": collection},
                )
            return False

    # =========================================================================
    # Bulk export / import
    # =========================================================================

    def export_data(self) -> ExportDocument:
        """Export every collection with checksums and record counts."""
        with self._lock:
            data = {name: self.read_collection(name) for name in self.registry}

        document = ExportDocument(
            exported_at=format_timestamp(self.clock()),
            version=EXPORT_VERSION,
            data=data,
            checksums={k: compute_checksum(serialize_records(v)) for k, v in data.items()},
            stats={k: len(v) for k, v in data.items()},
        )
        logger.info("Full database exported", extra={"stats": document.stats})
        return document

    def import_data(self, payload: ImportPayload | dict[str, Any]) -> ImportResult:
        """Overwrite collections wholesale from a bulk import payload.

        A daily safety snapshot is taken before any live file is touched.

        Raises:
            InvalidImportError: If payload is malformed
            StorageError: If the safety snapshot cannot be written
        """
        if not isinstance(payload, ImportPayload):
            try:
                payload = ImportPayload.model_validate(payload)
            except ValidationError as e:
                raise InvalidImportError(
                    "Invalid import format. Expected { data: { collection: [records] } }"
                ) from e

        with self._lock:
            safety = self.writer.create_snapshot(SnapshotClass.DAILY)
            logger.info("Pre-import snapshot created", extra={"timestamp": safety.timestamp})

            results: dict[str, ImportOutcome] = {}
            for collection, records in payload.data.items():
                path = self.registry.get(collection)
                if path is None:
                    results[collection] = ImportOutcome(error="unknown collection")
                    continue
                if not isinstance(records, list):
                    results[collection] = ImportOutcome(error="expected an array of records")
                    continue
                try:
                    self.storage.write_bytes(path, serialize_records(records))
                except StorageError as e:
                    logger.error(f"Failed to import {collection}: {e}")
                    results[collection] = ImportOutcome(error=str(e))
                    continue
                results[collection] = ImportOutcome(imported=len(records))
                logger.info(f"Imported {len(records)} {collection}")

            # Only files this import actually wrote are verified
            for collection, expected in (payload.checksums or {}).items():
                outcome = results.get(collection)
                if outcome is None or outcome.error is not None:
                    continue
                path = self.registry.path_for(collection)
                try:
                    actual = compute_checksum(self.storage.read_bytes(path))
                except StorageError as e:
                    logger.error(f"Failed to verify imported {collection}: {e}")
                    outcome.checksum_valid = False
                    continue
                outcome.checksum_valid = actual == expected

        return ImportResult(pre_import_backup=safety.timestamp, results=results)

    # =========================================================================
    # Status
    # =========================================================================

    def status(self) -> dict[str, Any]:
        """Health summary: integrity audit, live file stats and snapshot counts.

        The audit runs first so the file stats describe the state after any
        restore it performed.
        """
        with self._lock:
            integrity = self.auditor.audit_all()

            files: dict[str, Any] = {}
            for name, path in self.registry.items():
                try:
                    st = self.storage.stat(path)
                except StorageError:
                    files[name] = {"exists": False}
                    continue
                files[name] = {
                    "exists": True,
                    "size_bytes": st.size_bytes,
                    "records": self._record_count(path),
                    "last_modified": st.modified_at.isoformat(),
                }

            backups = self.reader.list_backups()
            counts: dict[str, int] = {c.value: 0 for c in SnapshotClass}
            for backup in backups:
                counts[backup.snapshot_class] = counts.get(backup.snapshot_class, 0) + 1

        return {
            "timestamp": format_timestamp(self.clock()),
            "files": files,
            "backups": {
                "total": len(backups),
                **counts,
                "latest": backups[0].name if backups else "none",
            },
            "schedule": self._scheduler.stats if self._scheduler else {"running": False},
            "integrity_check": [issue.to_dict() for issue in integrity],
        }

    def _record_count(self, path: Path) -> int | str:
        """Number of records, or "N/A" when the file is not a readable JSON array."""
        try:
            data = json.loads(self.storage.read_bytes(path).decode("utf-8"))
        except (StorageError, UnicodeDecodeError, json.JSONDecodeError):
            return "N/A"
        return len(data) if isinstance(data, list) else "N/A"
