"""
Administrative CLI for JSONVault.

Operator access to the backup service without the host application:

Usage:
    jsonvault-admin backup [--class daily]
    jsonvault-admin restore [collection]      # all collections when omitted
    jsonvault-admin verify
    jsonvault-admin list
    jsonvault-admin export [--output backup.json]
    jsonvault-admin import backup.json
    jsonvault-admin status

Data locations come from the same environment variables as the engine
(DATA_DIR, BACKUP_DIR, ...), overridable with --data-dir/--backup-dir.
Results are printed as JSON on stdout.

Invariants:
    - Exit code 0 only when every requested restore succeeded and no
      audit issue is left unresolved, and an import exits 0 only when every
      collection was written and every supplied checksum matched
    - Every operation goes through BackupService, so it takes the same lock
      as the engine within this process
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any

from ..audit import unresolved
from ..config import EngineConfig
from ..service import BackupService, InvalidImportError
from ..storage import StorageError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jsonvault-admin",
        description="Back up, verify and restore JSONVault collections",
    )
    parser.add_argument("--data-dir", help="Directory holding the live collections")
    parser.add_argument("--backup-dir", help="Snapshot root directory")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    sub = parser.add_subparsers(dest="command", required=True)

    backup = sub.add_parser("backup", help="Create a snapshot now")
    backup.add_argument(
        "--class", dest="snapshot_class", default="daily", help="Retention class (default: daily)"
    )

    restore = sub.add_parser("restore", help="Restore from the newest valid snapshot")
    restore.add_argument("collection", nargs="?", help="Collection to restore (default: all)")

    sub.add_parser("verify", help="Audit collections and restore damaged ones")
    sub.add_parser("list", help="List valid snapshots, newest first")

    export = sub.add_parser("export", help="Export every collection with checksums")
    export.add_argument("--output", "-o", help="Write to file instead of stdout")

    import_ = sub.add_parser("import", help="Import collections from an export file")
    import_.add_argument("file", help="Export document or {data, checksums} payload")

    sub.add_parser("status", help="Show file, snapshot and integrity status")

    return parser


def load_config(args: argparse.Namespace) -> EngineConfig:
    config = EngineConfig.from_env()
    storage = config.storage
    if args.data_dir:
        storage = replace(storage, data_dir=args.data_dir)
    if args.backup_dir:
        storage = replace(storage, backup_dir=args.backup_dir)
    return replace(config, storage=storage)


def run(args: argparse.Namespace, service: BackupService) -> tuple[Any, int]:
    """Execute one subcommand.

    Returns:
        Tuple of (JSON-serializable result, exit code)
    """
    if args.command == "backup":
        manifest = service.create_backup(args.snapshot_class)
        return {"message": "Backup created", "manifest": manifest.to_dict()}, 0

    if args.command == "restore":
        if args.collection:
            if args.collection not in service.registry:
                return {"error": f"Unknown collection: {args.collection}"}, 2
            restored = service.restore_latest(args.collection)
            message = (
                f"{args.collection} restored from backup"
                if restored
                else f"No valid backup found for {args.collection}"
            )
            return {"message": message, "restored": restored}, 0 if restored else 1
        results = service.restore_all()
        return {"message": "Full restore attempted", "results": results}, (
            0 if all(results.values()) else 1
        )

    if args.command == "verify":
        issues = service.verify_integrity()
        return [issue.to_dict() for issue in issues], 1 if unresolved(issues) else 0

    if args.command == "list":
        return [backup.to_dict() for backup in service.list_backups()], 0

    if args.command == "export":
        document = service.export_data().model_dump()
        if args.output:
            Path(args.output).write_text(json.dumps(document, indent=2), encoding="utf-8")
            return {"message": "Export written", "file": args.output, "stats": document["stats"]}, 0
        return document, 0

    if args.command == "import":
        payload = json.loads(Path(args.file).read_text(encoding="utf-8"))
        result = service.import_data(payload)
        return result.model_dump(), 0 if result.succeeded else 1

    if args.command == "status":
        status = service.status()
        lost = [i for i in status["integrity_check"] if not i["restored"]]
        return status, 1 if lost else 0

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for the admin tool."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        config = load_config(args)
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    service = BackupService.from_config(config)

    try:
        result, code = run(args, service)
    except (InvalidImportError, json.JSONDecodeError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except StorageError as e:
        print(f"Storage error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2))
    return code


if __name__ == "__main__":
    sys.exit(main())
