"""
Snapshot manifest format.

Each snapshot directory contains manifest.json:
    {
        "type": "hourly",
        "timestamp": "2026-10-19T20:31:05.123Z",
        "files": {"customers": "customers.json", ...},
        "checksums": {"customers": "<sha256 hex>", ...}
    }

The manifest is the sole source of truth for what a snapshot contains.

Invariants:
    - files and checksums have the same keys
    - Checksums are SHA-256 hex digests of the raw copied bytes
    - The manifest is written after every copy it references

How to change safely:
    - Add new manifest fields, don't remove existing ones
    - from_dict() must keep accepting manifests written by older versions
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from typing import Any

MANIFEST_FILE = "manifest.json"


class ManifestError(Exception):
    """A manifest is missing, unreadable or malformed."""

    pass


def compute_checksum(data: bytes) -> str:
    """Compute the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def copy_file_name(collection: str) -> str:
    """File name of a collection's copy inside a snapshot directory."""
    return f"{collection}.json"


@dataclass
class Manifest:
    """Serialized record of a snapshot's contents.

    Attributes:
        snapshot_class: Retention class ("hourly", "daily", "weekly", ...)
        timestamp: Capture time, ISO-8601 UTC
        files: Collection name -> file name relative to the snapshot directory
        checksums: Collection name -> SHA-256 hex digest at capture time
    """

    snapshot_class: str
    timestamp: str
    files: dict[str, str] = field(default_factory=dict)
    checksums: dict[str, str] = field(default_factory=dict)

    def add(self, collection: str, file_name: str, checksum: str) -> None:
        self.files[collection] = file_name
        self.checksums[collection] = checksum

    @property
    def collections(self) -> list[str]:
        return list(self.files)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the on-disk dictionary shape."""
        return {
            "type": self.snapshot_class,
            "timestamp": self.timestamp,
            "files": dict(self.files),
            "checksums": dict(self.checksums),
        }

    @classmethod
    def from_dict(cls, data: Any) -> Manifest:
        """Create from the on-disk dictionary shape.

        Raises:
            ManifestError: If data is not a well-formed manifest
        """
        if not isinstance(data, dict):
            raise ManifestError("Manifest must be a JSON object")

        snapshot_class = data.get("type")
        timestamp = data.get("timestamp")
        files = data.get("files")
        checksums = data.get("checksums", {})

        if not isinstance(snapshot_class, str) or not isinstance(timestamp, str):
            raise ManifestError("Manifest requires string 'type' and 'timestamp'")
        if not isinstance(files, dict) or not isinstance(checksums, dict):
            raise ManifestError("Manifest 'files' and 'checksums' must be objects")
        for mapping in (files, checksums):
            for key, value in mapping.items():
                if not isinstance(value, str):
                    raise ManifestError(f"Manifest entry for {key!r} must be a string")
        for key, file_name in files.items():
            if not file_name or "/" in file_name or "\\" in file_name or file_name in (".", ".."):
                raise ManifestError(f"Manifest file name for {key!r} must be a plain name")

        return cls(
            snapshot_class=snapshot_class,
            timestamp=timestamp,
            files=dict(files),
            checksums=dict(checksums),
        )

    def to_bytes(self) -> bytes:
        return json.dumps(self.to_dict(), indent=2).encode("utf-8")

    @classmethod
    def from_bytes(cls, raw: bytes) -> Manifest:
        """Parse manifest.json content.

        Raises:
            ManifestError: If raw is not a valid manifest
        """
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ManifestError(f"Manifest is not valid JSON: {e}") from e
        return cls.from_dict(data)
