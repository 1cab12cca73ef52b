"""
Bulk export/import payloads for JSONVault.

Export document:
    {
        "exported_at": "2026-10-19T20:31:05.123Z",
        "version": "1.0",
        "data": {"customers": [...], "quotes": [...], ...},
        "checksums": {"customers": "<sha256 hex>", ...},
        "stats": {"customers": 12, ...}
    }

Import payload:
    {"data": {"customers": [...]}, "checksums": {"customers": "<sha256 hex>"}}

Invariants:
    - serialize_records() is the only serialization used to write live files,
      so export checksums match the bytes an import writes
    - Import results are reported per collection
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, Field

EXPORT_VERSION = "1.0"


def serialize_records(records: Any) -> bytes:
    """Serialize a collection the way live files are stored (2-space indented UTF-8)."""
    return json.dumps(records, indent=2, ensure_ascii=False).encode("utf-8")


class ExportDocument(BaseModel):
    """Full export of every live collection."""

    exported_at: str = Field(..., description="Export time, ISO-8601 UTC")
    version: str = Field(default=EXPORT_VERSION, description="Export format version")
    data: dict[str, list[Any]] = Field(default_factory=dict, description="Records per collection")
    checksums: dict[str, str] = Field(
        default_factory=dict, description="SHA-256 of each collection as written to disk"
    )
    stats: dict[str, int] = Field(default_factory=dict, description="Record count per collection")


class ImportPayload(BaseModel):
    """Bulk import request."""

    data: dict[str, Any] = Field(..., description="Records per collection")
    checksums: dict[str, str] | None = Field(
        None, description="Expected SHA-256 per collection after import"
    )


class ImportOutcome(BaseModel):
    """Per-collection import result."""

    imported: int | None = None
    checksum_valid: bool | None = None
    error: str | None = None


class ImportResult(BaseModel):
    """Result of a bulk import."""

    message: str = "Import complete"
    pre_import_backup: str = Field(..., description="Timestamp of the safety snapshot")
    results: dict[str, ImportOutcome] = Field(default_factory=dict)

    @property
    def all_checksums_valid(self) -> bool:
        return all(r.checksum_valid is not False for r in self.results.values())

    @property
    def succeeded(self) -> bool:
        """Every collection was written and every supplied checksum matched."""
        return self.all_checksums_valid and not any(
            r.error is not None for r in self.results.values()
        )
