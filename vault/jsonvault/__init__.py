"""
JSONVault - durable JSON collection storage without a database engine.

The surrounding application keeps its state as a small, fixed set of
JSON collections on disk. This package keeps that state safe:
- Periodic, checksummed snapshots of every collection
- Per-class retention so snapshots do not grow unbounded
- Detection of missing or corrupted live files with automatic restore
  from the newest verifiably-intact snapshot

Architecture:
    ┌─────────────┐     ┌─────────────────┐     ┌─────────────────┐
    │  Scheduler  │────▶│ Snapshot Writer │────▶│ Retention Pruner│
    └──────┬──────┘     └────────┬────────┘     └────────┬────────┘
           │                     │                       │
           ▼                     ▼                       ▼
    ┌─────────────┐     ┌─────────────────────────────────────────┐
    │  Integrity  │────▶│        Snapshot root (backups/)         │
    │   Auditor   │     └─────────────────────────────────────────┘
    └──────┬──────┘                          ▲
           │            ┌─────────────────┐  │
           └───────────▶│    Restorer     │──┘
                        └────────┬────────┘
                                 ▼
                        ┌─────────────────┐
                        │ Live collections│
                        └─────────────────┘

Invariants:
    - A directory without a readable manifest is never treated as a snapshot
    - "Most recent" is decided by the timestamp embedded in the snapshot name
    - A snapshot copy is only trusted if its checksum matches the manifest
    - The Restorer is the only component that overwrites a live collection

How to change safely:
    - Add manifest fields, never remove or rename existing ones
    - Keep the snapshot naming encoding reversible
    - Test restore against snapshots written by older versions

Version: see _version.py.
"""

from ._version import __version__

__all__ = ["__version__"]
