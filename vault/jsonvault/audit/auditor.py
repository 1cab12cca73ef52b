"""
Integrity auditor for live collections.

Scans every registered collection and restores the ones that are missing
or no longer parse as JSON.

Invariants:
    - Every issue found triggers exactly one restore attempt
    - audit_all() never raises; filesystem and parse errors are findings
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..registry import CollectionRegistry
from ..snapshot import SnapshotRestorer
from ..storage import Storage, StorageError

logger = logging.getLogger(__name__)


class IssueKind(str, Enum):
    """Kinds of integrity problems."""

    MISSING = "MISSING"
    CORRUPTED = "CORRUPTED"


@dataclass
class Issue:
    """An integrity problem found in a live collection.

    Attributes:
        collection: Logical collection name
        kind: MISSING or CORRUPTED
        detail: Parse/read failure detail (CORRUPTED only)
        restored: Whether restore from snapshot succeeded
    """

    collection: str
    kind: IssueKind
    detail: str | None = None
    restored: bool = False

    @property
    def description(self) -> str:
        if self.detail:
            return f"{self.kind.value}: {self.detail}"
        return self.kind.value

    def to_dict(self) -> dict[str, Any]:
        return {
            "file": self.collection,
            "issue": self.description,
            "kind": self.kind.value,
            "detail": self.detail,
            "restored": self.restored,
        }


class IntegrityAuditor:
    """Detects missing/corrupted collections and triggers restoration.

    Example:
        >>> auditor = IntegrityAuditor(storage, registry, restorer)
        >>> [i.to_dict() for i in auditor.audit_all()]
        [{'file': 'quotes', 'issue': 'MISSING', 'kind': 'MISSING', 'detail': None, 'restored': True}]
    """

    def __init__(
        self,
        storage: Storage,
        registry: CollectionRegistry,
        restorer: SnapshotRestorer,
    ) -> None:
        self.storage = storage
        self.registry = registry
        self.restorer = restorer

    def check(self, collection: str) -> Issue | None:
        """Classify one collection without restoring it."""
        path = self.registry.path_for(collection)

        if not self.storage.exists(path):
            return Issue(collection=collection, kind=IssueKind.MISSING)

        try:
            json.loads(self.storage.read_bytes(path).decode("utf-8"))
        except StorageError as e:
            return Issue(collection=collection, kind=IssueKind.CORRUPTED, detail=f"unreadable: {e}")
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            return Issue(collection=collection, kind=IssueKind.CORRUPTED, detail=str(e))

        return None

    def audit_all(self) -> list[Issue]:
        """Audit every registered collection, restoring any that fail.

        Returns:
            Issues found, each with its restoration outcome attached
        """
        issues = []
        for collection in self.registry:
            issue = self.check(collection)
            if issue is None:
                continue

            logger.warning(
                f"Integrity issue in {collection}: {issue.description}",
                extra={"collection": collection, "kind": issue.kind.value},
            )
            issue.restored = self.restorer.restore(collection)
            issues.append(issue)

        return issues


def unresolved(issues: list[Issue]) -> list[Issue]:
    """Issues whose collection could not be restored."""
    return [issue for issue in issues if not issue.restored]
