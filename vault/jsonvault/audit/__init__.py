"""
Integrity audit module for JSONVault.

Invariants:
    - A missing or unparsable live collection is a finding, not a failure
    - Findings the restorer could not fix must reach an operator
"""

from .auditor import IntegrityAuditor, Issue, IssueKind, unresolved

__all__ = ["IntegrityAuditor", "Issue", "IssueKind", "unresolved"]
