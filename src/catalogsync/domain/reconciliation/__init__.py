"""Reconciliation of candidate records against the catalog store.

Flow per import run:
1) validate the batch (strict mode only)
2) reconcile each candidate: lookup by identity key, diff, decide
3) commit decisions chunk by chunk and aggregate a batch report
"""

from __future__ import annotations

from catalogsync.domain.reconciliation.commit import BatchCommitter, ChunkResult, ChunkStatus
from catalogsync.domain.reconciliation.reconcile import (
    ReconciliationDecision,
    diff_fields,
    error_outcome,
    reconcile,
)
from catalogsync.domain.reconciliation.validation import ensure_valid, validate

__all__ = [
    "BatchCommitter",
    "ChunkResult",
    "ChunkStatus",
    "ReconciliationDecision",
    "diff_fields",
    "ensure_valid",
    "error_outcome",
    "reconcile",
    "validate",
]
