"""Ports for the catalog record store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime
    from uuid import UUID

    from catalogsync.domain.model import (
        CandidateRecord,
        CatalogSummary,
        ExistingRecord,
        PlannedWrite,
        RecordChanges,
        WriteResult,
    )


@runtime_checkable
class CatalogItemRepository(Protocol):
    """Keyed record store contract.

    Implementations raise ``StoreError`` (or ``StoreTimeoutError``) on failure
    and must not block indefinitely.
    """

    def lookup(self, identity_key: str) -> ExistingRecord | None: ...

    def insert(self, record: CandidateRecord) -> UUID: ...

    def update(self, record_id: UUID, changes: RecordChanges) -> None: ...


@runtime_checkable
class SupportsBatchUpsert(Protocol):
    """Optional capability: write a whole chunk in one call with per-record results."""

    def batch_upsert(self, writes: Sequence[PlannedWrite]) -> Sequence[WriteResult]: ...


@runtime_checkable
class SupportsCatalogSummary(Protocol):
    """Optional capability: report item counts per brand and recent additions."""

    def summarize(self, *, recent_limit: int, since: datetime) -> CatalogSummary: ...
