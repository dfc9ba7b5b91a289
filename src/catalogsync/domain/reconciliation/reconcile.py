"""Per-record reconciliation: lookup, diff and insert/update/skip decision."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final, cast

from catalogsync.domain.errors import StoreError
from catalogsync.domain.model import (
    ChangedField,
    OutcomeAction,
    PlannedWrite,
    ReconciliationOutcome,
    RecordChanges,
)
from catalogsync.domain.tabular.builder import derive_fields
from catalogsync.domain.tabular.registry import default_registry
from catalogsync.domain.tabular.values import collapse_whitespace

if TYPE_CHECKING:
    from uuid import UUID

    from catalogsync.domain.model import CandidateRecord, CellValue, ExistingRecord, FieldValue
    from catalogsync.domain.ports import CatalogItemRepository
    from catalogsync.domain.tabular.registry import ColumnRegistry

log = logging.getLogger(__name__)

OVERFLOW_PREFIX: Final[str] = "overflow:"
MISSING_IDENTITY_MESSAGE: Final[str] = "missing identity key (brand and model are required)"


@dataclass(frozen=True, slots=True, kw_only=True)
class ReconciliationDecision:
    """What the committer should do with one candidate."""

    candidate: CandidateRecord
    action: OutcomeAction
    record_id: UUID | None = None
    changed_fields: tuple[ChangedField, ...] = ()
    changes: RecordChanges | None = None
    message: str = ""

    @property
    def needs_write(self) -> bool:
        return self.action in {OutcomeAction.INSERTED, OutcomeAction.UPDATED}

    def planned_write(self) -> PlannedWrite | None:
        if not self.needs_write:
            return None
        return PlannedWrite(
            candidate=self.candidate, record_id=self.record_id, changes=self.changes
        )

    def to_outcome(
        self,
        *,
        action: OutcomeAction | None = None,
        message: str | None = None,
    ) -> ReconciliationOutcome:
        resolved_action = action or self.action
        return ReconciliationOutcome(
            action=resolved_action,
            identity_key=self.candidate.identity_key,
            changed_fields=self.changed_fields if resolved_action is OutcomeAction.UPDATED else (),
            message=self.message if message is None else message,
            source_row=self.candidate.source_row,
        )

    def failed(self, message: str) -> ReconciliationOutcome:
        return self.to_outcome(action=OutcomeAction.ERROR, message=message)


def error_outcome(candidate: CandidateRecord, message: str) -> ReconciliationOutcome:
    return ReconciliationOutcome(
        action=OutcomeAction.ERROR,
        identity_key=candidate.identity_key,
        message=message,
        source_row=candidate.source_row,
    )


def values_equal(old: FieldValue, new: FieldValue) -> bool:
    """Compare a stored value with an incoming one after normalisation."""

    if isinstance(new, bool) or isinstance(old, bool):
        return old is new
    if isinstance(new, int | float) and isinstance(old, int | float):
        return old == new
    if isinstance(new, str) and isinstance(old, str):
        return collapse_whitespace(old) == collapse_whitespace(new)
    return old == new


def diff_fields(
    candidate: CandidateRecord,
    existing: ExistingRecord,
    registry: ColumnRegistry | None = None,
) -> tuple[ChangedField, ...]:
    """Field-level changes in registry declaration order, then overflow keys.

    Absent or unknown candidate values never count as changes.
    """

    registry = registry or default_registry()
    changes: list[ChangedField] = []
    for name in registry.declaration_order:
        if name not in candidate.canonical_fields:
            continue
        new_value = candidate.canonical_fields[name]
        if new_value is None:
            continue
        old_value = existing.fields.get(name)
        if not values_equal(old_value, new_value):
            changes.append(ChangedField(name, old_value, new_value))

    for key, new_value in candidate.overflow_fields.items():
        if new_value is None or new_value == "":
            continue
        old_value = existing.overflow_fields.get(key)
        if not values_equal(old_value, new_value):
            changes.append(ChangedField(f"{OVERFLOW_PREFIX}{key}", old_value, new_value))
    return tuple(changes)


def build_changes(
    existing: ExistingRecord,
    changed_fields: tuple[ChangedField, ...],
) -> RecordChanges:
    """Update payload: changed fields plus derived fields recomputed over the merged record."""

    fields: dict[str, FieldValue] = {}
    overflow = dict(existing.overflow_fields)
    for change in changed_fields:
        if change.field.startswith(OVERFLOW_PREFIX):
            key = change.field.removeprefix(OVERFLOW_PREFIX)
            overflow[key] = cast("CellValue", change.new_value)
        else:
            fields[change.field] = change.new_value
    merged = {**existing.fields, **fields}
    return RecordChanges(
        fields=fields, derived_fields=derive_fields(merged), overflow_fields=overflow
    )


def reconcile(
    candidate: CandidateRecord,
    repository: CatalogItemRepository,
    *,
    registry: ColumnRegistry | None = None,
) -> ReconciliationDecision:
    """Decide insert, update or skip for ``candidate``.

    The store is queried exactly once. Store failures and unidentifiable
    candidates become ``error`` decisions.
    """

    if not candidate.is_identifiable:
        return ReconciliationDecision(
            candidate=candidate,
            action=OutcomeAction.ERROR,
            message=MISSING_IDENTITY_MESSAGE,
        )

    try:
        existing = repository.lookup(candidate.identity_key)
    except StoreError as exc:
        log.warning(
            "Lookup failed for %s (row %d): %s", candidate.identity_key, candidate.source_row, exc
        )
        return ReconciliationDecision(
            candidate=candidate,
            action=OutcomeAction.ERROR,
            message=f"lookup failed: {exc}",
        )

    if existing is None:
        return ReconciliationDecision(
            candidate=candidate,
            action=OutcomeAction.INSERTED,
            message=f"new item {candidate.label}",
        )

    changed = diff_fields(candidate, existing, registry)
    if not changed:
        return ReconciliationDecision(
            candidate=candidate,
            action=OutcomeAction.SKIPPED,
            record_id=existing.record_id,
            message="no changes",
        )
    return ReconciliationDecision(
        candidate=candidate,
        action=OutcomeAction.UPDATED,
        record_id=existing.record_id,
        changed_fields=changed,
        changes=build_changes(existing, changed),
        message=f"{len(changed)} field(s) changed",
    )
