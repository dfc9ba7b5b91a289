"""Row, record and outcome value objects passed between import stages."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from catalogsync.domain.model.enums import OutcomeAction

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID


type CellValue = str | int | float | bool | None
type FieldValue = CellValue | list[str] | dict[str, CellValue]


def _frozen[V](values: Mapping[str, V] | None) -> Mapping[str, V]:
    if isinstance(values, MappingProxyType):
        return values
    return MappingProxyType(dict(values or {}))


@dataclass(frozen=True, slots=True)
class RawRow:
    """Raw cells of one spreadsheet row with its 1-based source row number."""

    cells: tuple[CellValue, ...]
    row_number: int

    def cell(self, index: int) -> CellValue:
        if 0 <= index < len(self.cells):
            return self.cells[index]
        return None

    def is_blank(self) -> bool:
        return all(
            cell is None or (isinstance(cell, str) and not cell.strip()) for cell in self.cells
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class CandidateRecord:
    """Typed record built from one data row, ready for validation and reconciliation."""

    identity_key: str
    canonical_fields: Mapping[str, FieldValue]
    source_row: int
    derived_fields: Mapping[str, FieldValue] = field(default_factory=dict)
    overflow_fields: Mapping[str, CellValue] = field(default_factory=dict)
    column_offset: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "canonical_fields", _frozen(self.canonical_fields))
        object.__setattr__(self, "derived_fields", _frozen(self.derived_fields))
        object.__setattr__(self, "overflow_fields", _frozen(self.overflow_fields))

    @property
    def is_identifiable(self) -> bool:
        return bool(self.identity_key)

    @property
    def brand(self) -> str | None:
        return _text(self.canonical_fields.get("brand"))

    @property
    def model(self) -> str | None:
        return _text(self.canonical_fields.get("model"))

    @property
    def variant(self) -> str | None:
        return _text(self.canonical_fields.get("variant"))

    @property
    def label(self) -> str:
        parts = (self.brand, self.model, self.variant)
        return " ".join(part for part in parts if part) or f"row {self.source_row}"


def _text(value: FieldValue) -> str | None:
    if value is None:
        return None
    return str(value)


@dataclass(frozen=True, slots=True, kw_only=True)
class ExistingRecord:
    """Read-only view of a stored catalog item."""

    record_id: UUID
    identity_key: str
    fields: Mapping[str, FieldValue]
    derived_fields: Mapping[str, FieldValue] = field(default_factory=dict)
    overflow_fields: Mapping[str, CellValue] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ChangedField:
    field: str
    old_value: FieldValue
    new_value: FieldValue

    def to_dict(self) -> dict[str, Any]:
        return {"field": self.field, "old_value": self.old_value, "new_value": self.new_value}


@dataclass(frozen=True, slots=True, kw_only=True)
class RecordChanges:
    """Payload for an update: changed canonical fields plus refreshed derived/overflow bags.

    ``derived_fields`` and ``overflow_fields`` are complete replacement bags;
    ``fields`` holds only the canonical fields that changed.
    """

    fields: Mapping[str, FieldValue]
    derived_fields: Mapping[str, FieldValue]
    overflow_fields: Mapping[str, CellValue]


@dataclass(frozen=True, slots=True, kw_only=True)
class PlannedWrite:
    """A write the committer hands to a batch-capable store (insert when ``record_id`` is None)."""

    candidate: CandidateRecord
    record_id: UUID | None = None
    changes: RecordChanges | None = None

    @property
    def is_insert(self) -> bool:
        return self.record_id is None


@dataclass(frozen=True, slots=True, kw_only=True)
class WriteResult:
    """Per-record result reported by a batch-capable store."""

    identity_key: str
    action: OutcomeAction
    record_id: UUID | None = None
    message: str = ""


@dataclass(frozen=True, slots=True, kw_only=True)
class ReconciliationOutcome:
    action: OutcomeAction
    identity_key: str
    changed_fields: tuple[ChangedField, ...] = ()
    message: str = ""
    source_row: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.action.value,
            "identity_key": self.identity_key,
            "source_row": self.source_row,
            "message": self.message,
            "changed_fields": [change.to_dict() for change in self.changed_fields],
        }


@dataclass(frozen=True, slots=True, kw_only=True)
class InvalidRecord:
    record: CandidateRecord
    reasons: tuple[str, ...]


@dataclass(frozen=True, slots=True, kw_only=True)
class RecordWarning:
    record: CandidateRecord
    message: str


@dataclass(frozen=True, slots=True, kw_only=True)
class ValidationReport:
    """Result of strict batch validation.

    ``duplicates`` holds the second and later occurrences of an identity key;
    the first occurrence stays in ``valid`` (or ``invalid``).
    """

    valid: tuple[CandidateRecord, ...] = ()
    invalid: tuple[InvalidRecord, ...] = ()
    duplicates: tuple[CandidateRecord, ...] = ()
    warnings: tuple[RecordWarning, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.invalid and not self.duplicates

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid_count": len(self.valid),
            "invalid": [
                {
                    "identity_key": item.record.identity_key,
                    "source_row": item.record.source_row,
                    "reasons": list(item.reasons),
                }
                for item in self.invalid
            ],
            "duplicates": [
                {"identity_key": record.identity_key, "source_row": record.source_row}
                for record in self.duplicates
            ],
            "warnings": [
                {
                    "identity_key": warning.record.identity_key,
                    "source_row": warning.record.source_row,
                    "message": warning.message,
                }
                for warning in self.warnings
            ],
        }


@dataclass(frozen=True, slots=True, kw_only=True)
class BatchReport:
    """Aggregate result of one import run. Always returned, even when ``success`` is False."""

    total_processed: int
    inserted_count: int
    updated_count: int
    skipped_count: int
    error_count: int
    outcomes: tuple[ReconciliationOutcome, ...]
    success: bool = True
    error: str | None = None
    validation: ValidationReport | None = None
    rows_ignored: int = 0

    @classmethod
    def from_outcomes(
        cls,
        outcomes: Iterable[ReconciliationOutcome],
        *,
        success: bool = True,
        error: str | None = None,
        validation: ValidationReport | None = None,
        rows_ignored: int = 0,
    ) -> BatchReport:
        collected = tuple(outcomes)
        counts = dict.fromkeys(OutcomeAction, 0)
        for outcome in collected:
            counts[outcome.action] += 1
        return cls(
            total_processed=len(collected),
            inserted_count=counts[OutcomeAction.INSERTED],
            updated_count=counts[OutcomeAction.UPDATED],
            skipped_count=counts[OutcomeAction.SKIPPED],
            error_count=counts[OutcomeAction.ERROR],
            outcomes=collected,
            success=success,
            error=error,
            validation=validation,
            rows_ignored=rows_ignored,
        )

    def outcomes_with(self, action: OutcomeAction) -> tuple[ReconciliationOutcome, ...]:
        return tuple(outcome for outcome in self.outcomes if outcome.action is action)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": self.success,
            "total_processed": self.total_processed,
            "inserted_count": self.inserted_count,
            "updated_count": self.updated_count,
            "skipped_count": self.skipped_count,
            "error_count": self.error_count,
            "rows_ignored": self.rows_ignored,
            "details": [outcome.to_dict() for outcome in self.outcomes],
        }
        if self.error is not None:
            payload["error"] = self.error
        if self.validation is not None:
            payload["validation"] = self.validation.to_dict()
        return payload
