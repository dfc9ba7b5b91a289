"""Persistent catalog item entity."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from catalogsync.domain.model.records import ExistingRecord

if TYPE_CHECKING:
    from catalogsync.domain.model.records import (
        CandidateRecord,
        CellValue,
        FieldValue,
        RecordChanges,
    )


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(eq=False, kw_only=True)
class CatalogItem:
    """A stored catalog item, keyed by its identity key."""

    id: UUID = field(default_factory=uuid4)
    identity_key: str
    brand: str
    model: str
    variant: str | None = None
    fields: dict[str, FieldValue] = field(default_factory=dict)
    derived_fields: dict[str, FieldValue] = field(default_factory=dict)
    overflow_fields: dict[str, CellValue] = field(default_factory=dict)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def from_candidate(cls, candidate: CandidateRecord) -> CatalogItem:
        fields = {
            name: value for name, value in candidate.canonical_fields.items() if value is not None
        }
        return cls(
            identity_key=candidate.identity_key,
            brand=candidate.brand or "",
            model=candidate.model or "",
            variant=candidate.variant,
            fields=fields,
            derived_fields=dict(candidate.derived_fields),
            overflow_fields=dict(candidate.overflow_fields),
        )

    def apply(self, changes: RecordChanges) -> None:
        # Reassign rather than mutate so JSON columns are flagged dirty.
        self.fields = {**self.fields, **changes.fields}
        self.derived_fields = dict(changes.derived_fields)
        self.overflow_fields = dict(changes.overflow_fields)
        for name in ("brand", "model", "variant"):
            if name in changes.fields and changes.fields[name] is not None:
                setattr(self, name, str(changes.fields[name]))
        self.updated_at = _utcnow()

    def to_existing(self) -> ExistingRecord:
        return ExistingRecord(
            record_id=self.id,
            identity_key=self.identity_key,
            fields=dict(self.fields),
            derived_fields=dict(self.derived_fields),
            overflow_fields=dict(self.overflow_fields),
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class CatalogSummary:
    """Store-wide item counts and the items added most recently."""

    total: int
    by_brand: dict[str, int]
    recent: tuple[CatalogItem, ...] = ()
    generated_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "by_brand": dict(self.by_brand),
            "recent": [
                {
                    "identity_key": item.identity_key,
                    "brand": item.brand,
                    "model": item.model,
                    "variant": item.variant,
                    "created_at": item.created_at.isoformat(),
                }
                for item in self.recent
            ],
            "generated_at": self.generated_at.isoformat(),
        }
