"""Domain model for catalog imports."""

from __future__ import annotations

from catalogsync.domain.model.catalog import CatalogItem, CatalogSummary
from catalogsync.domain.model.columns import ColumnDescriptor, ColumnMap
from catalogsync.domain.model.enums import ColumnSource, ImportMode, OutcomeAction, ValueKind
from catalogsync.domain.model.records import (
    BatchReport,
    CandidateRecord,
    CellValue,
    ChangedField,
    ExistingRecord,
    FieldValue,
    InvalidRecord,
    PlannedWrite,
    RawRow,
    ReconciliationOutcome,
    RecordChanges,
    RecordWarning,
    ValidationReport,
    WriteResult,
)
from catalogsync.domain.model.settings import ImportSettings

__all__ = [
    "BatchReport",
    "CandidateRecord",
    "CatalogItem",
    "CatalogSummary",
    "CellValue",
    "ChangedField",
    "ColumnDescriptor",
    "ColumnMap",
    "ColumnSource",
    "ExistingRecord",
    "FieldValue",
    "ImportMode",
    "ImportSettings",
    "InvalidRecord",
    "OutcomeAction",
    "PlannedWrite",
    "RawRow",
    "ReconciliationOutcome",
    "RecordChanges",
    "RecordWarning",
    "ValidationReport",
    "ValueKind",
]
