"""Import entry point: raw rows in, batch report out."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import replace
from typing import TYPE_CHECKING

from catalogsync.domain.errors import ValidationError
from catalogsync.domain.model import (
    BatchReport,
    CandidateRecord,
    ImportMode,
    ImportSettings,
    RawRow,
)
from catalogsync.domain.reconciliation import BatchCommitter, ensure_valid, error_outcome, validate
from catalogsync.domain.tabular import build, classify_row, default_registry, detect_offset, resolve

if TYPE_CHECKING:
    import threading
    from collections.abc import Iterable, Sequence

    from catalogsync.domain.model import (
        CellValue,
        ColumnMap,
        ReconciliationOutcome,
        ValidationReport,
    )
    from catalogsync.domain.ports import CatalogUnitOfWorkFactory
    from catalogsync.domain.tabular import ColumnRegistry

log = logging.getLogger(__name__)

type RowInput = RawRow | Sequence[CellValue]


def _as_raw_rows(rows: Iterable[RowInput], first_row_number: int) -> list[RawRow]:
    raw_rows: list[RawRow] = []
    for position, row in enumerate(rows):
        if isinstance(row, RawRow):
            raw_rows.append(row)
        else:
            raw_rows.append(RawRow(cells=tuple(row), row_number=first_row_number + position))
    return raw_rows


def build_candidates(
    rows: Iterable[RawRow],
    column_map: ColumnMap,
    *,
    registry: ColumnRegistry,
    lookback_rows: int,
) -> tuple[list[CandidateRecord], int]:
    """Build candidates from data rows, returning them with the number of ignored rows."""

    candidates: list[CandidateRecord] = []
    ignored = 0
    recent_offsets: deque[int] = deque(maxlen=lookback_rows)
    for row in rows:
        reason = classify_row(row, column_map, registry)
        if reason is not None:
            log.debug("Ignoring row %d (%s)", row.row_number, reason.value)
            ignored += 1
            continue
        try:
            detection = detect_offset(row, column_map, tuple(recent_offsets))
            if detection.offset:
                recent_offsets.append(detection.offset)
            candidate = build(
                row,
                column_map,
                offset=detection.offset,
                locator=detection.locator,
                registry=registry,
            )
        except Exception:  # noqa: BLE001 - one bad row never aborts the import
            log.exception("Could not build a record from row %d", row.row_number)
            candidate = CandidateRecord(
                identity_key="", canonical_fields={}, source_row=row.row_number
            )
        candidates.append(candidate)
    return candidates, ignored


def _validation_failure(
    candidates: Sequence[CandidateRecord],
    report: ValidationReport,
    *,
    rows_ignored: int,
) -> BatchReport:
    reasons: dict[int, str] = {id(item.record): "; ".join(item.reasons) for item in report.invalid}
    for record in report.duplicates:
        reasons[id(record)] = f"duplicate identity key {record.identity_key!r} in batch"

    outcomes: list[ReconciliationOutcome] = []
    for candidate in candidates:
        message = reasons.get(id(candidate), "not attempted (validation failed)")
        outcomes.append(error_outcome(candidate, message))
    error = (
        f"validation failed: {len(report.invalid)} invalid, "
        f"{len(report.duplicates)} duplicate record(s)"
    )
    return BatchReport.from_outcomes(
        outcomes,
        success=False,
        error=error,
        validation=report,
        rows_ignored=rows_ignored,
    )


def import_rows(
    rows: Iterable[RowInput],
    header_row: Sequence[CellValue] | None,
    mode: ImportMode = ImportMode.STRICT,
    *,
    unit_of_work_factory: CatalogUnitOfWorkFactory,
    settings: ImportSettings | None = None,
    registry: ColumnRegistry | None = None,
    cancel_event: threading.Event | None = None,
) -> BatchReport:
    """Import ``rows`` into the catalog store and report per-record outcomes.

    ``strict`` mode validates the whole batch first and writes nothing when any
    record is invalid or duplicated; ``force`` mode sends every candidate to
    the reconciler. Raises ``ConfigurationError`` when the sheet layout cannot
    be resolved; every other failure is reported in the returned report.
    """

    settings = settings or ImportSettings()
    registry = registry or default_registry()
    mode = ImportMode(mode)

    column_map = resolve(header_row, registry)
    first_row_number = 2 if header_row is not None else 1
    raw_rows = _as_raw_rows(rows, first_row_number)
    candidates, ignored = build_candidates(
        raw_rows,
        column_map,
        registry=registry,
        lookback_rows=settings.lookback_rows,
    )
    log.info(
        "Import (%s): %d candidate(s) from %d row(s), %d ignored",
        mode.value,
        len(candidates),
        len(raw_rows),
        ignored,
    )

    validation: ValidationReport | None = None
    if mode is ImportMode.STRICT:
        validation = validate(candidates)
        try:
            ensure_valid(validation)
        except ValidationError as exc:
            log.warning("Strict import rejected: %s", exc)
            return _validation_failure(candidates, exc.report, rows_ignored=ignored)

    committer = BatchCommitter(
        unit_of_work_factory,
        settings=settings,
        registry=registry,
        cancel_event=cancel_event,
    )
    try:
        report = committer.commit(candidates)
    except Exception as exc:  # noqa: BLE001 - the report is always returned
        log.exception("Import run failed")
        report = BatchReport.from_outcomes(
            (error_outcome(candidate, str(exc)) for candidate in candidates),
            success=False,
            error=str(exc),
        )
    return replace(report, validation=validation, rows_ignored=ignored)
