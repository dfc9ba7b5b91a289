"""Application orchestration entry points."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from catalogsync.adapters.csv_rows import read_csv_rows, write_csv_rows
from catalogsync.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyCatalogUnitOfWork,
    is_started,
    startup,
)
from catalogsync.adapters.xlsx_rows import WORKBOOK_SUFFIXES, read_xlsx_rows, write_xlsx_rows
from catalogsync.config import get_import_settings
from catalogsync.domain.catalog_import import import_rows
from catalogsync.domain.errors import StoreError
from catalogsync.domain.model import ImportMode
from catalogsync.domain.ports import SupportsCatalogSummary
from catalogsync.domain.tabular import default_registry, import_template, load_registry

if TYPE_CHECKING:
    import threading
    from collections.abc import Iterable, Sequence

    from catalogsync.domain.catalog_import import RowInput
    from catalogsync.domain.model import (
        BatchReport,
        CatalogSummary,
        CellValue,
        ImportSettings,
        RawRow,
    )
    from catalogsync.domain.ports import CatalogUnitOfWorkFactory


log = getLogger(__name__)


def import_catalog_rows(
    rows: Iterable[RowInput],
    header_row: Sequence[CellValue] | None,
    *,
    mode: ImportMode | str = ImportMode.STRICT,
    settings: ImportSettings | None = None,
    registry_path: str | Path | None = None,
    cancel_event: threading.Event | None = None,
    unit_of_work_factory: CatalogUnitOfWorkFactory | None = None,
    database_uri: str | None = None,
) -> BatchReport:
    """Import in-memory rows into the configured catalog store."""

    if unit_of_work_factory is None and not is_started():
        startup(database_uri=database_uri)
    effective_uow = unit_of_work_factory or SqlAlchemyCatalogUnitOfWork
    effective_settings = settings or get_import_settings()
    registry = load_registry(registry_path) if registry_path else default_registry()

    log.info(
        "Starting catalog import: mode=%s, chunk_size=%s, workers=%s, deadline=%s",
        ImportMode(mode).value,
        effective_settings.chunk_size,
        effective_settings.max_workers,
        effective_settings.deadline_seconds,
    )

    report = import_rows(
        rows,
        header_row,
        ImportMode(mode),
        unit_of_work_factory=effective_uow,
        settings=effective_settings,
        registry=registry,
        cancel_event=cancel_event,
    )

    log.info(
        f"Finished catalog import: success={report.success}, "
        f"inserted={report.inserted_count}, updated={report.updated_count}, "
        f"skipped={report.skipped_count}, errors={report.error_count}, "
        f"ignored={report.rows_ignored}"
    )
    return report


def read_catalog_rows(
    path: str | Path,
    *,
    header: bool = True,
    skip_rows: int = 0,
    sheet: str | None = None,
) -> tuple[tuple[CellValue, ...] | None, list[RawRow]]:
    """Read a catalog sheet, choosing the reader from the file suffix."""

    suffix = Path(path).suffix.lower()
    if suffix in WORKBOOK_SUFFIXES or suffix == ".xls":
        return read_xlsx_rows(path, header=header, skip_rows=skip_rows, sheet=sheet)
    return read_csv_rows(path, header=header, skip_rows=skip_rows)


def import_catalog_file(
    path: str | Path,
    *,
    mode: ImportMode | str = ImportMode.STRICT,
    settings: ImportSettings | None = None,
    header: bool = True,
    skip_rows: int = 0,
    sheet: str | None = None,
    registry_path: str | Path | None = None,
    cancel_event: threading.Event | None = None,
    unit_of_work_factory: CatalogUnitOfWorkFactory | None = None,
    database_uri: str | None = None,
) -> BatchReport:
    """Read a CSV export or Excel workbook and import its rows."""

    header_row, rows = read_catalog_rows(path, header=header, skip_rows=skip_rows, sheet=sheet)
    return import_catalog_rows(
        rows,
        header_row,
        mode=mode,
        settings=settings,
        registry_path=registry_path,
        cancel_event=cancel_event,
        unit_of_work_factory=unit_of_work_factory,
        database_uri=database_uri,
    )


def write_import_template(
    path: str | Path,
    *,
    registry_path: str | Path | None = None,
    include_sample: bool = True,
) -> Path:
    """Write a blank import sheet (.xlsx or .csv, by suffix) listing every known column."""

    registry = load_registry(registry_path) if registry_path else default_registry()
    template = import_template(registry)
    rows: list[Sequence[CellValue]] = [template.headers]
    if include_sample:
        rows.append(template.sample_row)

    if Path(path).suffix.lower() in WORKBOOK_SUFFIXES:
        written = write_xlsx_rows(path, rows)
    else:
        written = write_csv_rows(path, rows)
    log.info("Wrote import template with %d column(s) to %s", len(template.headers), written)
    return written


def catalog_summary(
    *,
    recent_limit: int = 10,
    recent_window: timedelta = timedelta(hours=24),
    unit_of_work_factory: CatalogUnitOfWorkFactory | None = None,
    database_uri: str | None = None,
    now: datetime | None = None,
) -> CatalogSummary:
    """Count stored items per brand and list the ones added within ``recent_window``."""

    if unit_of_work_factory is None and not is_started():
        startup(database_uri=database_uri)
    effective_uow = unit_of_work_factory or SqlAlchemyCatalogUnitOfWork
    since = (now or datetime.now(UTC)) - recent_window

    with effective_uow() as uow:
        repository = uow.repositories.catalog_items
        if not isinstance(repository, SupportsCatalogSummary):
            raise StoreError(f"{type(repository).__name__} cannot summarise the catalog")
        summary = repository.summarize(recent_limit=recent_limit, since=since)

    log.info("Catalog holds %d item(s) across %d brand(s)", summary.total, len(summary.by_brand))
    return summary
