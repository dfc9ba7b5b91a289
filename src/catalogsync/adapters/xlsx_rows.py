"""Excel workbook (.xlsx / .xlsm) reading and writing, row-compatible with the CSV adapter."""

from __future__ import annotations

import logging
import zipfile
from datetime import date, datetime, time
from pathlib import Path
from typing import TYPE_CHECKING, Final

from openpyxl import Workbook, load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from catalogsync.domain.errors import ConfigurationError
from catalogsync.domain.model import CellValue, RawRow

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

log = logging.getLogger(__name__)

WORKBOOK_SUFFIXES: Final[frozenset[str]] = frozenset({".xlsx", ".xlsm"})


def _cell_value(value: object) -> CellValue:
    if value is None or isinstance(value, str | int | float | bool):
        return value
    if isinstance(value, datetime | date | time):
        return value.isoformat()
    return str(value)


def _trim(cells: tuple[object, ...]) -> tuple[CellValue, ...]:
    values = [_cell_value(cell) for cell in cells]
    while values and values[-1] is None:
        values.pop()
    return tuple(values)


def read_xlsx_rows(
    path: str | Path,
    *,
    header: bool = True,
    skip_rows: int = 0,
    sheet: str | None = None,
) -> tuple[tuple[CellValue, ...] | None, list[RawRow]]:
    """Read one worksheet of ``path`` into an optional header row and data rows.

    The first worksheet is used unless ``sheet`` names another. Cached formula
    results are read, not formulas. Row numbers are the worksheet's 1-based rows.
    """

    workbook_path = Path(path)
    if workbook_path.suffix.lower() == ".xls":
        raise ConfigurationError(
            f"{workbook_path} is a legacy .xls workbook; save it as .xlsx or .csv"
        )
    try:
        workbook = load_workbook(workbook_path, read_only=True, data_only=True)
    except (OSError, InvalidFileException, zipfile.BadZipFile, KeyError) as exc:
        raise ConfigurationError(f"Cannot open workbook {workbook_path}: {exc}") from exc

    try:
        if sheet is None:
            worksheet = workbook.worksheets[0]
        elif sheet in workbook.sheetnames:
            worksheet = workbook[sheet]
        else:
            raise ConfigurationError(
                f"Sheet {sheet!r} not found in {workbook_path}; "
                f"available: {', '.join(workbook.sheetnames)}"
            )

        header_row: tuple[CellValue, ...] | None = None
        rows: list[RawRow] = []
        for row_number, cells in enumerate(worksheet.iter_rows(values_only=True), start=1):
            if row_number <= skip_rows:
                continue
            if header and header_row is None:
                header_row = _trim(cells)
                continue
            rows.append(RawRow(cells=_trim(cells), row_number=row_number))
        title = worksheet.title
    finally:
        workbook.close()

    log.info(
        "Read %d data row(s) from %s [%s] (header=%s)",
        len(rows),
        workbook_path,
        title,
        header_row is not None,
    )
    return header_row, rows


def write_xlsx_rows(
    path: str | Path,
    rows: Iterable[Sequence[CellValue]],
    *,
    sheet_title: str = "Catalog",
) -> Path:
    workbook_path = Path(path)
    workbook_path.parent.mkdir(parents=True, exist_ok=True)
    workbook = Workbook(write_only=True)
    worksheet = workbook.create_sheet(title=sheet_title)
    for row in rows:
        worksheet.append(list(row))
    workbook.save(workbook_path)
    return workbook_path
