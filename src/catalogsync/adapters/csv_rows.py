"""CSV reading and writing for catalog sheets."""

from __future__ import annotations

import csv
import io
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Final

from catalogsync.domain.errors import ConfigurationError
from catalogsync.domain.model import CellValue, RawRow

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

log = logging.getLogger(__name__)

CANDIDATE_DELIMITERS: Final[str] = ",;\t|"
SNIFF_SAMPLE_LINES: Final[int] = 25


def detect_delimiter(text: str) -> str:
    """Infer the delimiter from the first non-empty lines, defaulting to a comma."""

    sample_lines = [line for line in text.splitlines() if line.strip()][:SNIFF_SAMPLE_LINES]
    if not sample_lines:
        return ","
    try:
        dialect = csv.Sniffer().sniff("\n".join(sample_lines), delimiters=CANDIDATE_DELIMITERS)
    except csv.Error:
        return ","
    return dialect.delimiter


def read_csv_rows(
    path: str | Path,
    *,
    header: bool = True,
    skip_rows: int = 0,
    encoding: str = "utf-8-sig",
    delimiter: str | None = None,
) -> tuple[tuple[CellValue, ...] | None, list[RawRow]]:
    """Read ``path`` into an optional header row and data rows.

    ``skip_rows`` leading lines are dropped before the header. Row numbers are
    1-based record positions in the file (quoted cells may span lines).
    """

    csv_path = Path(path)
    try:
        text = csv_path.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigurationError(f"Cannot read {csv_path}: {exc}") from exc

    sample = "\n".join(text.splitlines()[skip_rows:])
    resolved_delimiter = delimiter or detect_delimiter(sample)
    reader = csv.reader(io.StringIO(text, newline=""), delimiter=resolved_delimiter)

    header_row: tuple[CellValue, ...] | None = None
    rows: list[RawRow] = []
    for line_number, cells in enumerate(reader, start=1):
        if line_number <= skip_rows:
            continue
        if header and header_row is None:
            header_row = tuple(cells)
            continue
        rows.append(RawRow(cells=tuple(cells), row_number=line_number))

    log.info(
        "Read %d data row(s) from %s (delimiter=%r, header=%s)",
        len(rows),
        csv_path,
        resolved_delimiter,
        header_row is not None,
    )
    return header_row, rows


def write_csv_rows(path: str | Path, rows: Iterable[Sequence[CellValue]]) -> Path:
    csv_path = Path(path)
    csv_path.parent.mkdir(parents=True, exist_ok=True)
    with csv_path.open("w", encoding="utf-8-sig", newline="") as handle:
        writer = csv.writer(handle)
        for row in rows:
            writer.writerow(["" if cell is None else cell for cell in row])
    return csv_path
