"""Recognition of spreadsheet rows that carry no catalog data."""

from __future__ import annotations

import re
from enum import StrEnum
from typing import TYPE_CHECKING, Final

from catalogsync.domain.tabular.registry import NAMING_FIELDS
from catalogsync.domain.tabular.values import cell_text

if TYPE_CHECKING:
    from catalogsync.domain.model import ColumnMap, RawRow
    from catalogsync.domain.tabular.registry import ColumnRegistry

BANNER_MARKERS: Final[tuple[str, ...]] = (
    "INDIA CAR DATABASE",
    "Compiled in Excel",
    "This is a SAMPLE",
    "Visit above website",
    "Statistics",
    "######",
)
SECTION_LABELS: Final[frozenset[str]] = frozenset({"Basic", "Naming", "Key Data"})
_STATISTIC_RE = re.compile(r"^-?\d+(?:\.\d+)?%?$")


class IgnoredRow(StrEnum):
    BLANK = "blank"
    HEADER = "header"
    BANNER = "banner"
    STATISTICS = "statistics"


def classify_row(
    row: RawRow,
    column_map: ColumnMap,
    registry: ColumnRegistry,
) -> IgnoredRow | None:
    """Return why ``row`` should be ignored, or ``None`` for a data row."""

    if row.is_blank():
        return IgnoredRow.BLANK

    naming = {
        name: cell_text(row.cell(index))
        for name in NAMING_FIELDS
        if (index := column_map.index_of(name)) is not None
    }
    brand = naming.get("brand", "")
    model = naming.get("model", "")

    first_text = next((text for cell in row.cells if (text := cell_text(cell))), "")
    for text in {first_text, brand}:
        if any(marker in text for marker in BANNER_MARKERS):
            return IgnoredRow.BANNER
    if brand in SECTION_LABELS:
        return IgnoredRow.BANNER

    if any(text and registry.is_alias_of(text, name) for name, text in naming.items()):
        return IgnoredRow.HEADER

    if brand and model and _STATISTIC_RE.match(brand) and _STATISTIC_RE.match(model):
        return IgnoredRow.STATISTICS
    return None
