"""Column resolution: header rows to descriptors, plus per-row offset correction."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from catalogsync.domain.errors import ConfigurationError
from catalogsync.domain.model import ColumnDescriptor, ColumnMap, ColumnSource
from catalogsync.domain.tabular.identity import identity_part
from catalogsync.domain.tabular.locators import LocatorNaming, contains_locator, parse_locator
from catalogsync.domain.tabular.registry import default_registry, normalize_header
from catalogsync.domain.tabular.values import cell_text

if TYPE_CHECKING:
    from collections.abc import Sequence

    from catalogsync.domain.model import CellValue, RawRow
    from catalogsync.domain.tabular.registry import ColumnRegistry

log = logging.getLogger(__name__)

_FALLBACK_OFFSETS = (1, 2, -1)


def _bind_headers(
    headers: Sequence[str],
    registry: ColumnRegistry,
) -> dict[int, ColumnDescriptor | None]:
    bindings: dict[int, ColumnDescriptor | None] = {}
    bound: set[str] = set()
    for index, header in enumerate(headers):
        if not header:
            bindings[index] = None
            continue
        # A repeated header binds to the next descriptor listing it.
        descriptor = next(
            (
                candidate
                for candidate in registry.candidates_for_header(header)
                if candidate.canonical_name not in bound
            ),
            None,
        )
        if descriptor is not None:
            bound.add(descriptor.canonical_name)
        bindings[index] = descriptor
    return bindings


def _positional_bindings(
    headers: Sequence[str],
    registry: ColumnRegistry,
) -> dict[int, ColumnDescriptor | None]:
    bindings: dict[int, ColumnDescriptor | None] = dict.fromkeys(range(len(headers)))
    for descriptor in registry.positional:
        index = descriptor.positional_fallback_index
        if index is not None:
            bindings[index] = descriptor
    return dict(sorted(bindings.items()))


def resolve(
    header_row: Sequence[CellValue] | None,
    registry: ColumnRegistry | None = None,
) -> ColumnMap:
    """Map a header row to column descriptors.

    Exact alias matches win. When the header row is absent, blank or matches no
    alias at all, every descriptor falls back to its positional index.

    Raises ``ConfigurationError`` when a required field cannot be resolved.
    """

    registry = registry or default_registry()
    headers = tuple(normalize_header(cell) for cell in header_row or ())

    source = ColumnSource.HEADER
    bindings = _bind_headers(headers, registry) if any(headers) else {}
    if not any(descriptor is not None for descriptor in bindings.values()):
        if any(headers):
            log.warning("Header row matched no known columns; using positional layout")
        else:
            log.info("No header row; using positional layout")
        source = ColumnSource.POSITIONAL
        bindings = _positional_bindings(headers, registry)

    column_map = ColumnMap(bindings=bindings, headers=headers, source=source)
    resolved = column_map.resolved_names()
    missing = [d.canonical_name for d in registry.required if d.canonical_name not in resolved]
    if missing:
        raise ConfigurationError(
            f"Required column(s) could not be resolved: {', '.join(missing)}"
        )

    log.debug(
        "Resolved %d of %d columns (%s)",
        len(resolved),
        len(headers) or len(bindings),
        source.value,
    )
    return column_map


@dataclass(frozen=True, slots=True)
class OffsetDetection:
    """Column offset for one row; ``locator`` holds naming parsed from the misplaced URL."""

    offset: int = 0
    locator: LocatorNaming | None = None


NO_OFFSET = OffsetDetection()


def _plausible_brand(value: str) -> bool:
    return bool(value) and not contains_locator(value) and not value.isdigit()


def detect_offset(
    row: RawRow,
    column_map: ColumnMap,
    lookback: Sequence[int] = (),
) -> OffsetDetection:
    """Detect a per-row column shift.

    A row is considered shifted when its brand cell holds a locator. Candidate
    offsets are tried in order: offsets seen in ``lookback`` (most recent
    first), the distance between the brand and source URL columns, then small
    fixed shifts. A candidate is accepted when the shifted brand cell holds a
    plausible name; one agreeing with the locator's brand slug is preferred.

    Pure function of its arguments; the caller owns the lookback window.
    """

    brand_index = column_map.index_of("brand")
    if brand_index is None:
        return NO_OFFSET
    brand_cell = cell_text(row.cell(brand_index))
    if not contains_locator(brand_cell):
        return NO_OFFSET

    locator = parse_locator(brand_cell)
    candidates: list[int] = [offset for offset in reversed(lookback) if offset]
    source_index = column_map.index_of("source_url")
    if source_index is not None and source_index != brand_index:
        candidates.append(brand_index - source_index)
    candidates.extend(_FALLBACK_OFFSETS)

    fallback: int | None = None
    seen: set[int] = set()
    for offset in candidates:
        if offset in seen or brand_index + offset < 0:
            continue
        seen.add(offset)
        shifted_brand = cell_text(row.cell(brand_index + offset))
        if not _plausible_brand(shifted_brand):
            continue
        if locator is None or identity_part(shifted_brand) == identity_part(locator.brand):
            log.debug("Row %d shifted by %d column(s)", row.row_number, offset)
            return OffsetDetection(offset=offset, locator=locator)
        if fallback is None:
            fallback = offset

    if fallback is not None:
        log.debug("Row %d shifted by %d column(s) (unverified)", row.row_number, fallback)
        return OffsetDetection(offset=fallback, locator=locator)
    log.warning("Row %d has a locator in the brand column but no usable offset", row.row_number)
    return OffsetDetection(offset=0, locator=locator)
