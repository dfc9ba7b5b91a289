from __future__ import annotations

import pytest

from catalogsync.domain.errors import ConfigurationError
from catalogsync.domain.model import ColumnSource, RawRow
from catalogsync.domain.tabular import detect_offset, resolve
from tests.helpers.catalog import CATALOG_HEADER

SOURCE_URL = "https://www.carwale.com/kia-cars/seltos/htx/"


def test_resolve_binds_known_headers_and_leaves_unknown_unbound() -> None:
    column_map = resolve([*CATALOG_HEADER, "Dealer Notes"])

    assert column_map.source is ColumnSource.HEADER
    assert column_map.index_of("brand") == 2
    assert column_map.index_of("price") == 5
    assert column_map.index_of("key_fuel_type") == 6
    assert column_map.bindings[len(CATALOG_HEADER)] is None
    assert column_map.header_at(len(CATALOG_HEADER)) == "Dealer Notes"


def test_resolve_matches_machine_header_spellings() -> None:
    column_map = resolve(["naming-make", "naming-model", "naming-version"])

    assert column_map.index_of("brand") == 0
    assert column_map.index_of("model") == 1
    assert column_map.index_of("variant") == 2


def test_resolve_binds_repeated_header_to_successive_descriptors() -> None:
    column_map = resolve(["Make", "Model", "Engine", "Transmission", "Engine"])

    assert column_map.index_of("key_engine") == 2
    assert column_map.index_of("engine") == 4


def test_resolve_falls_back_to_positions_without_header() -> None:
    column_map = resolve(None)

    assert column_map.source is ColumnSource.POSITIONAL
    assert column_map.index_of("brand") == 2
    assert column_map.index_of("model") == 3
    assert column_map.index_of("ex_showroom_price") == 223


def test_resolve_falls_back_to_positions_when_nothing_matches() -> None:
    column_map = resolve(["foo", "bar", "baz", "qux"])

    assert column_map.source is ColumnSource.POSITIONAL
    assert column_map.index_of("brand") == 2


def test_resolve_requires_brand_and_model() -> None:
    with pytest.raises(ConfigurationError, match="model"):
        resolve(["Make", "Version", "Price"])


def _shifted_row(row_number: int = 5) -> RawRow:
    # Cells moved one column right: the source URL sits in the brand column.
    return RawRow(
        cells=("101", "", SOURCE_URL, "Kia", "Seltos", "HTX", "₹ 14.50 Lakh"),
        row_number=row_number,
    )


def test_detect_offset_leaves_regular_rows_alone() -> None:
    column_map = resolve(CATALOG_HEADER)
    row = RawRow(cells=("101", SOURCE_URL, "Kia", "Seltos", "HTX"), row_number=2)

    detection = detect_offset(row, column_map)

    assert detection.offset == 0
    assert detection.locator is None


def test_detect_offset_finds_shift_verified_by_locator() -> None:
    column_map = resolve(CATALOG_HEADER)

    detection = detect_offset(_shifted_row(), column_map)

    assert detection.offset == 1
    assert detection.locator is not None
    assert detection.locator.brand == "Kia"
    assert detection.locator.model == "Seltos"
    assert detection.locator.variant == "Htx"


def test_detect_offset_prefers_recent_offsets() -> None:
    column_map = resolve(CATALOG_HEADER)
    row = RawRow(
        cells=("101", "", SOURCE_URL, "x", "Kia", "Seltos", "HTX"),
        row_number=9,
    )

    detection = detect_offset(row, column_map, lookback=(1, 2))

    assert detection.offset == 2


def test_detect_offset_is_pure() -> None:
    column_map = resolve(CATALOG_HEADER)
    row = _shifted_row()

    assert detect_offset(row, column_map) == detect_offset(row, column_map)


def test_detect_offset_without_usable_candidate_keeps_locator() -> None:
    column_map = resolve(CATALOG_HEADER)
    row = RawRow(cells=("", "", SOURCE_URL), row_number=4)

    detection = detect_offset(row, column_map)

    assert detection.offset == 0
    assert detection.locator is not None
