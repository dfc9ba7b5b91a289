from __future__ import annotations

import pytest

from catalogsync.domain import catalog_import
from catalogsync.domain.catalog_import import import_rows
from catalogsync.domain.errors import ConfigurationError
from catalogsync.domain.model import ChangedField, ImportMode, ImportSettings, OutcomeAction
from tests.helpers.catalog import CATALOG_HEADER, FakeCatalogStore, catalog_row

SELTOS_URL = "https://www.carwale.com/kia-cars/seltos/htx/"


def _settings(**overrides: object) -> ImportSettings:
    values: dict[str, object] = {"chunk_size": 100, "inter_chunk_pause_seconds": 0}
    values.update(overrides)
    return ImportSettings(**values)  # type: ignore[arg-type]


def _import(
    store: FakeCatalogStore,
    rows: list[list[object]],
    mode: ImportMode = ImportMode.STRICT,
    **settings: object,
):
    return import_rows(
        rows,  # type: ignore[arg-type]
        CATALOG_HEADER,
        mode,
        unit_of_work_factory=store.unit_of_work,
        settings=_settings(**settings),
    )


def test_import_parses_lakh_prices() -> None:
    store = FakeCatalogStore()

    row = catalog_row(brand="Kia", model="Seltos", variant="HTX", price="₹ 14.50 Lakh")

    report = _import(store, [row])

    assert report.success
    assert report.inserted_count == 1
    assert store.items["kia|seltos|htx"].fields["price"] == 1_450_000
    assert report.outcomes[0].source_row == 2


def test_import_inserts_skips_and_updates() -> None:
    store = FakeCatalogStore()
    _import(
        store,
        [
            catalog_row(brand="Kia", model="Sonet", variant="HTE", price="9 Lakh"),
            catalog_row(brand="Kia", model="Seltos", variant="HTX", price="₹ 14.50 Lakh"),
        ],
    )

    report = _import(
        store,
        [
            catalog_row(brand="Kia", model="Carens", variant="Premium", price="11 Lakh"),
            catalog_row(brand="Kia", model="Sonet", variant="HTE", price="9 Lakh"),
            catalog_row(brand="Kia", model="Seltos", variant="HTX", price="15 Lakh"),
        ],
    )

    assert [outcome.action for outcome in report.outcomes] == [
        OutcomeAction.INSERTED,
        OutcomeAction.SKIPPED,
        OutcomeAction.UPDATED,
    ]
    assert report.outcomes[2].changed_fields == (ChangedField("price", 1_450_000, 1_500_000),)
    assert (report.inserted_count, report.skipped_count, report.updated_count) == (1, 1, 1)
    assert store.items["kia|seltos|htx"].derived_fields["price_max"] == 1_500_000


def test_reimporting_the_same_rows_changes_nothing() -> None:
    store = FakeCatalogStore()
    seltos = catalog_row(
        brand="Kia", model="Seltos", variant="HTX", price="14.5 Lakh", fuel_type="Petrol"
    )
    rows = [
        seltos,
        catalog_row(brand="Tata", model="Nexon", variant="XZ", air_conditioner="Yes"),
    ]
    _import(store, rows)

    report = _import(store, rows)

    assert report.skipped_count == 2
    assert report.inserted_count == report.updated_count == 0


def test_blank_cells_never_clear_stored_values() -> None:
    store = FakeCatalogStore()
    seltos = catalog_row(
        brand="Kia", model="Seltos", variant="HTX", price="14.5 Lakh", fuel_type="Petrol"
    )
    _import(store, [seltos])

    report = _import(store, [catalog_row(brand="Kia", model="Seltos", variant="HTX", price="-")])

    assert report.outcomes[0].action is OutcomeAction.SKIPPED
    stored = store.items["kia|seltos|htx"].fields
    assert stored["price"] == 1_450_000
    assert stored["key_fuel_type"] == "Petrol"


def test_shifted_rows_are_corrected_per_row() -> None:
    store = FakeCatalogStore()
    shifted = [
        "101", "", SELTOS_URL, "Kia", "Seltos", "HTX", "₹ 14.50 Lakh", "Petrol", "Yes", "5"
    ]
    regular = catalog_row(brand="Tata", model="Nexon", variant="XZ", price="8 Lakh")

    report = _import(store, [shifted, regular])

    assert report.success
    assert report.inserted_count == 2
    seltos = store.items["kia|seltos|htx"]
    assert seltos.fields["price"] == 1_450_000
    assert seltos.fields["key_fuel_type"] == "Petrol"
    assert seltos.overflow_fields == {"column_0": "101"}
    assert store.items["tata|nexon|xz"].fields["price"] == 800_000


def test_missing_brand_is_an_error_in_force_mode() -> None:
    store = FakeCatalogStore()

    report = _import(
        store,
        [
            catalog_row(brand="", model="Seltos", variant="HTX", price="14 Lakh"),
            catalog_row(brand="Kia", model="Sonet", variant="HTE"),
        ],
        ImportMode.FORCE,
    )

    assert [outcome.action for outcome in report.outcomes] == [
        OutcomeAction.ERROR,
        OutcomeAction.INSERTED,
    ]
    assert "missing identity key" in report.outcomes[0].message
    assert report.outcomes[0].identity_key == ""
    assert report.success


def test_strict_mode_writes_nothing_when_validation_fails() -> None:
    store = FakeCatalogStore()

    report = _import(
        store,
        [
            catalog_row(brand="Kia", model="Seltos", variant="HTX"),
            catalog_row(brand="Kia", model="Seltos", variant="HTX"),
            catalog_row(brand="", model="Nexon"),
        ],
    )

    assert not report.success
    assert report.error == "validation failed: 1 invalid, 1 duplicate record(s)"
    assert report.error_count == 3
    assert [outcome.message for outcome in report.outcomes] == [
        "not attempted (validation failed)",
        "duplicate identity key 'kia|seltos|htx' in batch",
        "brand is required",
    ]
    assert report.validation is not None
    assert store.units_of_work == 0
    assert store.items == {}


def test_non_data_rows_are_ignored() -> None:
    store = FakeCatalogStore()

    report = _import(
        store,
        [
            ["INDIA CAR DATABASE by Teoalida"],
            list(CATALOG_HEADER),
            [],
            catalog_row(brand="Kia", model="Seltos", variant="HTX"),
        ],
    )

    assert report.rows_ignored == 3
    assert report.total_processed == 1
    assert report.outcomes[0].source_row == 5


def test_failing_chunk_is_isolated() -> None:
    store = FakeCatalogStore(failing_commits={2})
    rows = [catalog_row(brand="Kia", model="Seltos", variant=f"V{index}") for index in range(5)]

    report = _import(store, rows, chunk_size=2)

    assert [outcome.action for outcome in report.outcomes] == [
        OutcomeAction.INSERTED,
        OutcomeAction.INSERTED,
        OutcomeAction.ERROR,
        OutcomeAction.ERROR,
        OutcomeAction.INSERTED,
    ]
    assert len(store.items) == 3


def test_unresolvable_sheet_raises_configuration_error() -> None:
    store = FakeCatalogStore()

    with pytest.raises(ConfigurationError):
        import_rows(
            [["Kia", "HTX"]],
            ["Make", "Version"],
            unit_of_work_factory=store.unit_of_work,
        )


def test_unexpected_failure_still_returns_a_report(monkeypatch: pytest.MonkeyPatch) -> None:
    store = FakeCatalogStore()

    def explode(*_: object, **__: object) -> None:
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(catalog_import.BatchCommitter, "commit", explode)

    report = _import(store, [catalog_row(brand="Kia", model="Seltos")])

    assert not report.success
    assert report.error == "store unavailable"
    assert report.outcomes[0].action is OutcomeAction.ERROR


def test_rows_without_header_use_positional_layout() -> None:
    store = FakeCatalogStore()
    row: list[object] = [""] * 9
    row[2], row[3], row[4], row[8] = "Kia", "Seltos", "HTX", "₹ 14.50 Lakh"

    report = import_rows(
        [row],  # type: ignore[list-item]
        None,
        unit_of_work_factory=store.unit_of_work,
        settings=_settings(),
    )

    assert report.inserted_count == 1
    assert report.outcomes[0].source_row == 1
    assert store.items["kia|seltos|htx"].fields["price"] == 1_450_000


def test_infinite_price_cell_is_dropped_not_fatal() -> None:
    store = FakeCatalogStore()

    report = _import(
        store,
        [
            catalog_row(brand="Kia", model="Seltos", variant="HTX", price=float("inf")),
            catalog_row(brand="Kia", model="Sonet", variant="HTE", price="9 Lakh"),
        ],
    )

    assert report.success
    assert report.inserted_count == 2
    assert "price" not in store.items["kia|seltos|htx"].fields
    assert store.items["kia|sonet|hte"].fields["price"] == 900_000


def test_row_that_cannot_be_built_becomes_an_error(monkeypatch: pytest.MonkeyPatch) -> None:
    store = FakeCatalogStore()
    real_build = catalog_import.build

    def build_or_fail(row, *args, **kwargs):  # type: ignore[no-untyped-def]
        if row.row_number == 2:
            raise OverflowError("cannot convert Infinity to integer")
        return real_build(row, *args, **kwargs)

    monkeypatch.setattr(catalog_import, "build", build_or_fail)

    report = _import(
        store,
        [
            catalog_row(brand="Kia", model="Seltos", variant="HTX"),
            catalog_row(brand="Kia", model="Sonet", variant="HTE"),
        ],
        mode=ImportMode.FORCE,
    )

    assert [outcome.action for outcome in report.outcomes] == [
        OutcomeAction.ERROR,
        OutcomeAction.INSERTED,
    ]
    assert report.outcomes[0].source_row == 2
    assert list(store.items) == ["kia|sonet|hte"]
