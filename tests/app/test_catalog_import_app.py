from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from catalogsync.adapters.xlsx_rows import write_xlsx_rows
from catalogsync.app import (
    catalog_summary,
    import_catalog_file,
    import_catalog_rows,
    write_import_template,
)
from catalogsync.domain.errors import StoreError
from catalogsync.domain.model import ImportSettings, OutcomeAction
from tests.helpers.catalog import CATALOG_HEADER, FakeCatalogStore, catalog_row

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from catalogsync.adapters.sqlalchemy import SqlAlchemyCatalogUnitOfWork

CSV_TEXT = (
    "INDIA CAR DATABASE by Teoalida\n"
    "Version ID,Source URL,Make,Model,Version,Price,Fuel Type,Dealer Notes\n"
    '101,https://www.carwale.com/kia-cars/seltos/htx/,Kia,Seltos,HTX,"₹ 14.50 Lakh",Petrol,\n'
    "102,https://www.carwale.com/tata-cars/nexon/xz/,Tata,Nexon,XZ,8 Lakh,Diesel,call first\n"
)


def _write_csv(tmp_path: Path, text: str = CSV_TEXT) -> Path:
    path = tmp_path / "catalog.csv"
    path.write_text(text, encoding="utf-8")
    return path


def test_import_catalog_file_persists_and_is_idempotent(
    sqlite_unit_of_work: Callable[[], SqlAlchemyCatalogUnitOfWork],
    fast_settings: ImportSettings,
    tmp_path: Path,
) -> None:
    path = _write_csv(tmp_path)

    first = import_catalog_file(path, mode="strict", settings=fast_settings, skip_rows=1)
    second = import_catalog_file(path, mode="strict", settings=fast_settings, skip_rows=1)

    assert first.success
    assert first.inserted_count == 2
    assert [outcome.source_row for outcome in first.outcomes] == [3, 4]
    assert second.skipped_count == 2

    with sqlite_unit_of_work() as uow:
        seltos = uow.repositories.catalog_items.lookup("kia|seltos|htx")
        nexon = uow.repositories.catalog_items.lookup("tata|nexon|xz")
    assert seltos is not None
    assert seltos.fields["price"] == 1_450_000
    assert nexon is not None
    assert nexon.overflow_fields == {"Dealer Notes": "call first"}


def test_force_mode_reconciles_repeated_rows_within_a_chunk(
    sqlite_unit_of_work: Callable[[], SqlAlchemyCatalogUnitOfWork],
    fast_settings: ImportSettings,
) -> None:
    rows = [
        catalog_row(brand="Kia", model="Seltos", variant="HTX", price="14.5 Lakh"),
        catalog_row(brand="Kia", model="Seltos", variant="HTX", price="15 Lakh"),
    ]

    report = import_catalog_rows(rows, CATALOG_HEADER, mode="force", settings=fast_settings)

    assert [outcome.action for outcome in report.outcomes] == [
        OutcomeAction.INSERTED,
        OutcomeAction.UPDATED,
    ]
    with sqlite_unit_of_work() as uow:
        stored = uow.repositories.catalog_items.lookup("kia|seltos|htx")
    assert stored is not None
    assert stored.fields["price"] == 1_500_000
    assert stored.derived_fields["price_max"] == 1_500_000


def test_custom_registry_file_is_used(
    sqlite_unit_of_work: Callable[[], SqlAlchemyCatalogUnitOfWork],
    fast_settings: ImportSettings,
    tmp_path: Path,
) -> None:
    _ = sqlite_unit_of_work
    registry = tmp_path / "registry.toml"
    registry.write_text(
        "[groups.naming]\n"
        "columns = [\n"
        '  { name = "brand", kind = "text", headers = ["Marque"], required = true },\n'
        '  { name = "model", kind = "text", headers = ["Modele"], required = true },\n'
        '  { name = "price", kind = "numeric", headers = ["Prix"] },\n'
        "]\n",
        encoding="utf-8",
    )
    path = _write_csv(tmp_path, "Marque,Modele,Prix\nRenault,Kiger,6 Lakh\n")

    report = import_catalog_file(path, settings=fast_settings, registry_path=registry)

    assert report.inserted_count == 1
    assert report.outcomes[0].identity_key == "renault|kiger|"


def test_import_catalog_file_reads_workbooks(
    sqlite_unit_of_work: Callable[[], SqlAlchemyCatalogUnitOfWork],
    fast_settings: ImportSettings,
    tmp_path: Path,
) -> None:
    _ = sqlite_unit_of_work
    path = write_xlsx_rows(
        tmp_path / "catalog.xlsx",
        [
            CATALOG_HEADER,
            catalog_row(brand="Kia", model="Seltos", variant="HTX", price=1_450_000),
            catalog_row(brand="Tata", model="Nexon", variant="XZ", price="8 Lakh"),
        ],
        sheet_title="Cars",
    )

    report = import_catalog_file(path, settings=fast_settings, sheet="Cars")

    assert report.inserted_count == 2
    assert [outcome.source_row for outcome in report.outcomes] == [2, 3]


@pytest.mark.parametrize("filename", ["template.csv", "template.xlsx"])
def test_import_template_round_trips(
    sqlite_unit_of_work: Callable[[], SqlAlchemyCatalogUnitOfWork],
    fast_settings: ImportSettings,
    tmp_path: Path,
    filename: str,
) -> None:
    path = write_import_template(tmp_path / filename)

    report = import_catalog_file(path, mode="strict", settings=fast_settings)

    assert report.success
    assert report.inserted_count == 1
    with sqlite_unit_of_work() as uow:
        stored = uow.repositories.catalog_items.lookup("bmw|3series|320dluxuryedition")
    assert stored is not None
    assert stored.fields["price"] == 5_088_000
    assert stored.fields["key_engine"] == "1995 cc"


def test_catalog_summary_reports_imported_items(
    sqlite_unit_of_work: Callable[[], SqlAlchemyCatalogUnitOfWork],
    fast_settings: ImportSettings,
    tmp_path: Path,
) -> None:
    import_catalog_file(_write_csv(tmp_path), settings=fast_settings, skip_rows=1)

    summary = catalog_summary(unit_of_work_factory=sqlite_unit_of_work)

    assert summary.total == 2
    assert summary.by_brand == {"Kia": 1, "Tata": 1}
    assert {item.identity_key for item in summary.recent} == {"kia|seltos|htx", "tata|nexon|xz"}


def test_catalog_summary_requires_a_summarising_repository() -> None:
    store = FakeCatalogStore()

    with pytest.raises(StoreError, match="cannot summarise"):
        catalog_summary(unit_of_work_factory=store.unit_of_work)
