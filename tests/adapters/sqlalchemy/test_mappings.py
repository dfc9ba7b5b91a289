from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import inspect, select

from catalogsync.adapters.sqlalchemy import start_mappers
from catalogsync.adapters.sqlalchemy.mappings import catalog_item_table
from catalogsync.domain.model import CatalogItem
from tests.helpers.catalog import make_candidate

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine
    from sqlalchemy.orm import Session


def test_start_mappers_is_idempotent() -> None:
    assert start_mappers() is start_mappers()


def test_catalog_item_table_schema(sqlite_engine: Engine) -> None:
    inspector = inspect(sqlite_engine)

    columns = {column["name"] for column in inspector.get_columns("catalog_item")}
    indexes = {index["name"] for index in inspector.get_indexes("catalog_item")}

    assert columns == {
        "id",
        "identity_key",
        "brand",
        "model",
        "variant",
        "fields",
        "derived_fields",
        "overflow_fields",
        "created_at",
        "updated_at",
    }
    assert "ix_catalog_item_brand_model" in indexes


def test_catalog_item_persists_json_bags_and_utc_timestamps(sqlite_session: Session) -> None:
    item = CatalogItem.from_candidate(
        make_candidate(price=1_450_000, air_conditioner=True, overflow={"Dealer": "A"})
    )
    sqlite_session.add(item)
    sqlite_session.commit()
    sqlite_session.expunge_all()

    loaded = sqlite_session.execute(
        select(CatalogItem).where(catalog_item_table.c.identity_key == "kia|seltos|htx")
    ).scalar_one()

    assert loaded.id == item.id
    assert loaded.brand == "Kia"
    assert loaded.fields["air_conditioner"] is True
    assert loaded.derived_fields["features"] == ["Air Conditioner"]
    assert loaded.overflow_fields == {"Dealer": "A"}
    assert isinstance(loaded.created_at, datetime)
    assert loaded.created_at.tzinfo is not None
