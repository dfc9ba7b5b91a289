from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine

from catalogsync.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyCatalogUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)
from tests.helpers.catalog import make_candidate

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.engine import Engine


@pytest.fixture(autouse=True)
def reset_unit_of_work_state() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


def test_sqlalchemy_unit_of_work_requires_startup() -> None:
    with pytest.raises(StartupError):
        SqlAlchemyCatalogUnitOfWork()


def test_startup_requires_force_for_reconfiguration() -> None:
    engine_a = create_engine("sqlite+pysqlite:///:memory:", future=True)
    engine_b = create_engine("sqlite+pysqlite:///:memory:", future=True)

    startup(engine=engine_a, force=True)

    with pytest.raises(StartupError):
        startup(engine=engine_b)

    startup(engine=engine_b, force=True)
    assert configured_engine() is engine_b
    assert is_started()


def test_unit_of_work_commits_writes(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with SqlAlchemyCatalogUnitOfWork() as uow:
        uow.repositories.catalog_items.insert(make_candidate(price=1_450_000))
        uow.commit()

    with SqlAlchemyCatalogUnitOfWork() as uow:
        existing = uow.repositories.catalog_items.lookup("kia|seltos|htx")

    assert existing is not None
    assert existing.fields["price"] == 1_450_000


def test_unit_of_work_rolls_back_on_error(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with pytest.raises(RuntimeError), SqlAlchemyCatalogUnitOfWork() as uow:
        uow.repositories.catalog_items.insert(make_candidate())
        raise RuntimeError("boom")

    with SqlAlchemyCatalogUnitOfWork() as uow:
        assert uow.repositories.catalog_items.lookup("kia|seltos|htx") is None


def test_repositories_require_an_open_session(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    uow = SqlAlchemyCatalogUnitOfWork()

    with pytest.raises(StartupError):
        _ = uow.repositories
