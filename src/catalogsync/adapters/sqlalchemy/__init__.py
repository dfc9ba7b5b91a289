"""SQLAlchemy adapter package for catalogsync."""

from __future__ import annotations

from .mappings import catalog_item_table, create_all_tables, mapper_registry, start_mappers
from .repositories import SqlAlchemyCatalogItemRepository
from .unit_of_work import (
    SqlAlchemyCatalogUnitOfWork,
    StartupError,
    enable_sqlite_savepoints,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyCatalogItemRepository",
    "SqlAlchemyCatalogUnitOfWork",
    "StartupError",
    "catalog_item_table",
    "create_all_tables",
    "enable_sqlite_savepoints",
    "is_started",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
