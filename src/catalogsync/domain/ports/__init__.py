"""Domain ports (Protocols) implemented by adapters."""

from __future__ import annotations

from catalogsync.domain.ports.persistence import (
    CatalogItemRepository,
    SupportsBatchUpsert,
    SupportsCatalogSummary,
)
from catalogsync.domain.ports.unit_of_work import (
    CatalogRepositories,
    CatalogUnitOfWork,
    CatalogUnitOfWorkFactory,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "CatalogItemRepository",
    "CatalogRepositories",
    "CatalogUnitOfWork",
    "CatalogUnitOfWorkFactory",
    "RepositoryCollection",
    "SupportsBatchUpsert",
    "SupportsCatalogSummary",
    "UnitOfWork",
]
