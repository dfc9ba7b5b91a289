"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from catalogsync.adapters.sqlalchemy.mappings import catalog_item_table
from catalogsync.domain.errors import StoreError, StoreTimeoutError
from catalogsync.domain.model import CatalogItem, CatalogSummary

if TYPE_CHECKING:
    import uuid
    from collections.abc import Iterator
    from datetime import datetime

    from sqlalchemy.orm import Session

    from catalogsync.domain.model import CandidateRecord, ExistingRecord, RecordChanges


@contextmanager
def _store_errors(operation: str, identity_key: str | None = None) -> Iterator[None]:
    try:
        yield
    except PoolTimeoutError as exc:
        raise StoreTimeoutError(f"{operation} timed out: {exc}", identity_key=identity_key) from exc
    except SQLAlchemyError as exc:
        raise StoreError(f"{operation} failed: {exc}", identity_key=identity_key) from exc


class SqlAlchemyCatalogItemRepository:
    """Catalog item store; every write runs inside its own SAVEPOINT."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def _get_by_key(self, identity_key: str) -> CatalogItem | None:
        stmt = select(CatalogItem).where(catalog_item_table.c.identity_key == identity_key)
        return self.session.execute(stmt).scalar_one_or_none()

    def lookup(self, identity_key: str) -> ExistingRecord | None:
        with _store_errors("lookup", identity_key):
            item = self._get_by_key(identity_key)
        return item.to_existing() if item is not None else None

    def insert(self, record: CandidateRecord) -> uuid.UUID:
        item = CatalogItem.from_candidate(record)
        with _store_errors("insert", record.identity_key), self.session.begin_nested():
            self.session.add(item)
            self.session.flush()
        return item.id

    def update(self, record_id: uuid.UUID, changes: RecordChanges) -> None:
        with _store_errors("update"), self.session.begin_nested():
            item = self.session.get(CatalogItem, record_id)
            if item is None:
                raise StoreError(f"catalog item {record_id} does not exist")
            item.apply(changes)
            self.session.flush()

    def get(self, identity_key: str) -> CatalogItem | None:
        """Return the mapped entity for ``identity_key`` (used by tooling and tests)."""

        with _store_errors("get", identity_key):
            return self._get_by_key(identity_key)

    def count(self) -> int:
        with _store_errors("count"):
            stmt = select(func.count()).select_from(catalog_item_table)
            return self.session.execute(stmt).scalar_one()

    def summarize(self, *, recent_limit: int, since: datetime) -> CatalogSummary:
        brand = catalog_item_table.c.brand
        created_at = catalog_item_table.c.created_at
        with _store_errors("summarize"):
            by_brand_stmt = (
                select(brand, func.count()).group_by(brand).order_by(func.count().desc(), brand)
            )
            by_brand = dict(self.session.execute(by_brand_stmt).tuples().all())
            recent_stmt = (
                select(CatalogItem)
                .where(created_at >= since)
                .order_by(created_at.desc())
                .limit(recent_limit)
            )
            recent = tuple(self.session.execute(recent_stmt).scalars())
        return CatalogSummary(total=sum(by_brand.values()), by_brand=by_brand, recent=recent)
