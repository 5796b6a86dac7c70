"""
store/sql_store.py — DocumentStore over the SQLAlchemy `documents` table.

Layer rules:
  - Receives a SQLAlchemy Session; never commits. Commits are the route's
    responsibility — only flush here.
  - Filters and ordering use JSON path expressions on the body column, which
    SQLAlchemy renders for SQLite, PostgreSQL and MySQL alike.

The compare-and-swap is a single UPDATE ... WHERE version = :expected. Under
concurrent requests the losing writer matches zero rows and gets
VersionConflictError instead of silently overwriting the winner.
"""

from __future__ import annotations

import uuid
from typing import Any, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from finledger.app.models.document import Document
from finledger.app.store.interface import (
    DocumentNotFoundError,
    DocumentStore,
    StoredDocument,
    VersionConflictError,
)


def _to_stored(row: Document) -> StoredDocument:
    return StoredDocument(
        id=row.id,
        collection=row.collection,
        body=dict(row.body or {}),
        version=row.version,
    )


def _field_equals(name: str, value: Any):
    """JSON body field comparison, typed by the Python value."""
    element = Document.body[name]
    if isinstance(value, bool):
        return element.as_boolean() == value
    if isinstance(value, (int, float)):
        return element.as_float() == float(value)
    return element.as_string() == str(value)


class SqlDocumentStore(DocumentStore):

    def __init__(self, session: Session) -> None:
        self.session = session

    def _get_row(self, collection: str, doc_id: str) -> Optional[Document]:
        # populate_existing: a retry after a conflict must see the committed row,
        # not the stale instance in this session's identity map.
        stmt = (
            select(Document)
            .where(Document.id == doc_id, Document.collection == collection)
            .execution_options(populate_existing=True)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def list(
        self,
        collection: str,
        filters: Optional[dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> list[StoredDocument]:
        stmt = select(Document).where(Document.collection == collection)
        for name, value in (filters or {}).items():
            stmt = stmt.where(_field_equals(name, value))

        if order_by is not None:
            key = Document.body[order_by].as_string()
            stmt = stmt.order_by(key.desc() if descending else key.asc())

        rows = self.session.execute(stmt).scalars().all()
        return [_to_stored(r) for r in rows]

    def get(self, collection: str, doc_id: str) -> Optional[StoredDocument]:
        row = self._get_row(collection, doc_id)
        return _to_stored(row) if row is not None else None

    def create(self, collection: str, body: dict) -> str:
        doc_id = uuid.uuid4().hex
        self.session.add(
            Document(id=doc_id, collection=collection, body=dict(body), version=1)
        )
        self.session.flush()
        return doc_id

    def update(
        self,
        collection: str,
        doc_id: str,
        partial_body: dict,
        expected_version: Optional[int] = None,
    ) -> int:
        row = self._get_row(collection, doc_id)
        if row is None:
            raise DocumentNotFoundError(f"{collection}/{doc_id} does not exist")

        base_version = row.version if expected_version is None else expected_version
        if row.version != base_version:
            raise VersionConflictError(collection, doc_id, base_version, row.version)

        merged = {**(row.body or {}), **partial_body}
        result = self.session.execute(
            update(Document)
            .where(
                Document.id == doc_id,
                Document.collection == collection,
                Document.version == base_version,
            )
            .values(body=merged, version=base_version + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            current = self._get_row(collection, doc_id)
            actual = current.version if current is not None else -1
            raise VersionConflictError(collection, doc_id, base_version, actual)

        self.session.flush()
        return base_version + 1

    def delete(self, collection: str, doc_id: str) -> None:
        row = self._get_row(collection, doc_id)
        if row is None:
            raise DocumentNotFoundError(f"{collection}/{doc_id} does not exist")
        self.session.delete(row)
        self.session.flush()
