"""
models/document.py — the single `documents` table behind SqlDocumentStore.

Each row is one document of one collection ('groups', 'debts', 'transactions').
The body is stored as JSON exactly as services write it (camelCase keys,
ISO-8601 timestamp strings set by the caller).

Key design points:
  - `id` is an opaque string assigned by the store on create.
  - `version` starts at 1 and is bumped on every update. Updates that carry an
    expected version use it as a compare-and-swap token.
  - No business logic. No imports from services or routes.
"""

from __future__ import annotations

from sqlalchemy import JSON, CheckConstraint, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from finledger.app.extensions import db


class Document(db.Model):
    __tablename__ = "documents"

    __table_args__ = (
        Index("idx_documents_collection", "collection"),
        CheckConstraint("version >= 1", name="ck_documents_version_positive"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    collection: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )

    body: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
    )

    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Document id={self.id!r} "
            f"collection={self.collection!r} "
            f"version={self.version}>"
        )
