"""Documents table — storage for the groups, debts and transactions collections.

Revision: 001_documents_table
Created:  2026-10-19

Append-only: never edit this file once it has been applied to a database.
Schema changes go in a new revision.

The ledger data lives in JSON bodies; only the columns the store filters or
compares on directly are real columns:
  id          opaque string id assigned by the store
  collection  'groups' | 'debts' | 'transactions'
  version     compare-and-swap token, starts at 1
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision: str = "001_documents_table"
down_revision: str | None = None
branch_labels: tuple | None = None
depends_on: tuple | None = None


def upgrade() -> None:
    op.create_table(
        "documents",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("collection", sa.String(64), nullable=False),
        sa.Column("body", sa.JSON(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.CheckConstraint("version >= 1", name="ck_documents_version_positive"),
    )
    op.create_index("idx_documents_collection", "documents", ["collection"])


def downgrade() -> None:
    op.drop_index("idx_documents_collection", table_name="documents")
    op.drop_table("documents")
