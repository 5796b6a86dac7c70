"""
services/concurrency.py — optimistic read-modify-write over the document store.

A group's member balances and expense list, or a debt's paid amount, are
rewritten whole from a snapshot. Two writers working from the same snapshot
would lose one update, so every write carries the version it was computed
from and the loser re-reads and recomputes.

Layer rules:
  - No Flask imports. The retry budget is passed in by the route.
  - `mutate` must be pure with respect to the store: it may raise (e.g. a
    ValidationError), which aborts the loop with nothing written.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from finledger.app.errors import AppError, ErrorCode
from finledger.app.store.interface import DocumentStore, StoredDocument, VersionConflictError

logger = logging.getLogger(__name__)


def read_modify_write(
        store: DocumentStore,
        collection: str,
        doc_id: str,
        mutate: Callable[[StoredDocument], Optional[dict]],
        max_attempts: int,
        not_found: Callable[[], AppError],
) -> StoredDocument:
    """
    Reads `doc_id`, asks `mutate` for a partial body, and writes it back with
    the version that was read.

    `mutate` returns the fields to merge, or None to leave the document as is.
    Returns the document as written (or as read, if nothing was written).

    Raises:
        not_found()                  — the document does not exist.
        AppError(WRITE_CONFLICT, 409) — still conflicting after max_attempts.
    """
    for attempt in range(1, max(max_attempts, 1) + 1):
        doc = store.get(collection, doc_id)
        if doc is None:
            raise not_found()

        changes = mutate(doc)
        if changes is None:
            return doc

        try:
            new_version = store.update(
                collection, doc_id, changes, expected_version=doc.version,
            )
        except VersionConflictError as exc:
            logger.warning(
                "Write conflict on %s/%s (attempt %d of %d): %s",
                collection, doc_id, attempt, max_attempts, exc,
            )
            continue

        return StoredDocument(
            id=doc.id,
            collection=collection,
            body={**doc.body, **changes},
            version=new_version,
        )

    raise AppError(
        ErrorCode.WRITE_CONFLICT,
        f"{collection}/{doc_id} kept changing while this request was applied. "
        "Please retry.",
        409,
    )
