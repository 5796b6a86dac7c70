"""
store/interface.py — the document store the ledger runs on.

The store is an external collaborator: collections of JSON-like documents
keyed by opaque string ids. Services only ever talk to this interface, so the
SQLAlchemy adapter can be swapped for a hosted document database or replaced
by a mock in unit tests.

Every document carries an integer version. update() accepts the version the
caller last read; if the stored version moved on, the write is refused with
VersionConflictError and nothing changes. Callers decide whether to re-read
and retry (see services/concurrency.py).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class StoredDocument:
    id: str
    collection: str
    body: dict
    version: int


class DocumentStore(ABC):

    @abstractmethod
    def list(
        self,
        collection: str,
        filters: Optional[dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> list[StoredDocument]:
        """
        Documents of `collection` whose top-level fields equal every value in
        `filters`, ordered by the top-level field `order_by`. No pagination.
        """

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> Optional[StoredDocument]:
        """The document, or None if it does not exist."""

    @abstractmethod
    def create(self, collection: str, body: dict) -> str:
        """Stores a new document at version 1 and returns its assigned id."""

    @abstractmethod
    def update(
        self,
        collection: str,
        doc_id: str,
        partial_body: dict,
        expected_version: Optional[int] = None,
    ) -> int:
        """
        Merges `partial_body` into the stored body (only supplied top-level
        fields change) and returns the new version.

        Raises:
            DocumentNotFoundError: the document does not exist.
            VersionConflictError:  expected_version is given and stale.
        """

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> None:
        """
        Raises:
            DocumentNotFoundError: the document does not exist.
        """


class StoreError(Exception):
    """Base exception for store operations."""


class DocumentNotFoundError(StoreError):
    """Document not found in the collection."""


class VersionConflictError(StoreError):
    """The document changed since the caller read it."""

    def __init__(self, collection: str, doc_id: str, expected: int, actual: int) -> None:
        super().__init__(
            f"{collection}/{doc_id}: expected version {expected}, found {actual}"
        )
        self.expected = expected
        self.actual = actual
