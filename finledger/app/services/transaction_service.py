"""
services/transaction_service.py — a user's income and expense entries.

Plain CRUD over the `transactions` collection. Transactions never take part in
the group ledger, so writes are last-writer-wins without a version check.
"""

from __future__ import annotations

import logging

from finledger.app.errors import AppError, ErrorCode, ValidationError
from finledger.app.ledger.aggregates import filter_transactions, sum_transactions
from finledger.app.models.identity import Identity
from finledger.app.models.transaction import PaymentMethod, Transaction, TransactionType
from finledger.app.services.group_service import now_iso
from finledger.app.store.interface import DocumentNotFoundError, DocumentStore

logger = logging.getLogger(__name__)

TRANSACTIONS = "transactions"


def _transaction_not_found(transaction_id: str) -> AppError:
    return AppError(
        ErrorCode.TRANSACTION_NOT_FOUND,
        f"Transaction {transaction_id} does not exist.",
        404,
    )


def _validate_amount(amount: float) -> None:
    if amount <= 0:
        raise ValidationError(
            ErrorCode.INVALID_AMOUNT,
            "Transaction amount must be greater than zero.",
            field="amount",
        )


def _load_owned(transaction_id: str, caller: Identity, store: DocumentStore) -> Transaction:
    doc = store.get(TRANSACTIONS, transaction_id)
    if doc is None:
        raise _transaction_not_found(transaction_id)
    transaction = Transaction.from_document(doc.id, doc.body)
    if transaction.user_id != caller.user_id:
        raise _transaction_not_found(transaction_id)
    return transaction


def create_transaction(caller: Identity, data: dict, store: DocumentStore) -> Transaction:
    _validate_amount(data["amount"])
    timestamp = now_iso()
    transaction = Transaction(
        id="",
        user_id=caller.user_id,
        amount=data["amount"],
        type=TransactionType(data["type"]),
        method=PaymentMethod(data.get("method") or PaymentMethod.CASH),
        category=data["category"].strip(),
        date=data["date"].isoformat(),
        notes=(data.get("notes") or "").strip() or None,
        created_at=timestamp,
        updated_at=timestamp,
    )
    transaction_id = store.create(TRANSACTIONS, transaction.to_document())
    logger.info("Created %s transaction %s", transaction.type.value, transaction_id)
    return Transaction.from_document(transaction_id, transaction.to_document())


def list_transactions(caller: Identity, store: DocumentStore) -> list[Transaction]:
    """The caller's transactions, most recent date first."""
    docs = store.list(
        TRANSACTIONS,
        filters={"userId": caller.user_id},
        order_by="date",
        descending=True,
    )
    return [Transaction.from_document(d.id, d.body) for d in docs]


def search_transactions(caller: Identity, query: dict, store: DocumentStore) -> dict:
    """
    The caller's transactions narrowed by the filters in `query`
    (TransactionQuerySchema), with income/expense totals of the matching set.

    `categories` lists every category the caller has used, so clients can
    offer a category filter that does not shrink as filters are applied.
    """
    transactions = list_transactions(caller, store)
    matched = filter_transactions(
        transactions,
        search=query.get("search"),
        type=query.get("type"),
        method=query.get("method"),
        category=query.get("category"),
        since=query.get("date_from"),
        until=query.get("date_to"),
    )
    return {
        "transactions": [t.to_dict() for t in matched],
        "totalIncome": sum_transactions(matched, TransactionType.INCOME),
        "totalExpenses": sum_transactions(matched, TransactionType.EXPENSE),
        "categories": sorted({t.category for t in transactions}),
    }


def update_transaction(
        transaction_id: str,
        caller: Identity,
        data: dict,
        store: DocumentStore,
) -> Transaction:
    """Only the supplied fields change."""
    _load_owned(transaction_id, caller, store)

    changes: dict = {}
    if "amount" in data:
        _validate_amount(data["amount"])
        changes["amount"] = data["amount"]
    if "type" in data:
        changes["type"] = TransactionType(data["type"]).value
    if "method" in data:
        changes["method"] = PaymentMethod(data["method"]).value
    if "category" in data:
        changes["category"] = data["category"].strip()
    if "date" in data:
        changes["date"] = data["date"].isoformat()
    if "notes" in data:
        changes["notes"] = (data["notes"] or "").strip() or None
    changes["updatedAt"] = now_iso()

    try:
        store.update(TRANSACTIONS, transaction_id, changes)
    except DocumentNotFoundError:
        raise _transaction_not_found(transaction_id)

    doc = store.get(TRANSACTIONS, transaction_id)
    if doc is None:
        raise _transaction_not_found(transaction_id)
    return Transaction.from_document(doc.id, doc.body)


def delete_transaction(transaction_id: str, caller: Identity, store: DocumentStore) -> None:
    _load_owned(transaction_id, caller, store)
    try:
        store.delete(TRANSACTIONS, transaction_id)
    except DocumentNotFoundError:
        raise _transaction_not_found(transaction_id)
    logger.info("Deleted transaction %s", transaction_id)
