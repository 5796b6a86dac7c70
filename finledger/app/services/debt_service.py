"""
services/debt_service.py — individual debts and their partial settlement.

A Debt belongs to exactly one user (userId). Other users get DEBT_NOT_FOUND
rather than FORBIDDEN, so debt ids do not leak across accounts.

Payment flow (one read-modify-write of the Debt document):
  1. Read the debt and check ownership.
  2. Reject a replayed idempotency key (DUPLICATE_PAYMENT) and payments on a
     settled debt (DEBT_ALREADY_SETTLED).
  3. Accumulator: new paidAmount / isSettled.
  4. Write paidAmount, isSettled and the payment log with the version read.

Layer rules:
  - No Flask imports. Receives the caller Identity and a DocumentStore.
  - Commits are the route's responsibility.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from finledger.app.errors import AppError, ErrorCode, ValidationError
from finledger.app.ledger.debt_settlement import PAYMENT_EPSILON, PaymentOutcome, apply_payment
from finledger.app.models.debt import Debt, DebtType, Payment
from finledger.app.models.identity import Identity
from finledger.app.services.concurrency import read_modify_write
from finledger.app.services.group_service import now_iso
from finledger.app.store.interface import DocumentNotFoundError, DocumentStore

logger = logging.getLogger(__name__)

DEBTS = "debts"

# Schema keys that map one-to-one onto Debt document fields.
_EDITABLE_FIELDS = {
    "creditor_name":    "creditorName",
    "creditor_user_id": "creditorUserId",
    "description":      "description",
    "due_date":         "dueDate",
}


def _debt_not_found(debt_id: str) -> AppError:
    return AppError(
        ErrorCode.DEBT_NOT_FOUND,
        f"Debt {debt_id} does not exist.",
        404,
    )


def _owned_debt(doc, caller: Identity) -> Debt:
    debt = Debt.from_document(doc.id, doc.body, doc.version)
    if debt.user_id != caller.user_id:
        raise _debt_not_found(doc.id)
    return debt


def _validate_amount(amount: float) -> None:
    if amount <= 0:
        raise ValidationError(
            ErrorCode.INVALID_AMOUNT,
            "Debt amount must be greater than zero.",
            field="amount",
        )


def _iso(value) -> str | None:
    if value is None:
        return None
    return value.isoformat() if hasattr(value, "isoformat") else str(value)


def _edited_value(key: str, value):
    if key == "due_date":
        return _iso(value)
    if key in ("creditor_name", "description"):
        return (value or "").strip()
    return value


# ── CRUD ───────────────────────────────────────────────────────────────────

def create_debt(caller: Identity, data: dict, store: DocumentStore) -> Debt:
    """
    Args:
        data: Validated dict from CreateDebtSchema.

    Raises:
        ValidationError(INVALID_AMOUNT) — amount <= 0
    """
    _validate_amount(data["amount"])

    timestamp = now_iso()
    debt = Debt(
        id="",
        user_id=caller.user_id,
        creditor_name=data["creditor_name"].strip(),
        amount=data["amount"],
        type=DebtType(data["type"]),
        description=(data.get("description") or "").strip(),
        due_date=_iso(data.get("due_date")),
        creditor_user_id=data.get("creditor_user_id") or None,
        created_at=timestamp,
        updated_at=timestamp,
    )
    debt_id = store.create(DEBTS, debt.to_document())
    logger.info("Created debt %s (%.2f, %s)", debt_id, debt.amount, debt.type.value)
    return replace(debt, id=debt_id, version=1)


def list_debts(caller: Identity, store: DocumentStore) -> list[Debt]:
    """The caller's debts, newest first."""
    docs = store.list(
        DEBTS,
        filters={"userId": caller.user_id},
        order_by="createdAt",
        descending=True,
    )
    return [Debt.from_document(d.id, d.body, d.version) for d in docs]


def get_debt(debt_id: str, caller: Identity, store: DocumentStore) -> Debt:
    doc = store.get(DEBTS, debt_id)
    if doc is None:
        raise _debt_not_found(debt_id)
    return _owned_debt(doc, caller)


def update_debt(
        debt_id: str,
        caller: Identity,
        data: dict,
        store: DocumentStore,
        max_attempts: int,
) -> Debt:
    """
    Edits the descriptive fields, the type, or the principal.

    Raising the amount reopens a debt that was settled by payment; a debt
    settled explicitly (paidAmount short of the old amount) stays settled.

    Raises:
        ValidationError(INVALID_AMOUNT)     — amount <= 0
        ValidationError(AMOUNT_BELOW_PAID)  — amount < paidAmount
    """
    if "amount" in data:
        _validate_amount(data["amount"])

    def mutate(doc):
        debt = _owned_debt(doc, caller)
        changes = {
            doc_key: _edited_value(key, data[key])
            for key, doc_key in _EDITABLE_FIELDS.items()
            if key in data
        }
        if "type" in data:
            changes["type"] = DebtType(data["type"]).value

        if "amount" in data:
            amount = data["amount"]
            if amount + PAYMENT_EPSILON < debt.paid_amount:
                raise ValidationError(
                    ErrorCode.AMOUNT_BELOW_PAID,
                    f"Amount {amount:.2f} is below the {debt.paid_amount:.2f} already paid.",
                    field="amount",
                )
            changes["amount"] = amount
            paid_off = debt.paid_amount >= amount - PAYMENT_EPSILON
            marked_settled = debt.is_settled and debt.paid_amount < debt.amount - PAYMENT_EPSILON
            changes["isSettled"] = paid_off or marked_settled

        if not changes:
            return None
        changes["updatedAt"] = now_iso()
        return changes

    doc = read_modify_write(
        store, DEBTS, debt_id, mutate, max_attempts,
        not_found=lambda: _debt_not_found(debt_id),
    )
    return Debt.from_document(doc.id, doc.body, doc.version)


def delete_debt(debt_id: str, caller: Identity, store: DocumentStore) -> None:
    get_debt(debt_id, caller, store)
    try:
        store.delete(DEBTS, debt_id)
    except DocumentNotFoundError:
        raise _debt_not_found(debt_id)
    logger.info("Deleted debt %s", debt_id)


# ── Settlement ─────────────────────────────────────────────────────────────

def record_payment(
        debt_id: str,
        caller: Identity,
        data: dict,
        store: DocumentStore,
        max_attempts: int,
) -> tuple[Debt, PaymentOutcome]:
    """
    Applies a partial payment to a debt.

    Args:
        data: Validated dict from RecordPaymentSchema
              (amount, optional idempotency_key).

    Raises:
        AppError(DEBT_NOT_FOUND, 404)
        AppError(DUPLICATE_PAYMENT, 409)          — key already applied
        ValidationError(DEBT_ALREADY_SETTLED)
        ValidationError(INVALID_PAYMENT | PAYMENT_EXCEEDS_REMAINING)
        AppError(WRITE_CONFLICT, 409)
    """
    key = data.get("idempotency_key") or None
    outcome: dict[str, PaymentOutcome] = {}

    def mutate(doc):
        debt = _owned_debt(doc, caller)
        if key and debt.has_payment_key(key):
            raise AppError(
                ErrorCode.DUPLICATE_PAYMENT,
                f"Payment {key} has already been applied to debt {debt_id}.",
                409,
                field="idempotencyKey",
            )
        if debt.is_settled:
            raise ValidationError(
                ErrorCode.DEBT_ALREADY_SETTLED,
                f"Debt {debt_id} is already settled.",
            )

        result = apply_payment(debt.amount, debt.paid_amount, data["amount"])
        outcome["result"] = result

        timestamp = now_iso()
        payment = Payment(amount=data["amount"], recorded_at=timestamp, idempotency_key=key)
        return {
            "paidAmount": result.paid_amount,
            "isSettled": result.is_settled,
            "payments": [*doc.body.get("payments", []), payment.to_document()],
            "updatedAt": timestamp,
        }

    doc = read_modify_write(
        store, DEBTS, debt_id, mutate, max_attempts,
        not_found=lambda: _debt_not_found(debt_id),
    )
    result = outcome["result"]
    logger.info(
        "Recorded payment of %.2f on debt %s (remaining %.2f, settled=%s)",
        data["amount"], debt_id, result.remaining, result.is_settled,
    )
    return Debt.from_document(doc.id, doc.body, doc.version), result


def set_settled(
        debt_id: str,
        caller: Identity,
        is_settled: bool,
        store: DocumentStore,
        max_attempts: int,
) -> Debt:
    """Marks a debt settled or unsettled without touching paidAmount."""

    def mutate(doc):
        debt = _owned_debt(doc, caller)
        if debt.is_settled == is_settled:
            return None
        return {"isSettled": is_settled, "updatedAt": now_iso()}

    doc = read_modify_write(
        store, DEBTS, debt_id, mutate, max_attempts,
        not_found=lambda: _debt_not_found(debt_id),
    )
    return Debt.from_document(doc.id, doc.body, doc.version)
