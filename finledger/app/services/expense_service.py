"""
services/expense_service.py — appending expenses to a group ledger.

Create flow (one read-modify-write of the Group document):
  1. Read the group and check the caller is part of it.
  2. Resolve the payer to a member.
  3. Split Calculator: per-member owed amounts for the chosen policy.
  4. Balance Updater: fold paid - owed into every member's cached balance.
  5. Write members + expenses back with the version that was read. On a
     version conflict, start again from step 1 with the fresh document.

Any ValidationError in steps 2–4 aborts before the write, so a rejected
expense never changes the group.

Expenses are append-only: there is no edit or delete path.

Layer rules:
  - No Flask imports. Receives the caller Identity and a DocumentStore.
  - Commits are the route's responsibility.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date

from finledger.app.errors import ErrorCode, ValidationError
from finledger.app.ledger.balance_updater import apply_expense
from finledger.app.ledger.split_calculator import compute_splits
from finledger.app.models.identity import Identity
from finledger.app.models.ledger import Expense, Group, SplitType
from finledger.app.services.concurrency import read_modify_write
from finledger.app.services.group_service import (
    GROUPS,
    get_group,
    group_not_found,
    now_iso,
    require_member,
)
from finledger.app.store.interface import DocumentStore

logger = logging.getLogger(__name__)


def create_expense(
        group_id: str,
        caller: Identity,
        data: dict,
        store: DocumentStore,
        max_attempts: int,
) -> tuple[Group, Expense]:
    """
    Records a new expense and updates every member's balance.

    Args:
        group_id:     The group this expense belongs to.
        caller:       The authenticated user recording it.
        data:         Validated dict from CreateExpenseSchema.
        max_attempts: Read-modify-write attempts before WRITE_CONFLICT.

    Raises:
        AppError(GROUP_NOT_FOUND, 404), AppError(FORBIDDEN, 403)
        ValidationError(PAYER_NOT_MEMBER | EMPTY_GROUP | INVALID_AMOUNT |
                        SPLIT_SUM_MISMATCH | SPLIT_MEMBER_NOT_IN_GROUP |
                        NEGATIVE_SPLIT)
        AppError(WRITE_CONFLICT, 409)

    Returns:
        (updated Group, the appended Expense)
    """
    expense_id = uuid.uuid4().hex
    created_at = now_iso()
    expense_date = data.get("date") or date.today()
    if isinstance(expense_date, date):
        expense_date = expense_date.isoformat()

    appended: dict[str, Expense] = {}

    def mutate(doc):
        group = Group.from_document(doc.id, doc.body, doc.version)
        require_member(group, caller)

        payer = group.find_member(data["paid_by"])
        if payer is None:
            raise ValidationError(
                ErrorCode.PAYER_NOT_MEMBER,
                f"{data['paid_by']} is not a member of group {group_id}.",
                field="paidBy",
            )

        split_type = data.get("split_type", SplitType.EQUAL)
        splits = compute_splits(
            data["amount"],
            split_type,
            group.members,
            data.get("splits"),
        )

        expense = Expense(
            id=expense_id,
            description=data["description"].strip(),
            amount=data["amount"],
            paid_by=payer.email,
            split_type=split_type,
            splits=tuple(splits),
            category=data.get("category") or "Other",
            date=expense_date,
            created_at=created_at,
        )
        members = apply_expense(group.members, expense)
        appended["expense"] = expense

        return {
            "members": [m.to_document() for m in members],
            "expenses": [*doc.body.get("expenses", []), expense.to_document()],
            "updatedAt": created_at,
        }

    doc = read_modify_write(
        store, GROUPS, group_id, mutate, max_attempts,
        not_found=lambda: group_not_found(group_id),
    )
    expense = appended["expense"]
    logger.info(
        "Appended expense %s (%.2f, %s) to group %s at version %d",
        expense.id, expense.amount, expense.split_type.value, group_id, doc.version,
    )
    return Group.from_document(doc.id, doc.body, doc.version), expense


def list_expenses(
        group_id: str,
        caller: Identity,
        store: DocumentStore,
) -> list[Expense]:
    """All expenses of a group, newest first. Caller must be a member."""
    group = get_group(group_id, caller, store)
    return sorted(group.expenses, key=lambda e: e.created_at, reverse=True)
