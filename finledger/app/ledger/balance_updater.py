"""
ledger/balance_updater.py — folding expenses into member balances.

This module is the single place that knows how an expense moves balances:

    new_balance = old_balance + paid(member) - owed(member)

where paid(member) is the full expense amount for the payer and 0 for everyone
else, and owed(member) is the member's split (0 if absent).

Member.balance is a cache. apply_expense() updates it incrementally when an
expense is appended; rebuild_balances() recomputes it from the immutable
expense log, and audit_balances() compares the two.

No store access, no Flask. Inputs are never mutated.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Mapping, Sequence

from finledger.app.errors import ErrorCode, ValidationError
from finledger.app.models.ledger import Expense, Member, normalize_email

# Anything smaller is floating-point noise, not money.
BALANCE_EPSILON = 1e-6


@dataclass(frozen=True)
class BalanceDrift:
    email: str
    cached: float
    rebuilt: float

    @property
    def difference(self) -> float:
        return self.cached - self.rebuilt


@dataclass(frozen=True)
class SuggestedTransfer:
    from_email: str
    to_email: str
    amount: float


def balance_deltas(expense: Expense) -> dict[str, float]:
    """
    Returns {member email key: paid - owed} for one expense.

    Summed over all members this is amount - sum(splits), i.e. zero up to the
    split tolerance.
    """
    deltas: dict[str, float] = {}
    for split in expense.splits:
        key = normalize_email(split.email)
        deltas[key] = deltas.get(key, 0.0) - split.amount

    payer = normalize_email(expense.paid_by)
    deltas[payer] = deltas.get(payer, 0.0) + expense.amount
    return deltas


def apply_expense(members: Sequence[Member], expense: Expense) -> list[Member]:
    """
    Returns a new member list with the expense folded into each balance.

    Raises ValidationError(PAYER_NOT_MEMBER) if the payer is not in `members`.
    """
    keys = {m.key for m in members}
    if normalize_email(expense.paid_by) not in keys:
        raise ValidationError(
            ErrorCode.PAYER_NOT_MEMBER,
            f"{expense.paid_by} is not a member of this group.",
            field="paidBy",
        )

    deltas = balance_deltas(expense)
    return [replace(m, balance=m.balance + deltas.get(m.key, 0.0)) for m in members]


def rebuild_balances(
        members: Sequence[Member],
        expenses: Iterable[Expense],
) -> dict[str, float]:
    """Folds the whole expense log from zero. Returns {email key: balance}."""
    balances = {m.key: 0.0 for m in members}
    for expense in expenses:
        for key, delta in balance_deltas(expense).items():
            balances[key] = balances.get(key, 0.0) + delta
    return balances


def audit_balances(
        members: Sequence[Member],
        expenses: Iterable[Expense],
        tolerance: float = BALANCE_EPSILON,
) -> list[BalanceDrift]:
    """Members whose cached balance differs from the rebuilt one by more than `tolerance`."""
    rebuilt = rebuild_balances(members, expenses)
    drift = []
    for member in members:
        expected = rebuilt.get(member.key, 0.0)
        if abs(member.balance - expected) > tolerance:
            drift.append(BalanceDrift(member.email, member.balance, expected))
    return drift


def simplify_debts(balances: Mapping[str, float]) -> list[SuggestedTransfer]:
    """
    Greedy minimum cash flow settle-up suggestion.

    Repeatedly matches the largest debtor with the largest creditor until
    all balances are within BALANCE_EPSILON of zero. For n members this
    produces at most n - 1 transfers.
    """
    creditors = sorted(
        [[email, amt] for email, amt in balances.items() if amt > BALANCE_EPSILON],
        key=lambda x: x[1],
        reverse=True,
    )
    debtors = sorted(
        [[email, -amt] for email, amt in balances.items() if amt < -BALANCE_EPSILON],
        key=lambda x: x[1],
        reverse=True,
    )

    transfers: list[SuggestedTransfer] = []
    i = j = 0

    while i < len(creditors) and j < len(debtors):
        transfer = min(creditors[i][1], debtors[j][1])
        transfers.append(SuggestedTransfer(debtors[j][0], creditors[i][0], transfer))

        creditors[i][1] -= transfer
        debtors[j][1] -= transfer

        if creditors[i][1] <= BALANCE_EPSILON:
            i += 1
        if debtors[j][1] <= BALANCE_EPSILON:
            j += 1

    return transfers
