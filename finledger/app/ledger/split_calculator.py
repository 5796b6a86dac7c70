"""
ledger/split_calculator.py — per-member owed amounts for one group expense.

Pure computation: no store, no Flask, no clock. Every failure is a
ValidationError raised before the caller has written anything.

Equal policy:
  Each member owes amount / n, computed with plain float division. No
  remainder redistribution is done, so sum(splits) can differ from the amount
  by a machine-precision epsilon. That difference is accepted as is.

Custom policy:
  The caller proposes an owed amount per member email; members left out owe 0.
  The proposal is rejected unless |sum - amount| <= SPLIT_TOLERANCE.
"""

from __future__ import annotations

from typing import Mapping, Sequence

from finledger.app.errors import ErrorCode, ValidationError
from finledger.app.models.ledger import Member, Split, SplitType, normalize_email

# One cent, in the group's currency units.
SPLIT_TOLERANCE = 0.01


def _validate_inputs(amount: float, members: Sequence[Member]) -> None:
    if not members:
        raise ValidationError(
            ErrorCode.EMPTY_GROUP,
            "Cannot split an expense in a group with no members.",
        )
    if amount <= 0:
        raise ValidationError(
            ErrorCode.INVALID_AMOUNT,
            f"Expense amount must be greater than zero (got {amount}).",
            field="amount",
        )


def compute_equal_splits(amount: float, members: Sequence[Member]) -> list[Split]:
    """Each of the n members owes amount / n."""
    _validate_inputs(amount, members)
    share = amount / len(members)
    return [Split(email=m.email, user_id=m.user_id, amount=share) for m in members]


def compute_custom_splits(
        amount: float,
        members: Sequence[Member],
        proposed: Mapping[str, float],
) -> list[Split]:
    """
    Builds one split per member from `proposed` ({member email: owed amount}).

    Raises:
        ValidationError(SPLIT_MEMBER_NOT_IN_GROUP) — a proposed email is not a member.
        ValidationError(NEGATIVE_SPLIT)            — a proposed amount is below zero.
        ValidationError(SPLIT_SUM_MISMATCH)        — the total is off by more than a cent.
    """
    _validate_inputs(amount, members)

    member_keys = {m.key for m in members}
    by_key: dict[str, float] = {}
    for email, owed in proposed.items():
        key = normalize_email(email)
        if key not in member_keys:
            raise ValidationError(
                ErrorCode.SPLIT_MEMBER_NOT_IN_GROUP,
                f"{email} is not a member of this group.",
                field="splits",
            )
        if owed < 0:
            raise ValidationError(
                ErrorCode.NEGATIVE_SPLIT,
                f"Split for {email} must not be negative (got {owed}).",
                field="splits",
            )
        by_key[key] = by_key.get(key, 0.0) + float(owed)

    splits = [
        Split(email=m.email, user_id=m.user_id, amount=by_key.get(m.key, 0.0))
        for m in members
    ]

    total = sum(s.amount for s in splits)
    if abs(total - amount) > SPLIT_TOLERANCE:
        raise ValidationError(
            ErrorCode.SPLIT_SUM_MISMATCH,
            f"Split amounts ({total:.2f}) do not equal expense amount ({amount:.2f}).",
            field="splits",
        )

    return splits


def compute_splits(
        amount: float,
        split_type: SplitType,
        members: Sequence[Member],
        custom_amounts: Mapping[str, float] | None = None,
) -> list[Split]:
    """
    Dispatches on the split policy. Covers every member exactly once.

    `custom_amounts` is ignored for the equal policy.
    """
    if split_type == SplitType.EQUAL:
        return compute_equal_splits(amount, members)
    return compute_custom_splits(amount, members, custom_amounts or {})
