"""
tests/unit/test_balance_updater.py — Unit tests for ledger/balance_updater.py.

What this file proves:
  - newBalance = oldBalance + paid - owed, for payer and non-payers alike
  - The net effect of one expense over all members is zero (conservation)
  - PAYER_NOT_MEMBER is raised before any balance moves
  - rebuild_balances() folds the expense log from zero and matches the
    incremental cache; audit_balances() reports members that drifted
  - simplify_debts() settles every balance with at most n - 1 transfers
"""

from __future__ import annotations

import pytest

from finledger.app.errors import ErrorCode, ValidationError
from finledger.app.ledger.balance_updater import (
    apply_expense,
    audit_balances,
    balance_deltas,
    rebuild_balances,
    simplify_debts,
)
from finledger.app.ledger.split_calculator import compute_splits
from finledger.app.models.ledger import Expense, Member, SplitType


def _members(*emails: str, balances: dict | None = None) -> list[Member]:
    balances = balances or {}
    return [Member(email=e, user_id=f"u-{e[0]}", balance=balances.get(e, 0.0)) for e in emails]


def _expense(members, amount, paid_by, split_type=SplitType.EQUAL, custom=None, expense_id="e1"):
    splits = compute_splits(amount, split_type, members, custom)
    return Expense(
        id=expense_id,
        description="test",
        amount=amount,
        paid_by=paid_by,
        split_type=split_type,
        splits=tuple(splits),
    )


def _balances(members) -> dict[str, float]:
    return {m.email: m.balance for m in members}


# ── apply_expense ──────────────────────────────────────────────────────────

def test_equal_three_way_paid_by_a():
    """A pays 300 split equally among A, B, C → A +200, B -100, C -100."""
    members = _members("a@x.io", "b@x.io", "c@x.io")
    expense = _expense(members, 300.0, "a@x.io")

    result = apply_expense(members, expense)

    assert _balances(result) == pytest.approx({"a@x.io": 200.0, "b@x.io": -100.0, "c@x.io": -100.0})


def test_custom_split_paid_by_b():
    """
    300 custom {A: 50, B: 125, C: 125}, paid by B, from zero
    → A -50, B +175, C -125.
    """
    members = _members("a@x.io", "b@x.io", "c@x.io")
    expense = _expense(
        members, 300.0, "b@x.io", SplitType.CUSTOM,
        {"a@x.io": 50.0, "b@x.io": 125.0, "c@x.io": 125.0},
    )

    result = apply_expense(members, expense)

    assert _balances(result) == pytest.approx({"a@x.io": -50.0, "b@x.io": 175.0, "c@x.io": -125.0})


def test_apply_builds_on_existing_balances():
    members = _members("a@x.io", "b@x.io", balances={"a@x.io": -20.0, "b@x.io": 20.0})
    expense = _expense(members, 100.0, "a@x.io")

    result = apply_expense(members, expense)

    assert _balances(result) == pytest.approx({"a@x.io": 30.0, "b@x.io": -30.0})


def test_apply_does_not_mutate_input():
    members = _members("a@x.io", "b@x.io")
    apply_expense(members, _expense(members, 100.0, "a@x.io"))

    assert all(m.balance == 0.0 for m in members)


def test_payer_matched_case_insensitively():
    members = _members("a@x.io", "b@x.io")
    expense = _expense(members, 100.0, "A@X.IO")

    result = apply_expense(members, expense)
    assert _balances(result)["a@x.io"] == pytest.approx(50.0)


def test_payer_not_member_rejected():
    members = _members("a@x.io", "b@x.io")
    expense = _expense(members, 100.0, "outsider@x.io")

    with pytest.raises(ValidationError) as exc_info:
        apply_expense(members, expense)

    assert exc_info.value.code == ErrorCode.PAYER_NOT_MEMBER
    assert exc_info.value.http_status == 422


@pytest.mark.parametrize("amount, n", [(100.0, 3), (10.0, 7), (0.01, 2), (12345.67, 5)])
def test_conservation_for_equal_splits(amount, n):
    members = _members(*[f"{chr(97 + i)}@x.io" for i in range(n)])
    result = apply_expense(members, _expense(members, amount, members[0].email))

    assert sum(m.balance for m in result) == pytest.approx(0.0, abs=1e-9)


def test_conservation_for_custom_split_within_tolerance():
    members = _members("a@x.io", "b@x.io", "c@x.io")
    expense = _expense(
        members, 100.0, "a@x.io", SplitType.CUSTOM,
        {"a@x.io": 33.33, "b@x.io": 33.33, "c@x.io": 33.335},
    )
    result = apply_expense(members, expense)

    assert abs(sum(m.balance for m in result)) <= 0.01 + 1e-9


def test_balance_deltas_payer_nets_paid_minus_owed():
    members = _members("a@x.io", "b@x.io")
    deltas = balance_deltas(_expense(members, 80.0, "b@x.io"))

    assert deltas == pytest.approx({"a@x.io": -40.0, "b@x.io": 40.0})


# ── rebuild / audit ────────────────────────────────────────────────────────

def _folded_group():
    members = _members("a@x.io", "b@x.io", "c@x.io")
    expenses = [
        _expense(members, 300.0, "a@x.io", expense_id="e1"),
        _expense(members, 90.0, "b@x.io", SplitType.CUSTOM,
                 {"a@x.io": 30.0, "c@x.io": 60.0}, expense_id="e2"),
    ]
    for expense in expenses:
        members = apply_expense(members, expense)
    return members, expenses


def test_rebuild_matches_incremental_cache():
    members, expenses = _folded_group()

    rebuilt = rebuild_balances(members, expenses)

    assert rebuilt == pytest.approx({m.key: m.balance for m in members})


def test_rebuild_of_empty_log_is_all_zero():
    members = _members("a@x.io", "b@x.io", balances={"a@x.io": 5.0, "b@x.io": -5.0})
    assert rebuild_balances(members, []) == {"a@x.io": 0.0, "b@x.io": 0.0}


def test_audit_reports_nothing_for_consistent_cache():
    members, expenses = _folded_group()
    assert audit_balances(members, expenses) == []


def test_audit_reports_drifted_member():
    members, expenses = _folded_group()
    tampered = [
        Member(m.email, m.user_id, m.display_name, m.balance + 7.0) if m.email == "c@x.io" else m
        for m in members
    ]

    drift = audit_balances(tampered, expenses)

    assert len(drift) == 1
    assert drift[0].email == "c@x.io"
    assert drift[0].difference == pytest.approx(7.0)


# ── simplify_debts ─────────────────────────────────────────────────────────

def test_simplify_two_debtors_one_creditor():
    transfers = simplify_debts({"a@x.io": 200.0, "b@x.io": -100.0, "c@x.io": -100.0})

    assert len(transfers) == 2
    assert {t.from_email for t in transfers} == {"b@x.io", "c@x.io"}
    assert all(t.to_email == "a@x.io" for t in transfers)
    assert sum(t.amount for t in transfers) == pytest.approx(200.0)


def test_simplify_settles_every_balance():
    balances = {"a@x.io": 50.0, "b@x.io": 30.0, "c@x.io": -45.0, "d@x.io": -35.0}
    transfers = simplify_debts(balances)

    settled = dict(balances)
    for t in transfers:
        settled[t.from_email] += t.amount
        settled[t.to_email] -= t.amount

    assert all(abs(v) < 1e-6 for v in settled.values())
    assert len(transfers) <= len(balances) - 1


def test_simplify_all_zero_produces_no_transfers():
    assert simplify_debts({"a@x.io": 0.0, "b@x.io": 1e-9}) == []
