"""
ledger/aggregates.py — read-only projections for dashboards and lists.

Everything here is filter-then-reduce over collections that were already
fetched. Nothing is stored; callers pass `today` so results are deterministic.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, timedelta
from typing import Iterable, Sequence

from finledger.app.models.debt import Debt, DebtType
from finledger.app.models.transaction import PaymentMethod, Transaction, TransactionType


def parse_date(value: str | None) -> date | None:
    """Accepts 'YYYY-MM-DD' or a full ISO-8601 timestamp. Returns None if unusable."""
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def start_of_week(today: date) -> date:
    """Weeks start on Sunday."""
    return today - timedelta(days=(today.weekday() + 1) % 7)


def start_of_month(today: date) -> date:
    return today.replace(day=1)


def sum_transactions(
        transactions: Iterable[Transaction],
        type: TransactionType | None = None,
        since: date | None = None,
        until: date | None = None,
) -> float:
    """Sum of amounts, optionally restricted to one type and an inclusive date range."""
    total = 0.0
    for t in transactions:
        if type is not None and t.type != type:
            continue
        if since is not None or until is not None:
            day = parse_date(t.date)
            if day is None:
                continue
            if since is not None and day < since:
                continue
            if until is not None and day > until:
                continue
        total += t.amount
    return total


def period_totals(transactions: Sequence[Transaction], since: date) -> dict:
    income = sum_transactions(transactions, TransactionType.INCOME, since=since)
    expenses = sum_transactions(transactions, TransactionType.EXPENSE, since=since)
    return {"income": income, "expenses": expenses, "net": income - expenses}


def category_breakdown(transactions: Iterable[Transaction]) -> dict[str, float]:
    """Expense totals per category, largest first."""
    totals: dict[str, float] = defaultdict(float)
    for t in transactions:
        if t.type == TransactionType.EXPENSE:
            totals[t.category or "Other"] += t.amount
    return dict(sorted(totals.items(), key=lambda kv: kv[1], reverse=True))


def filter_transactions(
        transactions: Iterable[Transaction],
        search: str | None = None,
        type: TransactionType | None = None,
        method: PaymentMethod | None = None,
        category: str | None = None,
        since: date | None = None,
        until: date | None = None,
) -> list[Transaction]:
    """
    Transactions matching every given criterion. `search` is a case-insensitive
    substring of the notes or the category; the date range is inclusive.
    """
    needle = (search or "").strip().lower()
    matched = []
    for t in transactions:
        if needle and needle not in (t.notes or "").lower() and needle not in t.category.lower():
            continue
        if type is not None and t.type != type:
            continue
        if method is not None and t.method != method:
            continue
        if category is not None and t.category != category:
            continue
        if since is not None or until is not None:
            day = parse_date(t.date)
            if day is None:
                continue
            if since is not None and day < since:
                continue
            if until is not None and day > until:
                continue
        matched.append(t)
    return matched


def recent_transactions(transactions: Iterable[Transaction], limit: int = 5) -> list[Transaction]:
    """The `limit` most recently recorded transactions, by createdAt."""
    return sorted(transactions, key=lambda t: t.created_at, reverse=True)[:limit]


def monthly_series(transactions: Iterable[Transaction], months: int | None = 6) -> list[dict]:
    """
    [{"month": "YYYY-MM", "income": .., "expenses": ..}] in chronological order,
    keeping only the last `months` months that have entries (all if None).
    """
    buckets: dict[str, dict] = {}
    for t in transactions:
        day = parse_date(t.date)
        if day is None:
            continue
        key = f"{day.year:04d}-{day.month:02d}"
        bucket = buckets.setdefault(key, {"month": key, "income": 0.0, "expenses": 0.0})
        if t.type == TransactionType.INCOME:
            bucket["income"] += t.amount
        else:
            bucket["expenses"] += t.amount
    keys = sorted(buckets)
    if months is not None:
        keys = keys[-months:] if months > 0 else []
    return [buckets[k] for k in keys]


def is_overdue(debt: Debt, today: date) -> bool:
    if debt.is_settled:
        return False
    due = parse_date(debt.due_date)
    return due is not None and due < today


def overdue_debts(debts: Iterable[Debt], today: date) -> list[Debt]:
    return [d for d in debts if is_overdue(d, today)]


def priority_debts(debts: Iterable[Debt], today: date, limit: int = 5) -> list[Debt]:
    """Unsettled debts, overdue ones first, capped at `limit`. Order is otherwise kept."""
    pending = [d for d in debts if not d.is_settled]
    overdue = [d for d in pending if is_overdue(d, today)]
    rest = [d for d in pending if not is_overdue(d, today)]
    return (overdue + rest)[:limit]


def debt_totals(debts: Sequence[Debt], today: date) -> dict:
    """Outstanding (amount - paid) of unsettled debts, per direction."""
    pending = [d for d in debts if not d.is_settled]
    return {
        "pendingCount": len(pending),
        "overdueCount": len(overdue_debts(pending, today)),
        "iOweOutstanding": sum(d.remaining for d in pending if d.type == DebtType.I_OWE),
        "theyOweOutstanding": sum(
            d.remaining for d in pending if d.type == DebtType.THEY_OWE_ME
        ),
    }


def dashboard_summary(
        transactions: Sequence[Transaction],
        debts: Sequence[Debt],
        today: date,
) -> dict:
    total_income = sum_transactions(transactions, TransactionType.INCOME)
    total_expenses = sum_transactions(transactions, TransactionType.EXPENSE)
    return {
        "totalIncome": total_income,
        "totalExpenses": total_expenses,
        "balance": total_income - total_expenses,
        "week": period_totals(transactions, start_of_week(today)),
        "month": period_totals(transactions, start_of_month(today)),
        "expensesByCategory": category_breakdown(transactions),
        "monthly": monthly_series(transactions),
        "debts": debt_totals(debts, today),
        "recentTransactions": [t.to_dict() for t in recent_transactions(transactions)],
        "priorityDebts": [
            {**d.to_dict(), "isOverdue": is_overdue(d, today)}
            for d in priority_debts(debts, today)
        ],
    }
