"""
services/dashboard_service.py — one payload with every dashboard projection.

Fetches the caller's transactions, debts and groups, then hands them to the
pure functions in ledger/aggregates.py.
"""

from __future__ import annotations

from datetime import date

from finledger.app.ledger.aggregates import dashboard_summary
from finledger.app.models.identity import Identity
from finledger.app.services.debt_service import list_debts
from finledger.app.services.group_service import list_groups
from finledger.app.services.transaction_service import list_transactions
from finledger.app.store.interface import DocumentStore


def get_dashboard(caller: Identity, store: DocumentStore, today: date | None = None) -> dict:
    today = today or date.today()
    transactions = list_transactions(caller, store)
    debts = list_debts(caller, store)

    summary = dashboard_summary(transactions, debts, today)
    summary["groups"] = [
        {
            "id": g.id,
            "name": g.name,
            "memberCount": len(g.members),
            "expenseCount": len(g.expenses),
            "myBalance": next(
                (m.balance for m in g.members if m.key == caller.email_key), 0.0
            ),
        }
        for g in list_groups(caller, store)
    ]
    summary["asOf"] = today.isoformat()
    return summary
