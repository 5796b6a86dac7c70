"""
services/balance_service.py — reading, auditing and rebuilding group balances.

Member.balance is a cache maintained incrementally by expense_service. The
expense log inside the group is the authoritative source; this service can
recompute balances from it, report drift, and (creator only) overwrite the
cache with the recomputed values.

Layer rules:
  - No Flask imports. Returns plain dicts shaped for the JSON envelope.
"""

from __future__ import annotations

import logging

from finledger.app.ledger.balance_updater import (
    BALANCE_EPSILON,
    audit_balances,
    rebuild_balances,
    simplify_debts,
)
from finledger.app.models.identity import Identity
from finledger.app.models.ledger import Group
from finledger.app.services.concurrency import read_modify_write
from finledger.app.services.group_service import (
    GROUPS,
    get_group,
    group_not_found,
    now_iso,
    require_creator,
)
from finledger.app.store.interface import DocumentStore

logger = logging.getLogger(__name__)


def _audit_payload(group: Group) -> dict:
    rebuilt = rebuild_balances(group.members, group.expenses)
    drift_by_key = {
        d.email.lower(): d for d in audit_balances(group.members, group.expenses)
    }
    return {
        "groupId": group.id,
        "expenseCount": len(group.expenses),
        "consistent": not drift_by_key,
        "members": [
            {
                "email": m.email,
                "cached": m.balance,
                "rebuilt": rebuilt.get(m.key, 0.0),
                "drifted": m.key in drift_by_key,
            }
            for m in group.members
        ],
    }


def get_balance_response(group_id: str, caller: Identity, store: DocumentStore) -> dict:
    """
    Cached balances for every member plus a settle-up suggestion.

    balanceSum is zero up to floating-point noise and the one-cent tolerance
    of custom splits.
    """
    group = get_group(group_id, caller, store)
    balances = group.balances()
    names = {m.key: m.display_name for m in group.members}

    balance_sum = sum(balances.values())
    if abs(balance_sum) > 0.01 * max(len(group.expenses), 1):
        logger.warning("Group %s balances sum to %.6f", group_id, balance_sum)

    return {
        "groupId": group.id,
        "balances": [
            {
                "email": m.email,
                "userId": m.user_id,
                "displayName": m.display_name,
                "balance": m.balance,
            }
            for m in group.members
        ],
        "simplifiedDebts": [
            {
                "fromEmail": t.from_email,
                "fromName": names.get(t.from_email, t.from_email),
                "toEmail": t.to_email,
                "toName": names.get(t.to_email, t.to_email),
                "amount": t.amount,
            }
            for t in simplify_debts(balances)
        ],
        "balanceSum": balance_sum,
    }


def audit_group_balances(group_id: str, caller: Identity, store: DocumentStore) -> dict:
    """Compares cached balances with a fold over the expense log. Read-only."""
    group = get_group(group_id, caller, store)
    return _audit_payload(group)


def rebuild_group_balances(
        group_id: str,
        caller: Identity,
        store: DocumentStore,
        max_attempts: int,
) -> dict:
    """
    Overwrites every cached balance with the value rebuilt from the expense
    log. Creator only. Writes nothing if the cache is already consistent.
    """

    def mutate(doc):
        group = Group.from_document(doc.id, doc.body, doc.version)
        require_creator(group, caller)
        if not audit_balances(group.members, group.expenses, tolerance=BALANCE_EPSILON):
            return None

        rebuilt = rebuild_balances(group.members, group.expenses)
        members = [m.to_document() | {"balance": rebuilt.get(m.key, 0.0)} for m in group.members]
        logger.warning("Rebuilding drifted balances of group %s", group_id)
        return {"members": members, "updatedAt": now_iso()}

    doc = read_modify_write(
        store, GROUPS, group_id, mutate, max_attempts,
        not_found=lambda: group_not_found(group_id),
    )
    return _audit_payload(Group.from_document(doc.id, doc.body, doc.version))
