"""
routes/expenses.py — group expense route handlers.

Layer rules:
  - Parse, validate, call ONE service, commit, return envelope.

Endpoints (url_prefix=/api/v1/groups):
  POST   /groups/:id/expenses   → 201  split, update balances, append
  GET    /groups/:id/expenses   → 200  newest first

Expenses are append-only; there is no PATCH or DELETE.
"""

from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify, request

from finledger.app.extensions import db, document_store
from finledger.app.middleware.auth_middleware import require_auth
from finledger.app.schemas.expense_schema import CreateExpenseSchema
from finledger.app.services import expense_service

expenses_bp = Blueprint("expenses", __name__)


@expenses_bp.route("/<string:group_id>/expenses", methods=["POST"])
@require_auth
def create_expense(group_id: str):
    """
    POST /groups/:id/expenses

    Response data carries the stored expense and the members' balances after
    it was applied, so clients do not need a second round trip.
    """
    data = CreateExpenseSchema().load(request.get_json(force=True) or {})
    group, expense = expense_service.create_expense(
        group_id,
        g.identity,
        data,
        document_store(),
        current_app.config["LEDGER_WRITE_RETRIES"],
    )
    db.session.commit()
    return jsonify({
        "data": {
            "expense": expense.to_document(),
            "members": [m.to_document() for m in group.members],
            "groupVersion": group.version,
        },
        "warnings": [],
    }), 201


@expenses_bp.route("/<string:group_id>/expenses", methods=["GET"])
@require_auth
def list_expenses(group_id: str):
    expenses = expense_service.list_expenses(group_id, g.identity, document_store())
    return jsonify({"data": [e.to_document() for e in expenses], "warnings": []}), 200
