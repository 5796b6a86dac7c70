"""
routes/transactions.py — income/expense entry route handlers.

Endpoints (url_prefix=/api/v1/transactions):
  POST   /transactions          → 201
  GET    /transactions          → 200  filtered, most recent date first, with totals
  PATCH  /transactions/:id      → 200
  DELETE /transactions/:id      → 200
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from finledger.app.extensions import db, document_store
from finledger.app.middleware.auth_middleware import require_auth
from finledger.app.schemas.transaction_schema import (
    CreateTransactionSchema,
    PatchTransactionSchema,
    TransactionQuerySchema,
)
from finledger.app.services import transaction_service

transactions_bp = Blueprint("transactions", __name__)


@transactions_bp.route("", methods=["POST"])
@require_auth
def create_transaction():
    data = CreateTransactionSchema().load(request.get_json(force=True) or {})
    transaction = transaction_service.create_transaction(g.identity, data, document_store())
    db.session.commit()
    return jsonify({"data": transaction.to_dict(), "warnings": []}), 201


@transactions_bp.route("", methods=["GET"])
@require_auth
def list_transactions():
    """
    GET /transactions?search=&type=&method=&category=&dateFrom=&dateTo=

    Totals cover the filtered set only.
    """
    query = TransactionQuerySchema().load(request.args.to_dict())
    result = transaction_service.search_transactions(g.identity, query, document_store())
    return jsonify({"data": result, "warnings": []}), 200


@transactions_bp.route("/<string:transaction_id>", methods=["PATCH"])
@require_auth
def update_transaction(transaction_id: str):
    data = PatchTransactionSchema().load(request.get_json(force=True) or {})
    transaction = transaction_service.update_transaction(
        transaction_id, g.identity, data, document_store(),
    )
    db.session.commit()
    return jsonify({"data": transaction.to_dict(), "warnings": []}), 200


@transactions_bp.route("/<string:transaction_id>", methods=["DELETE"])
@require_auth
def delete_transaction(transaction_id: str):
    transaction_service.delete_transaction(transaction_id, g.identity, document_store())
    db.session.commit()
    return jsonify({"data": {"deleted": True, "id": transaction_id}, "warnings": []}), 200
