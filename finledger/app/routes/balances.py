"""
routes/balances.py — group balance route handlers.

Endpoints (url_prefix=/api/v1/groups):
  GET    /groups/:id/balances           → 200  cached balances + settle-up plan
  GET    /groups/:id/balances/audit     → 200  cached vs rebuilt from expenses
  POST   /groups/:id/balances/rebuild   → 200  overwrite the cache (creator only)
"""

from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify

from finledger.app.extensions import db, document_store
from finledger.app.middleware.auth_middleware import require_auth
from finledger.app.services import balance_service

balances_bp = Blueprint("balances", __name__)


@balances_bp.route("/<string:group_id>/balances", methods=["GET"])
@require_auth
def get_balances(group_id: str):
    result = balance_service.get_balance_response(group_id, g.identity, document_store())
    return jsonify({"data": result, "warnings": []}), 200


@balances_bp.route("/<string:group_id>/balances/audit", methods=["GET"])
@require_auth
def audit_balances(group_id: str):
    result = balance_service.audit_group_balances(group_id, g.identity, document_store())
    warnings = [] if result["consistent"] else ["BALANCE_DRIFT"]
    return jsonify({"data": result, "warnings": warnings}), 200


@balances_bp.route("/<string:group_id>/balances/rebuild", methods=["POST"])
@require_auth
def rebuild_balances(group_id: str):
    result = balance_service.rebuild_group_balances(
        group_id,
        g.identity,
        document_store(),
        current_app.config["LEDGER_WRITE_RETRIES"],
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200
