"""
routes/debts.py — individual debt route handlers.

Layer rules:
  - Parse, validate, call ONE service, commit, return envelope.

Endpoints (url_prefix=/api/v1/debts):
  POST   /debts                 → 201  create
  GET    /debts                 → 200  caller's debts, newest first
  GET    /debts/:id             → 200
  PATCH  /debts/:id             → 200  partial edit
  DELETE /debts/:id             → 200
  POST   /debts/:id/payments    → 201  record a partial payment
  POST   /debts/:id/settle      → 200  set isSettled explicitly
"""

from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify, request

from finledger.app.extensions import db, document_store
from finledger.app.middleware.auth_middleware import require_auth
from finledger.app.schemas.debt_schema import (
    CreateDebtSchema,
    PatchDebtSchema,
    RecordPaymentSchema,
    SetSettledSchema,
)
from finledger.app.services import debt_service

debts_bp = Blueprint("debts", __name__)


@debts_bp.route("", methods=["POST"])
@require_auth
def create_debt():
    data = CreateDebtSchema().load(request.get_json(force=True) or {})
    debt = debt_service.create_debt(g.identity, data, document_store())
    db.session.commit()
    return jsonify({"data": debt.to_dict(), "warnings": []}), 201


@debts_bp.route("", methods=["GET"])
@require_auth
def list_debts():
    debts = debt_service.list_debts(g.identity, document_store())
    return jsonify({"data": [d.to_dict() for d in debts], "warnings": []}), 200


@debts_bp.route("/<string:debt_id>", methods=["GET"])
@require_auth
def get_debt(debt_id: str):
    debt = debt_service.get_debt(debt_id, g.identity, document_store())
    return jsonify({"data": debt.to_dict(), "warnings": []}), 200


@debts_bp.route("/<string:debt_id>", methods=["PATCH"])
@require_auth
def update_debt(debt_id: str):
    data = PatchDebtSchema().load(request.get_json(force=True) or {})
    debt = debt_service.update_debt(
        debt_id,
        g.identity,
        data,
        document_store(),
        current_app.config["LEDGER_WRITE_RETRIES"],
    )
    db.session.commit()
    return jsonify({"data": debt.to_dict(), "warnings": []}), 200


@debts_bp.route("/<string:debt_id>", methods=["DELETE"])
@require_auth
def delete_debt(debt_id: str):
    debt_service.delete_debt(debt_id, g.identity, document_store())
    db.session.commit()
    return jsonify({"data": {"deleted": True, "id": debt_id}, "warnings": []}), 200


@debts_bp.route("/<string:debt_id>/payments", methods=["POST"])
@require_auth
def record_payment(debt_id: str):
    """
    POST /debts/:id/payments

    Returns the updated debt plus the outcome of this payment. A debt that
    this payment settled carries a DEBT_SETTLED warning.
    """
    data = RecordPaymentSchema().load(request.get_json(force=True) or {})
    debt, outcome = debt_service.record_payment(
        debt_id,
        g.identity,
        data,
        document_store(),
        current_app.config["LEDGER_WRITE_RETRIES"],
    )
    db.session.commit()
    return jsonify({
        "data": {
            "debt": debt.to_dict(),
            "paidAmount": outcome.paid_amount,
            "isSettled": outcome.is_settled,
            "remaining": outcome.remaining,
        },
        "warnings": ["DEBT_SETTLED"] if outcome.is_settled else [],
    }), 201


@debts_bp.route("/<string:debt_id>/settle", methods=["POST"])
@require_auth
def set_settled(debt_id: str):
    data = SetSettledSchema().load(request.get_json(silent=True) or {})
    debt = debt_service.set_settled(
        debt_id,
        g.identity,
        data["is_settled"],
        document_store(),
        current_app.config["LEDGER_WRITE_RETRIES"],
    )
    db.session.commit()
    return jsonify({"data": debt.to_dict(), "warnings": []}), 200
