"""
routes/dashboard.py — GET /api/v1/dashboard, every projection in one payload.
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify

from finledger.app.extensions import document_store
from finledger.app.middleware.auth_middleware import require_auth
from finledger.app.services import dashboard_service

dashboard_bp = Blueprint("dashboard", __name__)


@dashboard_bp.route("", methods=["GET"])
@require_auth
def get_dashboard():
    result = dashboard_service.get_dashboard(g.identity, document_store())
    return jsonify({"data": result, "warnings": []}), 200
