"""
routes/groups.py — Group and membership route handlers.

Layer rules:
  - Parse, validate, call ONE service, commit, return envelope.
  - No business logic. No store queries.

Endpoints (url_prefix=/api/v1/groups):
  POST   /groups                → 201  create group
  GET    /groups                → 200  list groups created by the caller
  GET    /groups/:id            → 200  group with members and expenses
  POST   /groups/:id/members    → 201  invite a member by email
  POST   /groups/:id/join       → 200  claim the caller's invitation
"""

from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify, request

from finledger.app.extensions import db, document_store
from finledger.app.middleware.auth_middleware import require_auth
from finledger.app.schemas.group_schema import CreateGroupSchema, InviteMemberSchema
from finledger.app.services import group_service

groups_bp = Blueprint("groups", __name__)


@groups_bp.route("", methods=["POST"])
@require_auth
def create_group():
    """POST /groups — Caller becomes creator and first member."""
    data = CreateGroupSchema().load(request.get_json(force=True) or {})
    group = group_service.create_group(g.identity, data, document_store())
    db.session.commit()
    return jsonify({"data": group.to_dict(), "warnings": []}), 201


@groups_bp.route("", methods=["GET"])
@require_auth
def list_groups():
    groups = group_service.list_groups(g.identity, document_store())
    return jsonify({"data": [grp.to_dict() for grp in groups], "warnings": []}), 200


@groups_bp.route("/<string:group_id>", methods=["GET"])
@require_auth
def get_group(group_id: str):
    group = group_service.get_group(group_id, g.identity, document_store())
    return jsonify({"data": group.to_dict(), "warnings": []}), 200


@groups_bp.route("/<string:group_id>/members", methods=["POST"])
@require_auth
def invite_member(group_id: str):
    """POST /groups/:id/members — Adds a zero-balance placeholder. Any member may invite."""
    data = InviteMemberSchema().load(request.get_json(force=True) or {})
    group = group_service.invite_member(
        group_id,
        g.identity,
        data,
        document_store(),
        current_app.config["LEDGER_WRITE_RETRIES"],
    )
    db.session.commit()
    return jsonify({"data": group.to_dict(), "warnings": []}), 201


@groups_bp.route("/<string:group_id>/join", methods=["POST"])
@require_auth
def join_group(group_id: str):
    group = group_service.join_group(
        group_id,
        g.identity,
        document_store(),
        current_app.config["LEDGER_WRITE_RETRIES"],
    )
    db.session.commit()
    return jsonify({"data": group.to_dict(), "warnings": []}), 200
