from flask import Blueprint, g, jsonify

from finledger.app.middleware.auth_middleware import require_auth

users_bp = Blueprint("users", __name__)


@users_bp.route("/me", methods=["GET"])
@require_auth
def get_me():
    return jsonify({"data": g.identity.to_dict(), "warnings": []}), 200
