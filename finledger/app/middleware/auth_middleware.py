"""
middleware/auth_middleware.py — bearer token authentication decorator.

The @require_auth decorator:
  1. Reads the Authorization header (expected: "Bearer <token>")
  2. Decodes and verifies the JWT via auth_service.decode_access_token
  3. Attaches the caller Identity to flask.g.identity
  4. Returns the appropriate 401 error if any step fails

Responsibility boundary:
  - Middleware = authentication (401). It never checks group membership or
    debt ownership; services do that (403 / 404).
  - Routes read g.identity and pass it to services as a plain argument.

Error codes:
  TOKEN_MISSING  (401) — no Authorization header
  TOKEN_INVALID  (401) — malformed header, bad signature, or missing claims
  TOKEN_EXPIRED  (401) — exp claim is in the past
"""

from __future__ import annotations

import functools
from typing import Callable

from flask import g, request

from finledger.app.errors import AppError, ErrorCode
from finledger.app.services.auth_service import decode_access_token


def require_auth(f: Callable) -> Callable:
    """
    Route decorator that enforces bearer authentication.

    Usage:
        @groups_bp.route("/groups")
        @require_auth
        def list_groups_route():
            groups = list_groups(g.identity, document_store())
    """
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        _authenticate_request()
        return f(*args, **kwargs)

    return decorated


def _authenticate_request() -> None:
    """
    Sets flask.g.identity or raises AppError. Callable directly in tests
    inside a request context.
    """
    auth_header = request.headers.get("Authorization", "")

    if not auth_header:
        raise AppError(
            ErrorCode.TOKEN_MISSING,
            "Authentication required. Provide a Bearer token in the Authorization header.",
            401,
        )

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "Authorization header must be in the format: Bearer <token>.",
            401,
        )

    g.identity = decode_access_token(parts[1])
