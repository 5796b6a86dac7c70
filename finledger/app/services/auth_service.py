"""
services/auth_service.py — access token minting and decoding.

The identity provider is external: in production it issues the bearer tokens.
This module holds the one place that knows the token format, so the
`flask issue-token` command and the test suite can mint tokens the middleware
will accept.

Token format:
  - JWT, algorithm from JWT_ALGORITHM (HS256), secret JWT_SECRET_KEY
  - claims: sub (user id), email, name, iat, exp, jti

Layer rules:
  - current_app.config is read for the secret and the TTL only.
  - No flask.request or flask.g.
"""

from __future__ import annotations

import secrets
from datetime import datetime, timezone

import jwt
from flask import current_app

from finledger.app.errors import AppError, ErrorCode
from finledger.app.models.identity import Identity


def create_access_token(identity: Identity) -> str:
    """Signed access token for `identity`, valid for JWT_ACCESS_TOKEN_EXPIRES."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": identity.user_id,
        "email": identity.email,
        "name": identity.display_name,
        "iat": now,
        "exp": now + current_app.config["JWT_ACCESS_TOKEN_EXPIRES"],
        # Two tokens minted in the same second still differ.
        "jti": secrets.token_hex(8),
    }
    return jwt.encode(
        payload,
        current_app.config["JWT_SECRET_KEY"],
        algorithm=current_app.config.get("JWT_ALGORITHM", "HS256"),
    )


def decode_access_token(token: str) -> Identity:
    """
    Raises:
      AppError(TOKEN_EXPIRED, 401)
      AppError(TOKEN_INVALID, 401) — bad signature, malformed, or missing claims
    """
    try:
        payload = jwt.decode(
            token,
            current_app.config["JWT_SECRET_KEY"],
            algorithms=[current_app.config.get("JWT_ALGORITHM", "HS256")],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise AppError(
            ErrorCode.TOKEN_EXPIRED,
            "Your session has expired. Please sign in again.",
            401,
        )
    except jwt.InvalidTokenError:
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "The authentication token is invalid.",
            401,
        )

    email = payload.get("email")
    if not payload.get("sub") or not email:
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "The authentication token does not identify a user.",
            401,
        )

    return Identity(
        user_id=str(payload["sub"]),
        email=email,
        display_name=payload.get("name") or "",
    )
