"""
models/identity.py — the authenticated caller, as vouched for by the identity provider.

Passed explicitly into every service call; services never read request state.
"""

from __future__ import annotations

from dataclasses import dataclass

from finledger.app.models.ledger import normalize_email


@dataclass(frozen=True)
class Identity:
    user_id: str
    email: str
    display_name: str = ""

    @property
    def email_key(self) -> str:
        return normalize_email(self.email)

    def to_dict(self) -> dict:
        return {
            "userId": self.user_id,
            "email": self.email,
            "displayName": self.display_name,
        }
