"""
tests/integration/conftest.py — Fixtures and helpers for all integration tests.

Design:
  - Tests run against the TestingConfig database (in-memory SQLite unless
    TEST_DATABASE_URL points elsewhere).
  - The app is created once per session using create_app("testing").
  - The documents table is created once via db.create_all() at session start.
  - Between tests every document is deleted so tests are isolated.

Helper functions (not fixtures) are provided for common operations:
  - make_token(app, ...)     → bearer token the auth middleware accepts
  - auth_headers(token)      → {"Authorization": "Bearer <token>"}
  - make_group(client, ...)  → group dict
  - make_expense(...)        → HTTP response
  - make_debt(...)           → debt dict

These are plain functions (not pytest fixtures) so they can be called with
arbitrary arguments in any test. Test modules import them with
`from finledger.tests.integration.conftest import ...`.
"""

from __future__ import annotations

import pytest
from sqlalchemy import text

from finledger.app import create_app
from finledger.app.extensions import db as _db
from finledger.app.models.identity import Identity
from finledger.app.services.auth_service import create_access_token


# ═══════════════════════════════════════════════════════════════════════════
# Session-scoped app fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(scope="session")
def app():
    """Creates the Flask application in 'testing' mode once for the session."""
    flask_app = create_app("testing")

    with flask_app.app_context():
        _db.create_all()

    yield flask_app

    with flask_app.app_context():
        _db.drop_all()


# ═══════════════════════════════════════════════════════════════════════════
# Function-scoped test isolation
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(autouse=True)
def clean_documents(app):
    """Deletes every document after each test in the integration suite."""
    yield

    with app.app_context():
        _db.session.rollback()  # discard any uncommitted state from a failed test
        _db.session.execute(text("DELETE FROM documents"))
        _db.session.commit()


# ═══════════════════════════════════════════════════════════════════════════
# Client fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def client(app):
    return app.test_client()


# ═══════════════════════════════════════════════════════════════════════════
# Shared helper functions (not fixtures)
# ═══════════════════════════════════════════════════════════════════════════

def make_token(app, user_id: str, email: str, name: str = "") -> str:
    """Mints a token the way the identity provider would."""
    with app.app_context():
        return create_access_token(
            Identity(user_id=user_id, email=email, display_name=name)
        )


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def make_group(
    client,
    token: str,
    name: str = "Test Group",
    member_emails: list[str] | None = None,
) -> dict:
    """Creates a group and returns the group data dict. The caller is its first member."""
    resp = client.post(
        "/api/v1/groups",
        json={"name": name, "memberEmails": member_emails or []},
        headers=auth_headers(token),
    )
    assert resp.status_code == 201, f"make_group failed: {resp.get_json()}"
    return resp.get_json()["data"]


def make_expense(
    client,
    token: str,
    group_id: str,
    paid_by: str,
    amount: float,
    splits: dict[str, float] | None = None,
    description: str = "Test Expense",
    split_type: str = "equal",
    category: str | None = None,
):
    """
    Creates an expense and returns the HTTP response.
    For split_type='custom', pass splits as {member email: owed amount}.
    """
    payload: dict = {
        "description": description,
        "amount": amount,
        "paidBy": paid_by,
        "splitType": split_type,
    }
    if splits is not None:
        payload["splits"] = splits
    if category is not None:
        payload["category"] = category

    return client.post(
        f"/api/v1/groups/{group_id}/expenses",
        json=payload,
        headers=auth_headers(token),
    )


def make_debt(
    client,
    token: str,
    amount: float = 1000.0,
    debt_type: str = "i_owe",
    creditor_name: str = "Sam",
    **extra,
) -> dict:
    resp = client.post(
        "/api/v1/debts",
        json={"creditorName": creditor_name, "amount": amount, "type": debt_type, **extra},
        headers=auth_headers(token),
    )
    assert resp.status_code == 201, f"make_debt failed: {resp.get_json()}"
    return resp.get_json()["data"]


def balances_by_email(client, token: str, group_id: str) -> dict[str, float]:
    resp = client.get(f"/api/v1/groups/{group_id}/balances", headers=auth_headers(token))
    assert resp.status_code == 200, resp.get_json()
    return {b["email"]: b["balance"] for b in resp.get_json()["data"]["balances"]}
