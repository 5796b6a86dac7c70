"""
extensions.py — Flask extension singletons.

Initialises SQLAlchemy as a module-level object so it can be imported anywhere
without creating circular dependencies.

Pattern:
    1. Create the extension object here (no app attached yet).
    2. Call init_app(app) inside the app factory in app/__init__.py.
    3. Import `db` from here wherever needed.

Do not pass the app object directly to SQLAlchemy() at import time — that
would prevent running tests with a separate test app instance.
"""

from __future__ import annotations

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def document_store():
    """
    Returns the DocumentStore bound to the current request's session.

    Routes hand this to services; services never import `db` themselves.
    """
    # Local import: store.sql_store imports models, which import `db` from here.
    from finledger.app.store.sql_store import SqlDocumentStore

    return SqlDocumentStore(db.session)
