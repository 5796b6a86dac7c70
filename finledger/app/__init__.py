"""
app/__init__.py — Flask application factory.

Pattern: create_app(config_name) creates and returns a configured Flask app.
         Nothing is initialised at import time, so tests can build isolated
         app instances and `alembic` can import the models without a server.

Responsibilities:
  1. Load configuration from config_by_name[config_name]
  2. Configure logging from LOG_LEVEL
  3. Initialise the SQLAlchemy extension
  4. Register all route blueprints under /api/v1
  5. Register global error handlers (AppError → JSON, Exception → 500)
  6. Register the `flask issue-token` command
"""

from __future__ import annotations

import logging
import traceback

import click
from flask import Flask, jsonify, request
from marshmallow import ValidationError as SchemaValidationError
from werkzeug.exceptions import HTTPException

from finledger.config import config_by_name, validate_production_config


# ── Application factory ────────────────────────────────────────────────────

def create_app(config_name: str = "development") -> Flask:
    """
    Creates and returns a configured Flask application instance.

    Args:
        config_name: One of "development", "testing", "production".
                     Defaults to "development".
    """
    app = Flask(__name__)

    # ── Configuration ──────────────────────────────────────────────────────
    config_class = config_by_name.get(config_name, config_by_name["development"])
    app.config.from_object(config_class)
    app.json.sort_keys = app.config.get("JSON_SORT_KEYS", False)

    if config_name == "production":
        validate_production_config(app)  # raises ValueError if misconfigured

    _configure_logging(app)

    # ── Extensions ─────────────────────────────────────────────────────────
    from finledger.app.extensions import db
    db.init_app(app)

    # Populates db.metadata with the documents table for create_all/Alembic.
    with app.app_context():
        from finledger.app.models import document  # noqa: F401

    _register_blueprints(app)
    _register_error_handlers(app)
    _register_cors(app)
    _register_cli(app)

    return app


def _configure_logging(app: Flask) -> None:
    level = logging.getLevelName(str(app.config.get("LOG_LEVEL", "INFO")).upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("finledger").setLevel(level)
    app.logger.setLevel(level)


def _register_blueprints(app: Flask) -> None:
    """
    Registers all route blueprints under the /api/v1 prefix.

    expenses_bp and balances_bp share the /api/v1/groups prefix with
    groups_bp; each owns the sub-resource paths under /groups/<id>/.
    """
    from finledger.app.routes.balances import balances_bp
    from finledger.app.routes.dashboard import dashboard_bp
    from finledger.app.routes.debts import debts_bp
    from finledger.app.routes.expenses import expenses_bp
    from finledger.app.routes.groups import groups_bp
    from finledger.app.routes.transactions import transactions_bp
    from finledger.app.routes.users import users_bp

    app.register_blueprint(groups_bp,       url_prefix="/api/v1/groups")
    app.register_blueprint(expenses_bp,     url_prefix="/api/v1/groups")
    app.register_blueprint(balances_bp,     url_prefix="/api/v1/groups")
    app.register_blueprint(debts_bp,        url_prefix="/api/v1/debts")
    app.register_blueprint(transactions_bp, url_prefix="/api/v1/transactions")
    app.register_blueprint(dashboard_bp,    url_prefix="/api/v1/dashboard")
    app.register_blueprint(users_bp,        url_prefix="/api/v1/users")


def _register_error_handlers(app: Flask) -> None:
    """
    Registers global error handlers.

    Handlers:
      AppError             → structured JSON envelope with its own status.
                             Ledger ValidationError (422) is a subclass.
      marshmallow errors   → MISSING_FIELD / INVALID_FIELD / registered code (400)
      Exception            → INTERNAL_ERROR (500); traceback logged, never returned
    """
    from finledger.app.errors import AppError, ErrorCode

    registered_codes = {
        value for name, value in vars(ErrorCode).items() if not name.startswith("_")
    }

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError):
        """Routes never catch AppError; they let it propagate here."""
        if error.http_status == 409:
            app.logger.info("Conflict: %r", error)
        return jsonify(error.to_dict()), error.http_status

    @app.errorhandler(SchemaValidationError)
    def handle_schema_error(error: SchemaValidationError):
        """
        Returns the FIRST schema error only. A message that is itself a
        registered ErrorCode is sent as that code with a readable message.
        """
        messages = error.messages  # e.g. {"splits": ["SPLITS_SENT_FOR_EQUAL_MODE"]}

        field = None
        raw_message = "Invalid input."

        if isinstance(messages, dict):
            for field_name, field_errors in messages.items():
                field = field_name if field_name != "_schema" else None
                if isinstance(field_errors, list):
                    raw_message = field_errors[0] if field_errors else "Invalid value."
                else:
                    raw_message = str(field_errors)
                break
        elif isinstance(messages, list) and messages:
            raw_message = messages[0]

        if raw_message in registered_codes:
            code = raw_message
            message = _code_to_message(code)
        elif str(raw_message).startswith("Missing data for required field"):
            code = ErrorCode.MISSING_FIELD
            message = raw_message
        else:
            code = ErrorCode.INVALID_FIELD
            message = raw_message

        response_body = {"error": {"code": code, "message": message}}
        if field is not None:
            response_body["error"]["field"] = field
        return jsonify(response_body), 400

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        if isinstance(error, HTTPException):
            return error
        app.logger.error(
            "Unhandled exception: %s\n%s",
            str(error),
            traceback.format_exc(),
        )
        return jsonify({
            "error": {
                "code": ErrorCode.INTERNAL_ERROR,
                "message": "An unexpected error occurred. Please try again later.",
            }
        }), 500


def _register_cors(app: Flask) -> None:
    """Permissive CORS for local development and tests only."""

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if app.config.get("DEBUG") or app.config.get("TESTING"):
            response.headers["Access-Control-Allow-Origin"] = origin if origin else "*"
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Methods"] = "GET, POST, PATCH, DELETE, OPTIONS"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
        return response


def _register_cli(app: Flask) -> None:

    @app.cli.command("issue-token")
    @click.argument("user_id")
    @click.argument("email")
    @click.option("--name", default="", help="Display name claim.")
    def issue_token(user_id: str, email: str, name: str) -> None:
        """Print a bearer token for USER_ID / EMAIL (development only)."""
        from finledger.app.models.identity import Identity
        from finledger.app.services.auth_service import create_access_token

        click.echo(create_access_token(Identity(user_id=user_id, email=email, display_name=name)))


def _code_to_message(code: str) -> str:
    """Readable default message for a code raised as a schema message."""
    _messages = {
        "INVALID_SPLIT_TYPE": "splitType must be 'equal' or 'custom'.",
        "INVALID_DEBT_TYPE": "type must be 'i_owe' or 'they_owe_me'.",
        "INVALID_TRANSACTION_TYPE": "type must be 'income' or 'expense'.",
        "INVALID_PAYMENT_METHOD": "method must be one of cash, upi, card, bank.",
        "SPLITS_SENT_FOR_EQUAL_MODE": "Do not send splits when splitType is 'equal'.",
        "DUPLICATE_MEMBER_EMAIL": "The same email appears more than once.",
    }
    return _messages.get(code, "Invalid input.")
