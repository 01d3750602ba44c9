"""
comicyore/__init__.py — Flask application factory.

Pattern: create_app(config_name) creates and returns a configured Flask app.
         Nothing is initialised at import time, so tests can build isolated
         app instances and `flask db`-style tooling can import models without
         starting a server.

Responsibilities:
  1. Load configuration from config_by_name[config_name]
  2. Initialise extensions (SQLAlchemy, Marshmallow) via init_app()
  3. Attach collaborators: GitHub client, object store
  4. Register blueprints (/api, /auth, /assets, /read)
  5. Register global error handlers (AppError → JSON, Exception → 500)
  6. Register administrator CLI commands
"""

from __future__ import annotations

import traceback

from flask import Flask, jsonify
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException

from comicyore.config import config_by_name, validate_production_config


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

    if config_name == "production":
        validate_production_config(app)  # raises ValueError if misconfigured

    # ── Extensions ─────────────────────────────────────────────────────────
    # Import here (not at module top) to avoid circular imports.
    from comicyore.extensions import db, ma
    db.init_app(app)
    ma.init_app(app)

    # ── Collaborators ──────────────────────────────────────────────────────
    from comicyore.github_client import GitHubClient
    from comicyore.object_store import LocalObjectStore
    app.extensions["github"] = GitHubClient.from_config(app.config)
    app.extensions["object_store"] = LocalObjectStore(app.config["OBJECT_STORE_DIR"])

    # ── Model registration ─────────────────────────────────────────────────
    # Import all models so that SQLAlchemy's MetaData is populated.
    with app.app_context():
        from comicyore.models import (  # noqa: F401
            comic,
            login_session,
            repository,
            stored_object,
            user,
        )

    _register_blueprints(app)
    _register_error_handlers(app)

    from comicyore.cli import register_cli
    register_cli(app)

    return app


def _register_blueprints(app: Flask) -> None:
    """
    Registers all route blueprints.

    The url_prefix is set here so route files only declare paths relative
    to their prefix.
    """
    from comicyore.routes.api import api_bp
    from comicyore.routes.assets import assets_bp
    from comicyore.routes.auth import auth_bp
    from comicyore.routes.reader import reader_bp

    app.register_blueprint(api_bp,    url_prefix="/api")
    app.register_blueprint(auth_bp,   url_prefix="/auth")
    app.register_blueprint(assets_bp, url_prefix="/assets")
    app.register_blueprint(reader_bp, url_prefix="/read")


def _register_error_handlers(app: Flask) -> None:
    """
    Registers global error handlers.

    Handlers:
      AppError        → structured JSON error envelope with its HTTP status
      ValidationError → marshmallow errors as MISSING_FIELD / INVALID_FIELD (400)
      HTTPException   → unmatched routes and methods as NOT_FOUND / METHOD_NOT_ALLOWED
      Exception       → generic INTERNAL_ERROR (500); traceback logged only

    Stack traces never leave the server.
    """
    from comicyore.errors import AppError, ErrorCode

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError):
        """Routes never catch AppError — they let it propagate here."""
        if error.http_status >= 500:
            app.logger.warning("%s: %s", error.code, error.message)
        return jsonify(error.to_dict()), error.http_status

    @app.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError):
        """
        Converts marshmallow ValidationError into the standard error envelope.
        Only the FIRST field error is reported.
        """
        messages = error.messages  # e.g. {"owner": ["Missing data for required field."]}

        field = None
        raw_message = "Invalid input."
        code = ErrorCode.INVALID_FIELD

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

        if str(raw_message).startswith("Missing data for required field"):
            code = ErrorCode.MISSING_FIELD

        response_body = {
            "error": {
                "code": code,
                "message": raw_message,
            }
        }
        if field is not None:
            response_body["error"]["field"] = field

        return jsonify(response_body), 400

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        # Redirects raised as exceptions (e.g. trailing-slash) pass through.
        if error.code is None or error.code < 400:
            return error
        if error.code == 404:
            code = ErrorCode.NOT_FOUND
        elif error.code == 405:
            code = ErrorCode.METHOD_NOT_ALLOWED
        else:
            code = ErrorCode.INVALID_FIELD if error.code < 500 else ErrorCode.INTERNAL_ERROR
        return jsonify({
            "error": {
                "code": code,
                "message": error.description or error.name,
            }
        }), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        """
        Catches all unhandled exceptions and returns a generic 500 response.
        The full traceback goes to the application logger only.
        """
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
