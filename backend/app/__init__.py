"""
app/__init__.py — Flask application factory.

Pattern: create_app(config_name) creates and returns a configured Flask app.
         Nothing is initialised at import time, so tests can build isolated
         app instances and `flask` CLI commands work without a running server.

Responsibilities:
  1. Load configuration from config_by_name[config_name]
  2. Configure logging from LOG_LEVEL
  3. Initialise extensions (SQLAlchemy, Marshmallow) via init_app()
  4. Register all route blueprints under /api/<resource>
  5. Register global error handlers (AppError, ValidationError,
     HTTPException, Exception) producing the {"success": false, ...} envelope
  6. Add CORS and security headers, the health check and CLI commands
  7. Register a custom JSON provider to serialise Decimal as string

Note on model imports:
  All model modules are imported inside create_app() so that SQLAlchemy's
  metadata is populated before db.create_all() or Alembic inspects it.
"""

from __future__ import annotations

import logging
import traceback
from decimal import Decimal

import click
from flask import Flask, jsonify, request
from flask.json.provider import DefaultJSONProvider
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException

from backend.config import config_by_name, validate_production_config


# ── Custom JSON provider ───────────────────────────────────────────────────
# Monetary amounts are serialised as strings to preserve precision; the
# client never receives them as JS numbers.

class DecimalJSONProvider(DefaultJSONProvider):
    """
    Extends Flask's default JSON provider to serialise Decimal as str.

    Example: Decimal("10.50") → "10.50" (not 10.5)
    """

    def default(self, o):
        if isinstance(o, Decimal):
            return str(o)
        return super().default(o)


# ── Application factory ────────────────────────────────────────────────────

def create_app(config_name: str = "development") -> Flask:
    """
    Creates and returns a configured Flask application instance.

    Args:
        config_name: One of "development", "testing", "production".
                     Resolved via config_by_name in config.py.
    """
    app = Flask(__name__)
    app.json_provider_class = DecimalJSONProvider
    app.json = DecimalJSONProvider(app)
    # "/api/ious" and "/api/ious/" reach the same handler.
    app.url_map.strict_slashes = False

    # ── Configuration ──────────────────────────────────────────────────────
    config_class = config_by_name.get(config_name, config_by_name["development"])
    app.config.from_object(config_class)

    if config_name == "production":
        validate_production_config(app)  # raises ValueError if misconfigured

    _configure_logging(app)

    # ── Extensions ─────────────────────────────────────────────────────────
    # Import here (not at module top) to avoid circular imports.
    from backend.app.extensions import db, ma
    db.init_app(app)
    ma.init_app(app)

    # ── Model registration ─────────────────────────────────────────────────
    # The imports are unused by name; registering the tables is the point.
    with app.app_context():
        from backend.app.models import (  # noqa: F401
            blocked_user,
            feed_reaction,
            friendship,
            invite,
            iou,
            notification,
            payment,
            recurring_iou,
            user,
        )

    _register_blueprints(app)
    _register_error_handlers(app)
    _register_response_headers(app)
    _register_health_check(app)
    _register_cli(app)

    return app


def _configure_logging(app: Flask) -> None:
    """
    Routes the root logger (and so every module logger in services/) to
    stderr at LOG_LEVEL. Safe to call once per app in the test suite.
    """
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )
    app.logger.setLevel(level)
    logging.getLogger("backend").setLevel(level)


def _register_blueprints(app: Flask) -> None:
    """
    Registers all route blueprints. The url_prefix is set here so individual
    route files only specify paths relative to their resource.
    """
    from backend.app.routes.auth import auth_bp
    from backend.app.routes.blocking import blocking_bp
    from backend.app.routes.feed import feed_bp
    from backend.app.routes.friends import friends_bp
    from backend.app.routes.invites import invites_bp
    from backend.app.routes.ious import ious_bp
    from backend.app.routes.notifications import notifications_bp
    from backend.app.routes.profile import profile_bp
    from backend.app.routes.recurring import recurring_bp
    from backend.app.routes.users import users_bp

    app.register_blueprint(auth_bp,          url_prefix="/api/auth")
    app.register_blueprint(profile_bp,       url_prefix="/api/profile")
    app.register_blueprint(users_bp,         url_prefix="/api/users")
    app.register_blueprint(friends_bp,       url_prefix="/api/friends")
    app.register_blueprint(ious_bp,          url_prefix="/api/ious")
    app.register_blueprint(recurring_bp,     url_prefix="/api/recurring")
    app.register_blueprint(invites_bp,       url_prefix="/api/invites")
    app.register_blueprint(notifications_bp, url_prefix="/api/notifications")
    app.register_blueprint(blocking_bp,      url_prefix="/api/blocked")
    app.register_blueprint(feed_bp,          url_prefix="/api/feed")


def _register_error_handlers(app: Flask) -> None:
    """
    Registers global error handlers.

    Handlers:
      AppError        → structured JSON error envelope with its HTTP status
      ValidationError → first marshmallow field error as MISSING_FIELD /
                        INVALID_FIELD / a registered code (400)
      HTTPException   → werkzeug 404 / 405 / 400 etc. in the same envelope
      Exception       → generic INTERNAL_ERROR (500); traceback logged

    Stack traces never leave the server.
    """
    from backend.app.errors import AppError, ErrorCode

    known_codes = {
        value for name, value in vars(ErrorCode).items() if not name.startswith("_")
    }

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError):
        """Routes never catch AppError — they let it propagate here."""
        return jsonify(error.to_dict()), error.http_status

    @app.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError):
        """
        Returns the FIRST field error only. A message that is itself a
        registered error code (e.g. INVALID_AMOUNT_PRECISION) becomes the
        code, with a readable default message.
        """
        field, raw_message = _first_validation_message(error.messages)

        if raw_message in known_codes:
            code = raw_message
            message = _code_to_message(code)
        elif raw_message.startswith(("Missing data for required field", "Field may not be null")):
            # A blank required value ("" → None in RequestSchema) reads as missing.
            code = ErrorCode.MISSING_FIELD
            message = f"{field} is required." if field else raw_message
        else:
            code = ErrorCode.INVALID_FIELD
            message = raw_message

        return jsonify(AppError(code, message, 400, field=field).to_dict()), 400

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        code = {
            404: ErrorCode.NOT_FOUND,
            405: ErrorCode.METHOD_NOT_ALLOWED,
        }.get(error.code, ErrorCode.BAD_REQUEST)
        return jsonify(AppError(code, error.description, error.code).to_dict()), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        app.logger.error(
            "Unhandled exception: %s\n%s",
            str(error),
            traceback.format_exc(),
        )
        return jsonify(AppError(
            ErrorCode.INTERNAL_ERROR,
            "An unexpected error occurred. Please try again later.",
            500,
        ).to_dict()), 500


def _first_validation_message(messages) -> tuple[str | None, str]:
    """Flattens marshmallow's messages dict to its first (field, message) pair."""
    if isinstance(messages, dict):
        for field_name, field_errors in messages.items():
            field = None if field_name == "_schema" else field_name
            if isinstance(field_errors, list):
                return field, str(field_errors[0]) if field_errors else "Invalid value."
            if isinstance(field_errors, dict):
                # Nested schema errors: keep the outer field name.
                return field, _first_validation_message(field_errors)[1]
            return field, str(field_errors)
    if isinstance(messages, list) and messages:
        return None, str(messages[0])
    return None, "Invalid input."


def _code_to_message(code: str) -> str:
    """
    Human-readable default message for a code raised as a ValidationError
    message in schemas/.
    """
    messages = {
        "INVALID_AMOUNT": "Amount must be a number between 0 and 999999.99.",
        "INVALID_AMOUNT_PRECISION": "Amount must have at most 2 decimal places.",
    }
    return messages.get(code, "Invalid input.")


def _register_response_headers(app: Flask) -> None:
    """
    CORS for the configured client origins (any origin in debug/testing),
    plus basic security headers on every response.
    """

    @app.after_request
    def add_headers(response):
        origin = request.headers.get("Origin")
        allow_all = bool(app.config.get("DEBUG") or app.config.get("TESTING"))
        allowed = app.config.get("CORS_ALLOWED_ORIGINS", [])

        if origin and (allow_all or origin in allowed):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, DELETE, OPTIONS"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"

        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
        return response


def _register_health_check(app: Flask) -> None:
    from backend.app.models.base import utcnow

    @app.route("/api/health", methods=["GET"])
    def health():
        return jsonify({"status": "ok", "timestamp": utcnow().isoformat()}), 200


def _register_cli(app: Flask) -> None:
    """`flask generate-recurring` — cron entry point for recurring IOUs."""

    @app.cli.command("generate-recurring")
    def generate_recurring_command():
        from backend.app.extensions import db
        from backend.app.services import recurring_service

        generated = recurring_service.generate_all_due(session=db.session)
        db.session.commit()
        click.echo(f"Generated {len(generated)} recurring IOU(s).")
