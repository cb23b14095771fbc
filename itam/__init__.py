"""
Asset tracker application package.

``create_app`` builds the Flask app that exposes the lifecycle
processor over JSON::

    from itam import create_app
    app = create_app()           # config chosen by FLASK_ENV
    app = create_app("testing")  # in-memory database
"""

import logging
import os

from flask import Flask
from werkzeug.exceptions import HTTPException

from .config import config_by_name
from .errors import (
    AssetLifecycleError,
    ConflictError,
    InvalidStateTransitionError,
    NotFoundError,
    ValidationError,
)
from .extensions import db, login_manager, migrate

# HTTP status and error code for each lifecycle error.
_ERROR_RESPONSES: dict[type[AssetLifecycleError], tuple[int, str]] = {
    ValidationError: (400, "VALIDATION_ERROR"),
    InvalidStateTransitionError: (400, "INVALID_STATE_TRANSITION"),
    NotFoundError: (404, "NOT_FOUND"),
    ConflictError: (409, "CONFLICT"),
}


def create_app(config_name: str | None = None) -> Flask:
    """
    Build the asset tracker application.

    Args:
        config_name: Key into ``config_by_name``.  When omitted,
                     ``FLASK_ENV`` is used, then 'development'.

    Raises:
        ValueError:   For an unknown config name.
        RuntimeError: When production settings still hold defaults.
    """
    config_name = config_name or os.environ.get("FLASK_ENV", "development")
    config_class = config_by_name.get(config_name)
    if config_class is None:
        raise ValueError(
            f"Unknown config '{config_name}', "
            f"expected one of {sorted(config_by_name)}"
        )

    app = Flask(__name__)
    app.config.from_object(config_class)
    if config_name == "production":
        config_class.validate_production_secrets(app.config)

    # -- Logging -----------------------------------------------------------
    _configure_logging(app)

    # -- Extensions --------------------------------------------------------
    _register_extensions(app)

    # -- Blueprints --------------------------------------------------------
    _register_blueprints(app)

    # -- JSON error responses ----------------------------------------------
    _register_error_handlers(app)

    # -- CLI ---------------------------------------------------------------
    _register_cli_commands(app)

    return app


def _register_extensions(app: Flask) -> None:
    """Initialize the ORM, migrations and operator sessions."""
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    # Deferred so models load after ``db`` is bound.
    from .models.user import User  # pylint: disable=import-outside-toplevel

    @login_manager.user_loader
    def load_user(user_id: str):
        """Resolve the session's user id; inactive users are signed out."""
        user = db.session.get(User, int(user_id))
        return user if user is not None and user.is_active else None

    @login_manager.unauthorized_handler
    def unauthorized():
        return {"error": "UNAUTHORIZED", "message": "Authentication required"}, 401


def _register_blueprints(app: Flask) -> None:
    """Mount each blueprint under its URL prefix."""
    # pylint: disable=import-outside-toplevel

    # Health check at the root.
    from .blueprints.main import bp as main_bp

    app.register_blueprint(main_bp)

    # Registration, lookup, history and deletion.
    from .blueprints.assets import bp as assets_bp

    app.register_blueprint(assets_bp, url_prefix="/assets")

    # Lifecycle actions and the transaction log.
    from .blueprints.transactions import bp as transactions_bp

    app.register_blueprint(transactions_bp, url_prefix="/transactions")


def _register_error_handlers(app: Flask) -> None:
    """Render lifecycle errors and HTTP errors as JSON."""

    @app.errorhandler(AssetLifecycleError)
    def lifecycle_error(error: AssetLifecycleError):
        status, code = _ERROR_RESPONSES.get(type(error), (400, "BAD_REQUEST"))
        body = error.to_dict()
        body["error"] = code
        return body, status

    @app.errorhandler(HTTPException)
    def http_error(error: HTTPException):
        code = error.name.upper().replace(" ", "_")
        return {"error": code, "message": error.description}, error.code

    @app.errorhandler(500)
    def internal_error(error):  # pylint: disable=unused-argument
        """Discard the failed unit of work before answering."""
        db.session.rollback()
        return {"error": "INTERNAL_ERROR", "message": "Internal server error"}, 500


def _register_cli_commands(app: Flask) -> None:
    from .cli import register_commands  # pylint: disable=import-outside-toplevel

    register_commands(app)


def _configure_logging(app: Flask) -> None:
    """Root log level comes from ``LOG_LEVEL``."""
    level = app.config.get("LOG_LEVEL", "INFO")
    logging.basicConfig(level=getattr(logging, level, logging.INFO))

    # SQLALCHEMY_ECHO already prints statements in debug mode.
    if app.debug:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
