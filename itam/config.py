"""
Per-environment settings for the asset tracker.

``create_app`` picks one of the classes below by name (``FLASK_ENV``
when no name is given).  Every value can be overridden from the
environment.

The database defaults to SQLite so the tracker runs without a server;
point ``DATABASE_URL`` at PostgreSQL or MySQL in production to get
row-level locking on transitions.
"""

import logging
import os

_logger = logging.getLogger(__name__)

# Placeholder key; production startup fails while it is still set.
_DEFAULT_SECRET_KEY = "dev-secret-change-me"


class BaseConfig:
    """Values common to every environment."""

    # -- Flask core --------------------------------------------------------
    SECRET_KEY: str = os.environ.get("SECRET_KEY", _DEFAULT_SECRET_KEY)

    # -- Operator session cookie -------------------------------------------
    SESSION_COOKIE_HTTPONLY: bool = True
    SESSION_COOKIE_SAMESITE: str = "Lax"
    SESSION_COOKIE_SECURE: bool = False
    PERMANENT_SESSION_LIFETIME: int = int(
        os.environ.get("PERMANENT_SESSION_LIFETIME", "3600")
    )

    # -- Database ----------------------------------------------------------
    SQLALCHEMY_DATABASE_URI: str = os.environ.get(
        "DATABASE_URL", "sqlite:///itam.db"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS: bool = False
    SQLALCHEMY_ECHO: bool = False

    # -- Asset tags --------------------------------------------------------
    # Prefix used when a category has no known abbreviation.
    ASSET_TAG_DEFAULT_PREFIX: str = os.environ.get(
        "ASSET_TAG_DEFAULT_PREFIX", "AST"
    )

    # -- Pagination --------------------------------------------------------
    HISTORY_PAGE_SIZE: int = int(os.environ.get("HISTORY_PAGE_SIZE", "20"))

    # -- Logging -----------------------------------------------------------
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")

    @classmethod
    def validate_production_secrets(cls, app_config: dict) -> None:
        """
        Refuse to start production with development defaults.

        Raises:
            RuntimeError: If SECRET_KEY is still the placeholder.
        """
        problems: list[str] = []

        if app_config.get("SECRET_KEY") == _DEFAULT_SECRET_KEY:
            problems.append(
                "SECRET_KEY is still the development placeholder. "
                "Set SECRET_KEY to a long random value."
            )

        if app_config.get("SQLALCHEMY_DATABASE_URI", "").startswith("sqlite"):
            _logger.warning(
                "DATABASE_URL points at SQLite in production. Concurrent "
                "transactions on the same asset rely on the version check "
                "only; use a server database for row locking."
            )

        if problems:
            raise RuntimeError(
                "Refusing to start in production:\n  - " + "\n  - ".join(problems)
            )

        if app_config.get("LOG_LEVEL", "").upper() == "DEBUG":
            _logger.warning("LOG_LEVEL=DEBUG in production logs every SQL call.")


class DevelopmentConfig(BaseConfig):
    """Local development: debug mode and SQL echo."""

    DEBUG: bool = True
    SQLALCHEMY_ECHO: bool = True
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "DEBUG")


class TestingConfig(BaseConfig):
    """
    Test runs against an in-memory SQLite database.

    Flask-SQLAlchemy shares a single connection for ``sqlite://`` so
    every session in a test sees the same tables.
    """

    TESTING: bool = True
    SQLALCHEMY_DATABASE_URI: str = os.environ.get("TEST_DATABASE_URL", "sqlite://")
    LOG_LEVEL: str = "DEBUG"


class ProductionConfig(BaseConfig):
    """Deployed service; checked by ``validate_production_secrets()``."""

    DEBUG: bool = False
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "WARNING")
    # Requires HTTPS.
    SESSION_COOKIE_SECURE: bool = True


config_by_name: dict[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}
