"""
Main blueprint: health check.
"""

from flask import Blueprint

bp = Blueprint("main", __name__)

# Import routes after blueprint creation to avoid circular imports.
from itam.blueprints.main import routes  # noqa: E402, F401
