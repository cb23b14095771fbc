"""
Assets blueprint: registration, lookup, history and guarded deletion.
"""

from flask import Blueprint

bp = Blueprint("assets", __name__)

from itam.blueprints.assets import routes  # noqa: E402, F401
