"""
Transactions blueprint: one endpoint per lifecycle action plus the
transaction log.
"""

from flask import Blueprint

bp = Blueprint("transactions", __name__)

from itam.blueprints.transactions import routes  # noqa: E402, F401
