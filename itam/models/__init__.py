"""
Model package: imports all models so Alembic and SQLAlchemy can
discover them automatically when ``flask db`` commands are run.

  - user.py        -> users
  - asset.py       -> category, location, asset
  - transaction.py -> asset_transaction (append-only history)
"""

from itam.models.user import User  # noqa: F401
from itam.models.asset import Asset, Category, Location  # noqa: F401
from itam.models.transaction import Transaction  # noqa: F401
