"""
Unbound extension instances, initialized by ``create_app()``.

Models and repositories import ``db`` from here rather than from the
application package.
"""

from flask_login import LoginManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

# -- Database ORM ----------------------------------------------------------
db = SQLAlchemy()

# -- Schema migrations -----------------------------------------------------
migrate = Migrate()

# -- Operator sessions -----------------------------------------------------
# Identifies the operator recorded on each transaction.  Credential
# issuance lives outside this application.
login_manager = LoginManager()
