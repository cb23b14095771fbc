"""
Role checks for the JSON routes.

Stack under Flask-Login's ``@login_required``::

    @bp.route("/dispose", methods=["POST"])
    @login_required
    @role_required("admin")
    def dispose():
        ...
"""

import logging
from functools import wraps

from flask import abort, request
from flask_login import current_user

logger = logging.getLogger(__name__)


def role_required(*role_names: str):
    """
    Allow the view only for operators holding one of ``role_names``.

    Anonymous callers get 401 and signed-in callers with another role
    get 403.
    """

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            if not current_user.is_authenticated:
                abort(401)
            if not current_user.has_role(*role_names):
                logger.warning(
                    "Denied %s %s to user %d with role '%s' (needs %s)",
                    request.method,
                    request.path,
                    current_user.id,
                    current_user.role,
                    " or ".join(role_names),
                )
                abort(403)
            return func(*args, **kwargs)

        return wrapper

    return decorator
