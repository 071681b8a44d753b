"""
Custom route decorators for access control.

- principal_required: rejects anonymous callers with 401 JSON, then passes
  the authenticated user's id to the view as `owner_id`. Views hand that
  id to the service layer explicitly; services never read the session.
"""

from functools import wraps

from flask_login import current_user

from medlead.extensions import login_manager


def principal_required(f):
    """Require a session and inject the caller's id as `owner_id`."""

    @wraps(f)
    def decorated(*args, **kwargs):
        if not current_user.is_authenticated:
            return login_manager.unauthorized()
        kwargs["owner_id"] = current_user.id
        return f(*args, **kwargs)

    return decorated
