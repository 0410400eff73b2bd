"""Access decorators layered on Flask-Login."""
from functools import wraps

from flask import current_app
from flask_login import current_user, login_required

from utils.errors import AuthorizationError


def active_account_required(view_func):
    """Require an authenticated, non-deactivated account."""

    @wraps(view_func)
    @login_required
    def wrapped(*args, **kwargs):
        if current_user.is_active:
            return view_func(*args, **kwargs)

        current_app.logger.warning(
            "Deactivated account access attempt",
            extra={"user_id": current_user.id, "role": current_user.role},
        )
        raise AuthorizationError("Account is deactivated. Reactivate it to continue.")

    return wrapped
