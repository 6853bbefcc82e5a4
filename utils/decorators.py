"""
Route decorators for authentication and authorization.
Provides access-level control for admin routes.
"""

from functools import wraps
from flask import flash, abort
from flask_login import login_required, current_user

from utils.messages import MESSAGES

# Access level of site administrators
ADMIN_ACCESS_LEVEL = 3


def access_level_required(level: int):
    """
    Decorator to require a minimum access level for a route.

    Usage:
        @admin_bp.route('/dashboard')
        @login_required
        @access_level_required(ADMIN_ACCESS_LEVEL)
        def dashboard():
            ...

    Args:
        level: Minimum users.access_level allowed

    Returns:
        Decorator function
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            if getattr(current_user, 'access_level', 0) < level:
                flash(MESSAGES['permission_denied'], 'error')
                abort(403)

            return func(*args, **kwargs)
        return wrapper
    return decorator


# Re-export login_required for convenience
__all__ = ['login_required', 'access_level_required', 'ADMIN_ACCESS_LEVEL']
