"""
Security decorators for access control
"""
from functools import wraps
from flask_login import current_user
from workstream.exceptions import NotAuthenticated, NotAuthorized


def require_workspace_admin(f):
    """
    Decorator to ensure the signed-in identity is a workspace administrator
    Must be used after @login_required
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        from workstream.models.user import User

        if not current_user.is_authenticated:
            raise NotAuthenticated("Authentication required")

        user = User.get_by_subject(current_user.subject_id)
        if not user or not user.is_admin:
            raise NotAuthorized("Not authorized - admin access required")

        return f(*args, **kwargs)

    return decorated_function
